"""Wallet information, transaction history and gas estimation."""
