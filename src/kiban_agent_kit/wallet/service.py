"""Wallet-level reads: address, balance, chain, history, gas estimates."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from web3 import Web3

from kiban_agent_kit.chain.provider import ChainClient
from kiban_agent_kit.tokens.symbols import to_base_units, to_human_units

logger = logging.getLogger("kiban_agent_kit.wallet.service")


@dataclass(frozen=True)
class ChainInfo:
    name: str
    id: int
    native_currency: dict


@dataclass(frozen=True)
class WalletInfo:
    address: str
    balance: str
    chain: ChainInfo
    message: str


@dataclass(frozen=True)
class TransactionHistory:
    message: str
    transaction_count: int = 0
    view_on_explorer: str | None = None
    transactions: list = field(default_factory=list)


@dataclass
class TransactionCostEstimate:
    gas_units: str = "0"
    estimated_cost_wei: str = "0"
    estimated_cost_eth: str = "0"
    message: str = ""
    error: str | None = None


@dataclass
class GasEstimate:
    current_gas_price: str
    estimated_base_fee: str
    transaction_details: TransactionCostEstimate | None = None


def _format_gwei(wei: int) -> str:
    gwei = Decimal(Web3.from_wei(wei, "gwei"))
    return format(gwei.normalize(), "f")


class WalletService:
    """Reports on the kit's own account."""

    def __init__(self, client: ChainClient) -> None:
        self.client = client

    def get_chain_info(self) -> ChainInfo:
        chain = self.client.chain
        return ChainInfo(
            name=chain.display_name,
            id=chain.chain_id,
            native_currency=chain.native_currency,
        )

    async def get_native_balance(self, address: str | None = None) -> str:
        """Native balance in human units (e.g. ``"0.25"``)."""
        wei = await self.client.get_balance(address)
        return to_human_units(wei, self.client.chain.native_decimals)

    async def get_wallet_info(self) -> WalletInfo:
        address = self.client.address
        balance = await self.get_native_balance()
        chain = self.get_chain_info()
        symbol = chain.native_currency["symbol"]
        return WalletInfo(
            address=address,
            balance=f"{balance} {symbol}",
            chain=chain,
            message=(
                f"This wallet ({address}) is connected to {chain.name} "
                f"with a balance of {balance} {symbol}."
            ),
        )

    async def get_transaction_history(self, limit: int = 5) -> TransactionHistory:
        """Sent-transaction count for the account.

        A plain RPC node cannot list an account's transactions, so only the
        count is reported, with a block-explorer link. *limit* is accepted for
        API compatibility with indexer-backed implementations.
        """
        address = self.client.address
        sent = await self.client.get_transaction_count()
        if sent == 0:
            return TransactionHistory(message=f"No transactions found for wallet {address}")

        explorer = self.client.chain.explorer_url
        return TransactionHistory(
            message=(
                f"This wallet ({address}) has sent {sent} transactions. To view "
                "detailed transaction history, please use a block explorer."
            ),
            transaction_count=sent,
            view_on_explorer=f"{explorer}/address/{address}" if explorer else None,
        )

    async def estimate_gas(self, to: str | None = None, value: str | None = None) -> GasEstimate:
        """Current gas price, plus a cost estimate when *to* and *value* are given.

        *value* is in ETH. Estimation failures are reported in
        ``transaction_details.error`` rather than raised.
        """
        gas_price = await self.client.get_gas_price()
        gwei = _format_gwei(gas_price)
        result = GasEstimate(
            current_gas_price=f"{gwei} gwei",
            estimated_base_fee=f"{gwei} gwei",
        )

        if to and value:
            try:
                gas_units = await self.client.estimate_gas(to, to_base_units(value, 18))
            except Exception as e:
                logger.warning(f"Gas estimation failed for {to}: {e}")
                result.transaction_details = TransactionCostEstimate(
                    message="Failed to estimate gas",
                    error=str(e),
                )
                return result

            cost = gas_units * gas_price
            cost_eth = to_human_units(cost, 18)
            result.transaction_details = TransactionCostEstimate(
                gas_units=str(gas_units),
                estimated_cost_wei=str(cost),
                estimated_cost_eth=cost_eth,
                message=(
                    f"Estimated cost for this transaction: {cost_eth} ETH "
                    f"({gas_units} gas units at {gwei} gwei)"
                ),
            )
        return result
