"""Exception hierarchy for Kiban Agent Kit.

Facade methods raise these; the agent tool wrappers catch them and turn them
into plain ``"Error ...: <message>"`` strings.
"""

from __future__ import annotations


class KibanError(Exception):
    """Base class for every error raised by the kit."""


class ConfigurationError(KibanError):
    """Missing or malformed credentials, unsupported chain, or no RPC URL."""


class InvalidAddressError(KibanError, ValueError):
    """A string failed address-shape validation before a contract call."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Invalid address: {address}")
        self.address = address


class ContractReadError(KibanError):
    """A read-only contract call reverted or hit an address with no code."""


class ContractCallError(KibanError):
    """Building, signing or broadcasting a transaction failed."""


class InsufficientFundsError(ContractCallError):
    """The wallet cannot cover the value (plus gas) of a transaction."""

    def __init__(self, message: str, balance: str, required: str) -> None:
        super().__init__(message)
        self.balance = balance
        self.required = required


class SwapQuoteError(KibanError):
    """The quote flow failed; wraps the underlying read error."""


class SwapExecutionError(KibanError):
    """The swap flow failed after quoting."""


class MarketDataError(KibanError):
    """The market-data HTTP API could not be reached or returned garbage."""
