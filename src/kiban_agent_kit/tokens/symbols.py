"""Token symbol resolution and human/base-unit amount conversion."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext
from enum import Enum

from web3 import Web3

from kiban_agent_kit.errors import InvalidAddressError

# Marker address for native ETH. Never sent on-chain.
ETH_SENTINEL = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"


class KnownToken(str, Enum):
    """Symbols the kit resolves to canonical mainnet addresses."""

    ETH = "ETH"
    WETH = "WETH"
    USDC = "USDC"
    USDT = "USDT"
    DAI = "DAI"

    @property
    def address(self) -> str:
        return COMMON_TOKENS[self]


COMMON_TOKENS: dict[KnownToken, str] = {
    KnownToken.ETH: ETH_SENTINEL,
    KnownToken.WETH: "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
    KnownToken.USDC: "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
    KnownToken.USDT: "0xdAC17F958D2ee523a2206206994597C13D831ec7",
    KnownToken.DAI: "0x6B175474E89094C44Da98b954EedeAC495271d0F",
}

WETH_ADDRESS = COMMON_TOKENS[KnownToken.WETH]


def parse_token_ref(ref: str, strict: bool = False) -> KnownToken | str:
    """Map *ref* to a :class:`KnownToken` or return it as a raw address.

    With *strict*, a string that is neither a known symbol nor shaped like an
    address raises ``InvalidAddressError`` instead of falling through.
    """
    cleaned = ref.strip()
    try:
        return KnownToken(cleaned.upper())
    except ValueError:
        pass
    if strict and not Web3.is_address(cleaned):
        raise InvalidAddressError(cleaned)
    return cleaned


def normalize(ref: str) -> str:
    """Resolve a symbol (case-insensitive) or pass an address through.

    Unrecognized strings are returned unchanged; the contract-call layer
    rejects them if they are not valid addresses.
    """
    token = parse_token_ref(ref)
    if isinstance(token, KnownToken):
        return token.address
    return token


def is_eth(address: str) -> bool:
    return address.lower() == ETH_SENTINEL.lower()


def to_base_units(amount: str, decimals: int) -> int:
    """Parse a decimal string into integer base units.

    ``to_base_units("1.5", 6) == 1500000``. More fractional digits than
    *decimals* is an error, not a rounding.
    """
    text = str(amount).strip()
    try:
        value = Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount '{amount}'") from exc
    if not value.is_finite():
        raise ValueError(f"Invalid amount '{amount}'")
    if value < 0:
        raise ValueError(f"Amount must not be negative: '{amount}'")

    with localcontext() as ctx:
        ctx.prec = len(value.as_tuple().digits) + decimals + 2
        scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(
            f"Amount '{amount}' has more than {decimals} decimal places"
        )
    return int(scaled)


def to_human_units(amount: int, decimals: int) -> str:
    """Format integer base units as a decimal string, trailing zeros trimmed."""
    sign = "-" if amount < 0 else ""
    digits = str(abs(int(amount))).rjust(decimals + 1, "0")
    split = len(digits) - decimals
    whole, fraction = digits[:split], digits[split:].rstrip("0")
    if fraction:
        return f"{sign}{whole}.{fraction}"
    return f"{sign}{whole}"
