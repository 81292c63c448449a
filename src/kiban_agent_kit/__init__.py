"""Kiban Agent Kit - connect AI agents to EVM wallets, ERC20 tokens and Uniswap V3.

The :class:`KibanAgentKit` facade exposes typed async methods; its
:meth:`~KibanAgentKit.get_tools` returns the same operations as JSON-returning
agent tools.
"""

from kiban_agent_kit.config import KitConfig, config_from_env, load_config
from kiban_agent_kit.errors import (
    ConfigurationError,
    ContractCallError,
    ContractReadError,
    InsufficientFundsError,
    InvalidAddressError,
    KibanError,
    MarketDataError,
    SwapExecutionError,
    SwapQuoteError,
)
from kiban_agent_kit.kit import KibanAgentKit
from kiban_agent_kit.tokens.swap import SwapParams, SwapQuote, SwapResult

__all__ = [
    "ConfigurationError",
    "ContractCallError",
    "ContractReadError",
    "InsufficientFundsError",
    "InvalidAddressError",
    "KibanAgentKit",
    "KibanError",
    "KitConfig",
    "MarketDataError",
    "SwapExecutionError",
    "SwapParams",
    "SwapQuote",
    "SwapQuoteError",
    "SwapResult",
    "config_from_env",
    "load_config",
]
