"""Agent-facing DexScreener market data tools."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field

from kiban_agent_kit.tools.registry import ToolInput, tool

if TYPE_CHECKING:
    from kiban_agent_kit.kit import KibanAgentKit


class TokenDataInput(ToolInput):
    token_address: str = Field(..., description="The token contract address to look up")


class TickerInput(ToolInput):
    ticker: str = Field(..., min_length=1, description="The token ticker/symbol to search for")


@tool(
    "get_token_data",
    "Get token price and market data from DexScreener using a token address",
    TokenDataInput,
    error_prefix="Error fetching token data",
)
async def get_token_data(kit: KibanAgentKit, args: TokenDataInput):
    data = await kit.get_token_data(args.token_address)
    if data is None:
        return "No data found for this token"
    return data


@tool(
    "search_token_by_ticker",
    "Search for a token on DexScreener using its ticker symbol (e.g., 'ETH', 'USDC')",
    TickerInput,
    error_prefix="Error searching for token",
)
async def search_token_by_ticker(kit: KibanAgentKit, args: TickerInput):
    return await kit.search_token_by_ticker(args.ticker)
