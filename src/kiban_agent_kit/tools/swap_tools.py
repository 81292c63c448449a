"""Agent-facing Uniswap V3 swap tools."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from pydantic import Field, field_validator

from kiban_agent_kit.tokens.swap import DEFAULT_SLIPPAGE, SwapParams
from kiban_agent_kit.tools.registry import ToolInput, check_amount, tool

if TYPE_CHECKING:
    from kiban_agent_kit.kit import KibanAgentKit


class SwapQuoteInput(ToolInput):
    token_in: str = Field(
        ..., description="The input token address or symbol (e.g., 'ETH', 'USDC')"
    )
    token_out: str = Field(
        ..., description="The output token address or symbol (e.g., 'ETH', 'USDC')"
    )
    amount: str = Field(..., description="The amount of input token to swap")
    slippage_percentage: Optional[float] = Field(
        None,
        ge=0,
        lt=100,
        description=f"Optional slippage tolerance percentage (default: {DEFAULT_SLIPPAGE})",
    )

    @field_validator("amount")
    @classmethod
    def amount_is_decimal(cls, value: str) -> str:
        return check_amount(value)

    def to_params(self, recipient: str | None = None) -> SwapParams:
        slippage = DEFAULT_SLIPPAGE if self.slippage_percentage is None else self.slippage_percentage
        return SwapParams(
            token_in=self.token_in,
            token_out=self.token_out,
            amount=self.amount,
            slippage_percentage=slippage,
            recipient=recipient,
        )


class SwapInput(SwapQuoteInput):
    recipient: Optional[str] = Field(
        None, description="Optional recipient address (default: sender's address)"
    )


@tool(
    "get_swap_quote",
    "Get a quote for swapping tokens, including expected output amount and price impact",
    SwapQuoteInput,
    error_prefix="Error getting swap quote",
)
async def get_swap_quote(kit: KibanAgentKit, args: SwapQuoteInput):
    quote = await kit.get_swap_quote(args.to_params())
    return {
        "tokenIn": {"symbol": quote.token_in.symbol, "amount": quote.token_in.amount},
        "tokenOut": {"symbol": quote.token_out.symbol, "amount": quote.token_out.amount},
        "executionPrice": quote.execution_price,
        "minimumAmountOut": quote.minimum_amount_out,
        "priceImpact": quote.price_impact,
        "message": (
            f"You can swap {quote.token_in.amount} {quote.token_in.symbol} for "
            f"approximately {quote.token_out.amount} {quote.token_out.symbol} "
            f"(minimum: {quote.minimum_amount_out} {quote.token_out.symbol})."
        ),
    }


@tool(
    "swap_tokens",
    "Execute a token swap using Uniswap V3",
    SwapInput,
    error_prefix="Error executing swap",
)
async def swap_tokens(kit: KibanAgentKit, args: SwapInput):
    result = await kit.swap_tokens(args.to_params(args.recipient))
    return {
        "transactionHash": result.hash,
        "tokenIn": result.token_in,
        "tokenOut": result.token_out,
        "amountIn": result.amount_in,
        "expectedAmountOut": result.expected_amount_out,
        "message": (
            f"Successfully swapped {result.amount_in} {result.token_in} for "
            f"approximately {result.expected_amount_out} {result.token_out}. "
            f"Transaction hash: {result.hash}"
        ),
    }
