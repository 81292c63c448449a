"""Agent-facing ERC20 tools: token info, approvals and allowances."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from pydantic import Field, field_validator

from kiban_agent_kit.tools.registry import ToolInput, check_amount, tool

if TYPE_CHECKING:
    from kiban_agent_kit.kit import KibanAgentKit


class TokenInfoInput(ToolInput):
    token_address: str = Field(
        ..., description="The ERC20 token contract address or symbol (WETH, USDC, USDT, DAI)"
    )
    wallet_address: Optional[str] = Field(
        None, description="Optional wallet address to check balance for"
    )


class ApprovalInput(ToolInput):
    token_address: str = Field(..., description="The ERC20 token contract address")
    spender_address: str = Field(..., description="The address to approve as spender")
    amount: str = Field(..., description="The amount to approve, in token units")

    @field_validator("amount")
    @classmethod
    def amount_is_decimal(cls, value: str) -> str:
        return check_amount(value)


class AllowanceInput(ToolInput):
    token_address: str = Field(..., description="The ERC20 token contract address")
    owner_address: str = Field(..., description="The token owner's address")
    spender_address: str = Field(..., description="The spender's address")


@tool(
    "check_token_info",
    "Get information about an ERC20 token including name, symbol, decimals and balance",
    TokenInfoInput,
    error_prefix="Error getting token info",
)
async def check_token_info(kit: KibanAgentKit, args: TokenInfoInput):
    info = await kit.get_token_info(args.token_address, args.wallet_address)
    return {
        "name": info.name,
        "symbol": info.symbol,
        "decimals": info.decimals,
        "balance": info.balance,
    }


@tool(
    "approve_token_spending",
    "Approve a spender to use a specific amount of your ERC20 tokens",
    ApprovalInput,
    error_prefix="Error approving token spending",
)
async def approve_token_spending(kit: KibanAgentKit, args: ApprovalInput):
    tx_hash = await kit.approve_spending(args.token_address, args.spender_address, args.amount)
    return f"Approval transaction sent: {tx_hash}"


@tool(
    "check_token_allowance",
    "Check how much of a token a spender is allowed to use on behalf of an owner",
    AllowanceInput,
    error_prefix="Error checking allowance",
)
async def check_token_allowance(kit: KibanAgentKit, args: AllowanceInput):
    allowance = await kit.get_allowance(
        args.token_address, args.owner_address, args.spender_address
    )
    return {"allowance": str(allowance)}
