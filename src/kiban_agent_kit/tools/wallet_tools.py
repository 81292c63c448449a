"""Agent-facing wallet tools.

These tools let agents inspect the connected wallet, check native balances,
estimate gas and send ETH or ERC20 transfers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from pydantic import Field, field_validator

from kiban_agent_kit.tools.registry import ToolInput, check_amount, tool

if TYPE_CHECKING:
    from kiban_agent_kit.kit import KibanAgentKit


class NoInput(ToolInput):
    pass


class BalanceInput(ToolInput):
    address: Optional[str] = Field(
        None,
        description="Wallet address to check. Omit for the connected wallet.",
    )


class TransferInput(ToolInput):
    to: str = Field(..., description="The recipient wallet address (0x...)")
    amount: str = Field(..., description="The amount to transfer, e.g. '0.01'")
    token_address: Optional[str] = Field(
        None,
        description="Optional ERC20 token address or symbol. If not provided, sends ETH",
    )

    @field_validator("amount")
    @classmethod
    def amount_is_decimal(cls, value: str) -> str:
        return check_amount(value)


class GasInput(ToolInput):
    to: Optional[str] = Field(
        None, description="Optional recipient address for transaction cost estimation"
    )
    value: Optional[str] = Field(
        None, description="Optional amount in ETH for transaction cost estimation"
    )


class HistoryInput(ToolInput):
    limit: int = Field(
        5, ge=1, le=100, description="Maximum number of transactions to return (default: 5)"
    )


@tool(
    "get_wallet_info",
    "Get information about the currently connected wallet including address, balance, and chain",
    NoInput,
    error_prefix="Error retrieving wallet information",
)
async def get_wallet_info(kit: KibanAgentKit, args: NoInput):
    return await kit.get_wallet_info()


@tool(
    "check_eth_balance",
    "Get the native ETH balance of a wallet address (defaults to the connected wallet)",
    BalanceInput,
    error_prefix="Error checking balance",
)
async def check_eth_balance(kit: KibanAgentKit, args: BalanceInput):
    address = args.address or kit.get_address()
    balance = await kit.get_native_balance(address)
    return {"address": address, "balance": balance, "symbol": kit.chain.native_symbol}


@tool(
    "transfer_tokens",
    "Transfer ETH or ERC20 tokens to another address",
    TransferInput,
)
async def transfer_tokens(kit: KibanAgentKit, args: TransferInput):
    token = args.token_address or "eth"
    tx_hash = await kit.send_tokens(token, args.to, args.amount)
    kind = "ETH" if token.lower() == "eth" else "Token"
    return {
        "transactionHash": tx_hash,
        "message": f"{kind} transfer transaction sent: {tx_hash}",
    }


@tool(
    "estimate_gas",
    "Get current gas prices and estimate transaction costs",
    GasInput,
    error_prefix="Error estimating gas",
)
async def estimate_gas(kit: KibanAgentKit, args: GasInput):
    return await kit.estimate_gas_for_transaction(args.to, args.value)


@tool(
    "get_transaction_history",
    "Get recent transactions for the connected wallet",
    HistoryInput,
    error_prefix="Error retrieving transaction history",
)
async def get_transaction_history(kit: KibanAgentKit, args: HistoryInput):
    return await kit.get_transaction_history(args.limit)
