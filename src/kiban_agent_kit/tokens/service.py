"""ERC20 reads and writes: metadata, balances, allowances, transfers, approvals."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from kiban_agent_kit.chain.provider import ChainClient, TransactionReceipt, ensure_address
from kiban_agent_kit.tokens.abi import ERC20_ABI
from kiban_agent_kit.tokens.symbols import to_base_units, to_human_units

logger = logging.getLogger("kiban_agent_kit.tokens.service")


@dataclass(frozen=True)
class TokenInfo:
    address: str
    name: str
    symbol: str
    decimals: int
    balance: str
    balance_raw: int


@dataclass(frozen=True)
class TokenMetadata:
    name: str
    symbol: str
    decimals: int
    total_supply: int


class TokenService:
    """Core token operations against ERC20 contracts."""

    def __init__(self, client: ChainClient) -> None:
        self.client = client

    async def get_token_info(self, token: str, owner: str | None = None) -> TokenInfo:
        """Fetch name, symbol, decimals and the balance of *owner*.

        The four reads are independent and are issued concurrently. *owner*
        defaults to the kit's own account.
        """
        address = ensure_address(token)
        holder = ensure_address(owner) if owner else self.client.address
        name, symbol, decimals, balance_raw = await asyncio.gather(
            self.client.read_contract(address, ERC20_ABI, "name"),
            self.client.read_contract(address, ERC20_ABI, "symbol"),
            self.client.read_contract(address, ERC20_ABI, "decimals"),
            self.client.read_contract(address, ERC20_ABI, "balanceOf", holder),
        )
        return TokenInfo(
            address=address,
            name=name,
            symbol=symbol,
            decimals=int(decimals),
            balance=to_human_units(balance_raw, int(decimals)),
            balance_raw=int(balance_raw),
        )

    async def get_token_metadata(self, token: str) -> TokenMetadata:
        address = ensure_address(token)
        name, symbol, decimals, total_supply = await asyncio.gather(
            self.client.read_contract(address, ERC20_ABI, "name"),
            self.client.read_contract(address, ERC20_ABI, "symbol"),
            self.client.read_contract(address, ERC20_ABI, "decimals"),
            self.client.read_contract(address, ERC20_ABI, "totalSupply"),
        )
        return TokenMetadata(
            name=name,
            symbol=symbol,
            decimals=int(decimals),
            total_supply=int(total_supply),
        )

    async def get_allowance(self, token: str, owner: str, spender: str) -> int:
        """Current approved amount in base units (0 if never approved)."""
        allowance = await self.client.read_contract(
            ensure_address(token),
            ERC20_ABI,
            "allowance",
            ensure_address(owner),
            ensure_address(spender),
        )
        return int(allowance)

    async def send_tokens(self, token: str, to: str, amount: str) -> str:
        """Send native ETH (``token="eth"``) or an ERC20 token. Returns the tx hash."""
        recipient = ensure_address(to)
        if token.strip().lower() == "eth":
            logger.info(f"Sending {amount} ETH to {recipient}")
            return await self.client.send_transaction(recipient, to_base_units(amount, 18))

        info = await self.get_token_info(token)
        logger.info(f"Sending {amount} {info.symbol} to {recipient}")
        return await self.client.write_contract(
            info.address,
            ERC20_ABI,
            "transfer",
            recipient,
            to_base_units(amount, info.decimals),
        )

    async def approve_spending(self, token: str, spender: str, amount: str) -> str:
        """Approve *spender* for exactly *amount* (human units). Returns the tx hash."""
        info = await self.get_token_info(token)
        spender_address = ensure_address(spender)
        logger.info(f"Approving {spender_address} for {amount} {info.symbol}")
        return await self.client.write_contract(
            info.address,
            ERC20_ABI,
            "approve",
            spender_address,
            to_base_units(amount, info.decimals),
        )

    async def wait_for_transaction(self, tx_hash: str) -> TransactionReceipt:
        return await self.client.wait_for_receipt(tx_hash)
