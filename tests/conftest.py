"""Shared fixtures: an in-memory chain client standing in for the RPC node."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from kiban_agent_kit.chain.chains import CHAINS
from kiban_agent_kit.chain.provider import TransactionReceipt
from kiban_agent_kit.config import KitConfig
from kiban_agent_kit.kit import KibanAgentKit
from kiban_agent_kit.market.dexscreener import DexScreenerService
from kiban_agent_kit.tokens.abi import UNISWAP_V3_QUOTER
from kiban_agent_kit.tokens.symbols import COMMON_TOKENS, KnownToken

OWNER = "0x1111111111111111111111111111111111111111"
OTHER = "0x2222222222222222222222222222222222222222"
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

WETH = COMMON_TOKENS[KnownToken.WETH]
USDC = COMMON_TOKENS[KnownToken.USDC]
DAI = COMMON_TOKENS[KnownToken.DAI]

TOKENS = {
    WETH: ("Wrapped Ether", "WETH", 18),
    USDC: ("USD Coin", "USDC", 6),
    DAI: ("Dai Stablecoin", "DAI", 18),
}


class FakeChainClient:
    """Records every call in ``log`` as ``(kind, function_name)`` tuples."""

    def __init__(self) -> None:
        self.address = OWNER
        self.chain = CHAINS["mainnet"]
        self.log: list[tuple[str, str]] = []
        self.quote_out = 250_000
        self.allowance = 0
        self.balances = {addr: 10 ** dec for addr, (_, _, dec) in TOKENS.items()}
        self.write_error: Exception | None = None
        self.receipt_status = "success"

        self.read_contract = AsyncMock(side_effect=self._read)
        self.write_contract = AsyncMock(side_effect=self._write)
        self.send_transaction = AsyncMock(side_effect=self._send)
        self.wait_for_receipt = AsyncMock(side_effect=self._wait)
        self.get_balance = AsyncMock(return_value=2 * 10**18)
        self.get_transaction_count = AsyncMock(return_value=0)
        self.get_gas_price = AsyncMock(return_value=20 * 10**9)
        self.estimate_gas = AsyncMock(return_value=21_000)

    async def _read(self, address, abi, function_name, *args):
        self.log.append(("read", function_name))
        if address == UNISWAP_V3_QUOTER:
            return self.quote_out
        if function_name == "allowance":
            return self.allowance
        name, symbol, decimals = TOKENS[address]
        return {
            "name": name,
            "symbol": symbol,
            "decimals": decimals,
            "balanceOf": self.balances[address],
            "totalSupply": 10**30,
        }[function_name]

    async def _write(self, address, abi, function_name, *args, value=0):
        self.log.append(("write", function_name))
        if self.write_error is not None and function_name == "exactInputSingle":
            raise self.write_error
        return f"0x{len(self.log):064x}"

    async def _send(self, to, value):
        self.log.append(("send", to))
        return "0x" + "ab" * 32

    async def _wait(self, tx_hash):
        self.log.append(("wait", tx_hash))
        return TransactionReceipt(
            status=self.receipt_status, hash=tx_hash, block_number=100, gas_used=150_000
        )


@pytest.fixture
def chain() -> FakeChainClient:
    return FakeChainClient()


@pytest.fixture
def kit(chain) -> KibanAgentKit:
    return KibanAgentKit(
        KitConfig(private_key=TEST_PRIVATE_KEY),
        client=chain,
        market=DexScreenerService(),
    )
