"""The kit facade: one object exposing every wallet, token, swap and market operation."""

from __future__ import annotations

import logging
from pathlib import Path

from kiban_agent_kit.chain.provider import ChainClient, TransactionReceipt
from kiban_agent_kit.config import KitConfig, config_from_env, load_config
from kiban_agent_kit.market.dexscreener import (
    DexScreenerService,
    TokenData,
    TokenSearchResponse,
)
from kiban_agent_kit.tokens.service import TokenInfo, TokenMetadata, TokenService
from kiban_agent_kit.tokens.swap import SwapParams, SwapQuote, SwapResult, SwapService
from kiban_agent_kit.tokens.symbols import normalize
from kiban_agent_kit.wallet.service import (
    ChainInfo,
    GasEstimate,
    TransactionHistory,
    WalletInfo,
    WalletService,
)

logger = logging.getLogger("kiban_agent_kit.kit")


class KibanAgentKit:
    """Connects a private key to a chain and wires up every service.

    All services share the single :class:`ChainClient` created here. Errors
    propagate as :class:`~kiban_agent_kit.errors.KibanError` subclasses; use
    :meth:`get_tools` for the string-returning agent interface.

    Parameters
    ----------
    config:
        Connection settings. Validated eagerly; any problem raises
        ``ConfigurationError``.
    client:
        Pre-built chain client (tests, custom transports). Skips the
        connection step but not the rest of the wiring.
    market:
        Pre-built market-data service.
    """

    def __init__(
        self,
        config: KitConfig,
        *,
        client: ChainClient | None = None,
        market: DexScreenerService | None = None,
    ) -> None:
        self.config = config
        if client is None:
            private_key = config.validate_private_key()
            chain = config.resolve_chain()
            client = ChainClient.connect(chain, config.resolve_rpc_url(chain), private_key)
        self.client = client
        self.chain = client.chain

        self.tokens = TokenService(client)
        self.swaps = SwapService(client, self.tokens)
        self.wallet = WalletService(client)
        self.market = market or DexScreenerService(
            base_url=config.market_data_url, timeout=config.http_timeout
        )

    @classmethod
    def from_env(cls) -> KibanAgentKit:
        return cls(config_from_env())

    @classmethod
    def from_file(cls, path: Path) -> KibanAgentKit:
        return cls(load_config(path))

    # ------------------------------------------------------------------
    # Wallet
    # ------------------------------------------------------------------

    def get_address(self) -> str:
        return self.client.address

    def get_chain_id(self) -> int:
        return self.chain.chain_id

    def get_chain_info(self) -> ChainInfo:
        return self.wallet.get_chain_info()

    async def get_native_balance(self, address: str | None = None) -> str:
        return await self.wallet.get_native_balance(address)

    async def get_wallet_info(self) -> WalletInfo:
        return await self.wallet.get_wallet_info()

    async def get_transaction_history(self, limit: int = 5) -> TransactionHistory:
        return await self.wallet.get_transaction_history(limit)

    async def get_gas_price(self) -> int:
        return await self.client.get_gas_price()

    async def estimate_gas(self, to: str, value: int) -> int:
        """Gas units for sending *value* wei to *to*."""
        return await self.client.estimate_gas(to, value)

    async def estimate_gas_for_transaction(
        self, to: str | None = None, value: str | None = None
    ) -> GasEstimate:
        return await self.wallet.estimate_gas(to, value)

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    async def get_token_info(self, token: str, owner: str | None = None) -> TokenInfo:
        """ERC20 info for an address or a known symbol (WETH, USDC, USDT, DAI)."""
        return await self.tokens.get_token_info(normalize(token), owner)

    async def get_token_metadata(self, token: str) -> TokenMetadata:
        return await self.tokens.get_token_metadata(normalize(token))

    async def get_allowance(self, token: str, owner: str, spender: str) -> int:
        return await self.tokens.get_allowance(normalize(token), owner, spender)

    async def send_tokens(self, token: str, to: str, amount: str) -> str:
        if token.strip().lower() != "eth":
            token = normalize(token)
        return await self.tokens.send_tokens(token, to, amount)

    async def approve_spending(self, token: str, spender: str, amount: str) -> str:
        return await self.tokens.approve_spending(normalize(token), spender, amount)

    async def wait_for_transaction(self, tx_hash: str) -> TransactionReceipt:
        return await self.tokens.wait_for_transaction(tx_hash)

    # ------------------------------------------------------------------
    # Swaps
    # ------------------------------------------------------------------

    async def get_swap_quote(self, params: SwapParams) -> SwapQuote:
        return await self.swaps.get_swap_quote(params)

    async def swap_tokens(self, params: SwapParams) -> SwapResult:
        return await self.swaps.swap_tokens(params)

    # ------------------------------------------------------------------
    # Market data
    # ------------------------------------------------------------------

    async def get_token_data(self, token_address: str) -> TokenData | None:
        return await self.market.get_token_data(token_address)

    async def search_token_by_ticker(self, ticker: str) -> TokenSearchResponse:
        return await self.market.search_token_by_ticker(ticker)

    # ------------------------------------------------------------------
    # Agent tools / lifecycle
    # ------------------------------------------------------------------

    def get_tools(self):
        """Return a :class:`~kiban_agent_kit.tools.registry.ToolRegistry` bound to this kit."""
        from kiban_agent_kit.tools import create_kiban_tools

        return create_kiban_tools(self)

    async def aclose(self) -> None:
        """Close the RPC provider's HTTP session, if one was opened."""
        provider = self.client.w3.provider
        disconnect = getattr(provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()
