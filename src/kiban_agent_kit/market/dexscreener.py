"""DexScreener market data client using httpx."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from kiban_agent_kit.config import DEXSCREENER_API
from kiban_agent_kit.errors import MarketDataError

logger = logging.getLogger("kiban_agent_kit.market.dexscreener")

TOP_PAIRS = 3


@dataclass(frozen=True)
class TokenData:
    name: str
    symbol: str
    address: str
    price_usd: str
    volume_24h: str
    liquidity: str
    pair_address: str


@dataclass(frozen=True)
class TokenSearchResult:
    name: str
    symbol: str
    address: str
    chain: str
    price_usd: str
    volume_24h: str
    liquidity: str
    dex: str


@dataclass(frozen=True)
class TokenSearchResponse:
    message: str
    results: list[TokenSearchResult]


def _or_na(value: object) -> str:
    if value is None or value == "":
        return "N/A"
    return str(value)


def _volume_24h(pair: dict) -> float:
    try:
        return float((pair.get("volume") or {}).get("h24") or 0)
    except (TypeError, ValueError):
        return 0.0


class DexScreenerService:
    """Token price and pair lookups.

    Pass *client* to reuse an existing ``httpx.AsyncClient``; otherwise a
    short-lived client is opened per request.
    """

    def __init__(
        self,
        base_url: str = DEXSCREENER_API,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def _get(self, path: str, params: dict | None = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            if self._client is not None:
                resp = await self._client.get(url, params=params)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.get(url, params=params)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            raise MarketDataError(f"Request to {url} failed: {e}") from e
        except ValueError as e:
            raise MarketDataError(f"Invalid JSON from {url}: {e}") from e

    async def get_token_data(self, token_address: str) -> TokenData | None:
        """Market data for the first pair of *token_address*, or ``None``."""
        data = await self._get(f"/tokens/{token_address}")
        pairs = data.get("pairs") or []
        if not pairs:
            return None

        pair = pairs[0]
        base = pair.get("baseToken") or {}
        return TokenData(
            name=base.get("name", ""),
            symbol=base.get("symbol", ""),
            address=base.get("address", ""),
            price_usd=_or_na(pair.get("priceUsd")),
            volume_24h=_or_na((pair.get("volume") or {}).get("h24")),
            liquidity=_or_na((pair.get("liquidity") or {}).get("usd")),
            pair_address=pair.get("pairAddress", ""),
        )

    async def search_token_by_ticker(self, ticker: str) -> TokenSearchResponse:
        """The three highest 24h-volume pairs matching *ticker*."""
        data = await self._get("/search", params={"q": ticker})
        pairs = data.get("pairs") or []
        if not pairs:
            return TokenSearchResponse(
                message="No tokens found matching this ticker", results=[]
            )

        top_pairs = sorted(pairs, key=_volume_24h, reverse=True)[:TOP_PAIRS]
        results = []
        for pair in top_pairs:
            base = pair.get("baseToken") or {}
            results.append(
                TokenSearchResult(
                    name=base.get("name", ""),
                    symbol=base.get("symbol", ""),
                    address=base.get("address", ""),
                    chain=pair.get("chainId", ""),
                    price_usd=_or_na(pair.get("priceUsd")),
                    volume_24h=_or_na((pair.get("volume") or {}).get("h24")),
                    liquidity=_or_na((pair.get("liquidity") or {}).get("usd")),
                    dex=pair.get("dexId", ""),
                )
            )
        logger.info(f"Found {len(results)} top pairs for {ticker} ({len(pairs)} total)")
        return TokenSearchResponse(
            message=f"Found {len(results)} top pairs for {ticker}",
            results=results,
        )
