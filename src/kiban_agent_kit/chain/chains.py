"""Chain definitions for supported EVM networks."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Chain:
    """An EVM-compatible blockchain network."""

    name: str
    display_name: str
    chain_id: int
    rpc_url: str
    native_symbol: str
    native_name: str
    explorer_url: str
    native_decimals: int = 18

    @property
    def native_currency(self) -> dict:
        return {
            "name": self.native_name,
            "symbol": self.native_symbol,
            "decimals": self.native_decimals,
        }


CHAINS: dict[str, Chain] = {
    "mainnet": Chain(
        name="mainnet",
        display_name="Ethereum",
        chain_id=1,
        rpc_url="https://eth.public-rpc.com",
        native_symbol="ETH",
        native_name="Ether",
        explorer_url="https://etherscan.io",
    ),
    # Official Katana parameters are not published yet; an explicit rpc_url
    # is required to connect.
    "katana": Chain(
        name="katana",
        display_name="Katana",
        chain_id=0,
        rpc_url="",
        native_symbol="ETH",
        native_name="ETH",
        explorer_url="",
    ),
}


def get_chain(name: str) -> Chain:
    """Get a chain by name. Raises ``KeyError`` if not found."""
    key = name.strip().lower()
    if key not in CHAINS:
        raise KeyError(
            f"Unknown chain '{name}'. Available: {list_chain_names()}"
        )
    return CHAINS[key]


def list_chain_names() -> list[str]:
    """Return the names of all supported chains."""
    return list(CHAINS.keys())
