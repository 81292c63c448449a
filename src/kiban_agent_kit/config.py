"""Configuration system for Kiban Agent Kit.

Loads kit settings from a YAML file or from ``KIBAN_*`` environment
variables. YAML values may reference the environment with ``${VAR}``
placeholders, which keeps private keys out of config files.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from kiban_agent_kit.chain.chains import Chain, get_chain, list_chain_names
from kiban_agent_kit.errors import ConfigurationError

DEXSCREENER_API = "https://api.dexscreener.com/latest/dex"

# ---------------------------------------------------------------------------
# Environment-variable expansion helper
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")
_PRIVATE_KEY_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


def _expand_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with their environment values.

    If the variable is not set the placeholder is left as-is so that
    validation can catch it later.
    """

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        return os.environ.get(var_name, match.group(0))

    return _ENV_VAR_RE.sub(_replace, value)


def _expand_env_recursive(obj: object) -> object:
    """Walk an arbitrary nested structure and expand env vars in strings."""
    if isinstance(obj, str):
        return _expand_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _expand_env_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# Pydantic v2 models
# ---------------------------------------------------------------------------


class KitConfig(BaseModel):
    """Settings needed to connect the kit to a chain."""

    private_key: str = ""
    rpc_url: Optional[str] = None  # Falls back to the chain's default RPC
    chain: str = "mainnet"
    market_data_url: str = DEXSCREENER_API
    http_timeout: float = Field(default=15.0, gt=0)

    def resolve_chain(self) -> Chain:
        """Return the configured :class:`Chain` or raise ``ConfigurationError``."""
        try:
            return get_chain(self.chain)
        except KeyError as exc:
            raise ConfigurationError(
                f"Chain '{self.chain}' is not supported. "
                f"Supported chains are: {', '.join(list_chain_names())}"
            ) from exc

    def resolve_rpc_url(self, chain: Chain) -> str:
        rpc_url = self.rpc_url or chain.rpc_url
        if not rpc_url:
            raise ConfigurationError(
                f"No RPC URL provided for chain {chain.display_name} "
                f"(ID: {chain.chain_id}). Please provide a valid RPC URL in "
                "your configuration."
            )
        return rpc_url

    def validate_private_key(self) -> str:
        key = self.private_key.strip()
        if not key:
            raise ConfigurationError(
                "Private key is required. Please provide a valid private key "
                "in your configuration."
            )
        if not key.startswith("0x"):
            raise ConfigurationError(
                "Invalid private key format. Private key must be a hex string "
                "starting with '0x'."
            )
        if not _PRIVATE_KEY_RE.match(key):
            raise ConfigurationError(
                "Invalid private key: the provided private key is not in the "
                "correct format. Please ensure it's a valid 32-byte hex string "
                "starting with '0x'."
            )
        return key


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def load_config(path: Path) -> KitConfig:
    """Load and validate kit configuration from a YAML file.

    Environment variable placeholders (``${VAR}``) are expanded before
    validation.
    """
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")
    raw_text = path.read_text(encoding="utf-8")
    raw_data = yaml.safe_load(raw_text) or {}
    expanded = _expand_env_recursive(raw_data)
    return KitConfig.model_validate(expanded)


def config_from_env(environ: dict[str, str] | None = None) -> KitConfig:
    """Build a :class:`KitConfig` from ``KIBAN_*`` environment variables."""
    env = os.environ if environ is None else environ
    data: dict = {"private_key": env.get("KIBAN_PRIVATE_KEY", "")}
    if env.get("KIBAN_RPC_URL"):
        data["rpc_url"] = env["KIBAN_RPC_URL"]
    if env.get("KIBAN_CHAIN"):
        data["chain"] = env["KIBAN_CHAIN"]
    if env.get("KIBAN_MARKET_DATA_URL"):
        data["market_data_url"] = env["KIBAN_MARKET_DATA_URL"]
    return KitConfig.model_validate(data)
