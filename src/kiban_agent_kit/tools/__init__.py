"""Kiban Agent Kit tools - LLM-callable wrappers around the kit facade."""

from __future__ import annotations

from typing import TYPE_CHECKING

from kiban_agent_kit.tools import wallet_tools, token_tools, swap_tools, market_tools  # noqa: F401
from kiban_agent_kit.tools.registry import Tool, ToolDefinition, ToolRegistry, bind_tools, tool  # noqa: F401

if TYPE_CHECKING:
    from kiban_agent_kit.kit import KibanAgentKit


def create_kiban_tools(kit: KibanAgentKit, names: list[str] | None = None) -> ToolRegistry:
    """Bind every declared tool (or only *names*) to *kit*."""
    return bind_tools(kit, names)
