"""Tool registry - declare agent tools and bind them to a kit.

Tools are declared once at import time with the :func:`tool` decorator and
bound to a concrete :class:`~kiban_agent_kit.kit.KibanAgentKit` by
:func:`create_kiban_tools`. Each tool validates its input against a pydantic
model and always returns text: JSON on success, an ``"Error ..."`` sentence on
failure.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from pydantic import BaseModel, ConfigDict, ValidationError

if TYPE_CHECKING:
    from kiban_agent_kit.kit import KibanAgentKit

logger = logging.getLogger("kiban_agent_kit.tools.registry")

ToolFunc = Callable[["KibanAgentKit", Any], Awaitable[Any]]


class ToolInput(BaseModel):
    """Base for tool input schemas. Unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


def check_amount(value: str) -> str:
    """Reject amounts that are not non-negative decimal numbers."""
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise ValueError(f"'{value}' is not a decimal number") from None
    if not amount.is_finite() or amount < 0:
        raise ValueError("amount must be a non-negative number")
    return value


@dataclass(frozen=True)
class ToolDefinition:
    """What an LLM needs to see to call a tool."""

    name: str
    description: str
    parameters: dict[str, Any]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_model: type[BaseModel]
    func: ToolFunc
    error_prefix: str


_TOOL_SPECS: dict[str, ToolSpec] = {}


def _to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, BaseModel):
        return value.model_dump()
    return value


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "input"
        problems.append(f"{loc}: {err['msg']}")
    return "; ".join(problems)


@dataclass
class Tool:
    name: str
    description: str
    input_model: type[BaseModel]
    func: ToolFunc
    kit: KibanAgentKit
    error_prefix: str = "Error"

    @property
    def parameters(self) -> dict[str, Any]:
        return self.input_model.model_json_schema()

    def to_definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )

    async def invoke(self, tool_input: dict[str, Any] | str | None = None) -> str:
        """Validate *tool_input*, run the tool, and serialize the outcome.

        Never raises: invalid input and failures come back as ``"Error ..."``
        strings.
        """
        try:
            if isinstance(tool_input, str):
                tool_input = json.loads(tool_input) if tool_input.strip() else {}
            args = self.input_model.model_validate(tool_input or {})
        except ValidationError as e:
            return f"Error: invalid input for {self.name}: {_format_validation_error(e)}"
        except ValueError as e:
            return f"Error: invalid input for {self.name}: {e}"

        try:
            result = await self.func(self.kit, args)
        except Exception as e:
            logger.warning(f"Tool {self.name} failed: {e}")
            return f"{self.error_prefix}: {e}"

        if isinstance(result, str):
            return result
        return json.dumps(_to_jsonable(result), indent=2, default=str)


class ToolRegistry:
    """Tools bound to one kit, looked up by name."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def get_tool(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def get_tools(self, names: list[str] | None = None) -> list[Tool]:
        if names is None:
            return list(self._tools.values())
        return [self._tools[n] for n in names if n in self._tools]

    def list_names(self) -> list[str]:
        return list(self._tools.keys())

    def definitions(self) -> list[ToolDefinition]:
        return [t.to_definition() for t in self._tools.values()]

    async def invoke(self, name: str, tool_input: dict[str, Any] | str | None = None) -> str:
        tool = self.get_tool(name)
        if tool is None:
            return f"Error: Unknown tool '{name}'"
        return await tool.invoke(tool_input)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools


def tool(
    name: str,
    description: str,
    input_model: type[BaseModel],
    error_prefix: str = "Error",
):
    """Decorator to declare an async function as an agent tool.

    Usage:
        @tool("get_swap_quote", "Get a quote for swapping tokens", SwapQuoteInput)
        async def get_swap_quote(kit: KibanAgentKit, args: SwapQuoteInput) -> dict:
            ...
    """

    def decorator(func: ToolFunc) -> ToolFunc:
        if name in _TOOL_SPECS:
            raise ValueError(f"Tool '{name}' is declared twice")
        _TOOL_SPECS[name] = ToolSpec(
            name=name,
            description=description,
            input_model=input_model,
            func=func,
            error_prefix=error_prefix,
        )
        return func

    return decorator


def bind_tools(kit: KibanAgentKit, names: list[str] | None = None) -> ToolRegistry:
    """Create a :class:`ToolRegistry` with every declared tool bound to *kit*."""
    registry = ToolRegistry()
    for spec in _TOOL_SPECS.values():
        if names is not None and spec.name not in names:
            continue
        registry.register(
            Tool(
                name=spec.name,
                description=spec.description,
                input_model=spec.input_model,
                func=spec.func,
                kit=kit,
                error_prefix=spec.error_prefix,
            )
        )
    return registry
