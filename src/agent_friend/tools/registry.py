"""Tool registry - declare tools and dispatch model tool calls to them."""

from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Awaitable, Callable

from pydantic import TypeAdapter, ValidationError

from agent_friend.llm.base import ToolDefinition

logger = logging.getLogger("agent_friend.tools.registry")


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "arguments"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


@dataclass(eq=False)
class Tool:
    """A named capability the model may call.

    ``parameters`` is the JSON schema shown to the model; ``args_type`` is
    the pydantic type each call is validated against before ``func`` runs.
    ``func`` receives the validated arguments object.
    """

    name: str
    description: str
    args_type: Any
    func: Callable[[Any], Any] | Callable[[Any], Awaitable[Any]]
    parameters: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.parameters:
            self.parameters = self._adapter.json_schema()

    @cached_property
    def _adapter(self) -> TypeAdapter:
        return TypeAdapter(self.args_type)

    @property
    def is_async(self) -> bool:
        return inspect.iscoroutinefunction(self.func)

    def to_definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )

    def validate(self, arguments: dict[str, Any]) -> Any:
        return self._adapter.validate_python(arguments)

    async def execute(self, arguments: dict[str, Any]) -> str:
        args = self.validate(arguments)
        if self.is_async:
            result = await self.func(args)
        else:
            result = self.func(args)
        if isinstance(result, str):
            return result
        return json.dumps(result, default=str)


class ToolRegistry:
    """An ordered set of tools with unique names.

    :meth:`execute` never raises: unknown tools, malformed arguments and
    failures inside a tool all come back as text the model can read.
    """

    def __init__(self, tools: list[Tool] | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        for t in tools or []:
            self.register(t)

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"A tool named '{tool.name}' is already registered.")
        self._tools[tool.name] = tool

    def get_tool(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list(self) -> list[ToolDefinition]:
        """Declarations for every tool, in registration order."""
        return [t.to_definition() for t in self._tools.values()]

    def names(self) -> list[str]:
        return list(self._tools.keys())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    async def execute(self, name: str, arguments: dict[str, Any] | str | None) -> str:
        """Run tool *name* with a JSON argument bag (dict or JSON text)."""
        tool = self.get_tool(name)
        if tool is None:
            logger.warning("Model requested unknown tool %r", name)
            return f"Unknown tool: {name}"

        if arguments is None:
            arguments = {}
        elif isinstance(arguments, str):
            try:
                arguments = json.loads(arguments) if arguments.strip() else {}
            except json.JSONDecodeError as exc:
                return f"Error: arguments for '{name}' are not valid JSON ({exc})."
        if not isinstance(arguments, dict):
            return f"Error: arguments for '{name}' must be a JSON object."

        logger.info("Calling tool %s (args: %s)", name, sorted(arguments))
        try:
            return await tool.execute(arguments)
        except ValidationError as exc:
            return f"Error: invalid arguments for '{name}': {_format_validation_error(exc)}"
        except Exception as exc:
            logger.exception("Tool %s failed", name)
            return f"Tool error: {exc}"


def tool(
    name: str,
    description: str,
    args_type: Any,
    parameters: dict[str, Any] | None = None,
) -> Callable[[Callable[..., Any]], Tool]:
    """Decorator that turns a function into a :class:`Tool`.

    Usage::

        @tool("get_weather", "Get the current weather for a city", WeatherArgs)
        async def get_weather(args: WeatherArgs) -> str:
            ...
    """

    def decorator(func: Callable[..., Any]) -> Tool:
        return Tool(
            name=name,
            description=description,
            args_type=args_type,
            func=func,
            parameters=parameters or {},
        )

    return decorator
