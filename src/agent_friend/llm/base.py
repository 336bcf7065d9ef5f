"""Provider-neutral message and response types.

A conversation is an ordered list of :class:`LLMMessage` objects, each made
of content blocks: plain text, a tool invocation emitted by the model, or the
result of that invocation sent back by us.  Providers translate these into
their own wire formats.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal, Union


# ---------------------------------------------------------------------------
# Content blocks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextBlock:
    text: str
    type: Literal["text"] = "text"


@dataclass(frozen=True)
class ToolUseBlock:
    """A request from the model to run ``name`` with ``input``."""

    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)
    type: Literal["tool_use"] = "tool_use"


@dataclass(frozen=True)
class ToolResultBlock:
    """Our answer to the :class:`ToolUseBlock` with the same ``tool_use_id``."""

    tool_use_id: str
    content: str
    type: Literal["tool_result"] = "tool_result"


ContentBlock = Union[TextBlock, ToolUseBlock, ToolResultBlock]


@dataclass
class LLMMessage:
    role: Literal["user", "assistant"]
    content: list[ContentBlock]

    @classmethod
    def user(cls, text: str) -> LLMMessage:
        return cls(role="user", content=[TextBlock(text)])

    @classmethod
    def assistant(cls, text: str) -> LLMMessage:
        return cls(role="assistant", content=[TextBlock(text)])

    @classmethod
    def tool_use(cls, call: ToolCall) -> LLMMessage:
        return cls(
            role="assistant",
            content=[ToolUseBlock(id=call.id, name=call.name, input=call.arguments)],
        )

    @classmethod
    def tool_result(cls, tool_use_id: str, content: str) -> LLMMessage:
        return cls(
            role="user",
            content=[ToolResultBlock(tool_use_id=tool_use_id, content=content)],
        )

    @property
    def text(self) -> str:
        return "".join(b.text for b in self.content if isinstance(b, TextBlock))


# ---------------------------------------------------------------------------
# Tools and responses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolDefinition:
    """Model-facing description of a tool."""

    name: str
    description: str
    parameters: dict[str, Any]


@dataclass(frozen=True)
class ToolCall:
    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass
class LLMResponse:
    """A parsed model reply.

    ``blocks`` holds the structured content (text and tool-use blocks in
    reply order).  ``legacy_tool_calls`` holds calls found in a top-level
    ``tool_calls`` list, which older gateways emit instead of blocks.
    """

    blocks: list[ContentBlock] = field(default_factory=list)
    legacy_tool_calls: list[ToolCall] = field(default_factory=list)
    usage: dict[str, int] | None = None
    stop_reason: str | None = None

    @property
    def text(self) -> str:
        return "".join(b.text for b in self.blocks if isinstance(b, TextBlock))

    def first_tool_call(self) -> ToolCall | None:
        """Return the tool invocation to run, or ``None`` for a final answer.

        A structured tool-use block always wins over the legacy list; within
        either source the first entry wins.
        """
        for block in self.blocks:
            if isinstance(block, ToolUseBlock):
                return ToolCall(id=block.id, name=block.name, arguments=dict(block.input))
        if self.legacy_tool_calls:
            return self.legacy_tool_calls[0]
        return None


# ---------------------------------------------------------------------------
# Provider interface
# ---------------------------------------------------------------------------


class BaseLLMProvider(ABC):
    """Common interface for model backends."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 1024,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.max_tokens = max_tokens

    @abstractmethod
    async def complete(
        self,
        messages: list[LLMMessage],
        system: str | None = None,
        tools: list[ToolDefinition] | None = None,
    ) -> LLMResponse:
        """Send one request and return the parsed reply.

        Raises :class:`~agent_friend.errors.TransportError` or
        :class:`~agent_friend.errors.ProviderError`; never retries.
        """
