"""LLM provider abstraction layer for Agent Friend.

Provides a block-based message model shared by the Anthropic and
OpenAI-compatible backends, plus a factory that builds the configured one.
"""

from agent_friend.llm.base import (
    BaseLLMProvider,
    LLMMessage,
    LLMResponse,
    TextBlock,
    ToolCall,
    ToolDefinition,
    ToolResultBlock,
    ToolUseBlock,
)
from agent_friend.llm.router import build_provider

__all__ = [
    "BaseLLMProvider",
    "LLMMessage",
    "LLMResponse",
    "TextBlock",
    "ToolCall",
    "ToolDefinition",
    "ToolResultBlock",
    "ToolUseBlock",
    "build_provider",
]
