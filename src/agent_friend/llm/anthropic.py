"""Anthropic LLM provider using the ``anthropic`` SDK."""

from __future__ import annotations

import json
import logging
from typing import Any
from uuid import uuid4

import anthropic

from agent_friend.errors import ProviderError, TransportError
from agent_friend.llm.base import (
    BaseLLMProvider,
    ContentBlock,
    LLMMessage,
    LLMResponse,
    TextBlock,
    ToolCall,
    ToolDefinition,
    ToolResultBlock,
    ToolUseBlock,
)

logger = logging.getLogger(__name__)


def _call_id(raw_id: Any) -> str:
    """The reply's tool call id, or a fresh one when it is missing."""
    return str(raw_id) if raw_id else f"toolu_{uuid4().hex}"


class AnthropicProvider(BaseLLMProvider):
    """LLM provider backed by the Anthropic Messages API.

    Requests go through :class:`anthropic.AsyncAnthropic` with
    ``with_raw_response`` so the reply body can be checked for an error
    envelope before it is parsed as a message.  The SDK's own retries are
    disabled; a failed request is terminal for the turn.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 1024,
    ):
        super().__init__(api_key=api_key, model=model, base_url=base_url, max_tokens=max_tokens)

        client_kwargs: dict = {"api_key": self.api_key, "max_retries": 0}
        if self.base_url:
            client_kwargs["base_url"] = self.base_url

        self._client = anthropic.AsyncAnthropic(**client_kwargs)

    # ------------------------------------------------------------------
    # Format conversion helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _convert_block(block: ContentBlock) -> dict:
        if isinstance(block, TextBlock):
            return {"type": "text", "text": block.text}
        if isinstance(block, ToolUseBlock):
            return {"type": "tool_use", "id": block.id, "name": block.name, "input": block.input}
        return {
            "type": "tool_result",
            "tool_use_id": block.tool_use_id,
            "content": block.content,
        }

    @classmethod
    def _convert_messages(cls, messages: list[LLMMessage]) -> list[dict]:
        """Convert internal ``LLMMessage`` objects to Anthropic's format."""
        return [
            {"role": msg.role, "content": [cls._convert_block(b) for b in msg.content]}
            for msg in messages
        ]

    @staticmethod
    def _convert_tools(tools: list[ToolDefinition]) -> list[dict]:
        """Convert tool definitions to Anthropic's expected schema."""
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.parameters,
            }
            for tool in tools
        ]

    @staticmethod
    def _check_error_envelope(payload: Any) -> None:
        """Raise :class:`ProviderError` if *payload* is an error envelope.

        The Messages endpoint uses the same URL for both shapes, so this
        must run before the body is treated as a message.
        """
        if not isinstance(payload, dict):
            raise TransportError(f"Unexpected response body from Anthropic: {payload!r}")
        if payload.get("type") == "error" or "error" in payload:
            error = payload.get("error") or {}
            if not isinstance(error, dict):
                error = {"message": str(error)}
            raise ProviderError(
                kind=error.get("type", "unknown_error"),
                message=error.get("message", "no message"),
            )

    @staticmethod
    def _parse_legacy_calls(raw_calls: Any) -> list[ToolCall]:
        calls: list[ToolCall] = []
        if not isinstance(raw_calls, list):
            return calls
        for raw in raw_calls:
            if not isinstance(raw, dict):
                continue
            function = raw.get("function") if isinstance(raw.get("function"), dict) else {}
            name = raw.get("name") or function.get("name")
            if not name:
                continue
            arguments = raw.get("input", raw.get("arguments", function.get("arguments", {})))
            if isinstance(arguments, str):
                try:
                    arguments = json.loads(arguments)
                except json.JSONDecodeError:
                    arguments = {}
            calls.append(
                ToolCall(
                    id=_call_id(raw.get("id")),
                    name=name,
                    arguments=arguments if isinstance(arguments, dict) else {},
                )
            )
        return calls

    @classmethod
    def _parse_payload(cls, payload: Any) -> LLMResponse:
        """Parse a decoded Messages API body into our unified format."""
        cls._check_error_envelope(payload)

        blocks: list[ContentBlock] = []
        for block in payload.get("content") or []:
            if not isinstance(block, dict):
                continue
            if block.get("type") == "text":
                blocks.append(TextBlock(text=block.get("text", "")))
            elif block.get("type") == "tool_use":
                tool_input = block.get("input")
                blocks.append(
                    ToolUseBlock(
                        id=_call_id(block.get("id")),
                        name=block.get("name", ""),
                        input=tool_input if isinstance(tool_input, dict) else {},
                    )
                )

        usage = None
        raw_usage = payload.get("usage")
        if isinstance(raw_usage, dict):
            usage = {
                "input_tokens": raw_usage.get("input_tokens", 0),
                "output_tokens": raw_usage.get("output_tokens", 0),
            }

        return LLMResponse(
            blocks=blocks,
            legacy_tool_calls=cls._parse_legacy_calls(payload.get("tool_calls")),
            usage=usage,
            stop_reason=payload.get("stop_reason"),
        )

    @staticmethod
    def _provider_error(exc: anthropic.APIStatusError) -> ProviderError:
        body = exc.body if isinstance(exc.body, dict) else {}
        error = body.get("error") if isinstance(body.get("error"), dict) else {}
        return ProviderError(
            kind=error.get("type", type(exc).__name__),
            message=error.get("message", exc.message),
            status_code=exc.status_code,
        )

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    async def complete(
        self,
        messages: list[LLMMessage],
        system: str | None = None,
        tools: list[ToolDefinition] | None = None,
    ) -> LLMResponse:
        """Send a completion request to the Anthropic Messages API."""
        kwargs: dict = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": self._convert_messages(messages),
        }
        if system:
            kwargs["system"] = system
        if tools:
            kwargs["tools"] = self._convert_tools(tools)

        logger.debug(
            "Anthropic request: model=%s messages=%d tools=%d",
            self.model,
            len(messages),
            len(tools or []),
        )
        try:
            raw = await self._client.messages.with_raw_response.create(**kwargs)
        except anthropic.APIStatusError as exc:
            logger.error("Anthropic API returned an error: %s", exc)
            raise self._provider_error(exc) from exc
        except anthropic.APIConnectionError as exc:
            logger.error("Anthropic API unreachable: %s", exc)
            raise TransportError(f"Could not reach the Anthropic API: {exc}") from exc

        try:
            payload = raw.http_response.json()
        except ValueError as exc:
            raise TransportError(f"Malformed response from the Anthropic API: {exc}") from exc

        return self._parse_payload(payload)
