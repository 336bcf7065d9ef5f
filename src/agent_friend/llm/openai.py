"""OpenAI-compatible LLM provider using the ``openai`` SDK."""

from __future__ import annotations

import json
import logging

from agent_friend.errors import ProviderError, TransportError
from agent_friend.llm.base import (
    BaseLLMProvider,
    ContentBlock,
    LLMMessage,
    LLMResponse,
    TextBlock,
    ToolDefinition,
    ToolResultBlock,
    ToolUseBlock,
)

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseLLMProvider):
    """Chat Completions backend for OpenAI and compatible servers.

    The ``base_url`` parameter is forwarded to the client so this provider
    can target any OpenAI-compatible endpoint (vLLM, Ollama, LiteLLM, ...).
    Tool calls are converted into :class:`ToolUseBlock` objects so the agent
    loop sees the same shape regardless of backend.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 1024,
    ):
        super().__init__(api_key=api_key, model=model, base_url=base_url, max_tokens=max_tokens)

        try:
            import openai
        except ImportError as exc:
            raise ImportError(
                "OpenAIProvider needs the openai SDK: pip install 'agent-friend[openai]'"
            ) from exc

        self._openai = openai
        client_kwargs: dict = {"api_key": self.api_key, "max_retries": 0}
        if self.base_url:
            client_kwargs["base_url"] = self.base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)

    # ------------------------------------------------------------------
    # Format conversion helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _convert_messages(messages: list[LLMMessage], system: str | None) -> list[dict]:
        """Convert block-based messages to OpenAI chat format.

        - Text blocks are joined into ``content``.
        - Tool-use blocks become the assistant's ``tool_calls`` list.
        - Each tool-result block becomes its own ``role="tool"`` message.
        """
        converted: list[dict] = []
        if system:
            converted.append({"role": "system", "content": system})

        for msg in messages:
            texts = [b.text for b in msg.content if isinstance(b, TextBlock)]
            uses = [b for b in msg.content if isinstance(b, ToolUseBlock)]
            results = [b for b in msg.content if isinstance(b, ToolResultBlock)]

            for result in results:
                converted.append(
                    {
                        "role": "tool",
                        "content": result.content,
                        "tool_call_id": result.tool_use_id,
                    }
                )

            if uses:
                converted.append(
                    {
                        "role": "assistant",
                        "content": "".join(texts) or None,
                        "tool_calls": [
                            {
                                "id": use.id,
                                "type": "function",
                                "function": {
                                    "name": use.name,
                                    "arguments": json.dumps(use.input),
                                },
                            }
                            for use in uses
                        ],
                    }
                )
            elif texts:
                converted.append({"role": msg.role, "content": "".join(texts)})

        return converted

    @staticmethod
    def _convert_tools(tools: list[ToolDefinition]) -> list[dict]:
        """Wrap each declaration as a ``function`` tool."""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                },
            }
            for tool in tools
        ]

    @staticmethod
    def _parse_response(response) -> LLMResponse:
        """Turn the first choice of a ``ChatCompletion`` into blocks."""
        choice = response.choices[0]
        message = choice.message

        blocks: list[ContentBlock] = []
        if message.content:
            blocks.append(TextBlock(text=message.content))
        for tc in message.tool_calls or []:
            try:
                arguments = json.loads(tc.function.arguments)
            except (json.JSONDecodeError, TypeError):
                arguments = {}
            blocks.append(
                ToolUseBlock(
                    id=tc.id,
                    name=tc.function.name,
                    input=arguments if isinstance(arguments, dict) else {},
                )
            )

        usage = None
        if response.usage:
            usage = {
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens,
            }

        return LLMResponse(blocks=blocks, usage=usage, stop_reason=choice.finish_reason)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    async def complete(
        self,
        messages: list[LLMMessage],
        system: str | None = None,
        tools: list[ToolDefinition] | None = None,
    ) -> LLMResponse:
        """One chat-completions call; no retries."""
        kwargs: dict = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": self._convert_messages(messages, system),
        }
        if tools:
            kwargs["tools"] = self._convert_tools(tools)

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except self._openai.APIStatusError as exc:
            logger.error("OpenAI API returned an error: %s", exc)
            body = exc.body if isinstance(exc.body, dict) else {}
            error = body.get("error") if isinstance(body.get("error"), dict) else body
            raise ProviderError(
                kind=error.get("type") or error.get("code") or type(exc).__name__,
                message=error.get("message", exc.message),
                status_code=exc.status_code,
            ) from exc
        except self._openai.APIConnectionError as exc:
            logger.error("OpenAI API unreachable: %s", exc)
            raise TransportError(f"Could not reach the OpenAI API: {exc}") from exc

        return self._parse_response(response)
