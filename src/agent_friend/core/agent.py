"""ChatAgent - the conversational tool-calling loop."""

from __future__ import annotations

import enum
import logging

from agent_friend.errors import ModelClientError
from agent_friend.llm.base import BaseLLMProvider, LLMMessage
from agent_friend.tools.registry import ToolRegistry
from agent_friend.tools.wallet_tools import WALLET_TOOL_NAME
from agent_friend.wallet.parser import looks_like_send_command, redact_private_key

logger = logging.getLogger("agent_friend.agent")

# Returned instead of an empty assistant turn.
PLACEHOLDER_REPLY = "processing..."

DEFAULT_MAX_TOOL_ITERATIONS = 8


class AgentState(str, enum.Enum):
    START = "start"
    AWAITING_MODEL = "awaiting_model"
    TOOL_REQUESTED = "tool_requested"
    FINAL = "final"


def build_tool_instructions(registry: ToolRegistry) -> str:
    lines = ["You have access to the following tools:"]
    for definition in registry.list():
        lines.append(f"- {definition.name}: {definition.description}")
    lines.append(
        "Call a tool whenever it helps answer the user. Report tool errors "
        "to the user plainly and never invent transaction results."
    )
    return "\n".join(lines)


class ChatAgent:
    """A single conversation with a model and a set of tools.

    Each call to :meth:`respond` runs until the model produces a final
    text answer.  Tool invocations are executed one at a time; every round
    trip appends exactly two messages to :attr:`history` (the assistant's
    tool-use block and our tool-result block).
    """

    def __init__(
        self,
        provider: BaseLLMProvider,
        registry: ToolRegistry,
        system_prompt: str | None = None,
        max_tool_iterations: int = DEFAULT_MAX_TOOL_ITERATIONS,
    ):
        if max_tool_iterations < 1:
            raise ValueError("max_tool_iterations must be at least 1")
        self.provider = provider
        self.registry = registry
        self.max_tool_iterations = max_tool_iterations
        self.history: list[LLMMessage] = []
        self.state = AgentState.START

        parts = [system_prompt] if system_prompt else []
        if len(registry):
            parts.append(build_tool_instructions(registry))
        self.system_prompt = "\n\n".join(parts) or None

    def reset(self) -> None:
        self.history.clear()
        self.state = AgentState.START

    def _is_fast_path(self, text: str) -> bool:
        return WALLET_TOOL_NAME in self.registry and looks_like_send_command(text)

    async def respond(self, text: str) -> str:
        """Answer one user message.

        Raises :class:`~agent_friend.errors.ModelClientError` when the model
        API fails.  Tool round trips that already ran stay in the history
        and the turn is closed with an assistant error message, so a later
        request still sees every transfer that was submitted.
        """
        self.state = AgentState.START

        if self._is_fast_path(text):
            logger.info("Send command detected, bypassing the model")
            self.state = AgentState.TOOL_REQUESTED
            result = await self.registry.execute(
                WALLET_TOOL_NAME, {"action": "command", "command": text}
            )
            # The key never reaches the model on later turns.
            self.history.append(LLMMessage.user(redact_private_key(text)))
            self.history.append(LLMMessage.assistant(result))
            self.state = AgentState.FINAL
            return result

        self.history.append(LLMMessage.user(text))
        try:
            return await self._run()
        except ModelClientError as exc:
            logger.error("Model request failed: %s", exc)
            self.history.append(LLMMessage.assistant(f"Error: {exc}"))
            self.state = AgentState.START
            raise

    async def _run(self) -> str:
        tools = self.registry.list() or None
        rounds = 0

        while True:
            self.state = AgentState.AWAITING_MODEL
            logger.debug(
                "Model request: %d messages, %d tools", len(self.history), len(tools or [])
            )
            response = await self.provider.complete(
                messages=list(self.history),
                system=self.system_prompt,
                tools=tools,
            )

            call = response.first_tool_call()
            if call is None:
                answer = response.text
                if not answer.strip():
                    answer = PLACEHOLDER_REPLY
                return self._finish(answer)

            if rounds >= self.max_tool_iterations:
                logger.warning(
                    "Tool loop exceeded after %d round trips (last request: %s)",
                    rounds,
                    call.name,
                )
                return self._finish(
                    f"Error: tool loop exceeded ({self.max_tool_iterations} tool "
                    "calls without a final answer)."
                )

            self.state = AgentState.TOOL_REQUESTED
            result = await self.registry.execute(call.name, call.arguments)
            self.history.append(LLMMessage.tool_use(call))
            self.history.append(LLMMessage.tool_result(call.id, result))
            rounds += 1

    def _finish(self, answer: str) -> str:
        self.history.append(LLMMessage.assistant(answer))
        self.state = AgentState.FINAL
        return answer
