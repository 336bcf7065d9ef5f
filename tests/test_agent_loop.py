"""Unit tests for agent_friend.core.agent."""
from __future__ import annotations

import pytest
from pydantic import BaseModel

from agent_friend.core.agent import PLACEHOLDER_REPLY, AgentState, ChatAgent
from agent_friend.errors import ProviderError, TransportError
from agent_friend.llm.base import (
    BaseLLMProvider,
    LLMResponse,
    TextBlock,
    ToolCall,
    ToolResultBlock,
    ToolUseBlock,
)
from agent_friend.tools import WALLET_TOOL_NAME, build_default_registry
from agent_friend.tools.registry import ToolRegistry, tool

from helpers import OTHER_ADDRESS, TEST_ADDRESS, TEST_KEY, TX_HASH


# ─── Helpers ──────────────────────────────────────────────────────────────────

class MockProvider(BaseLLMProvider):
    """Provider that returns (or raises) a preset sequence of replies."""

    def __init__(self, responses: list) -> None:
        super().__init__(api_key="test", model="mock")
        self._responses = list(responses)
        self.calls: list[dict] = []

    async def complete(self, messages, system=None, tools=None):
        self.calls.append({"messages": list(messages), "system": system, "tools": tools})
        item = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(item, Exception):
            raise item
        return item


def _text(*parts: str) -> LLMResponse:
    return LLMResponse(blocks=[TextBlock(p) for p in parts], stop_reason="end_turn")


def _tool_use(name: str, args: dict | None = None, call_id: str = "toolu_1") -> LLMResponse:
    return LLMResponse(
        blocks=[ToolUseBlock(id=call_id, name=name, input=args or {})],
        stop_reason="tool_use",
    )


class CityArgs(BaseModel):
    city: str = "unknown"


@tool("lookup", "Look something up", CityArgs)
def lookup(args: CityArgs) -> str:
    return f"looked up {args.city}"


@tool("other", "Another tool", CityArgs)
def other(args: CityArgs) -> str:
    return "other ran"


# ─── Final answers ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_text_reply_is_returned_and_recorded():
    provider = MockProvider([_text("Hello", ", world")])
    agent = ChatAgent(provider, ToolRegistry([lookup]), system_prompt="You are Friend.")

    reply = await agent.respond("hi")

    assert reply == "Hello, world"
    assert agent.state is AgentState.FINAL
    assert [m.role for m in agent.history] == ["user", "assistant"]
    assert agent.history[-1].text == "Hello, world"


@pytest.mark.asyncio
async def test_whitespace_reply_becomes_placeholder():
    agent = ChatAgent(MockProvider([_text("  \n ")]), ToolRegistry())
    assert await agent.respond("hi") == PLACEHOLDER_REPLY


@pytest.mark.asyncio
async def test_empty_reply_becomes_placeholder():
    agent = ChatAgent(MockProvider([LLMResponse()]), ToolRegistry())
    assert await agent.respond("hi") == PLACEHOLDER_REPLY


# ─── Request assembly ─────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_system_prompt_lists_tools():
    provider = MockProvider([_text("ok")])
    agent = ChatAgent(provider, ToolRegistry([lookup, other]), system_prompt="You are Friend.")
    await agent.respond("hi")

    call = provider.calls[0]
    assert call["system"].startswith("You are Friend.")
    assert "- lookup: Look something up" in call["system"]
    assert "- other: Another tool" in call["system"]
    assert [t.name for t in call["tools"]] == ["lookup", "other"]


@pytest.mark.asyncio
async def test_no_tools_attached_for_empty_registry():
    provider = MockProvider([_text("ok")])
    agent = ChatAgent(provider, ToolRegistry())
    await agent.respond("hi")
    assert provider.calls[0]["tools"] is None
    assert provider.calls[0]["system"] is None


@pytest.mark.asyncio
async def test_history_is_sent_on_later_turns():
    provider = MockProvider([_text("first"), _text("second")])
    agent = ChatAgent(provider, ToolRegistry())
    await agent.respond("one")
    await agent.respond("two")
    assert [m.text for m in provider.calls[1]["messages"]] == ["one", "first", "two"]


# ─── Tool round trips ─────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_tool_round_trip_appends_exactly_two_messages():
    provider = MockProvider([_tool_use("lookup", {"city": "Cairo"}), _text("It is sunny.")])
    agent = ChatAgent(provider, ToolRegistry([lookup]))

    reply = await agent.respond("weather?")

    assert reply == "It is sunny."
    assert len(provider.calls) == 2
    second = provider.calls[1]["messages"]
    assert len(second) == len(provider.calls[0]["messages"]) + 2

    use_msg, result_msg = second[-2], second[-1]
    assert use_msg.role == "assistant"
    assert use_msg.content == [ToolUseBlock(id="toolu_1", name="lookup", input={"city": "Cairo"})]
    assert result_msg.role == "user"
    assert result_msg.content == [ToolResultBlock(tool_use_id="toolu_1", content="looked up Cairo")]
    # user, tool use, tool result, final answer; no duplicate user turn
    assert [m.role for m in agent.history] == ["user", "assistant", "user", "assistant"]


@pytest.mark.asyncio
async def test_first_tool_block_wins():
    response = LLMResponse(
        blocks=[
            TextBlock("Let me check."),
            ToolUseBlock(id="a", name="lookup", input={"city": "Tokyo"}),
            ToolUseBlock(id="b", name="other", input={}),
        ],
        legacy_tool_calls=[ToolCall(id="c", name="other")],
    )
    provider = MockProvider([response, _text("done")])
    agent = ChatAgent(provider, ToolRegistry([lookup, other]))

    await agent.respond("go")

    results = [b for m in agent.history for b in m.content if isinstance(b, ToolResultBlock)]
    assert results == [ToolResultBlock(tool_use_id="a", content="looked up Tokyo")]


@pytest.mark.asyncio
async def test_legacy_tool_calls_used_when_no_block():
    response = LLMResponse(legacy_tool_calls=[ToolCall(id="c", name="other"), ToolCall(id="d", name="lookup")])
    provider = MockProvider([response, _text("done")])
    agent = ChatAgent(provider, ToolRegistry([lookup, other]))

    await agent.respond("go")

    assert agent.history[2].content == [ToolResultBlock(tool_use_id="c", content="other ran")]


@pytest.mark.asyncio
async def test_unknown_tool_keeps_the_loop_alive():
    provider = MockProvider([_tool_use("missing"), _text("Sorry, I can't do that.")])
    agent = ChatAgent(provider, ToolRegistry([lookup]))

    assert await agent.respond("go") == "Sorry, I can't do that."
    assert agent.history[2].content[0].content == "Unknown tool: missing"


@pytest.mark.asyncio
async def test_tool_loop_is_bounded():
    provider = MockProvider([_tool_use("lookup")])
    agent = ChatAgent(provider, ToolRegistry([lookup]), max_tool_iterations=3)

    reply = await agent.respond("loop forever")

    assert reply.startswith("Error: tool loop exceeded")
    assert len(provider.calls) == 4
    # user + 3 round trips + final error message
    assert len(agent.history) == 1 + 3 * 2 + 1


def test_iteration_bound_must_be_positive():
    with pytest.raises(ValueError):
        ChatAgent(MockProvider([_text("x")]), ToolRegistry(), max_tool_iterations=0)


# ─── Errors ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_provider_error_propagates_and_closes_the_turn():
    provider = MockProvider([_text("first"), ProviderError("overloaded_error", "Overloaded")])
    agent = ChatAgent(provider, ToolRegistry())
    await agent.respond("one")

    with pytest.raises(ProviderError, match="overloaded_error: Overloaded"):
        await agent.respond("two")

    assert [m.text for m in agent.history] == [
        "one",
        "first",
        "two",
        "Error: overloaded_error: Overloaded",
    ]
    assert agent.state is AgentState.START


@pytest.mark.asyncio
async def test_transport_error_keeps_executed_send_in_history(manager, client):
    send = _tool_use(
        WALLET_TOOL_NAME,
        {
            "action": "send",
            "amount": "0.01",
            "from_address": TEST_ADDRESS,
            "to_address": OTHER_ADDRESS,
            "private_key": TEST_KEY,
        },
    )
    provider = MockProvider([send, TransportError("connection reset"), _text("Already sent.")])
    agent = ChatAgent(provider, build_default_registry(manager))

    with pytest.raises(TransportError):
        await agent.respond("send 0.01 to my friend please")

    client.send_raw_transaction.assert_called_once()
    assert [m.role for m in agent.history] == ["user", "assistant", "user", "assistant"]
    assert agent.history[1].content[0].name == WALLET_TOOL_NAME
    result = agent.history[2].content[0]
    assert result.tool_use_id == "toolu_1"
    assert TX_HASH in result.content
    assert agent.history[3].text.startswith("Error: ")

    # the retry is answered with the submitted transfer in view
    assert await agent.respond("did it go through?") == "Already sent."
    retry_messages = provider.calls[-1]["messages"]
    assert any(
        isinstance(b, ToolResultBlock) and TX_HASH in b.content
        for m in retry_messages
        for b in m.content
    )
    client.send_raw_transaction.assert_called_once()


# ─── Fast path ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_send_command_bypasses_the_model(manager, client):
    provider = MockProvider([_text("should not be used")])
    agent = ChatAgent(provider, build_default_registry(manager))

    reply = await agent.respond(f"send 0.01 ETH from {TEST_ADDRESS} to {OTHER_ADDRESS}")

    assert provider.calls == []
    assert reply.startswith("Error: No private key available")
    assert [m.role for m in agent.history] == ["user", "assistant"]
    client.send_raw_transaction.assert_not_called()


@pytest.mark.asyncio
async def test_fast_path_parse_error_is_the_answer(manager):
    provider = MockProvider([_text("unused")])
    agent = ChatAgent(provider, build_default_registry(manager))
    reply = await agent.respond(f"send ETH to {OTHER_ADDRESS}")
    assert reply.startswith("Error: Could not find an amount")
    assert provider.calls == []


@pytest.mark.asyncio
async def test_fast_path_keeps_keys_out_of_history(manager):
    key = "ab" * 32
    agent = ChatAgent(MockProvider([_text("unused")]), build_default_registry(manager))
    await agent.respond(f"send 1 ETH from {TEST_ADDRESS} to {OTHER_ADDRESS} private key {key}")
    assert key not in agent.history[0].text


@pytest.mark.asyncio
async def test_no_fast_path_without_wallet_tool():
    provider = MockProvider([_text("I can't send money.")])
    agent = ChatAgent(provider, ToolRegistry([lookup]))
    assert await agent.respond("send 1 eth to my friend") == "I can't send money."
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_reset_clears_history():
    agent = ChatAgent(MockProvider([_text("ok")]), ToolRegistry())
    await agent.respond("hi")
    agent.reset()
    assert agent.history == []
    assert agent.state is AgentState.START
