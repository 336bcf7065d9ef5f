"""Agent Friend tools - registry plus the built-in weather, time and wallet tools."""

from __future__ import annotations

from agent_friend.tools.builtin import get_time, get_weather
from agent_friend.tools.registry import Tool, ToolRegistry, tool
from agent_friend.tools.wallet_tools import WALLET_TOOL_NAME, make_wallet_tool
from agent_friend.wallet.manager import WalletManager

__all__ = [
    "Tool",
    "ToolRegistry",
    "WALLET_TOOL_NAME",
    "build_default_registry",
    "tool",
]


def build_default_registry(wallet_manager: WalletManager) -> ToolRegistry:
    """A fresh registry holding the weather, time and wallet tools."""
    return ToolRegistry([get_weather, get_time, make_wallet_tool(wallet_manager)])
