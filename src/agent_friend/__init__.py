"""Agent Friend - a conversational agent with tool calling and an Ethereum wallet."""

__version__ = "0.1.0"
