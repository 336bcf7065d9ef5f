"""Exception hierarchy for Agent Friend.

Only model-API failures and startup configuration problems are allowed to
escape to the caller.  Tool-level problems (bad arguments, unparseable
commands, missing keys) are rendered as strings by the tools themselves.
"""

from __future__ import annotations


class AgentFriendError(Exception):
    """Base class for all Agent Friend errors."""


class ConfigError(AgentFriendError):
    """Required startup configuration is missing or invalid."""


# ---------------------------------------------------------------------------
# Model API
# ---------------------------------------------------------------------------


class ModelClientError(AgentFriendError):
    """A model request failed. Terminal for the current turn."""


class TransportError(ModelClientError):
    """The model API could not be reached or returned malformed HTTP."""


class ProviderError(ModelClientError):
    """The model API returned a structured error envelope."""

    def __init__(self, kind: str, message: str, status_code: int | None = None):
        self.kind = kind
        self.message = message
        self.status_code = status_code
        super().__init__(f"{kind}: {message}")


# ---------------------------------------------------------------------------
# Wallet / tools
# ---------------------------------------------------------------------------


class WalletError(AgentFriendError):
    """Invalid wallet input or a missing signing key."""


class CommandParseError(ValueError):
    """A free-text send command is missing a required field."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)
