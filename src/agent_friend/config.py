"""Configuration system for Agent Friend.

Loads settings from a YAML file (``agent-friend.yaml`` by default), expands
``${VAR}`` placeholders from the environment, and fills remaining gaps from
well-known environment variables.  Everything is read once at startup.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from agent_friend.errors import ConfigError

DEFAULT_CONFIG_PATH = Path("agent-friend.yaml")


# ---------------------------------------------------------------------------
# Environment-variable expansion helper
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with their environment values.

    Unset variables expand to an empty string so that "not configured"
    looks the same whether the key was omitted or its variable is unset.
    """

    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1), "")

    return _ENV_VAR_RE.sub(_replace, value)


def _expand_env_recursive(obj: object) -> object:
    """Walk an arbitrary nested structure and expand env vars in strings."""
    if isinstance(obj, str):
        return _expand_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _expand_env_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# Pydantic v2 models
# ---------------------------------------------------------------------------


class LLMProviderConfig(BaseModel):
    """Configuration for a single LLM provider."""

    api_key: str = ""
    model: str = ""
    base_url: Optional[str] = None  # For OpenAI-compatible endpoints
    max_tokens: int = 1024


def _default_anthropic() -> LLMProviderConfig:
    return LLMProviderConfig(model="claude-3-opus-20240229")


class LLMConfig(BaseModel):
    """Model API settings. Only the default provider is ever instantiated."""

    default_provider: str = "anthropic"
    anthropic: Optional[LLMProviderConfig] = Field(default_factory=_default_anthropic)
    openai: Optional[LLMProviderConfig] = None


class ChainConfig(BaseModel):
    """The single EVM testnet the wallet talks to."""

    name: str = "sepolia"
    chain_id: int = 11155111
    rpc_url: str = "https://ethereum-sepolia-rpc.publicnode.com"
    native_symbol: str = "ETH"
    explorer_url: str = "https://sepolia.etherscan.io"
    confirmation_timeout: float = 60.0  # seconds to wait for one confirmation
    poll_latency: float = 1.0
    poa_middleware: bool = False  # needed for chains with long extraData


class AgentConfig(BaseModel):
    """Agent loop and persona settings."""

    max_tool_iterations: int = 8
    persona_path: str = "personality.json"


class StorageConfig(BaseModel):
    """Transcript persistence. An empty URL disables persistence."""

    database_url: str = ""


class AppConfig(BaseModel):
    """Root configuration object."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    chain: ChainConfig = Field(default_factory=ChainConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def load_config(path: Path | None = None) -> AppConfig:
    """Load and validate configuration from a YAML file.

    A missing file is not an error: defaults are used and the environment
    overrides from :func:`apply_env_overrides` still apply.

    Raises
    ------
    ConfigError
        If the file exists but is not valid YAML or fails validation.
    """
    path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    raw_data: dict = {}
    if path.exists():
        try:
            raw_data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Could not parse {path}: {exc}") from exc
        if not isinstance(raw_data, dict):
            raise ConfigError(f"{path} must contain a mapping at the top level.")

    expanded = _expand_env_recursive(raw_data)
    try:
        config = AppConfig.model_validate(expanded)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc
    return apply_env_overrides(config)


def apply_env_overrides(config: AppConfig) -> AppConfig:
    """Fill values left empty by the config file from the environment."""
    env = os.environ

    if config.llm.anthropic is not None and not config.llm.anthropic.api_key:
        config.llm.anthropic.api_key = env.get("ANTHROPIC_API_KEY", "")
    if env.get("OPENAI_API_KEY"):
        if config.llm.openai is None:
            config.llm.openai = LLMProviderConfig(model="gpt-4o")
        if not config.llm.openai.api_key:
            config.llm.openai.api_key = env["OPENAI_API_KEY"]

    if env.get("ETH_RPC_URL") and "rpc_url" not in config.chain.model_fields_set:
        config.chain.rpc_url = env["ETH_RPC_URL"]
    if not config.storage.database_url:
        config.storage.database_url = env.get("DATABASE_URL", "")
    if env.get("PERSONA_PATH") and "persona_path" not in config.agent.model_fields_set:
        config.agent.persona_path = env["PERSONA_PATH"]
    return config


def save_config(config: AppConfig, path: Path) -> None:
    """Serialize an :class:`AppConfig` to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="python", exclude_none=True)
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False, sort_keys=False)
