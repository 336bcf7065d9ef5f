"""Tests for configuration loading."""
from __future__ import annotations

import pytest

from agent_friend.config import AppConfig, load_config, save_config
from agent_friend.errors import ConfigError

_ENV_VARS = ("ANTHROPIC_API_KEY", "OPENAI_API_KEY", "ETH_RPC_URL", "DATABASE_URL", "PERSONA_PATH")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_missing_file_uses_defaults(tmp_path):
    config = load_config(tmp_path / "absent.yaml")
    assert config.llm.default_provider == "anthropic"
    assert config.llm.anthropic.model == "claude-3-opus-20240229"
    assert config.chain.chain_id == 11155111
    assert config.chain.confirmation_timeout == 60.0
    assert config.agent.max_tool_iterations == 8
    assert config.storage.database_url == ""


def test_env_overrides_fill_gaps(tmp_path, monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
    monkeypatch.setenv("ETH_RPC_URL", "http://127.0.0.1:8545")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///chat.db")
    monkeypatch.setenv("PERSONA_PATH", "/etc/friend.json")

    config = load_config(tmp_path / "absent.yaml")

    assert config.llm.anthropic.api_key == "sk-ant"
    assert config.chain.rpc_url == "http://127.0.0.1:8545"
    assert config.storage.database_url == "sqlite:///chat.db"
    assert config.agent.persona_path == "/etc/friend.json"


def test_file_values_win_over_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("ETH_RPC_URL", "http://ignored")
    path = tmp_path / "agent-friend.yaml"
    path.write_text("chain:\n  rpc_url: http://from-file:8545\n", encoding="utf-8")
    assert load_config(path).chain.rpc_url == "http://from-file:8545"


def test_placeholders_are_expanded(tmp_path, monkeypatch):
    monkeypatch.setenv("MY_KEY", "sk-expanded")
    path = tmp_path / "agent-friend.yaml"
    path.write_text(
        "llm:\n  anthropic:\n    api_key: ${MY_KEY}\n    model: claude-3-opus-20240229\n",
        encoding="utf-8",
    )
    assert load_config(path).llm.anthropic.api_key == "sk-expanded"


def test_openai_key_creates_section(tmp_path, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-oa")
    config = load_config(tmp_path / "absent.yaml")
    assert config.llm.openai.api_key == "sk-oa"


@pytest.mark.parametrize(
    "text",
    ["llm: [unclosed", "- just\n- a list\n", "agent:\n  max_tool_iterations: lots\n"],
)
def test_invalid_files_raise_config_error(tmp_path, text):
    path = tmp_path / "agent-friend.yaml"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_save_and_reload(tmp_path):
    config = AppConfig()
    config.agent.max_tool_iterations = 3
    config.chain.rpc_url = "http://node:8545"
    path = tmp_path / "nested" / "agent-friend.yaml"
    save_config(config, path)

    loaded = load_config(path)
    assert loaded.agent.max_tool_iterations == 3
    assert loaded.chain.rpc_url == "http://node:8545"
