"""Build the configured LLM provider."""

from __future__ import annotations

import logging

from agent_friend.config import LLMConfig, LLMProviderConfig
from agent_friend.errors import ConfigError
from agent_friend.llm.anthropic import AnthropicProvider
from agent_friend.llm.base import BaseLLMProvider
from agent_friend.llm.openai import OpenAIProvider

logger = logging.getLogger(__name__)

# The openai SDK itself is imported only when OpenAIProvider is instantiated.
PROVIDERS: dict[str, type[BaseLLMProvider]] = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
}


def build_provider(
    llm_config: LLMConfig,
    provider_name: str | None = None,
    model_override: str | None = None,
) -> BaseLLMProvider:
    """Create a provider instance from the ``llm`` config section.

    Raises
    ------
    ConfigError
        If the provider is unknown or its section lacks an API key or a
        model.  Called once at startup, so a missing key stops the program.
    """
    name = provider_name or llm_config.default_provider
    provider_cls = PROVIDERS.get(name)
    if provider_cls is None:
        raise ConfigError(f"Unknown provider '{name}'. Choose one of: {', '.join(PROVIDERS)}")

    section: LLMProviderConfig | None = getattr(llm_config, name, None)
    if section is None:
        raise ConfigError(f"Provider '{name}' is not configured; add an 'llm.{name}' section.")
    if not section.api_key:
        raise ConfigError(
            f"No API key for '{name}'. Set llm.{name}.api_key or the "
            f"{name.upper()}_API_KEY environment variable."
        )

    model = model_override or section.model
    if not model:
        raise ConfigError(f"No model set for '{name}'; add llm.{name}.model.")

    logger.info("Using %s provider with model %s", name, model)
    return provider_cls(
        api_key=section.api_key,
        model=model,
        base_url=section.base_url,
        max_tokens=section.max_tokens,
    )
