"""Build the provider adapter for a resolved configuration."""

from __future__ import annotations

import logging

from mcpchat.config import SUPPORTED_PROVIDERS, ConfigurationError, ProviderConfig
from mcpchat.conversation.providers.base import ProviderAdapter
from mcpchat.conversation.providers.claude_adapter import ClaudeAdapter
from mcpchat.conversation.providers.ollama_adapter import OllamaAdapter
from mcpchat.conversation.providers.openai_adapter import OpenAIAdapter

logger = logging.getLogger(__name__)


def create_adapter(config: ProviderConfig) -> ProviderAdapter:
    """Instantiate the adapter for ``config.provider``.

    Raises:
        ConfigurationError: If the provider is unsupported or incomplete.
    """
    if config.provider == "openai":
        if not config.api_key:
            raise ConfigurationError("OpenAI configuration is missing an API key")
        adapter: ProviderAdapter = OpenAIAdapter(
            api_key=config.api_key, model=config.model, base_url=config.base_url
        )
    elif config.provider == "claude":
        if not config.api_key:
            raise ConfigurationError("Claude configuration is missing an API key")
        adapter = ClaudeAdapter(
            api_key=config.api_key, model=config.model, max_tokens=config.max_tokens
        )
    elif config.provider == "ollama":
        if not config.base_url:
            raise ConfigurationError("Ollama configuration is missing a URL")
        adapter = OllamaAdapter(url=config.base_url, model=config.model)
    else:
        supported = ", ".join(repr(p) for p in SUPPORTED_PROVIDERS)
        raise ConfigurationError(
            f"Unsupported AI provider: {config.provider}. Use {supported}"
        )

    logger.debug("Created %s adapter", adapter.describe())
    return adapter
