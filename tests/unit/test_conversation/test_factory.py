"""Unit tests for mcpchat.conversation.providers.factory.create_adapter."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from mcpchat.config import ConfigurationError, ProviderConfig
from mcpchat.conversation.providers import (
    ClaudeAdapter,
    OllamaAdapter,
    OpenAIAdapter,
    create_adapter,
)

_MODULE = "mcpchat.conversation.providers"


def test_openai_config_builds_openai_adapter() -> None:
    config = ProviderConfig(provider="openai", model="gpt-4o-mini", api_key="sk-test")

    with patch(f"{_MODULE}.openai_adapter.AsyncOpenAI") as mock_cls:
        adapter = create_adapter(config)

    assert isinstance(adapter, OpenAIAdapter)
    assert adapter.model == "gpt-4o-mini"
    mock_cls.assert_called_once_with(api_key="sk-test", base_url=None)


def test_claude_config_passes_max_tokens() -> None:
    config = ProviderConfig(
        provider="claude", model="claude-3-5-haiku-latest", api_key="sk-ant", max_tokens=4096
    )

    with patch(f"{_MODULE}.claude_adapter.AsyncAnthropic"):
        adapter = create_adapter(config)

    assert isinstance(adapter, ClaudeAdapter)
    assert adapter.max_tokens == 4096


def test_ollama_config_uses_base_url_as_host() -> None:
    config = ProviderConfig(
        provider="ollama", model="llama3.2", base_url="http://localhost:11434"
    )

    with patch(f"{_MODULE}.ollama_adapter.AsyncClient") as mock_cls:
        adapter = create_adapter(config)

    assert isinstance(adapter, OllamaAdapter)
    mock_cls.assert_called_once_with(host="http://localhost:11434")


@pytest.mark.parametrize(
    "config",
    [
        ProviderConfig(provider="openai", model="gpt-4o"),
        ProviderConfig(provider="claude", model="claude-3-5-sonnet-20241022"),
        ProviderConfig(provider="ollama", model="llama3.2"),
    ],
)
def test_incomplete_config_is_rejected(config: ProviderConfig) -> None:
    with pytest.raises(ConfigurationError, match="missing"):
        create_adapter(config)


def test_unknown_provider_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="Unsupported AI provider: gemini"):
        create_adapter(ProviderConfig(provider="gemini", model="gemini-pro", api_key="k"))
