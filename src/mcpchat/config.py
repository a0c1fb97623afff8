"""
Configuration management for mcpchat.

Settings are loaded from environment variables (and an optional ``.env``
file). ``resolve_provider_config`` validates the selected provider and
returns the resolved ``ProviderConfig`` that the rest of the application
receives explicitly; nothing reads configuration from module globals.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_PROVIDERS = ("openai", "claude", "ollama")


class ConfigurationError(ValueError):
    """Raised when the provider selection has no matching credentials."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Provider selection
    ai_provider: str = "openai"

    # OpenAI settings
    openai_api_key: str | None = None
    openai_model: str | None = None
    openai_base_url: str | None = None

    # Claude settings
    anthropic_api_key: str | None = None
    claude_model: str | None = None
    claude_max_tokens: int = 2000

    # Ollama settings
    ollama_url: str | None = None
    ollama_model: str | None = None

    # Conversation loop
    max_iterations: int = 100
    tool_timeout: float | None = 120.0
    system_prompt: str | None = None

    # Screenshots extracted from tool output
    downloads_dir: str = "downloads"

    # Logging
    log_level: str = "INFO"
    debug: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def get_settings() -> Settings:
    """Load a fresh settings instance from the environment."""
    return Settings()


@dataclass(frozen=True)
class ProviderConfig:
    """Resolved, validated provider selection.

    Attributes:
        provider: One of ``SUPPORTED_PROVIDERS``.
        model: Model identifier for the backend.
        api_key: API key (``None`` for Ollama).
        base_url: Endpoint URL (Ollama host, or an OpenAI base URL override).
        max_tokens: Generation cap, used by Claude only.
    """

    provider: str
    model: str
    api_key: str | None = None
    base_url: str | None = None
    max_tokens: int = 2000

    def summary(self) -> list[str]:
        """Describe the configuration without leaking credentials."""
        lines = [f"AI Provider: {self.provider.upper()}", f"   Model: {self.model}"]
        if self.provider == "ollama":
            lines.append(f"   URL: {self.base_url}")
        else:
            lines.append(
                f"   API Key: {'***configured***' if self.api_key else 'missing'}"
            )
            if self.base_url:
                lines.append(f"   Base URL: {self.base_url}")
        return lines


def resolve_provider_config(settings: Settings) -> ProviderConfig:
    """Validate *settings* and return the configuration of the chosen provider.

    Raises:
        ConfigurationError: If the provider is unknown or its credentials or
            model are missing.
    """
    provider = settings.ai_provider.strip().lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise ConfigurationError(
            f"Invalid AI_PROVIDER: {settings.ai_provider}. "
            "Must be 'openai', 'claude', or 'ollama'"
        )

    if provider == "openai":
        if not settings.openai_api_key:
            raise ConfigurationError(
                "OPENAI_API_KEY is required when using OpenAI provider"
            )
        if not settings.openai_model:
            raise ConfigurationError(
                "OPENAI_MODEL is required when using OpenAI provider "
                "(e.g., gpt-4o-mini, gpt-4o)"
            )
        return ProviderConfig(
            provider=provider,
            model=settings.openai_model,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
        )

    if provider == "claude":
        if not settings.anthropic_api_key:
            raise ConfigurationError(
                "ANTHROPIC_API_KEY is required when using Claude provider"
            )
        if not settings.claude_model:
            raise ConfigurationError(
                "CLAUDE_MODEL is required when using Claude provider "
                "(e.g., claude-3-5-sonnet-20241022)"
            )
        return ProviderConfig(
            provider=provider,
            model=settings.claude_model,
            api_key=settings.anthropic_api_key,
            max_tokens=settings.claude_max_tokens,
        )

    if not settings.ollama_url:
        raise ConfigurationError(
            "OLLAMA_URL is required when using Ollama provider "
            "(e.g., http://localhost:11434)"
        )
    if not settings.ollama_model:
        raise ConfigurationError(
            "OLLAMA_MODEL is required when using Ollama provider "
            "(e.g., llama3.2, qwen2.5)"
        )
    return ProviderConfig(
        provider=provider,
        model=settings.ollama_model,
        base_url=settings.ollama_url,
    )
