"""
Pytest configuration for the mcpchat test suite.

Async tests use the anyio pytest plugin (``@pytest.mark.anyio``); the backend
is pinned to asyncio because the SDK clients under test are asyncio-only.
Provider credentials from the developer's shell are removed so settings tests
only see what they set themselves.
"""

from __future__ import annotations

import pytest

_PROVIDER_ENV = (
    "AI_PROVIDER",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "ANTHROPIC_API_KEY",
    "CLAUDE_MODEL",
    "CLAUDE_MAX_TOKENS",
    "OLLAMA_URL",
    "OLLAMA_MODEL",
    "MAX_ITERATIONS",
    "TOOL_TIMEOUT",
    "SYSTEM_PROMPT",
    "DOWNLOADS_DIR",
    "LOG_LEVEL",
    "DEBUG",
)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for name in _PROVIDER_ENV:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env file out of Settings().
    monkeypatch.chdir(tmp_path)
