"""
Provider adapters for the conversation loop.

One adapter per backend family:

- ``OpenAIAdapter`` - completion style, correlated tool messages.
- ``ClaudeAdapter`` - message style, tool results as user messages.
- ``OllamaAdapter`` - local models, correlated tool messages with
  synthesized ids.
"""

from mcpchat.conversation.providers.base import (
    ProviderAdapter,
    ProviderAPIError,
    ProviderConnectionError,
    ProviderError,
    ProviderRateLimitError,
    ProviderResponseError,
)
from mcpchat.conversation.providers.claude_adapter import ClaudeAdapter
from mcpchat.conversation.providers.factory import create_adapter
from mcpchat.conversation.providers.ollama_adapter import OllamaAdapter
from mcpchat.conversation.providers.openai_adapter import OpenAIAdapter

__all__ = [
    "ClaudeAdapter",
    "OllamaAdapter",
    "OpenAIAdapter",
    "ProviderAPIError",
    "ProviderAdapter",
    "ProviderConnectionError",
    "ProviderError",
    "ProviderRateLimitError",
    "ProviderResponseError",
    "create_adapter",
]
