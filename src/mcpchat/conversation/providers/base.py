"""
Provider adapter base class and error hierarchy.

Every backend is wrapped in a ``ProviderAdapter`` that owns three concerns:

- formatting tool descriptors into the backend's tool schema envelope,
- executing one request/response cycle and normalising it to a ``ModelTurn``,
- re-encoding assistant turns and tool results into history messages.

The last concern is what differs between provider families. The default
implementation here follows the *correlated* family (OpenAI, Ollama): the
assistant message carries its tool calls and each result is a ``tool`` message
pointing back at the call id. Message-role backends (Claude) override both
encoders.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from mcpchat.conversation.messages import (
    Message,
    ModelTurn,
    ToolCallRequest,
    ToolCallResult,
    ToolDescriptor,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Custom exception hierarchy
# ---------------------------------------------------------------------------


class ProviderError(Exception):
    """Base exception for a backend that could not produce a turn."""


class ProviderRateLimitError(ProviderError):
    """Raised when the backend returns a rate-limit (429) response."""


class ProviderConnectionError(ProviderError):
    """Raised when the backend endpoint cannot be reached."""


class ProviderAPIError(ProviderError):
    """Raised for other API errors (e.g., 5xx, authentication failures).

    Attributes:
        status_code: HTTP status code from the API, or ``None`` if unavailable.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderResponseError(ProviderError):
    """Raised when the backend answers with a payload that cannot be parsed."""


# ---------------------------------------------------------------------------
# Adapter base class
# ---------------------------------------------------------------------------


class ProviderAdapter(ABC):
    """Translation layer between the internal message model and one backend.

    Attributes:
        tools: Tool descriptors offered to the model on every request.
    """

    def __init__(self) -> None:
        self.tools: list[ToolDescriptor] = []

    def set_tools(self, tools: Sequence[ToolDescriptor]) -> None:
        """Bind the descriptors from the tool registry."""
        self.tools = list(tools)
        logger.debug("%s adapter bound to %d tool(s)", self.provider_name, len(self.tools))

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Human-readable backend name (e.g. ``"OpenAI"``)."""

    @property
    @abstractmethod
    def model(self) -> str:
        """Model identifier sent with every request."""

    @abstractmethod
    def format_tools(self, tools: Sequence[ToolDescriptor]) -> list[dict[str, Any]]:
        """Encode *tools* in the backend's tool schema envelope.

        An empty input returns an empty list; callers omit the tools field
        from the request in that case.
        """

    @abstractmethod
    async def generate_turn(self, history: Sequence[Message]) -> ModelTurn:
        """Send *history* plus the bound tools and return the model's turn.

        Raises:
            ProviderError: If the backend is unreachable, rejects the request,
                or returns a malformed payload.
        """

    # ------------------------------------------------------------------
    # History re-encoding
    # ------------------------------------------------------------------

    def encode_assistant_turn(self, turn: ModelTurn) -> Message:
        """Encode *turn* as the assistant message appended to history."""
        return Message(
            role="assistant",
            content=turn.content or "",
            tool_calls=tuple(turn.tool_calls),
        )

    def encode_tool_result(
        self, call: ToolCallRequest, result: ToolCallResult
    ) -> Message:
        """Encode the result of *call* as the history message answering it."""
        return Message(
            role="tool",
            content=result.content,
            tool_call_id=call.id,
            tool_name=call.name,
        )

    def describe(self) -> str:
        return f"{self.provider_name} ({self.model})"
