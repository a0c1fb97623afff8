"""
Message-style adapter backed by the Anthropic Messages API.

Claude belongs to the message-role family: the assistant's tool requests are
not carried in history and tool results come back to the model as plain
``user`` messages. Ordering alone links a result to the call that produced it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from anthropic import (
    APIConnectionError,
    APIError,
    APIStatusError,
    AsyncAnthropic,
    RateLimitError,
)

from mcpchat.conversation.messages import (
    Message,
    ModelTurn,
    ToolCallRequest,
    ToolCallResult,
    ToolDescriptor,
)
from mcpchat.conversation.providers.base import (
    ProviderAdapter,
    ProviderAPIError,
    ProviderConnectionError,
    ProviderRateLimitError,
    ProviderResponseError,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 2000
EMPTY_RESULT_PLACEHOLDER = "(empty result)"


class ClaudeAdapter(ProviderAdapter):
    """Provider adapter for Claude models.

    Attributes:
        max_tokens: Upper bound on generated tokens per turn.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        super().__init__()
        self._model = model
        self.max_tokens = max_tokens
        self._client = AsyncAnthropic(api_key=api_key)

    @property
    def provider_name(self) -> str:
        return "Claude"

    @property
    def model(self) -> str:
        return self._model

    def format_tools(self, tools: Sequence[ToolDescriptor]) -> list[dict[str, Any]]:
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.input_schema,
            }
            for tool in tools
        ]

    def encode_assistant_turn(self, turn: ModelTurn) -> Message:
        return Message(role="assistant", content=turn.content or "")

    def encode_tool_result(
        self, call: ToolCallRequest, result: ToolCallResult
    ) -> Message:
        return Message(role="user", content=result.content)

    @staticmethod
    def _split_system(
        history: Sequence[Message],
    ) -> tuple[str | None, list[dict[str, Any]]]:
        """Lift system messages out of *history* and encode the rest.

        The Messages API rejects empty content. Empty assistant messages are
        left out; empty user messages (tool results included) are sent as
        ``EMPTY_RESULT_PLACEHOLDER``.
        """
        system_parts: list[str] = []
        wire: list[dict[str, Any]] = []
        for message in history:
            if message.role == "system":
                system_parts.append(message.content)
                continue
            role = "assistant" if message.role == "assistant" else "user"
            content = message.content
            if not content:
                if role == "assistant":
                    continue
                content = EMPTY_RESULT_PLACEHOLDER
            wire.append({"role": role, "content": content})
        system = "\n\n".join(part for part in system_parts if part) or None
        return system, wire

    async def generate_turn(self, history: Sequence[Message]) -> ModelTurn:
        """Call the Messages API and fold the content blocks into a turn.

        Text blocks are concatenated in order; ``tool_use`` blocks keep the
        provider-assigned id.

        Raises:
            ProviderRateLimitError: If the API returns a 429 response.
            ProviderConnectionError: If the API endpoint cannot be reached.
            ProviderAPIError: For other API-level failures.
            ProviderResponseError: If the SDK rejects the response or a
                ``tool_use`` block lacks an id or name.
        """
        tools = self.format_tools(self.tools)
        system, messages = self._split_system(history)

        kwargs: dict[str, Any] = {
            "model": self._model,
            "max_tokens": self.max_tokens,
            "messages": messages,
        }
        if tools:
            kwargs["tools"] = tools
        if system:
            kwargs["system"] = system

        logger.debug(
            "Claude request: model=%s, messages=%d, tools=%d",
            self._model,
            len(messages),
            len(tools),
        )

        try:
            response = await self._client.messages.create(**kwargs)
        except RateLimitError as exc:
            logger.warning("Claude rate limit exceeded: %s", exc)
            raise ProviderRateLimitError(f"Rate limit exceeded: {exc}") from exc
        except APIConnectionError as exc:
            logger.error("Claude connection failed: %s", exc)
            raise ProviderConnectionError(f"Could not connect to Anthropic: {exc}") from exc
        except APIStatusError as exc:
            logger.error("Claude API error %d: %s", exc.status_code, exc)
            raise ProviderAPIError(
                f"Anthropic API returned status {exc.status_code}: {exc}",
                status_code=exc.status_code,
            ) from exc
        except APIError as exc:
            logger.error("Claude request failed: %s", exc)
            raise ProviderResponseError(f"Anthropic request failed: {exc}") from exc

        content = ""
        tool_calls: list[ToolCallRequest] = []
        for block in response.content:
            if block.type == "text":
                content += block.text
            elif block.type == "tool_use":
                if not block.id or not block.name:
                    raise ProviderResponseError("tool_use block without id or name")
                tool_calls.append(
                    ToolCallRequest(id=block.id, name=block.name, arguments=block.input)
                )

        logger.debug(
            "Claude response: stop_reason=%s, tool_calls=%d",
            getattr(response, "stop_reason", None),
            len(tool_calls),
        )
        return ModelTurn(content=content or None, tool_calls=tuple(tool_calls))
