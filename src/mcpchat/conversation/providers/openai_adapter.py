"""
Completion-style adapter backed by the OpenAI Chat Completions API.

Uses ``openai.AsyncOpenAI``; a custom ``base_url`` lets the same adapter talk
to any OpenAI-compatible endpoint.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from openai import (
    APIConnectionError,
    APIError,
    APIStatusError,
    AsyncOpenAI,
    RateLimitError,
)

from mcpchat.conversation.messages import (
    Message,
    ModelTurn,
    ToolCallRequest,
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


def function_tool_schema(tools: Sequence[ToolDescriptor]) -> list[dict[str, Any]]:
    """Encode descriptors in the ``{"type": "function", ...}`` envelope."""
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.input_schema,
            },
        }
        for tool in tools
    ]


class OpenAIAdapter(ProviderAdapter):
    """Provider adapter for OpenAI chat completions.

    Attributes:
        api_key: API key passed to the client.
        base_url: Optional override of the API base URL.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
    ) -> None:
        super().__init__()
        self._model = model
        self.base_url = base_url
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)

    @property
    def provider_name(self) -> str:
        return "OpenAI"

    @property
    def model(self) -> str:
        return self._model

    def format_tools(self, tools: Sequence[ToolDescriptor]) -> list[dict[str, Any]]:
        return function_tool_schema(tools)

    @staticmethod
    def _to_wire(message: Message) -> dict[str, Any]:
        wire: dict[str, Any] = {"role": message.role, "content": message.content}
        if message.role == "assistant" and message.tool_calls:
            wire["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.name,
                        "arguments": json.dumps(call.arguments),
                    },
                }
                for call in message.tool_calls
            ]
        if message.role == "tool":
            wire["tool_call_id"] = message.tool_call_id
        return wire

    async def generate_turn(self, history: Sequence[Message]) -> ModelTurn:
        """Call the Chat Completions API and normalise the first choice.

        Raises:
            ProviderRateLimitError: If the API returns a 429 response.
            ProviderConnectionError: If the API endpoint cannot be reached.
            ProviderAPIError: For other API-level failures (e.g. 4xx/5xx).
            ProviderResponseError: If the response fails SDK validation, has no
                choices, or carries tool arguments that are not valid JSON.
        """
        tools = self.format_tools(self.tools)
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [self._to_wire(m) for m in history],
        }
        if tools:
            kwargs["tools"] = tools

        logger.debug(
            "OpenAI request: model=%s, messages=%d, tools=%d",
            self._model,
            len(history),
            len(tools),
        )

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except RateLimitError as exc:
            logger.warning("OpenAI rate limit exceeded: %s", exc)
            raise ProviderRateLimitError(f"Rate limit exceeded: {exc}") from exc
        except APIConnectionError as exc:
            logger.error("OpenAI connection failed: %s", exc)
            raise ProviderConnectionError(f"Could not connect to OpenAI: {exc}") from exc
        except APIStatusError as exc:
            logger.error("OpenAI API error %d: %s", exc.status_code, exc)
            raise ProviderAPIError(
                f"OpenAI API returned status {exc.status_code}: {exc}",
                status_code=exc.status_code,
            ) from exc
        except APIError as exc:
            logger.error("OpenAI request failed: %s", exc)
            raise ProviderResponseError(f"OpenAI request failed: {exc}") from exc

        if not response.choices:
            raise ProviderResponseError("OpenAI response contained no choices")
        message = response.choices[0].message

        tool_calls: list[ToolCallRequest] = []
        for tc in message.tool_calls or []:
            try:
                arguments = json.loads(tc.function.arguments or "{}")
            except json.JSONDecodeError as exc:
                raise ProviderResponseError(
                    f"Tool call {tc.function.name!r} has malformed arguments: {exc}"
                ) from exc
            tool_calls.append(
                ToolCallRequest(id=tc.id, name=tc.function.name, arguments=arguments)
            )

        return ModelTurn(content=message.content or None, tool_calls=tuple(tool_calls))
