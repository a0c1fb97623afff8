"""
Local-model adapter backed by an Ollama server.

Ollama follows the correlated encoding (assistant tool calls in history,
``tool``-role results) but does not assign ids to tool calls. The adapter
synthesizes ``call_<turn>_<index>`` ids so results can still be correlated
within a turn, deterministically.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx
from ollama import AsyncClient, ResponseError

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
from mcpchat.conversation.providers.openai_adapter import function_tool_schema

logger = logging.getLogger(__name__)


class OllamaAdapter(ProviderAdapter):
    """Provider adapter for models served by Ollama.

    Attributes:
        url: Ollama host URL (e.g. ``http://localhost:11434``).
    """

    def __init__(self, url: str, model: str) -> None:
        super().__init__()
        self.url = url
        self._model = model
        self._turns = 0
        self._client = AsyncClient(host=url)

    @property
    def provider_name(self) -> str:
        return "Ollama"

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
                {"function": {"name": call.name, "arguments": call.arguments or {}}}
                for call in message.tool_calls
            ]
        if message.role == "tool" and message.tool_name:
            wire["tool_name"] = message.tool_name
        return wire

    async def generate_turn(self, history: Sequence[Message]) -> ModelTurn:
        """Call ``/api/chat`` and normalise the reply.

        Raises:
            ProviderRateLimitError: If the server answers 429.
            ProviderConnectionError: If the server cannot be reached.
            ProviderAPIError: For other error responses.
            ProviderResponseError: If the reply has no message.
        """
        tools = self.format_tools(self.tools)
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [self._to_wire(m) for m in history],
        }
        if tools:
            kwargs["tools"] = tools

        logger.debug(
            "Ollama request: model=%s, messages=%d, tools=%d",
            self._model,
            len(history),
            len(tools),
        )

        try:
            response = await self._client.chat(**kwargs)
        except ResponseError as exc:
            if exc.status_code == 429:
                logger.warning("Ollama rate limit exceeded: %s", exc)
                raise ProviderRateLimitError(f"Rate limit exceeded: {exc}") from exc
            logger.error("Ollama API error %d: %s", exc.status_code, exc)
            raise ProviderAPIError(
                f"Ollama returned status {exc.status_code}: {exc.error}",
                status_code=exc.status_code,
            ) from exc
        except (ConnectionError, httpx.HTTPError) as exc:
            logger.error("Ollama connection failed: %s", exc)
            raise ProviderConnectionError(
                f"Could not connect to Ollama at {self.url}: {exc}"
            ) from exc

        message = response.message
        if message is None:
            raise ProviderResponseError("Ollama response contained no message")

        turn_index = self._turns
        self._turns += 1

        tool_calls: list[ToolCallRequest] = []
        for index, tc in enumerate(message.tool_calls or []):
            arguments = tc.function.arguments
            if isinstance(arguments, Mapping):
                arguments = dict(arguments)
            tool_calls.append(
                ToolCallRequest(
                    id=f"call_{turn_index}_{index}",
                    name=tc.function.name,
                    arguments=arguments if arguments is not None else {},
                )
            )

        return ModelTurn(content=message.content or None, tool_calls=tuple(tool_calls))
