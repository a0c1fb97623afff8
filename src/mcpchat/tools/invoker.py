"""
Tool invoker: one remote tool call in, one flat ``ToolCallResult`` out.

The invoker never raises across its boundary. Transport failures, timeouts
and protocol errors become an ``is_error`` result whose text tells the model
what went wrong, so the conversation can continue.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from mcpchat.conversation.messages import ToolCallResult
from mcpchat.tools.server import RawToolResult, ToolServer

logger = logging.getLogger(__name__)

_LOG_PREVIEW_CHARS = 200


class ToolInvocationError(RuntimeError):
    """A single tool call failed; recovered into an error ``ToolCallResult``."""


def _plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    return value


def _to_json(value: Any) -> str:
    return json.dumps(_plain(value), separators=(",", ":"), ensure_ascii=False, default=str)


def _flatten_fragment(fragment: Any) -> str:
    if isinstance(fragment, str):
        return fragment
    data = _plain(fragment)
    if (
        isinstance(data, Mapping)
        and data.get("type") == "text"
        and isinstance(data.get("text"), str)
    ):
        return data["text"]
    return _to_json(data)


def flatten_content(content: Any) -> str:
    """Flatten a raw tool result into a single text string.

    Strings pass through; sequences of fragments are joined with newlines
    (text fragments contribute their text, anything else is serialized as
    compact JSON); any other structured value is serialized as compact JSON.
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, (list, tuple)):
        return "\n".join(_flatten_fragment(fragment) for fragment in content)
    return _to_json(content)


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class ToolInvoker:
    """Executes tool calls against a ``ToolServer``.

    Attributes:
        server: The tool server collaborator.
        timeout: Maximum seconds per attempt. ``None`` disables the timeout.
        max_retries: Number of *additional* attempts after a timeout.
            ``0`` means a single attempt only.
    """

    def __init__(
        self,
        server: ToolServer,
        timeout: float | None = None,
        max_retries: int = 0,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be zero or a positive integer.")
        self.server = server
        self.timeout = timeout
        self.max_retries = max_retries

    async def _call_once(self, name: str, arguments: Any) -> RawToolResult:
        if self.timeout is None:
            return await self.server.invoke_tool(name, arguments)
        return await asyncio.wait_for(
            self.server.invoke_tool(name, arguments), timeout=self.timeout
        )

    async def _call(self, name: str, arguments: Any) -> RawToolResult:
        total_attempts = self.max_retries + 1
        for attempt in range(1, total_attempts + 1):
            try:
                return await self._call_once(name, arguments)
            except asyncio.TimeoutError as exc:
                if attempt < total_attempts:
                    logger.warning(
                        "Tool %r attempt %d/%d timed out; retrying",
                        name,
                        attempt,
                        total_attempts,
                    )
                    continue
                raise ToolInvocationError(
                    f"timed out after {self.timeout}s"
                ) from exc
        raise ToolInvocationError("retry loop exited unexpectedly")  # pragma: no cover

    async def invoke(self, name: str, arguments: Any) -> ToolCallResult:
        """Run tool *name* once and normalise the outcome.

        Returns:
            The flattened tool output, or an ``is_error`` result with content
            ``"Error executing <name>: <cause>"`` when the call failed.
        """
        logger.info("Executing: %s with args: %s", name, arguments)
        try:
            raw = await self._call(name, arguments)
            if not isinstance(raw, RawToolResult):
                raise ToolInvocationError(
                    f"tool server returned {type(raw).__name__}, expected RawToolResult"
                )
            content = flatten_content(raw.content)
        except Exception as exc:
            logger.error("Tool %r failed: %s", name, _describe(exc))
            return ToolCallResult(
                content=f"Error executing {name}: {_describe(exc)}",
                is_error=True,
            )

        if raw.is_error:
            logger.error("Tool execution failed: %s", content[:_LOG_PREVIEW_CHARS])
        else:
            preview = content[:_LOG_PREVIEW_CHARS]
            if len(content) > _LOG_PREVIEW_CHARS:
                preview += "..."
            logger.info("Tool result: %s", preview)
        return ToolCallResult(content=content, is_error=raw.is_error)
