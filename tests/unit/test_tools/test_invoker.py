"""Unit tests for mcpchat.tools.invoker (flatten_content and ToolInvoker)."""

from __future__ import annotations

import asyncio
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from mcp.types import ImageContent, TextContent

from mcpchat.conversation.messages import ToolCallResult
from mcpchat.tools.invoker import ToolInvoker, flatten_content
from mcpchat.tools.server import RawToolResult

# ---------------------------------------------------------------------------
# Fixtures / helpers
# ---------------------------------------------------------------------------


def _server(*outcomes: Any) -> MagicMock:
    server = MagicMock()
    server.invoke_tool = AsyncMock(side_effect=list(outcomes))
    return server


class _SlowServer:
    """Times out on the first *slow_calls* calls, then answers."""

    def __init__(self, slow_calls: int) -> None:
        self.slow_calls = slow_calls
        self.calls = 0

    async def discover_tools(self) -> list:
        return []

    async def invoke_tool(self, name: str, arguments: Any) -> RawToolResult:
        self.calls += 1
        if self.calls <= self.slow_calls:
            await asyncio.sleep(5)
        return RawToolResult(content=f"{name} finished")


# ---------------------------------------------------------------------------
# flatten_content
# ---------------------------------------------------------------------------


class TestFlattenContent:
    def test_none_is_empty(self) -> None:
        assert flatten_content(None) == ""

    def test_string_passes_through(self) -> None:
        assert flatten_content("plain text") == "plain text"

    def test_text_fragments_are_joined_with_newlines(self) -> None:
        content = [
            TextContent(type="text", text="line one"),
            TextContent(type="text", text="line two"),
        ]
        assert flatten_content(content) == "line one\nline two"

    def test_non_text_fragment_is_serialized_as_json(self) -> None:
        content = [
            TextContent(type="text", text="Screenshot:"),
            ImageContent(type="image", data="QUJD", mimeType="image/png"),
        ]

        first, second = flatten_content(content).split("\n")

        assert first == "Screenshot:"
        assert json.loads(second) == {"type": "image", "data": "QUJD", "mimeType": "image/png"}

    def test_dict_fragments(self) -> None:
        content = [{"type": "text", "text": "hi"}, {"type": "resource", "uri": "file:///a"}]
        assert flatten_content(content) == 'hi\n{"type":"resource","uri":"file:///a"}'

    def test_structured_value_is_compact_json(self) -> None:
        assert flatten_content({"status": "ok", "count": 2}) == '{"status":"ok","count":2}'


# ---------------------------------------------------------------------------
# ToolInvoker.invoke
# ---------------------------------------------------------------------------


class TestToolInvoker:
    def test_negative_retries_rejected(self) -> None:
        with pytest.raises(ValueError):
            ToolInvoker(_server(), max_retries=-1)

    @pytest.mark.anyio
    async def test_success_is_flattened(self) -> None:
        server = _server(RawToolResult(content=[TextContent(type="text", text="Navigated")]))
        invoker = ToolInvoker(server)

        result = await invoker.invoke("browser_navigate", {"url": "https://example.com"})

        assert result == ToolCallResult(content="Navigated")
        server.invoke_tool.assert_awaited_once_with(
            "browser_navigate", {"url": "https://example.com"}
        )

    @pytest.mark.anyio
    async def test_server_flagged_error_is_passed_on(self) -> None:
        server = _server(RawToolResult(content="Element not found", is_error=True))

        result = await ToolInvoker(server).invoke("click", {"ref": "e9"})

        assert result == ToolCallResult(content="Element not found", is_error=True)

    @pytest.mark.anyio
    async def test_exception_becomes_error_result(self) -> None:
        server = _server(ConnectionError("connection reset"))

        result = await ToolInvoker(server).invoke("click", {"ref": "e1"})

        assert result.is_error is True
        assert result.content == "Error executing click: connection reset"

    @pytest.mark.anyio
    async def test_exception_without_message_uses_type_name(self) -> None:
        result = await ToolInvoker(_server(KeyError())).invoke("lookup", {})

        assert result.content == "Error executing lookup: KeyError"

    @pytest.mark.anyio
    async def test_unexpected_return_type_is_an_error(self) -> None:
        result = await ToolInvoker(_server("not a result")).invoke("odd", {})

        assert result.is_error is True
        assert result.content.startswith("Error executing odd:")

    @pytest.mark.anyio
    async def test_timeout_becomes_error_result(self) -> None:
        server = _SlowServer(slow_calls=1)

        result = await ToolInvoker(server, timeout=0.01).invoke("slow", {})

        assert result.is_error is True
        assert result.content == "Error executing slow: timed out after 0.01s"
        assert server.calls == 1

    @pytest.mark.anyio
    async def test_timeout_is_retried(self) -> None:
        server = _SlowServer(slow_calls=1)

        result = await ToolInvoker(server, timeout=0.05, max_retries=1).invoke("slow", {})

        assert result == ToolCallResult(content="slow finished")
        assert server.calls == 2

    @pytest.mark.anyio
    async def test_non_timeout_errors_are_not_retried(self) -> None:
        server = _server(RuntimeError("boom"), RawToolResult(content="unused"))

        result = await ToolInvoker(server, max_retries=3).invoke("x", {})

        assert result.is_error is True
        assert server.invoke_tool.await_count == 1
