"""
MCP tool server client built on the official ``mcp`` SDK.

A server is reached in one of two ways:

- ``http://`` / ``https://`` targets are treated as SSE endpoints.
- ``.py`` or ``.js`` scripts are launched as a subprocess and spoken to over
  stdio (Python scripts with the running interpreter, JavaScript with node).
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from contextlib import AsyncExitStack
from typing import Any

from mcp import ClientSession, StdioServerParameters
from mcp.client.sse import sse_client
from mcp.client.stdio import stdio_client

from mcpchat.conversation.messages import ToolDescriptor
from mcpchat.tools.server import RawToolResult, ToolServerError

logger = logging.getLogger(__name__)


def is_url(target: str) -> bool:
    return target.startswith(("http://", "https://"))


def stdio_parameters(target: str) -> StdioServerParameters:
    """Return the launch parameters for a server script.

    Raises:
        ToolServerError: If *target* is neither a ``.py`` nor a ``.js`` file.
    """
    if target.endswith(".py"):
        command = sys.executable or "python3"
    elif target.endswith(".js"):
        command = "node"
    else:
        raise ToolServerError(
            "Server script must be a .js or .py file, or an HTTP URL"
        )
    return StdioServerParameters(command=command, args=[target])


class MCPToolClient:
    """Connection to a single MCP server.

    Implements the ``ToolServer`` protocol. ``disconnect`` is idempotent and
    ``connect`` may be called again afterwards to reach another server.

    Attributes:
        target: The script path or URL of the current server, if connected.
    """

    def __init__(self) -> None:
        self.target: str | None = None
        self._session: ClientSession | None = None
        self._exit_stack: AsyncExitStack | None = None

    @property
    def is_connected(self) -> bool:
        return self._session is not None

    async def connect(self, target: str) -> None:
        """Open a session with the server at *target* and initialise it.

        Raises:
            ToolServerError: If the target is unsupported or the connection
                or handshake fails.
        """
        if self.is_connected:
            await self.disconnect()

        params = None if is_url(target) else stdio_parameters(target)
        stack = AsyncExitStack()
        try:
            if params is None:
                logger.info("Connecting to MCP server at %s...", target)
                read, write = await stack.enter_async_context(sse_client(target))
            else:
                logger.info("Starting MCP server: %s %s...", params.command, target)
                read, write = await stack.enter_async_context(stdio_client(params))
            session = await stack.enter_async_context(ClientSession(read, write))
            await session.initialize()
        except Exception as exc:
            await stack.aclose()
            logger.error("Failed to connect to MCP server: %s", exc)
            raise ToolServerError(
                f"Failed to connect to MCP server {target}: {exc}"
            ) from exc

        self._exit_stack = stack
        self._session = session
        self.target = target

    def _require_session(self) -> ClientSession:
        if self._session is None:
            raise ToolServerError("Not connected to an MCP server")
        return self._session

    async def discover_tools(self) -> list[ToolDescriptor]:
        """List the server's tools as ``ToolDescriptor`` objects."""
        session = self._require_session()
        listed = await session.list_tools()
        tools = [
            ToolDescriptor.from_raw(tool.name, tool.description, tool.inputSchema)
            for tool in listed.tools
        ]
        logger.info("Connected to server with tools: %s", [t.name for t in tools])
        return tools

    async def invoke_tool(self, name: str, arguments: Any) -> RawToolResult:
        """Call tool *name* and return its unflattened content."""
        session = self._require_session()
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            raise ToolServerError(
                f"Arguments for {name} must be an object, got {type(arguments).__name__}"
            )
        result = await session.call_tool(name, dict(arguments))
        return RawToolResult(content=result.content, is_error=bool(result.isError))

    async def disconnect(self) -> None:
        """Close the session and stop the server process, if any."""
        stack = self._exit_stack
        self._exit_stack = None
        self._session = None
        if stack is None:
            return
        try:
            await stack.aclose()
            logger.info("Disconnected from MCP server %s", self.target)
        except Exception as exc:
            logger.error("Error disconnecting from MCP server: %s", exc)
        finally:
            self.target = None
