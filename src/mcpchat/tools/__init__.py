"""
Tool-side collaborators of the conversation loop.

- ``ToolServer`` - the capability contract of the tool-serving process.
- ``MCPToolClient`` - that contract over the Model Context Protocol.
- ``ToolRegistry`` - read-only set of tools discovered at connect time.
- ``ToolInvoker`` - one tool call, normalised into a ``ToolCallResult``.

Quick-start example::

    client = MCPToolClient()
    await client.connect("./server.py")
    registry = await ToolRegistry.from_server(client)
    invoker = ToolInvoker(client, timeout=60.0)
"""

from mcpchat.tools.client import MCPToolClient
from mcpchat.tools.invoker import ToolInvocationError, ToolInvoker, flatten_content
from mcpchat.tools.registry import ToolRegistry
from mcpchat.tools.server import RawToolResult, ToolServer, ToolServerError

__all__ = [
    "MCPToolClient",
    "RawToolResult",
    "ToolInvocationError",
    "ToolInvoker",
    "ToolRegistry",
    "ToolServer",
    "ToolServerError",
    "flatten_content",
]
