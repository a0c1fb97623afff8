"""Capability contract of the external tool-serving process."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from mcpchat.conversation.messages import ToolDescriptor


class ToolServerError(RuntimeError):
    """Raised when the tool server cannot be reached or used."""


@dataclass(frozen=True)
class RawToolResult:
    """Unnormalised result of a tool call.

    Attributes:
        content: A string, a structured value, or a sequence of content
            fragments, exactly as the server returned it.
        is_error: Whether the server flagged the call as failed.
    """

    content: Any
    is_error: bool = False


@runtime_checkable
class ToolServer(Protocol):
    """Protocol for tool servers used by ``ToolRegistry`` and ``ToolInvoker``."""

    async def discover_tools(self) -> list[ToolDescriptor]:
        """Return every tool the server exposes."""
        ...

    async def invoke_tool(self, name: str, arguments: Any) -> RawToolResult:
        """Run tool *name* with *arguments* and return the raw result."""
        ...
