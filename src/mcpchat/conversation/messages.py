"""
Provider-agnostic message and turn types for the conversation loop.

Adapters translate these into each backend's wire format; the loop and the
tool invoker only ever see the types defined here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

Role = Literal["user", "assistant", "tool", "system"]

_EMPTY_OBJECT_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}


@dataclass(frozen=True)
class ToolDescriptor:
    """A tool advertised by the tool server.

    Attributes:
        name: Unique tool name within a registry.
        description: Human-readable description shown to the model.
        input_schema: JSON Schema dict describing the accepted arguments.
    """

    name: str
    description: str = ""
    input_schema: dict[str, Any] = field(
        default_factory=lambda: dict(_EMPTY_OBJECT_SCHEMA)
    )

    @classmethod
    def from_raw(
        cls, name: str, description: str | None, input_schema: Any
    ) -> ToolDescriptor:
        """Build a descriptor, normalising missing or non-object schemas."""
        if not isinstance(input_schema, dict):
            input_schema = dict(_EMPTY_OBJECT_SCHEMA)
        return cls(name=name, description=description or "", input_schema=input_schema)


@dataclass(frozen=True)
class ToolCallRequest:
    """A tool invocation requested by the model.

    Attributes:
        id: Correlation token, provider-assigned or synthesized by the adapter.
        name: Name of the tool to invoke.
        arguments: Structured arguments (usually a dict, but not required to be).
    """

    id: str
    name: str
    arguments: Any = None


@dataclass(frozen=True)
class ToolCallResult:
    """Flattened outcome of a single tool invocation."""

    content: str
    is_error: bool = False


@dataclass(frozen=True)
class ModelTurn:
    """One complete model response, independent of the backend that produced it.

    A turn without tool calls ends the conversation loop.
    """

    content: str | None = None
    tool_calls: tuple[ToolCallRequest, ...] = ()

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


@dataclass(frozen=True)
class Message:
    """One entry in the conversation history.

    Attributes:
        role: ``user``, ``assistant``, ``tool`` or ``system``.
        content: Message text, possibly empty.
        tool_calls: Tool calls attached to an assistant turn.
        tool_call_id: For tool results, the id of the call being answered.
        tool_name: For tool results, the name of the tool being answered.
    """

    role: Role
    content: str = ""
    tool_calls: tuple[ToolCallRequest, ...] = ()
    tool_call_id: str | None = None
    tool_name: str | None = None

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role="user", content=content)

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role="system", content=content)
