"""
Tool capability registry.

Holds the tools discovered on the tool server once at connect time. The
registry is populated exactly once and is read-only afterwards; a change in
tool availability requires a reconnect and a new registry.

Typical usage::

    registry = await ToolRegistry.from_server(client)
    adapter.set_tools(registry.descriptors())
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from mcpchat.conversation.messages import ToolDescriptor
from mcpchat.tools.server import ToolServer

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry mapping tool names to their descriptors.

    Attributes:
        _tools: Internal dict of registered descriptors, in discovery order.
        _frozen: Set once the registry has been populated.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDescriptor] = {}
        self._frozen = False

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    @classmethod
    async def from_server(cls, server: ToolServer) -> ToolRegistry:
        """Build a populated registry from a one-time discovery call."""
        registry = cls()
        registry.populate(await server.discover_tools())
        return registry

    def populate(self, descriptors: Iterable[ToolDescriptor]) -> None:
        """Register every descriptor and freeze the registry.

        Raises:
            RuntimeError: If the registry has already been populated.
            ValueError: If two descriptors share a name.
        """
        if self._frozen:
            raise RuntimeError(
                "Tool registry is read-only once populated; reconnect to refresh tools."
            )
        tools: dict[str, ToolDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in tools:
                raise ValueError(f"Tool {descriptor.name!r} is already registered.")
            tools[descriptor.name] = descriptor
        self._tools = tools
        self._frozen = True
        logger.debug("Registered %d tool(s): %s", len(tools), ", ".join(tools))

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def descriptors(self) -> list[ToolDescriptor]:
        """Return all registered descriptors (discovery order)."""
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def get(self, name: str) -> ToolDescriptor | None:
        return self._tools.get(name)

    def __len__(self) -> int:
        """Return the number of registered tools."""
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        """Return True if *name* is a registered tool."""
        return name in self._tools
