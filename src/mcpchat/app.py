"""
ChatApplication wires configuration, adapter, tool server and loop together.

The application owns one tool server connection and one adapter. Each query
runs in a fresh ``ConversationLoop`` state; queries are serialized and a query
arriving while another is in flight is rejected.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

from mcpchat.config import ProviderConfig, Settings, resolve_provider_config
from mcpchat.conversation.extraction import extract_image
from mcpchat.conversation.loop import ConversationLoop, QueryResult
from mcpchat.conversation.providers.base import ProviderAdapter
from mcpchat.conversation.providers.factory import create_adapter
from mcpchat.screenshots import ScreenshotStore
from mcpchat.tools.client import MCPToolClient
from mcpchat.tools.invoker import ToolInvoker
from mcpchat.tools.registry import ToolRegistry
from mcpchat.tools.server import ToolServer

logger = logging.getLogger(__name__)


class ApplicationStateError(RuntimeError):
    """Raised when an operation is called before its prerequisites."""


class QueryInProgressError(RuntimeError):
    """Raised when a query arrives while another one is still running."""


@dataclass
class ChatResponse:
    """What the user sees for one query.

    Attributes:
        text: Response text with any inline image payload removed.
        image_data: Base64 image found in the output, if any.
        saved_path: Where the image was saved, if saving succeeded.
        truncated: True when the iteration bound cut the conversation short.
        error: Provider error message, if the model call failed.
        tool_results: Raw tool outputs, in dispatch order.
    """

    text: str
    image_data: str | None = None
    saved_path: Path | None = None
    truncated: bool = False
    error: str | None = None
    tool_results: list[str] = field(default_factory=list)


class ChatApplication:
    """Chat front end over one provider and one MCP server.

    Attributes:
        settings: Explicit application settings.
        server: Tool server collaborator (an ``MCPToolClient`` by default).
        screenshots: Store for images extracted from responses.
    """

    def __init__(
        self,
        settings: Settings,
        server: ToolServer | None = None,
        adapter: ProviderAdapter | None = None,
        screenshots: ScreenshotStore | None = None,
    ) -> None:
        self.settings = settings
        self.server = server if server is not None else MCPToolClient()
        self.screenshots = screenshots or ScreenshotStore(settings.downloads_dir)
        self.registry: ToolRegistry | None = None
        self.provider_config: ProviderConfig | None = None
        self._adapter = adapter
        self._query_lock = asyncio.Lock()

    @property
    def adapter(self) -> ProviderAdapter:
        if self._adapter is None:
            raise ApplicationStateError("Application not initialized. Call initialize() first.")
        return self._adapter

    @property
    def is_connected(self) -> bool:
        return self.registry is not None

    @property
    def busy(self) -> bool:
        return self._query_lock.locked()

    def initialize(self) -> None:
        """Resolve the provider configuration and build the adapter.

        Raises:
            ConfigurationError: If the selected provider is not fully configured.
        """
        if self._adapter is None:
            self.provider_config = resolve_provider_config(self.settings)
            for line in self.provider_config.summary():
                logger.info(line)
            self._adapter = create_adapter(self.provider_config)
        logger.info(
            "Initialized %s with model: %s",
            self._adapter.provider_name,
            self._adapter.model,
        )

    async def connect(self, target: str) -> None:
        """Connect to the tool server at *target* and expose its tools."""
        adapter = self.adapter
        connect = getattr(self.server, "connect", None)
        if connect is not None:
            await connect(target)
        self.registry = await ToolRegistry.from_server(self.server)
        adapter.set_tools(self.registry.descriptors())
        logger.info("AI provider now has access to %d tools", len(self.registry))

    def _build_loop(self) -> ConversationLoop:
        invoker = ToolInvoker(self.server, timeout=self.settings.tool_timeout)
        return ConversationLoop(
            adapter=self.adapter,
            invoker=invoker,
            max_iterations=self.settings.max_iterations,
            system_prompt=self.settings.system_prompt,
        )

    async def process_query(self, query: str) -> QueryResult:
        """Run *query* through a fresh conversation loop.

        Raises:
            ApplicationStateError: If ``initialize()`` has not been called.
            QueryInProgressError: If another query is still running.
        """
        loop = self._build_loop()
        if self._query_lock.locked():
            raise QueryInProgressError("A query is already being processed.")
        async with self._query_lock:
            return await loop.run(query)

    async def answer(self, query: str) -> ChatResponse:
        """Process *query* and separate any embedded image from the text."""
        result = await self.process_query(query)
        logger.debug("Tool results count: %d", len(result.tool_results))

        extracted = extract_image(result.tool_results, result.combined_text)
        saved_path: Path | None = None
        if extracted.image_data is not None:
            try:
                saved_path = self.screenshots.save(extracted.image_data)
            except (OSError, ValueError) as exc:
                logger.error("Failed to save screenshot: %s", exc)

        return ChatResponse(
            text=extracted.display_text,
            image_data=extracted.image_data,
            saved_path=saved_path,
            truncated=result.truncated,
            error=result.error,
            tool_results=result.tool_results,
        )

    async def cleanup(self) -> None:
        """Disconnect from the tool server."""
        self.registry = None
        disconnect = getattr(self.server, "disconnect", None)
        if disconnect is None:
            return
        try:
            await disconnect()
            logger.info("Application cleaned up successfully")
        except Exception as exc:
            logger.error("Error during cleanup: %s", exc)
