"""
mcpchat - converse with an LLM that can call tools on an MCP server.

The package drives a tool-use conversation loop against one of three
backends (OpenAI, Claude, Ollama). Tools come from a Model Context Protocol
server reached over stdio or SSE.

Quick Start:
    >>> from mcpchat import ChatApplication, get_settings
    >>> app = ChatApplication(get_settings())
    >>> app.initialize()
    >>> await app.connect("./my-server.py")
    >>> response = await app.answer("Take a screenshot of example.com")
"""

from mcpchat.app import ChatApplication, ChatResponse
from mcpchat.config import ConfigurationError, Settings, get_settings

__version__ = "0.1.0"
__all__ = [
    "ChatApplication",
    "ChatResponse",
    "ConfigurationError",
    "Settings",
    "get_settings",
]
