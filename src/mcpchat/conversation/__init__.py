"""
mcpchat Conversation Package.

Implements the tool-use conversation loop, the provider-agnostic message
types it works on, and the extraction of embedded images from its output.
"""

from mcpchat.conversation.extraction import ExtractionResult, extract_image
from mcpchat.conversation.loop import (
    MAX_ITERATIONS,
    ConversationLoop,
    ConversationState,
    QueryResult,
    TruncationWarning,
)
from mcpchat.conversation.messages import (
    Message,
    ModelTurn,
    ToolCallRequest,
    ToolCallResult,
    ToolDescriptor,
)

__all__ = [
    "MAX_ITERATIONS",
    "ConversationLoop",
    "ConversationState",
    "ExtractionResult",
    "Message",
    "ModelTurn",
    "QueryResult",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolDescriptor",
    "TruncationWarning",
    "extract_image",
]
