"""
ConversationLoop: the tool-use state machine behind every query.

Each iteration asks the active adapter for a turn, appends the re-encoded
assistant turn to history, and dispatches the requested tool calls one by
one, appending each result before the next call starts. The loop ends when a
turn requests no tools, when the adapter fails, or when the iteration bound
is reached.

History encoding is delegated to the adapter (``encode_assistant_turn`` and
``encode_tool_result``), so the loop never branches on the provider.
"""

from __future__ import annotations

import logging
import time
import warnings
from dataclasses import dataclass, field

from mcpchat.conversation.messages import Message, ModelTurn
from mcpchat.conversation.providers.base import ProviderAdapter, ProviderError
from mcpchat.tools.invoker import ToolInvoker

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 100

TRUNCATION_NOTICE = (
    "\n⚠️ Maximum iterations reached. The automation may be incomplete."
)


class TruncationWarning(UserWarning):
    """The iteration bound stopped a conversation that still wanted tools."""


@dataclass
class ConversationState:
    """Mutable state of one query.

    Attributes:
        provider: Name of the adapter that owns the history encoding.
        messages: Append-only conversation history.
        iteration: Number of completed tool rounds.
    """

    provider: str
    messages: list[Message] = field(default_factory=list)
    iteration: int = 0

    def append(self, message: Message) -> None:
        self.messages.append(message)


@dataclass
class QueryResult:
    """Outcome of ``ConversationLoop.run``.

    Attributes:
        combined_text: Text from every turn, joined with newlines, plus any
            error or truncation notice.
        tool_results: Raw text of every tool result, in dispatch order.
        iterations: Number of adapter calls made.
        truncated: True when the iteration bound ended the loop.
        error: Provider error message when the adapter failed.
    """

    combined_text: str
    tool_results: list[str] = field(default_factory=list)
    iterations: int = 0
    truncated: bool = False
    error: str | None = None


class ConversationLoop:
    """Runs the model + tool loop for a single query.

    Typical usage::

        loop = ConversationLoop(adapter=adapter, invoker=ToolInvoker(client))
        result = await loop.run("Open example.com and take a screenshot")

    Attributes:
        adapter: The active provider adapter.
        invoker: Executes the tool calls the model requests.
        max_iterations: Maximum tool rounds per query. Default: 100.
        system_prompt: Optional system message placed first in history.
    """

    def __init__(
        self,
        adapter: ProviderAdapter,
        invoker: ToolInvoker,
        max_iterations: int = MAX_ITERATIONS,
        system_prompt: str | None = None,
    ) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be a positive integer.")
        self.adapter = adapter
        self.invoker = invoker
        self.max_iterations = max_iterations
        self.system_prompt = system_prompt

    def new_state(self, query: str) -> ConversationState:
        state = ConversationState(provider=self.adapter.provider_name)
        if self.system_prompt:
            state.append(Message.system(self.system_prompt))
        state.append(Message.user(query))
        return state

    async def run(self, query: str) -> QueryResult:
        """Process *query* until the model stops requesting tools.

        Adapter failures, whether mapped to ``ProviderError`` or not, are not
        raised: they end the loop and are reported in the combined text and
        ``QueryResult.error``.
        """
        state = self.new_state(query)
        output: list[str] = []
        tool_results: list[str] = []
        adapter_calls = 0
        truncated = False
        error: str | None = None
        query_start = time.monotonic()

        while True:
            logger.debug(
                "Conversation iteration %d/%d", state.iteration + 1, self.max_iterations
            )
            llm_t0 = time.monotonic()
            try:
                turn: ModelTurn = await self.adapter.generate_turn(state.messages)
            except ProviderError as exc:
                logger.error("AI API call failed: %s", exc)
                error = str(exc)
                output.append(f"Error: AI API call failed - {exc}")
                break
            except Exception as exc:
                logger.exception("Unexpected error from %s adapter", self.adapter.provider_name)
                error = str(exc) or type(exc).__name__
                output.append(f"Error: AI API call failed - {error}")
                break
            adapter_calls += 1
            logger.debug(
                "%s call %d took %.3fs (tool_calls=%d)",
                self.adapter.provider_name,
                adapter_calls,
                time.monotonic() - llm_t0,
                len(turn.tool_calls),
            )

            state.append(self.adapter.encode_assistant_turn(turn))
            if turn.content:
                output.append(turn.content)

            if not turn.has_tool_calls:
                break

            for call in turn.tool_calls:
                result = await self.invoker.invoke(call.name, call.arguments)
                tool_results.append(result.content)
                state.append(self.adapter.encode_tool_result(call, result))

            state.iteration += 1
            if state.iteration >= self.max_iterations:
                truncated = True
                logger.warning(
                    "Reached maximum iterations (%d). Breaking loop.", self.max_iterations
                )
                warnings.warn(
                    f"Conversation stopped after {self.max_iterations} iterations",
                    TruncationWarning,
                    stacklevel=2,
                )
                output.append(TRUNCATION_NOTICE)
                break

        logger.info(
            "Query complete after %d model call(s) and %d tool call(s) in %.3fs",
            adapter_calls,
            len(tool_results),
            time.monotonic() - query_start,
        )
        return QueryResult(
            combined_text="\n".join(output),
            tool_results=tool_results,
            iterations=adapter_calls,
            truncated=truncated,
            error=error,
        )
