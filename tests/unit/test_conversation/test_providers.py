"""Unit tests for mcpchat.conversation.providers (base and OpenAI adapter)."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mcpchat.conversation.messages import (
    Message,
    ModelTurn,
    ToolCallRequest,
    ToolCallResult,
    ToolDescriptor,
)
from mcpchat.conversation.providers import (
    ProviderAPIError,
    ProviderConnectionError,
    ProviderError,
    ProviderRateLimitError,
    ProviderResponseError,
)
from mcpchat.conversation.providers.openai_adapter import OpenAIAdapter

_WEATHER = ToolDescriptor(
    name="get_weather",
    description="Retrieve current weather conditions.",
    input_schema={
        "type": "object",
        "properties": {"location": {"type": "string"}},
        "required": ["location"],
    },
)


def _tool_call(id_: str, name: str, arguments: str) -> MagicMock:
    tc = MagicMock()
    tc.id = id_
    tc.function.name = name
    tc.function.arguments = arguments
    return tc


def _response(content: str | None, tool_calls: list[MagicMock] | None = None) -> MagicMock:
    choice = MagicMock()
    choice.message.content = content
    choice.message.tool_calls = tool_calls
    response = MagicMock()
    response.choices = [choice]
    return response


def _adapter(create: AsyncMock) -> OpenAIAdapter:
    with patch("mcpchat.conversation.providers.openai_adapter.AsyncOpenAI") as mock_cls:
        mock_client = MagicMock()
        mock_client.chat.completions.create = create
        mock_cls.return_value = mock_client
        return OpenAIAdapter(api_key="sk-test", model="gpt-4o-mini")


# ---------------------------------------------------------------------------
# Custom exception hierarchy
# ---------------------------------------------------------------------------


def test_provider_error_subclasses() -> None:
    for cls in (
        ProviderRateLimitError,
        ProviderConnectionError,
        ProviderAPIError,
        ProviderResponseError,
    ):
        assert issubclass(cls, ProviderError)


def test_provider_api_error_status_code() -> None:
    assert ProviderAPIError("server error", status_code=500).status_code == 500
    assert ProviderAPIError("unknown").status_code is None


# ---------------------------------------------------------------------------
# Construction and tool formatting
# ---------------------------------------------------------------------------


def test_openai_adapter_stores_config() -> None:
    with patch("mcpchat.conversation.providers.openai_adapter.AsyncOpenAI") as mock_cls:
        adapter = OpenAIAdapter(
            api_key="sk-test", model="gpt-4o", base_url="http://localhost:8000/v1"
        )

    assert adapter.provider_name == "OpenAI"
    assert adapter.model == "gpt-4o"
    mock_cls.assert_called_once_with(
        api_key="sk-test", base_url="http://localhost:8000/v1"
    )


def test_format_tools_uses_function_envelope() -> None:
    adapter = _adapter(AsyncMock())

    fmt = adapter.format_tools([_WEATHER])

    assert fmt == [
        {
            "type": "function",
            "function": {
                "name": "get_weather",
                "description": "Retrieve current weather conditions.",
                "parameters": _WEATHER.input_schema,
            },
        }
    ]


def test_format_tools_empty() -> None:
    assert _adapter(AsyncMock()).format_tools([]) == []


# ---------------------------------------------------------------------------
# generate_turn
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_generate_turn_omits_tools_when_none_bound() -> None:
    create = AsyncMock(return_value=_response("Hi there"))
    adapter = _adapter(create)

    turn = await adapter.generate_turn([Message.user("Hi")])

    assert turn == ModelTurn(content="Hi there")
    kwargs = create.call_args.kwargs
    assert "tools" not in kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["messages"] == [{"role": "user", "content": "Hi"}]


@pytest.mark.anyio
async def test_generate_turn_sends_bound_tools() -> None:
    create = AsyncMock(return_value=_response("ok"))
    adapter = _adapter(create)
    adapter.set_tools([_WEATHER])

    await adapter.generate_turn([Message.user("Weather?")])

    tools = create.call_args.kwargs["tools"]
    assert [t["function"]["name"] for t in tools] == ["get_weather"]


@pytest.mark.anyio
async def test_generate_turn_parses_tool_calls_with_nested_arguments() -> None:
    args = {"steps": [{"action": "click", "target": {"ref": "e12"}}], "wait": 1.5}
    create = AsyncMock(
        return_value=_response(
            None,
            [
                _tool_call("call_1", "run_steps", json.dumps(args)),
                _tool_call("call_2", "snapshot", ""),
            ],
        )
    )
    adapter = _adapter(create)

    turn = await adapter.generate_turn([Message.user("Go")])

    assert turn.content is None
    assert turn.tool_calls == (
        ToolCallRequest(id="call_1", name="run_steps", arguments=args),
        ToolCallRequest(id="call_2", name="snapshot", arguments={}),
    )


@pytest.mark.anyio
async def test_generate_turn_rejects_malformed_arguments() -> None:
    create = AsyncMock(return_value=_response(None, [_tool_call("c1", "x", "{not json")]))
    adapter = _adapter(create)

    with pytest.raises(ProviderResponseError, match="malformed arguments"):
        await adapter.generate_turn([Message.user("Go")])


@pytest.mark.anyio
async def test_generate_turn_rejects_empty_choices() -> None:
    response = MagicMock()
    response.choices = []
    adapter = _adapter(AsyncMock(return_value=response))

    with pytest.raises(ProviderResponseError):
        await adapter.generate_turn([Message.user("Go")])


@pytest.mark.anyio
async def test_history_wire_encoding_pairs_tool_messages_with_calls() -> None:
    create = AsyncMock(return_value=_response("done"))
    adapter = _adapter(create)
    call = ToolCallRequest(id="call_9", name="get_weather", arguments={"location": "Oslo"})
    history = [
        Message.user("Weather in Oslo?"),
        adapter.encode_assistant_turn(ModelTurn(content=None, tool_calls=(call,))),
        adapter.encode_tool_result(call, ToolCallResult(content="4C, rain")),
    ]

    await adapter.generate_turn(history)

    wire = create.call_args.kwargs["messages"]
    assert wire[1] == {
        "role": "assistant",
        "content": "",
        "tool_calls": [
            {
                "id": "call_9",
                "type": "function",
                "function": {"name": "get_weather", "arguments": '{"location": "Oslo"}'},
            }
        ],
    }
    assert wire[2] == {"role": "tool", "content": "4C, rain", "tool_call_id": "call_9"}


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_rate_limit_maps_to_provider_rate_limit_error() -> None:
    from openai import RateLimitError

    create = AsyncMock(
        side_effect=RateLimitError("rate limit", response=MagicMock(status_code=429), body={})
    )

    with pytest.raises(ProviderRateLimitError):
        await _adapter(create).generate_turn([Message.user("Hi")])


@pytest.mark.anyio
async def test_connection_failure_maps_to_provider_connection_error() -> None:
    from openai import APIConnectionError

    create = AsyncMock(side_effect=APIConnectionError(request=MagicMock()))

    with pytest.raises(ProviderConnectionError):
        await _adapter(create).generate_turn([Message.user("Hi")])


@pytest.mark.anyio
async def test_status_error_maps_to_provider_api_error() -> None:
    from openai import APIStatusError

    mock_response = MagicMock()
    mock_response.status_code = 500
    create = AsyncMock(
        side_effect=APIStatusError("Internal Server Error", response=mock_response, body={})
    )

    with pytest.raises(ProviderAPIError) as exc_info:
        await _adapter(create).generate_turn([Message.user("Hi")])
    assert exc_info.value.status_code == 500


@pytest.mark.anyio
async def test_response_validation_error_maps_to_provider_response_error() -> None:
    from openai import APIResponseValidationError

    create = AsyncMock(side_effect=APIResponseValidationError(response=MagicMock(), body=None))

    with pytest.raises(ProviderResponseError, match="OpenAI request failed"):
        await _adapter(create).generate_turn([Message.user("Hi")])


# ---------------------------------------------------------------------------
# Default (correlated) re-encoding
# ---------------------------------------------------------------------------


def test_encode_assistant_turn_keeps_tool_calls() -> None:
    adapter = _adapter(AsyncMock())
    calls = (ToolCallRequest(id="a", name="x", arguments={}),)

    message = adapter.encode_assistant_turn(ModelTurn(content="thinking", tool_calls=calls))

    assert message == Message(role="assistant", content="thinking", tool_calls=calls)


def test_encode_tool_result_carries_call_id() -> None:
    adapter = _adapter(AsyncMock())
    call = ToolCallRequest(id="call_7", name="snapshot", arguments={})

    message = adapter.encode_tool_result(call, ToolCallResult(content="<html>"))

    assert message.role == "tool"
    assert message.tool_call_id == "call_7"
    assert message.tool_name == "snapshot"
