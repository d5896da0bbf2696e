"""Anthropic adapter tests: system segmentation, usage and stream framing"""

import asyncio

import pytest

from llmbridge.adapters.anthropic import AnthropicAdapter
from llmbridge.adapters.openai import OpenAIAdapter
from llmbridge.core.exceptions import (
    UnrecognizedRoleError,
    UnrecognizedStreamEventError,
    UnsupportedFeatureError,
    UnsupportedRoleError,
    ValidationError,
)
from llmbridge.fixtures.anthropic import (
    ANTHROPIC_BLOCKS_REQUEST,
    ANTHROPIC_ERROR,
    ANTHROPIC_MULTI_BLOCK_RESPONSE,
    ANTHROPIC_REQUEST,
    ANTHROPIC_RESPONSE,
    ANTHROPIC_STREAM_EVENTS,
)
from llmbridge.fixtures.openai import OPENAI_SYSTEM_REQUEST
from llmbridge.ir.schema import (
    IRDelta,
    IRMessage,
    IRRequest,
    IRUsage,
    MessageDelta,
    MessageEnd,
    MessageStart,
    Role,
)


async def _items(items):
    for item in items:
        yield item


class TestAnthropicRequest:

    def setup_method(self):
        self.adapter = AnthropicAdapter()

    def test_system_message_moves_to_system_field(self):
        request = OpenAIAdapter().normalize_request(OPENAI_SYSTEM_REQUEST)
        assert self.adapter.transform_request(request) == {
            "model": "gpt-4",
            "system": "You are helpful.",
            "messages": [{"role": "user", "content": "Hi"}],
        }

    def test_request_round_trip(self):
        request = self.adapter.normalize_request(ANTHROPIC_REQUEST)

        assert request.messages[0] == IRMessage(role=Role.SYSTEM, content="You are a helpful assistant.")
        assert request.stop == ("Human:",)
        assert self.adapter.transform_request(request) == ANTHROPIC_REQUEST

    def test_content_blocks(self):
        request = self.adapter.normalize_request(ANTHROPIC_BLOCKS_REQUEST)

        assert request.messages[0].content == "You are terse. Answer in one word."
        assert request.messages[1].role is Role.USER
        assert request.messages[1].content == "What colour is the sky?"

    def test_only_user_and_assistant_inside_messages(self):
        with pytest.raises(ValidationError) as exc_info:
            self.adapter.normalize_request(
                {"model": "claude", "messages": [{"role": "system", "content": "x"}]}
            )
        assert exc_info.value.validation_errors == [
            "messages[0].role: 'system' is not user or assistant"
        ]

    def test_unknown_role_inside_messages(self):
        with pytest.raises(UnrecognizedRoleError):
            self.adapter.normalize_request(
                {"model": "claude", "messages": [{"role": "wizard", "content": "x"}]}
            )

    def test_malformed_messages_rejected(self):
        with pytest.raises(ValidationError):
            self.adapter.normalize_request({"model": "claude", "messages": "hi"})
        with pytest.raises(ValidationError) as exc_info:
            self.adapter.normalize_request({"model": "claude", "messages": ["hi"]})
        assert exc_info.value.validation_errors == ["messages[0]: got str"]

    def test_multiple_system_messages_are_joined(self):
        request = IRRequest(
            model="claude",
            messages=(
                IRMessage(role=Role.SYSTEM, content="First."),
                IRMessage(role=Role.USER, content="Hi"),
                IRMessage(role=Role.SYSTEM, content="Second."),
            ),
        )
        result = self.adapter.transform_request(request)
        assert result["system"] == "First.\n\nSecond."
        assert result["messages"] == [{"role": "user", "content": "Hi"}]

    def test_tool_role_cannot_be_expressed(self):
        request = IRRequest(
            model="claude",
            messages=(IRMessage(role=Role.TOOL, content="42"),),
        )
        with pytest.raises(UnsupportedRoleError) as exc_info:
            self.adapter.transform_request(request)
        assert isinstance(exc_info.value, UnsupportedFeatureError)
        assert exc_info.value.role == "tool"

    def test_default_max_tokens(self):
        adapter = AnthropicAdapter(default_max_tokens=256)
        request = IRRequest(model="claude", messages=(IRMessage(role=Role.USER, content="Hi"),))

        assert adapter.transform_request(request)["max_tokens"] == 256
        assert "max_tokens" not in self.adapter.transform_request(request)

        explicit = request.model_copy(update={"max_tokens": 10})
        assert adapter.transform_request(explicit)["max_tokens"] == 10


class TestAnthropicResponse:

    def setup_method(self):
        self.adapter = AnthropicAdapter()

    def test_usage_is_summed(self):
        response = self.adapter.normalize_response(ANTHROPIC_RESPONSE)
        assert response.usage == IRUsage(prompt_tokens=10, completion_tokens=8, total_tokens=18)
        assert response.choices[0].finish_reason == "stop"

    def test_response_round_trip(self):
        response = self.adapter.normalize_response(ANTHROPIC_RESPONSE)
        assert self.adapter.transform_response(response) == ANTHROPIC_RESPONSE

    def test_text_blocks_concatenated(self):
        response = self.adapter.normalize_response(ANTHROPIC_MULTI_BLOCK_RESPONSE)
        assert response.choices[0].message.content == "Let me check. Done."
        assert response.choices[0].finish_reason == "tool_calls"

    def test_unmapped_stop_reasons_pass_through(self):
        data = dict(ANTHROPIC_RESPONSE, stop_reason="stop_sequence")
        response = self.adapter.normalize_response(data)
        assert response.choices[0].finish_reason == "stop_sequence"
        assert self.adapter.transform_response(response)["stop_reason"] == "stop_sequence"

    def test_error_round_trip(self):
        error = self.adapter.normalize_error(ANTHROPIC_ERROR)
        assert error.type == "overloaded_error"
        assert self.adapter.transform_error(error) == ANTHROPIC_ERROR


class TestAnthropicStream:

    def setup_method(self):
        self.adapter = AnthropicAdapter()

    def test_normalize_stream_carries_input_tokens(self):
        async def run():
            stream = self.adapter.normalize_streaming_response(_items(ANTHROPIC_STREAM_EVENTS))
            return [event async for event in stream]

        events = asyncio.run(run())

        assert [type(e) for e in events] == [MessageStart, MessageDelta, MessageDelta, MessageEnd]
        assert events[-1].usage == IRUsage(prompt_tokens=25, completion_tokens=15, total_tokens=40)

    def test_structural_events_have_no_ir_form(self):
        for data in (
            {"type": "ping"},
            {"type": "content_block_stop", "index": 0},
            {"type": "message_stop"},
            {"type": "content_block_delta", "index": 0, "delta": {"type": "input_json_delta", "partial_json": "{"}},
        ):
            assert self.adapter.normalize_stream_event(data) is None

    def test_unknown_event_type(self):
        with pytest.raises(UnrecognizedStreamEventError):
            self.adapter.normalize_stream_event({"type": "mystery"})

    def test_transform_synthesizes_framing(self):
        events = [MessageDelta(delta=IRDelta(content="Hi")), MessageEnd(finish_reason="length")]

        async def run():
            return [e async for e in self.adapter.transform_streaming_response(_items(events))]

        payloads = asyncio.run(run())

        assert [p["type"] for p in payloads] == [
            "message_start",
            "content_block_start",
            "content_block_delta",
            "content_block_stop",
            "message_delta",
            "message_stop",
        ]
        assert payloads[2]["delta"] == {"type": "text_delta", "text": "Hi"}
        assert payloads[4]["delta"]["stop_reason"] == "max_tokens"

    def test_sse_encoding(self):
        frame = self.adapter.encode_stream_event({"type": "message_stop"})
        assert frame == 'event: message_stop\ndata: {"type": "message_stop"}\n\n'
        assert self.adapter.stream_terminator() is None
