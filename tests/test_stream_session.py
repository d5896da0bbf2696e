"""StreamSession state machine tests"""

import asyncio

import pytest

from llmbridge.adapters.anthropic import AnthropicAdapter
from llmbridge.adapters.openai import OpenAIAdapter
from llmbridge.core.exceptions import (
    BufferSizeExceededError,
    StreamStateError,
    UnrecognizedRoleError,
    UnrecognizedStreamEventError,
)
from llmbridge.fixtures.anthropic import ANTHROPIC_STREAM_SSE
from llmbridge.fixtures.openai import OPENAI_STREAM_SSE
from llmbridge.ir.schema import MessageDelta, MessageEnd, MessageStart, StreamError
from llmbridge.streaming.buffer import StreamingConfig
from llmbridge.streaming.session import StreamSession, StreamState

START = 'data: {"id":"c1","model":"gpt-4","choices":[{"index":0,"delta":{"role":"assistant","content":""},"finish_reason":null}]}\n\n'
DELTA = 'data: {"id":"c1","model":"gpt-4","choices":[{"index":0,"delta":{"content":"Hi"},"finish_reason":null}]}\n\n'
END = 'data: {"id":"c1","model":"gpt-4","choices":[{"index":0,"delta":{},"finish_reason":"stop"}]}\n\n'


async def _chunks(parts):
    for part in parts:
        yield part


def _split(text, size):
    return [text[i:i + size] for i in range(0, len(text), size)]


def _collect(session, parts):
    async def run():
        return [event async for event in session.events(_chunks(parts))]

    return asyncio.run(run())


class TestOpenAISession:
    """Chat completions streams"""

    def setup_method(self):
        self.session = StreamSession(OpenAIAdapter())

    def test_three_frames_and_sentinel(self):
        events = _collect(self.session, _split(OPENAI_STREAM_SSE, 7))

        assert [type(e) for e in events] == [MessageStart, MessageDelta, MessageEnd]
        assert events[0].id == "chatcmpl-stream-1"
        assert events[1].delta.content == "Hi"
        assert events[2].finish_reason == "stop"
        assert events[2].usage.total_tokens == 6
        assert self.session.state is StreamState.END

    def test_deltas_keep_upstream_order(self):
        deltas = "".join(
            f'data: {{"choices":[{{"index":0,"delta":{{"content":"{word}"}},"finish_reason":null}}]}}\n\n'
            for word in ("one", "two", "three", "four")
        )
        events = _collect(self.session, [START, deltas, END])
        assert [e.delta.content for e in events if isinstance(e, MessageDelta)] == [
            "one",
            "two",
            "three",
            "four",
        ]

    def test_start_is_optional(self):
        events = _collect(self.session, [DELTA, END])
        assert [type(e) for e in events] == [MessageDelta, MessageEnd]

    def test_malformed_frame_ends_stream_with_error(self):
        events = _collect(self.session, [START, "data: {not json}\n\n", DELTA, END])

        assert [type(e) for e in events] == [MessageStart, StreamError]
        assert events[1].error.type == "parsing_error"
        assert self.session.state is StreamState.FAILED

    def test_upstream_error_event(self):
        error = 'data: {"error":{"message":"boom","type":"server_error","param":null,"code":null}}\n\n'
        events = _collect(self.session, [START, error])
        assert events[-1].error.message == "boom"
        assert self.session.state is StreamState.FAILED

    def test_unparseable_trailing_data_is_dropped(self):
        events = _collect(self.session, [START, DELTA, 'data: {"trunc'])

        assert [type(e) for e in events] == [MessageStart, MessageDelta]
        assert self.session.state is StreamState.STREAMING

    def test_valid_trailing_frame_is_parsed(self):
        events = _collect(self.session, [START, DELTA, END.rstrip("\n")])
        assert isinstance(events[-1], MessageEnd)

    def test_upstream_not_read_after_terminal_event(self):
        async def upstream():
            yield START + DELTA + END
            raise AssertionError("upstream read after terminal event")

        async def run():
            return [event async for event in self.session.events(upstream())]

        events = asyncio.run(run())
        assert isinstance(events[-1], MessageEnd)

    def test_unknown_shape_raises(self):
        with pytest.raises(UnrecognizedStreamEventError):
            _collect(self.session, [START, 'data: {"id":"c1","choices":[]}\n\n'])
        assert self.session.state is StreamState.FAILED

    def test_unknown_delta_role_raises(self):
        bad_delta = 'data: {"id":"c1","choices":[{"index":0,"delta":{"role":"wizard","content":"Hi"},"finish_reason":null}]}\n\n'
        with pytest.raises(UnrecognizedRoleError):
            _collect(self.session, [START, bad_delta, END])
        assert self.session.state is StreamState.FAILED
        assert self.session.buffer.size == 0


class TestSessionStateErrors:
    """Sequencing violations"""

    def setup_method(self):
        self.session = StreamSession(OpenAIAdapter())

    def test_session_is_single_use(self):
        _collect(self.session, [START, END])
        with pytest.raises(StreamStateError):
            _collect(self.session, [START, END])

    def test_second_start_rejected(self):
        with pytest.raises(StreamStateError) as exc_info:
            _collect(self.session, [START, START])
        assert exc_info.value.event_type == "message_start"
        assert self.session.state is StreamState.FAILED

    def test_start_after_delta_rejected(self):
        with pytest.raises(StreamStateError):
            _collect(self.session, [DELTA, START])

    def test_buffer_cleared_after_failure(self):
        with pytest.raises(StreamStateError):
            _collect(self.session, [START + START + 'data: {"partial'])
        assert self.session.buffer.size == 0

    def test_buffer_overflow_fails_session(self):
        session = StreamSession(OpenAIAdapter(), StreamingConfig(max_buffer_size=16))
        with pytest.raises(BufferSizeExceededError):
            _collect(session, [START])
        assert session.state is StreamState.FAILED


class TestAnthropicSession:
    """Type-tagged Messages API streams"""

    def test_text_stream(self):
        session = StreamSession(AnthropicAdapter())
        events = _collect(session, _split(ANTHROPIC_STREAM_SSE, 11))

        assert [type(e) for e in events] == [MessageStart, MessageDelta, MessageDelta, MessageEnd]
        assert events[0].id == "msg_stream_1"
        assert "".join(e.delta.content for e in events[1:3]) == "Hello!"
        assert events[3].finish_reason == "stop"
        assert events[3].usage.prompt_tokens == 25
        assert events[3].usage.completion_tokens == 15
        assert events[3].usage.total_tokens == 40
        assert session.state is StreamState.END
