"""FrameParser decoding tests"""

import logging

import pytest

from llmbridge.adapters.anthropic import AnthropicAdapter
from llmbridge.adapters.openai import OpenAIAdapter
from llmbridge.core.exceptions import MalformedFrameError
from llmbridge.streaming.parser import FrameParser


class TestFrameParser:

    def setup_method(self):
        adapter = OpenAIAdapter()
        self.parser = FrameParser(adapter.parsing_error_event, adapter.provider_name)

    def test_parse_object(self):
        assert self.parser.parse('{"choices": []}') == {"choices": []}

    def test_bad_json_becomes_parsing_error_event(self):
        event = self.parser.parse("{not json")
        assert event["error"]["type"] == "parsing_error"
        assert event["error"]["message"].startswith("JSON parsing failed")

    def test_non_object_becomes_parsing_error_event(self):
        event = self.parser.parse("[1, 2]")
        assert event["error"]["type"] == "parsing_error"
        assert "expected a JSON object" in event["error"]["message"]

    def test_bad_frame_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="llmbridge.streaming.parser"):
            self.parser.parse("{oops")
        assert "Malformed openai stream frame" in caplog.text

    def test_parse_strict_raises(self):
        with pytest.raises(MalformedFrameError) as exc_info:
            self.parser.parse_strict('{"truncated":')
        assert exc_info.value.frame == '{"truncated":'

    def test_error_event_uses_provider_shape(self):
        adapter = AnthropicAdapter()
        parser = FrameParser(adapter.parsing_error_event, adapter.provider_name)
        event = parser.parse("garbage")
        assert event["type"] == "error"
        assert event["error"]["type"] == "parsing_error"
