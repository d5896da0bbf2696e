"""Relay app tests with a mocked upstream"""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from llmbridge.fixtures.anthropic import (
    ANTHROPIC_ERROR,
    ANTHROPIC_REQUEST,
    ANTHROPIC_RESPONSE,
    ANTHROPIC_STREAM_SSE,
)
from llmbridge.fixtures.openai import OPENAI_CHAT_RESPONSE, OPENAI_SYSTEM_REQUEST
from llmbridge.types.provider import Provider
from llmbridge_server.app import create_app
from llmbridge_server.config import BridgeSettings, load_settings


class _Upstream:
    """Records requests and answers with a canned response"""

    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return self.response

    @property
    def body(self):
        return json.loads(self.requests[-1].content)


def _client(upstream, source="anthropic"):
    settings = BridgeSettings(
        url="https://upstream.test/v1/endpoint",
        apikey="sk-test",
        source=source,
        log_level="WARNING",
    )
    return TestClient(create_app(settings, transport=httpx.MockTransport(upstream)))


class TestOpenAIClientAnthropicUpstream:

    def test_non_streaming_relay(self):
        upstream = _Upstream(httpx.Response(200, json=ANTHROPIC_RESPONSE))
        client = _client(upstream)

        response = client.post("/v1/chat/completions", json=OPENAI_SYSTEM_REQUEST)

        assert response.status_code == 200
        assert upstream.body == {
            "model": "gpt-4",
            "system": "You are helpful.",
            "messages": [{"role": "user", "content": "Hi"}],
            "max_tokens": 1024,
        }
        headers = upstream.requests[-1].headers
        assert headers["x-api-key"] == "sk-test"
        assert headers["anthropic-version"] == "2023-06-01"
        assert "authorization" not in headers

        body = response.json()
        assert body["object"] == "chat.completion"
        assert body["choices"][0]["message"]["content"] == "Hello! How can I help you today?"
        assert body["usage"] == {"prompt_tokens": 10, "completion_tokens": 8, "total_tokens": 18}

    def test_upstream_error_is_converted(self):
        upstream = _Upstream(httpx.Response(529, json=ANTHROPIC_ERROR))
        response = _client(upstream).post("/v1/chat/completions", json=OPENAI_SYSTEM_REQUEST)

        assert response.status_code == 529
        assert response.json() == {
            "error": {"message": "Overloaded", "type": "overloaded_error", "param": None, "code": None}
        }

    def test_transport_failure_is_bad_gateway(self):
        upstream = _Upstream(exc=httpx.ConnectError("connection refused"))
        response = _client(upstream).post("/v1/chat/completions", json=OPENAI_SYSTEM_REQUEST)

        assert response.status_code == 502
        assert response.json()["error"]["type"] == "upstream_error"

    def test_invalid_request(self):
        upstream = _Upstream(httpx.Response(200, json=ANTHROPIC_RESPONSE))
        response = _client(upstream).post("/v1/chat/completions", json={"messages": []})

        assert response.status_code == 400
        assert "missing field: model" in response.json()["error"]["message"]
        assert upstream.requests == []

    def test_inexpressible_role(self):
        upstream = _Upstream(httpx.Response(200, json=ANTHROPIC_RESPONSE))
        request = {"model": "gpt-4", "messages": [{"role": "tool", "content": "42"}]}
        response = _client(upstream).post("/v1/chat/completions", json=request)

        assert response.status_code == 400
        assert "role 'tool'" in response.json()["error"]["message"]

    def test_streaming_relay(self):
        upstream = _Upstream(
            httpx.Response(
                200,
                text=ANTHROPIC_STREAM_SSE,
                headers={"content-type": "text/event-stream"},
            )
        )
        request = dict(OPENAI_SYSTEM_REQUEST, stream=True)
        response = _client(upstream).post("/v1/chat/completions", json=request)

        assert response.status_code == 200
        assert upstream.body["stream"] is True
        assert response.text.endswith("data: [DONE]\n\n")

        chunks = [
            json.loads(line[len("data: "):])
            for line in response.text.splitlines()
            if line.startswith("data: ") and line != "data: [DONE]"
        ]
        content = "".join(c["choices"][0]["delta"].get("content", "") for c in chunks)
        assert content == "Hello!"
        assert chunks[-1]["choices"][0]["finish_reason"] == "stop"

    def test_streaming_upstream_error(self):
        upstream = _Upstream(httpx.Response(500, json=ANTHROPIC_ERROR))
        request = dict(OPENAI_SYSTEM_REQUEST, stream=True)
        response = _client(upstream).post("/v1/chat/completions", json=request)

        frame = json.loads(response.text.strip()[len("data: "):])
        assert frame["error"]["type"] == "overloaded_error"


class TestAnthropicClientOpenAIUpstream:

    def test_non_streaming_relay(self):
        upstream = _Upstream(httpx.Response(200, json=OPENAI_CHAT_RESPONSE))
        response = _client(upstream, source="openai").post("/v1/messages", json=ANTHROPIC_REQUEST)

        assert response.status_code == 200
        assert upstream.body["messages"][0] == {
            "role": "system",
            "content": "You are a helpful assistant.",
        }
        headers = upstream.requests[-1].headers
        assert headers["authorization"] == "Bearer sk-test"
        assert "anthropic-version" not in headers
        assert "x-api-key" not in headers

        body = response.json()
        assert body["type"] == "message"
        assert body["stop_reason"] == "end_turn"
        assert body["usage"] == {"input_tokens": 20, "output_tokens": 12}


class TestHealth:

    def test_health(self):
        client = _client(_Upstream(httpx.Response(200, json={})))
        assert client.get("/health").json() == {
            "status": "ok",
            "upstream": "anthropic",
            "providers": ["openai", "anthropic", "native"],
        }


class TestSettings:

    def test_yaml_with_environment_overrides(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "url: https://api.example.com/v1/messages\n"
            "apikey: sk-file\n"
            "source: anthropic\n"
            "default_max_tokens: 512\n",
            encoding="utf-8",
        )

        settings = load_settings(
            path,
            environ={"LLMBRIDGE_SOURCE": "OpenAI", "LLMBRIDGE_TIMEOUT_SECONDS": "5"},
        )

        assert settings.source is Provider.OPENAI
        assert settings.timeout_seconds == 5.0
        assert settings.default_max_tokens == 512
        assert settings.apikey == "sk-file"

    def test_config_path_from_environment(self, tmp_path):
        path = tmp_path / "relay.yaml"
        path.write_text("url: http://localhost:9000\napikey: k\nsource: native\n", encoding="utf-8")

        settings = load_settings(environ={"LLMBRIDGE_CONFIG": str(path)})
        assert settings.source is Provider.NATIVE

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_settings(path, environ={})
