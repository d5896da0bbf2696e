"""OpenAI adapter for format conversion"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterable, AsyncIterator, Dict, List, Optional

from ..core.base_adapter import BaseAdapter
from ..core.exceptions import UnrecognizedStreamEventError, ValidationError
from ..ir.schema import (
    IRChoice,
    IRDelta,
    IRError,
    IRMessage,
    IRRequest,
    IRResponse,
    IRStreamEvent,
    IRUsage,
    MessageDelta,
    MessageEnd,
    MessageStart,
    Role,
    StreamError,
)
from ..types.provider import Provider

logger = logging.getLogger(__name__)

_GENERATION_FIELDS = (
    "temperature",
    "max_tokens",
    "top_p",
    "frequency_penalty",
    "presence_penalty",
)

_MAX_COMPLETION_TOKENS = "max_completion_tokens"


class OpenAIAdapter(BaseAdapter):
    """Adapter for the OpenAI chat completions format

    OpenAI keeps system prompts inline as ``system`` role messages and streams
    ``chat.completion.chunk`` objects as ``data:`` frames closed by
    ``data: [DONE]``.
    """

    provider = Provider.OPENAI

    def normalize_request(self, data: Dict[str, Any]) -> IRRequest:
        """Convert OpenAI chat completion request to IR"""
        self.require_fields(data, "model", "messages")
        if not isinstance(data["messages"], list):
            raise ValidationError(
                "openai request messages must be a list",
                [f"got {type(data['messages']).__name__}"],
            )

        messages = [self._normalize_message(msg) for msg in data["messages"]]

        max_tokens = data.get("max_tokens")
        max_tokens_field = None
        if max_tokens is None and data.get("max_completion_tokens") is not None:
            max_tokens = data["max_completion_tokens"]
            max_tokens_field = _MAX_COMPLETION_TOKENS

        stop = data.get("stop")
        if isinstance(stop, str):
            stop = (stop,)
        elif stop is not None:
            stop = tuple(stop)

        request = IRRequest(
            messages=tuple(messages),
            model=data["model"],
            temperature=data.get("temperature"),
            max_tokens=max_tokens,
            top_p=data.get("top_p"),
            frequency_penalty=data.get("frequency_penalty"),
            presence_penalty=data.get("presence_penalty"),
            stop=stop,
            stream=bool(data.get("stream", False)),
        )
        # Set before the request leaves the adapter
        request._max_tokens_field = max_tokens_field
        return request

    def transform_request(self, request: IRRequest) -> Dict[str, Any]:
        """Convert IR request to OpenAI format

        The token limit is written back under ``max_completion_tokens`` when
        the request was read from that key.
        """
        result: Dict[str, Any] = {
            "model": request.model,
            "messages": [self._transform_message(msg) for msg in request.messages],
        }

        for field in _GENERATION_FIELDS:
            value = getattr(request, field)
            if value is None:
                continue
            if field == "max_tokens" and request.max_tokens_field == _MAX_COMPLETION_TOKENS:
                field = _MAX_COMPLETION_TOKENS
            result[field] = value

        if request.stop is not None:
            result["stop"] = list(request.stop)
        if request.stream:
            result["stream"] = True

        return result

    def normalize_response(self, data: Dict[str, Any]) -> IRResponse:
        """Convert OpenAI chat completion response to IR"""
        self.require_fields(data, "id", "model", kind="response")

        choices = []
        for position, choice in enumerate(data.get("choices") or []):
            message = choice.get("message")
            choices.append(
                IRChoice(
                    index=choice.get("index", position),
                    message=self._normalize_message(message) if message is not None else None,
                    finish_reason=choice.get("finish_reason"),
                )
            )

        return IRResponse(
            id=data["id"],
            model=data["model"],
            choices=tuple(choices),
            usage=self._normalize_usage(data.get("usage")),
        )

    def transform_response(self, response: IRResponse) -> Dict[str, Any]:
        """Convert IR response to OpenAI format"""
        choices = []
        for choice in response.choices:
            if choice.message is not None:
                message = self._transform_message(choice.message)
            else:
                message = {"role": Role.ASSISTANT.value, "content": ""}
            choices.append(
                {
                    "index": choice.index,
                    "message": message,
                    "finish_reason": choice.finish_reason,
                }
            )

        result: Dict[str, Any] = {
            "id": response.id,
            "object": "chat.completion",
            "model": response.model,
            "choices": choices,
        }
        if response.usage is not None:
            result["usage"] = self._transform_usage(response.usage)
        return result

    def normalize_stream_event(self, data: Dict[str, Any]) -> Optional[IRStreamEvent]:
        """Convert one ``chat.completion.chunk`` to an IR stream event

        Checked in order: error, start (role with no content), content delta,
        finish. Anything else is an unknown shape.
        """
        if data.get("error") is not None:
            return StreamError(error=self.normalize_error(data))

        choices = data.get("choices") or []
        if not choices:
            raise UnrecognizedStreamEventError(self.provider_name, data)

        choice = choices[0]
        delta = choice.get("delta") or {}
        content = delta.get("content")
        finish_reason = choice.get("finish_reason")

        if delta.get("role") is not None and not content and finish_reason is None:
            self.parse_role(delta["role"])
            return MessageStart(id=data.get("id") or "", model=data.get("model") or "")

        if content is not None and (content != "" or finish_reason is None):
            return MessageDelta(delta=self._normalize_delta(delta))

        if finish_reason is not None:
            return MessageEnd(
                finish_reason=finish_reason,
                usage=self._normalize_usage(data.get("usage")),
            )

        raise UnrecognizedStreamEventError(self.provider_name, data)

    def transform_stream_event(self, event: IRStreamEvent) -> Dict[str, Any]:
        """Convert one IR stream event to a ``chat.completion.chunk``"""
        if isinstance(event, StreamError):
            return self.transform_error(event.error)

        if isinstance(event, MessageStart):
            chunk = self._chunk({"role": Role.ASSISTANT.value, "content": ""}, None)
            chunk["id"] = event.id
            chunk["model"] = event.model
            return chunk

        if isinstance(event, MessageDelta):
            delta: Dict[str, Any] = {}
            if event.delta.role is not None:
                delta["role"] = event.delta.role.value
            if event.delta.name is not None:
                delta["name"] = event.delta.name
            delta["content"] = event.delta.content if event.delta.content is not None else ""
            return self._chunk(delta, None)

        chunk = self._chunk({}, event.finish_reason or "stop")
        if event.usage is not None:
            chunk["usage"] = self._transform_usage(event.usage)
        return chunk

    async def transform_streaming_response(
        self, events: AsyncIterable[IRStreamEvent]
    ) -> AsyncIterator[Dict[str, Any]]:
        """Stamp the stream's id and model on every chunk"""
        stream_id = ""
        model = ""
        async for event in events:
            if isinstance(event, MessageStart):
                stream_id, model = event.id, event.model
            chunk = self.transform_stream_event(event)
            if "choices" in chunk:
                chunk["id"] = stream_id
                chunk["model"] = model
            yield chunk

    def normalize_error(self, data: Dict[str, Any]) -> IRError:
        """Convert an OpenAI error envelope (or bare error object) to IR"""
        error = data.get("error", data)
        if isinstance(error, str):
            error = {"message": error}
        elif not isinstance(error, dict):
            raise ValidationError("openai error payload must be a JSON object")
        code = error.get("code")
        return IRError(
            type=error.get("type") or "api_error",
            message=error.get("message") or "",
            code=str(code) if code is not None else None,
            param=error.get("param"),
        )

    def transform_error(self, error: IRError) -> Dict[str, Any]:
        return {
            "error": {
                "message": error.message,
                "type": error.type,
                "param": error.param,
                "code": error.code,
            }
        }

    def parsing_error_event(self, message: str) -> Dict[str, Any]:
        return self.transform_error(IRError(type="parsing_error", message=message))

    def _normalize_message(self, data: Dict[str, Any]) -> IRMessage:
        if not isinstance(data, dict):
            raise ValidationError(
                "openai message must be a JSON object", [f"got {type(data).__name__}"]
            )
        return IRMessage(
            role=self.parse_role(data.get("role")),
            content=self._flatten_content(data.get("content")),
            name=data.get("name"),
        )

    def _transform_message(self, message: IRMessage) -> Dict[str, Any]:
        result = {"role": message.role.value, "content": message.content}
        if message.name is not None:
            result["name"] = message.name
        return result

    def _normalize_delta(self, delta: Dict[str, Any]) -> IRDelta:
        role = delta.get("role")
        return IRDelta(
            role=self.parse_role(role) if role is not None else None,
            content=delta.get("content"),
            name=delta.get("name"),
        )

    @staticmethod
    def _flatten_content(content: Any) -> str:
        """Collapse string or content-part list into plain text"""
        if content is None:
            return ""
        if isinstance(content, str):
            return content
        parts: List[str] = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text") or "")
            else:
                logger.debug("Dropping non-text openai content part: %s", part)
        return "".join(parts)

    @staticmethod
    def _normalize_usage(usage: Optional[Dict[str, Any]]) -> Optional[IRUsage]:
        if not usage:
            return None
        return IRUsage(
            prompt_tokens=usage.get("prompt_tokens") or 0,
            completion_tokens=usage.get("completion_tokens") or 0,
            total_tokens=usage.get("total_tokens"),
        )

    @staticmethod
    def _transform_usage(usage: IRUsage) -> Dict[str, int]:
        return {
            "prompt_tokens": usage.prompt_tokens,
            "completion_tokens": usage.completion_tokens,
            "total_tokens": usage.total_tokens,
        }

    @staticmethod
    def _chunk(delta: Dict[str, Any], finish_reason: Optional[str]) -> Dict[str, Any]:
        return {
            "id": "",
            "object": "chat.completion.chunk",
            "model": "",
            "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
        }
