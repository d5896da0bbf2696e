"""Anthropic adapter for format conversion

The Messages API differs from chat completions in three ways that matter here:
1. System prompts live in a top-level ``system`` field, not in ``messages``
2. Only ``user`` and ``assistant`` turns are allowed inside ``messages``
3. Streams are type-tagged events (``message_start``, ``content_block_delta``,
   ``message_delta``, ...) with no completion sentinel
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterable, AsyncIterator, Dict, List, Optional

from ..core.base_adapter import BaseAdapter
from ..core.exceptions import (
    UnrecognizedStreamEventError,
    ValidationError,
)
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

# Stream events that only carry framing
_STRUCTURAL_EVENTS = frozenset(
    {"ping", "content_block_start", "content_block_stop", "message_stop"}
)


class AnthropicAdapter(BaseAdapter):
    """Adapter for Anthropic Messages API format

    Args:
        default_max_tokens: value written to the mandatory ``max_tokens`` field
            when the IR request has none. ``None`` leaves the field out.
    """

    provider = Provider.ANTHROPIC

    def __init__(self, default_max_tokens: Optional[int] = None) -> None:
        super().__init__()
        self.default_max_tokens = default_max_tokens
        # Anthropic stop_reason -> IR finish_reason
        self.finish_reason_map = {
            "end_turn": "stop",
            "max_tokens": "length",
            "tool_use": "tool_calls",
            "refusal": "content_filter",
        }
        self.reverse_finish_reason_map = {
            value: key for key, value in self.finish_reason_map.items()
        }

    def normalize_request(self, data: Dict[str, Any]) -> IRRequest:
        """Convert Anthropic Messages request to IR"""
        self.require_fields(data, "model", "messages")
        if not isinstance(data["messages"], list):
            raise ValidationError(
                "anthropic request messages must be a list",
                [f"got {type(data['messages']).__name__}"],
            )

        messages: List[IRMessage] = []
        system = data.get("system")
        if system:
            messages.append(
                IRMessage(role=Role.SYSTEM, content=self._flatten_content(system))
            )

        for position, msg in enumerate(data["messages"]):
            if not isinstance(msg, dict):
                raise ValidationError(
                    "anthropic message must be a JSON object",
                    [f"messages[{position}]: got {type(msg).__name__}"],
                )
            role = self.parse_role(msg.get("role"))
            if role not in (Role.USER, Role.ASSISTANT):
                # Known role, wrong place: system goes in the top-level field
                raise ValidationError(
                    f"anthropic messages cannot carry the {role.value!r} role",
                    [f"messages[{position}].role: {msg.get('role')!r} is not user or assistant"],
                )
            messages.append(
                IRMessage(role=role, content=self._flatten_content(msg.get("content")))
            )

        stop = data.get("stop_sequences")
        return IRRequest(
            messages=tuple(messages),
            model=data["model"],
            temperature=data.get("temperature"),
            max_tokens=data.get("max_tokens"),
            top_p=data.get("top_p"),
            stop=tuple(stop) if stop is not None else None,
            stream=bool(data.get("stream", False)),
        )

    def transform_request(self, request: IRRequest) -> Dict[str, Any]:
        """Convert IR request to Anthropic format

        System messages are joined into ``system`` in order, separated by a
        blank line.
        """
        self.ensure_roles_supported(request.messages)

        result: Dict[str, Any] = {"model": request.model}

        system_parts = [m.content for m in request.system_messages]
        if system_parts:
            result["system"] = "\n\n".join(system_parts)

        result["messages"] = [
            {"role": m.role.value, "content": m.content}
            for m in request.messages
            if m.role is not Role.SYSTEM
        ]

        max_tokens = request.max_tokens
        if max_tokens is None:
            max_tokens = self.default_max_tokens
        if max_tokens is not None:
            result["max_tokens"] = max_tokens

        if request.temperature is not None:
            result["temperature"] = request.temperature
        if request.top_p is not None:
            result["top_p"] = request.top_p
        if request.stop is not None:
            result["stop_sequences"] = list(request.stop)
        if request.stream:
            result["stream"] = True

        return result

    def normalize_response(self, data: Dict[str, Any]) -> IRResponse:
        """Convert Anthropic Messages response to IR"""
        self.require_fields(data, "id", "model", kind="response")

        message = IRMessage(
            role=Role.ASSISTANT,
            content=self._flatten_content(data.get("content")),
        )
        return IRResponse(
            id=data["id"],
            model=data["model"],
            choices=(
                IRChoice(
                    index=0,
                    message=message,
                    finish_reason=self._map_stop_reason(data.get("stop_reason")),
                ),
            ),
            usage=self._normalize_usage(data.get("usage")),
        )

    def transform_response(self, response: IRResponse) -> Dict[str, Any]:
        """Convert IR response to Anthropic format

        Anthropic responses hold a single message; only the first choice is
        used.
        """
        text = ""
        finish_reason = None
        if response.choices:
            choice = response.choices[0]
            if choice.message is not None:
                text = choice.message.content
            finish_reason = choice.finish_reason
            if len(response.choices) > 1:
                logger.debug(
                    "anthropic responses hold one message; dropping %d extra choices",
                    len(response.choices) - 1,
                )

        result: Dict[str, Any] = {
            "id": response.id,
            "type": "message",
            "role": Role.ASSISTANT.value,
            "model": response.model,
            "content": [{"type": "text", "text": text}],
            "stop_reason": self._map_finish_reason(finish_reason),
            "stop_sequence": None,
        }
        if response.usage is not None:
            result["usage"] = self._transform_usage(response.usage)
        return result

    def normalize_stream_event(self, data: Dict[str, Any]) -> Optional[IRStreamEvent]:
        """Convert one Messages API stream event to IR

        Framing events (``ping``, block start/stop, ``message_stop``) and
        non-text deltas yield None.
        """
        event_type = data.get("type")

        if event_type == "error":
            return StreamError(error=self.normalize_error(data))

        if event_type == "message_start":
            message = data.get("message") or data
            return MessageStart(
                id=message.get("id") or "",
                model=message.get("model") or "",
            )

        if event_type == "content_block_delta":
            delta = data.get("delta") or {}
            if delta.get("type", "text_delta") != "text_delta":
                return None
            return MessageDelta(delta=IRDelta(content=delta.get("text") or ""))

        if event_type == "message_delta":
            delta = data.get("delta") or {}
            return MessageEnd(
                finish_reason=self._map_stop_reason(delta.get("stop_reason")),
                usage=self._normalize_usage(data.get("usage")),
            )

        if event_type in _STRUCTURAL_EVENTS:
            return None

        raise UnrecognizedStreamEventError(self.provider_name, data)

    async def normalize_streaming_response(
        self, events: AsyncIterable[Dict[str, Any]]
    ) -> AsyncIterator[IRStreamEvent]:
        """Normalize a stream, carrying ``message_start`` input tokens to the end"""
        input_tokens = None
        async for data in events:
            if data.get("type") == "message_start":
                usage = (data.get("message") or {}).get("usage") or {}
                input_tokens = usage.get("input_tokens")
            elif data.get("type") == "message_delta" and input_tokens is not None:
                usage = data.get("usage")
                if usage is not None and usage.get("input_tokens") is None:
                    data = {**data, "usage": {**usage, "input_tokens": input_tokens}}

            event = self.normalize_stream_event(data)
            if event is not None:
                yield event

    def transform_stream_event(self, event: IRStreamEvent) -> Dict[str, Any]:
        """Convert one IR stream event to a Messages API event"""
        if isinstance(event, StreamError):
            return self.transform_error(event.error)

        if isinstance(event, MessageStart):
            return {
                "type": "message_start",
                "message": {
                    "id": event.id,
                    "type": "message",
                    "role": Role.ASSISTANT.value,
                    "model": event.model,
                    "content": [],
                    "stop_reason": None,
                    "stop_sequence": None,
                    "usage": {"input_tokens": 0, "output_tokens": 0},
                },
            }

        if isinstance(event, MessageDelta):
            return {
                "type": "content_block_delta",
                "index": 0,
                "delta": {"type": "text_delta", "text": event.delta.content or ""},
            }

        result: Dict[str, Any] = {
            "type": "message_delta",
            "delta": {
                "stop_reason": self._map_finish_reason(event.finish_reason),
                "stop_sequence": None,
            },
        }
        if event.usage is not None:
            result["usage"] = self._transform_usage(event.usage)
        return result

    async def transform_streaming_response(
        self, events: AsyncIterable[IRStreamEvent]
    ) -> AsyncIterator[Dict[str, Any]]:
        """Transform a stream, adding the block and stop framing clients expect"""
        started = False
        block_open = False
        async for event in events:
            if isinstance(event, StreamError):
                yield self.transform_stream_event(event)
                continue

            if not started:
                started = True
                if not isinstance(event, MessageStart):
                    yield self.transform_stream_event(MessageStart())

            if isinstance(event, MessageDelta) and not block_open:
                block_open = True
                yield {
                    "type": "content_block_start",
                    "index": 0,
                    "content_block": {"type": "text", "text": ""},
                }

            if isinstance(event, MessageEnd) and block_open:
                block_open = False
                yield {"type": "content_block_stop", "index": 0}

            yield self.transform_stream_event(event)

            if isinstance(event, MessageEnd):
                yield {"type": "message_stop"}

    def normalize_error(self, data: Dict[str, Any]) -> IRError:
        """Convert an Anthropic error envelope (or bare error object) to IR"""
        error = data.get("error") if isinstance(data.get("error"), dict) else data
        if not isinstance(error, dict):
            raise ValidationError("anthropic error payload must be a JSON object")
        error_type = error.get("type")
        if error_type == "error" or not error_type:
            error_type = "api_error"
        return IRError(type=error_type, message=error.get("message") or "")

    def transform_error(self, error: IRError) -> Dict[str, Any]:
        return {
            "type": "error",
            "error": {"type": error.type, "message": error.message},
        }

    def parsing_error_event(self, message: str) -> Dict[str, Any]:
        return self.transform_error(IRError(type="parsing_error", message=message))

    def _map_stop_reason(self, stop_reason: Optional[str]) -> Optional[str]:
        if stop_reason is None:
            return None
        return self.finish_reason_map.get(stop_reason, stop_reason)

    def _map_finish_reason(self, finish_reason: Optional[str]) -> Optional[str]:
        if finish_reason is None:
            return None
        return self.reverse_finish_reason_map.get(finish_reason, finish_reason)

    @staticmethod
    def _flatten_content(content: Any) -> str:
        """Concatenate text blocks; non-text blocks are dropped"""
        if content is None:
            return ""
        if isinstance(content, str):
            return content
        texts = []
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text":
                texts.append(block.get("text") or "")
            else:
                logger.debug("Dropping non-text anthropic content block: %s", block)
        return "".join(texts)

    @staticmethod
    def _normalize_usage(usage: Optional[Dict[str, Any]]) -> Optional[IRUsage]:
        if not usage:
            return None
        return IRUsage.from_counts(
            usage.get("input_tokens") or 0,
            usage.get("output_tokens") or 0,
        )

    @staticmethod
    def _transform_usage(usage: IRUsage) -> Dict[str, int]:
        return {
            "input_tokens": usage.prompt_tokens,
            "output_tokens": usage.completion_tokens,
        }
