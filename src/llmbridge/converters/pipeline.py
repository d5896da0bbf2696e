"""Conversion pipeline between two provider adapters

A pipeline composes ``source.normalize_*`` with ``target.transform_*``. It is
generic over ``BaseAdapter`` so every registered pair works without pairwise
code.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterable, AsyncIterator, Callable, Dict, Optional, TypeVar

from ..core.base_adapter import BaseAdapter
from ..core.exceptions import ConversionError, LLMBridgeError
from ..ir.schema import IRStreamEvent
from ..streaming.buffer import StreamingConfig
from ..streaming.session import StreamSession
from ..utils.capability_matrix import ProviderCapabilityMatrix

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Malformed wire data surfaces as one of these from normalize/transform code
_DATA_ERRORS = (KeyError, TypeError, ValueError, AttributeError)


class ConversionPipeline:
    """Converts requests, responses, errors and streams from one provider to another"""

    def __init__(
        self,
        source: BaseAdapter,
        target: BaseAdapter,
        config: Optional[StreamingConfig] = None,
    ) -> None:
        self.source = source
        self.target = target
        self.config = config

    @property
    def from_provider(self) -> str:
        return self.source.provider_name

    @property
    def to_provider(self) -> str:
        return self.target.provider_name

    def reverse(self) -> "ConversionPipeline":
        return ConversionPipeline(self.target, self.source, self.config)

    def convert_request(self, data: Dict[str, Any]) -> Dict[str, Any]:
        def _convert() -> Dict[str, Any]:
            request = self.source.normalize_request(data)
            for warning in ProviderCapabilityMatrix.check_compatibility(
                self.target.provider, request
            ):
                logger.debug(warning)
            return self.target.transform_request(request)

        return self._run("request", _convert)

    def convert_response(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._run(
            "response",
            lambda: self.target.transform_response(self.source.normalize_response(data)),
        )

    def convert_error(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._run(
            "error", lambda: self.target.transform_error(self.source.normalize_error(data))
        )

    def convert_stream_event(self, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Convert a single stream event; None when the source event has no IR meaning"""

        def _convert() -> Optional[Dict[str, Any]]:
            event = self.source.normalize_stream_event(data)
            if event is None:
                return None
            return self.target.transform_stream_event(event)

        return self._run("stream event", _convert)

    async def convert_stream_events(
        self, events: AsyncIterable[Dict[str, Any]]
    ) -> AsyncIterator[Dict[str, Any]]:
        """Convert already-parsed source events into target events"""
        normalized = self.source.normalize_streaming_response(events)
        async for payload in self._guard_stream(self.target.transform_streaming_response(normalized)):
            yield payload

    async def convert_stream(self, raw: AsyncIterable[str]) -> AsyncIterator[Dict[str, Any]]:
        """Convert raw source transport chunks into target events"""
        session = StreamSession(self.source, self.config)
        transformed = self.target.transform_streaming_response(session.events(raw))
        async for payload in self._guard_stream(transformed):
            yield payload

    async def convert_stream_to_sse(self, raw: AsyncIterable[str]) -> AsyncIterator[str]:
        """Convert raw source chunks into encoded target SSE frames"""
        async for payload in self.convert_stream(raw):
            yield self.target.encode_stream_event(payload)

        terminator = self.target.stream_terminator()
        if terminator is not None:
            yield terminator

    async def normalize_stream(self, raw: AsyncIterable[str]) -> AsyncIterator[IRStreamEvent]:
        """Raw source chunks to IR events, without transforming"""
        session = StreamSession(self.source, self.config)
        async for event in session.events(raw):
            yield event

    def _run(self, kind: str, func: Callable[[], T]) -> T:
        try:
            return func()
        except LLMBridgeError:
            raise
        except Exception as exc:
            raise ConversionError(
                f"Failed to convert {kind} from {self.from_provider} to {self.to_provider}",
                self.from_provider,
                self.to_provider,
                {"original_error": str(exc)},
            ) from exc

    async def _guard_stream(
        self, stream: AsyncIterator[Dict[str, Any]]
    ) -> AsyncIterator[Dict[str, Any]]:
        try:
            async for payload in stream:
                yield payload
        except _DATA_ERRORS as exc:
            raise ConversionError(
                f"Failed to convert stream from {self.from_provider} to {self.to_provider}",
                self.from_provider,
                self.to_provider,
                {"original_error": str(exc)},
            ) from exc
        finally:
            await stream.aclose()

    def __repr__(self) -> str:
        return f"ConversionPipeline({self.from_provider!r} -> {self.to_provider!r})"
