"""Base adapter class for all provider adapters"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, AsyncIterable, AsyncIterator, Dict, Iterable, Optional

from ..ir.schema import IRError, IRMessage, IRRequest, IRResponse, IRStreamEvent, Role
from ..streaming.buffer import ChunkBuffer, DataBuffer, StreamingConfig
from ..types.provider import Provider
from ..utils.capability_matrix import ProviderCapabilities, ProviderCapabilityMatrix
from .exceptions import UnsupportedRoleError, ValidationError


class BaseAdapter(ABC):
    """Base class for all provider adapters

    An adapter owns both directions for one provider: ``normalize_*`` turns the
    provider's wire dicts into the brand-neutral IR and ``transform_*`` turns IR
    back into wire dicts. Per-event methods are synchronous and pure; the
    ``*_streaming_response`` methods apply them lazily over an async sequence.
    """

    provider: Provider

    def __init__(self) -> None:
        self.capabilities: ProviderCapabilities = ProviderCapabilityMatrix.get_capabilities(
            self.provider
        )

    @property
    def provider_name(self) -> str:
        return self.provider.value

    # Normalize: provider wire -> IR

    @abstractmethod
    def normalize_request(self, data: Dict[str, Any]) -> IRRequest:
        """Convert provider-specific request to IR"""

    @abstractmethod
    def normalize_response(self, data: Dict[str, Any]) -> IRResponse:
        """Convert provider-specific response to IR"""

    @abstractmethod
    def normalize_stream_event(self, data: Dict[str, Any]) -> Optional[IRStreamEvent]:
        """Convert one provider stream event to IR

        Returns None for purely structural provider events that carry nothing
        the IR represents.
        """

    @abstractmethod
    def normalize_error(self, data: Dict[str, Any]) -> IRError:
        """Convert provider-specific error payload to IR"""

    async def normalize_streaming_response(
        self, events: AsyncIterable[Dict[str, Any]]
    ) -> AsyncIterator[IRStreamEvent]:
        async for data in events:
            event = self.normalize_stream_event(data)
            if event is not None:
                yield event

    # Transform: IR -> provider wire

    @abstractmethod
    def transform_request(self, request: IRRequest) -> Dict[str, Any]:
        """Convert IR request to provider-specific format"""

    @abstractmethod
    def transform_response(self, response: IRResponse) -> Dict[str, Any]:
        """Convert IR response to provider-specific format"""

    @abstractmethod
    def transform_stream_event(self, event: IRStreamEvent) -> Dict[str, Any]:
        """Convert one IR stream event to provider-specific format"""

    @abstractmethod
    def transform_error(self, error: IRError) -> Dict[str, Any]:
        """Convert IR error to provider-specific format"""

    async def transform_streaming_response(
        self, events: AsyncIterable[IRStreamEvent]
    ) -> AsyncIterator[Dict[str, Any]]:
        async for event in events:
            yield self.transform_stream_event(event)

    # Streaming wire helpers

    def create_buffer(self, config: Optional[StreamingConfig] = None) -> DataBuffer:
        return ChunkBuffer(config, sentinel=self.capabilities.stream_sentinel)

    @abstractmethod
    def parsing_error_event(self, message: str) -> Dict[str, Any]:
        """Build the in-band event reported for an undecodable frame"""

    def encode_stream_event(self, payload: Dict[str, Any]) -> str:
        """Encode one provider event as SSE text"""
        data = json.dumps(payload, ensure_ascii=False)
        if self.capabilities.stream_format == "typed_events" and payload.get("type"):
            return f"event: {payload['type']}\ndata: {data}\n\n"
        return f"data: {data}\n\n"

    def stream_terminator(self) -> Optional[str]:
        """SSE text sent after the last event, if the provider uses one"""
        sentinel = self.capabilities.stream_sentinel
        if sentinel is None:
            return None
        return f"data: {sentinel}\n\n"

    # Shared helpers

    def require_fields(self, data: Dict[str, Any], *fields: str, kind: str = "request") -> None:
        if not isinstance(data, dict):
            raise ValidationError(
                f"{self.provider_name} {kind} must be a JSON object",
                [f"got {type(data).__name__}"],
            )
        missing = [name for name in fields if data.get(name) is None]
        if missing:
            raise ValidationError(
                f"{self.provider_name} {kind} is missing required fields",
                [f"missing field: {name}" for name in missing],
            )

    def ensure_roles_supported(self, messages: Iterable[IRMessage]) -> None:
        for message in messages:
            if not self.capabilities.supports_role(message.role):
                raise UnsupportedRoleError(message.role.value, self.provider_name)

    def parse_role(self, value: Any) -> Role:
        return Role.parse(value, self.provider_name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider={self.provider_name!r})"
