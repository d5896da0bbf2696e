"""Adapter for the IR's own JSON form

Lets clients that already speak the intermediate representation talk to any
other registered provider. The wire shape is exactly the pydantic JSON of the
IR models.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import ValidationError as PydanticValidationError

from ..core.base_adapter import BaseAdapter
from ..core.exceptions import UnrecognizedStreamEventError, ValidationError
from ..ir.schema import IRError, IRModel, IRRequest, IRResponse, IRStreamEvent
from ..ir.serde import stream_event_from_dict
from ..types.provider import Provider

ModelT = TypeVar("ModelT", bound=IRModel)

_STREAM_EVENT_TYPES = frozenset({"message_start", "message_delta", "message_end", "error"})


class NativeAdapter(BaseAdapter):
    """Adapter whose wire format is the IR itself"""

    provider = Provider.NATIVE

    def normalize_request(self, data: Dict[str, Any]) -> IRRequest:
        return self._validate(IRRequest, data, "request")

    def transform_request(self, request: IRRequest) -> Dict[str, Any]:
        result = self._dump(request)
        if not request.stream:
            result.pop("stream", None)
        return result

    def normalize_response(self, data: Dict[str, Any]) -> IRResponse:
        return self._validate(IRResponse, data, "response")

    def transform_response(self, response: IRResponse) -> Dict[str, Any]:
        return self._dump(response)

    def normalize_stream_event(self, data: Dict[str, Any]) -> Optional[IRStreamEvent]:
        if data.get("type") not in _STREAM_EVENT_TYPES:
            raise UnrecognizedStreamEventError(self.provider_name, data)
        try:
            return stream_event_from_dict(data)
        except PydanticValidationError as exc:
            raise ValidationError(
                "Invalid native stream event",
                [err["msg"] for err in exc.errors()],
            ) from exc

    def transform_stream_event(self, event: IRStreamEvent) -> Dict[str, Any]:
        return self._dump(event)

    def normalize_error(self, data: Dict[str, Any]) -> IRError:
        error = data.get("error") if isinstance(data.get("error"), dict) else data
        return self._validate(IRError, error, "error")

    def transform_error(self, error: IRError) -> Dict[str, Any]:
        return {"error": self._dump(error)}

    def parsing_error_event(self, message: str) -> Dict[str, Any]:
        return {
            "type": "error",
            "error": {"type": "parsing_error", "message": message},
        }

    def _validate(self, model: Type[ModelT], data: Any, kind: str) -> ModelT:
        try:
            return model.model_validate(data)
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Invalid native {kind}",
                [
                    f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                    for err in exc.errors()
                ],
            ) from exc

    @staticmethod
    def _dump(value: IRModel) -> Dict[str, Any]:
        return value.model_dump(mode="json", exclude_none=True)
