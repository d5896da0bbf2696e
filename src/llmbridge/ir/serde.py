"""JSON serialization helpers for IR values"""

from __future__ import annotations

from typing import Union

from pydantic import TypeAdapter

from .schema import IRError, IRModel, IRRequest, IRResponse, IRStreamEvent

_STREAM_EVENT_ADAPTER: TypeAdapter = TypeAdapter(IRStreamEvent)


def to_json(value: IRModel) -> str:
    """Serialize any IR model; unset optionals are written as null"""
    return value.model_dump_json()


def request_from_json(data: Union[str, bytes]) -> IRRequest:
    return IRRequest.model_validate_json(data)


def response_from_json(data: Union[str, bytes]) -> IRResponse:
    return IRResponse.model_validate_json(data)


def error_from_json(data: Union[str, bytes]) -> IRError:
    return IRError.model_validate_json(data)


def stream_event_from_json(data: Union[str, bytes]) -> IRStreamEvent:
    return _STREAM_EVENT_ADAPTER.validate_json(data)


def stream_event_from_dict(data: dict) -> IRStreamEvent:
    return _STREAM_EVENT_ADAPTER.validate_python(data)
