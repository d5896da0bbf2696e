"""Decoding of frame payloads into provider event dicts"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict

from ..core.exceptions import MalformedFrameError

logger = logging.getLogger(__name__)

ErrorEventFactory = Callable[[str], Dict[str, Any]]


def _truncate_text(text: str, limit: int = 200) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


class FrameParser:
    """Parses one frame payload into a JSON object

    ``parse`` never raises for bad input: it returns the provider's in-band
    parsing-error event built by ``error_event_factory``. ``parse_strict``
    raises ``MalformedFrameError`` instead.
    """

    def __init__(self, error_event_factory: ErrorEventFactory, provider: str) -> None:
        self.error_event_factory = error_event_factory
        self.provider = provider

    def parse_strict(self, frame: str) -> Dict[str, Any]:
        try:
            data = json.loads(frame)
        except json.JSONDecodeError as exc:
            raise MalformedFrameError(frame, str(exc)) from exc
        if not isinstance(data, dict):
            raise MalformedFrameError(
                frame, f"expected a JSON object, got {type(data).__name__}"
            )
        return data

    def parse(self, frame: str) -> Dict[str, Any]:
        try:
            return self.parse_strict(frame)
        except MalformedFrameError as exc:
            logger.warning(
                "Malformed %s stream frame (%s): %s",
                self.provider,
                exc.reason,
                _truncate_text(frame),
            )
            return self.error_event_factory(str(exc))
