"""Stateful reconstruction of an IR event stream from raw transport chunks"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, AsyncIterable, AsyncIterator, Dict, Optional

from ..core.exceptions import LLMBridgeError, MalformedFrameError, StreamStateError
from ..ir.schema import IRStreamEvent, MessageDelta, MessageEnd, MessageStart, StreamError
from .buffer import StreamingConfig
from .parser import FrameParser

if TYPE_CHECKING:
    from ..core.base_adapter import BaseAdapter

logger = logging.getLogger(__name__)


class StreamState(str, Enum):
    INIT = "init"
    STREAMING = "streaming"
    END = "end"
    FAILED = "failed"


class StreamSession:
    """One streaming response, from raw text chunks to ordered IR events

    A session owns its buffer and is single-use. Emission stops at the first
    terminal event (``MessageEnd`` or ``StreamError``) and the upstream
    iterator is not read any further.
    """

    def __init__(
        self,
        adapter: "BaseAdapter",
        config: Optional[StreamingConfig] = None,
    ) -> None:
        self.adapter = adapter
        self.buffer = adapter.create_buffer(config)
        self.parser = FrameParser(adapter.parsing_error_event, adapter.provider.value)
        self.state = StreamState.INIT
        self._started = False

    @property
    def finished(self) -> bool:
        return self.state in (StreamState.END, StreamState.FAILED)

    async def events(self, raw: AsyncIterable[str]) -> AsyncIterator[IRStreamEvent]:
        if self._started:
            raise StreamStateError(self.state.value, "events")
        self._started = True

        frames = self._frames(raw)
        normalized = self.adapter.normalize_streaming_response(frames)
        try:
            async for event in normalized:
                self._advance(event)
                yield event
                if self.finished:
                    break

            if not self.finished:
                logger.warning(
                    "%s stream ended without a terminal event (state=%s)",
                    self.adapter.provider.value,
                    self.state.value,
                )
        except LLMBridgeError:
            self.state = StreamState.FAILED
            raise
        finally:
            self.buffer.clear()
            await normalized.aclose()
            await frames.aclose()

    async def _frames(self, raw: AsyncIterable[str]) -> AsyncIterator[Dict[str, Any]]:
        async for chunk in raw:
            for payload in self.buffer.add_chunk(chunk):
                yield self.parser.parse(payload)

        remainder = self.buffer.get_remaining_data()
        if remainder is None:
            return
        try:
            frame = self.parser.parse_strict(remainder)
        except MalformedFrameError as exc:
            logger.debug("Discarding unparseable trailing stream data: %s", exc.reason)
            return
        yield frame

    def _advance(self, event: IRStreamEvent) -> None:
        if isinstance(event, MessageStart):
            if self.state is not StreamState.INIT:
                raise StreamStateError(self.state.value, event.type)
            self.state = StreamState.STREAMING
        elif isinstance(event, MessageDelta):
            self.state = StreamState.STREAMING
        elif isinstance(event, MessageEnd):
            self.state = StreamState.END
        elif isinstance(event, StreamError):
            self.state = StreamState.FAILED
