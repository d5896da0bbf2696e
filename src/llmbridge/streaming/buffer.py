"""Reassembly of arbitrarily chunked stream text into complete frame payloads"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.exceptions import BufferSizeExceededError

DEFAULT_MAX_BUFFER_SIZE = 1024 * 1024


class StreamingConfig(BaseModel):
    """Tuning knobs for stream ingestion"""

    model_config = ConfigDict(frozen=True)

    max_buffer_size: int = Field(default=DEFAULT_MAX_BUFFER_SIZE, gt=0)
    chunk_separator: str = Field(default="\n\n", min_length=1)


class DataBuffer(ABC):
    """Accumulates transport text and hands out complete frame payloads"""

    @abstractmethod
    def add_chunk(self, raw: str) -> List[str]:
        """Append raw text and return every payload completed by it, in order"""

    @abstractmethod
    def get_remaining_data(self) -> Optional[str]:
        """Return the payload of any non-blank leftover text"""

    @abstractmethod
    def clear(self) -> None:
        """Drop all buffered state"""


class ChunkBuffer(DataBuffer):
    """SSE frame buffer

    Frames are separated by a blank line. Within a frame, ``data:`` lines are
    joined with ``\\n``; ``event:``, ``id:``, ``retry:`` and comment lines are
    ignored. A payload equal to ``sentinel`` is never handed out.
    """

    def __init__(
        self,
        config: Optional[StreamingConfig] = None,
        sentinel: Optional[str] = None,
    ) -> None:
        self.config = config or StreamingConfig()
        self.sentinel = sentinel
        # Matched against CRLF-normalized text
        self._separator = self.config.chunk_separator.replace("\r\n", "\n")
        self._buffer = ""

    @property
    def size(self) -> int:
        return len(self._buffer)

    def add_chunk(self, raw: str) -> List[str]:
        if not raw:
            return []

        current_size = len(self._buffer)
        if current_size + len(raw) > self.config.max_buffer_size:
            raise BufferSizeExceededError(
                current_size, self.config.max_buffer_size, len(raw)
            )

        self._buffer += raw
        # A trailing "\r" may be the first half of a "\r\n" split across chunks
        pending_cr = self._buffer.endswith("\r")
        text = self._buffer[:-1] if pending_cr else self._buffer
        text = text.replace("\r\n", "\n")

        *frames, rest = text.split(self._separator)
        self._buffer = rest + ("\r" if pending_cr else "")

        payloads = []
        for frame in frames:
            payload = self._extract_payload(frame)
            if payload is not None:
                payloads.append(payload)
        return payloads

    def get_remaining_data(self) -> Optional[str]:
        leftover = self._buffer.replace("\r\n", "\n")
        self._buffer = ""
        if not leftover.strip():
            return None
        payload = self._extract_payload(leftover)
        if payload is None or not payload.strip():
            return None
        return payload

    def clear(self) -> None:
        self._buffer = ""

    def _extract_payload(self, frame: str) -> Optional[str]:
        data_lines = []
        for line in frame.split("\n"):
            if line.startswith("data:"):
                value = line[5:]
                if value.startswith(" "):
                    value = value[1:]
                data_lines.append(value)
        if not data_lines:
            return None

        payload = "\n".join(data_lines)
        if self.sentinel is not None and payload.strip() == self.sentinel:
            return None
        return payload
