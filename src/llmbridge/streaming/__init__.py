"""Stream ingestion: chunk buffering, frame parsing and session state"""

from .buffer import ChunkBuffer, DataBuffer, StreamingConfig
from .parser import FrameParser
from .session import StreamSession, StreamState

__all__ = [
    "ChunkBuffer",
    "DataBuffer",
    "FrameParser",
    "StreamSession",
    "StreamState",
    "StreamingConfig",
]
