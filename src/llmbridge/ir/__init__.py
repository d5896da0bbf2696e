"""Intermediate representation shared by all adapters"""

from .schema import (
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

__all__ = [
    "IRChoice",
    "IRDelta",
    "IRError",
    "IRMessage",
    "IRRequest",
    "IRResponse",
    "IRStreamEvent",
    "IRUsage",
    "MessageDelta",
    "MessageEnd",
    "MessageStart",
    "Role",
    "StreamError",
]
