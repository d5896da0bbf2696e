"""Core adapter interface and exceptions"""

from .exceptions import (
    BufferSizeExceededError,
    ConversionError,
    IdempotencyError,
    LLMBridgeError,
    MalformedFrameError,
    RegistryFrozenError,
    StreamStateError,
    UnrecognizedRoleError,
    UnrecognizedStreamEventError,
    UnsupportedFeatureError,
    UnsupportedProviderError,
    UnsupportedRoleError,
    ValidationError,
)
from .base_adapter import BaseAdapter

__all__ = [
    "BaseAdapter",
    "BufferSizeExceededError",
    "ConversionError",
    "IdempotencyError",
    "LLMBridgeError",
    "MalformedFrameError",
    "RegistryFrozenError",
    "StreamStateError",
    "UnrecognizedRoleError",
    "UnrecognizedStreamEventError",
    "UnsupportedFeatureError",
    "UnsupportedProviderError",
    "UnsupportedRoleError",
    "ValidationError",
]
