"""llmbridge - LLM wire format bridge

Normalizes provider-specific requests, responses, stream events and errors into
one brand-neutral intermediate representation (IR) and transforms them back
out, so a client speaking one provider's protocol can be served by another.
"""

from .core import (
    BaseAdapter,
    ConversionError,
    LLMBridgeError,
    UnsupportedProviderError,
)
from .adapters import AnthropicAdapter, NativeAdapter, OpenAIAdapter
from .converters import (
    ConversionPipeline,
    RequestConverter,
    ResponseConverter,
    StreamConverter,
)
from .streaming import ChunkBuffer, StreamingConfig, StreamSession
from .types import Provider
from .utils.provider_registry import ProviderRegistry, get_registry, initialize_providers

# Register built-in adapters
initialize_providers()

__version__ = "0.1.0"
__all__ = [
    "AnthropicAdapter",
    "BaseAdapter",
    "ChunkBuffer",
    "ConversionError",
    "ConversionPipeline",
    "LLMBridgeError",
    "NativeAdapter",
    "OpenAIAdapter",
    "Provider",
    "ProviderRegistry",
    "RequestConverter",
    "ResponseConverter",
    "StreamConverter",
    "StreamSession",
    "StreamingConfig",
    "UnsupportedProviderError",
    "get_registry",
    "initialize_providers",
]
