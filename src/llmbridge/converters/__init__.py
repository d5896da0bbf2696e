"""Format converters for llmbridge"""

from .idempotency import find_differences
from .pipeline import ConversionPipeline
from .request_converter import RequestConverter
from .response_converter import ResponseConverter
from .stream_converter import StreamConverter

__all__ = [
    "ConversionPipeline",
    "RequestConverter",
    "ResponseConverter",
    "StreamConverter",
    "find_differences",
]
