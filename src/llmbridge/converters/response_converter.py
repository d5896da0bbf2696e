"""Response and error format converter"""

from __future__ import annotations

from typing import Any, Dict

from ..core.exceptions import IdempotencyError
from ..utils.provider_registry import ProviderLike, get_registry
from .idempotency import find_differences


class ResponseConverter:
    """Converts responses and error payloads between provider formats"""

    @staticmethod
    def convert(
        data: Dict[str, Any],
        from_provider: ProviderLike,
        to_provider: ProviderLike,
    ) -> Dict[str, Any]:
        """Convert a non-streaming response from one provider format to another

        Raises:
            UnsupportedProviderError: If provider is not supported
            ConversionError: If conversion fails
        """
        pipeline = get_registry().create_pipeline(from_provider, to_provider)
        return pipeline.convert_response(data)

    @staticmethod
    def convert_error(
        data: Dict[str, Any],
        from_provider: ProviderLike,
        to_provider: ProviderLike,
    ) -> Dict[str, Any]:
        """Convert a provider error payload into the target provider's envelope"""
        pipeline = get_registry().create_pipeline(from_provider, to_provider)
        return pipeline.convert_error(data)

    @staticmethod
    def check_idempotency(data: Dict[str, Any], provider: ProviderLike) -> bool:
        final = ResponseConverter.convert(data, provider, provider)
        return not find_differences(data, final)

    @staticmethod
    def assert_idempotent(data: Dict[str, Any], provider: ProviderLike) -> None:
        final = ResponseConverter.convert(data, provider, provider)
        differences = find_differences(data, final)
        if differences:
            raise IdempotencyError(data, final, differences)
