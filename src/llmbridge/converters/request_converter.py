"""Request format converter"""

from __future__ import annotations

from typing import Any, Dict

from ..core.exceptions import IdempotencyError
from ..utils.provider_registry import ProviderLike, get_registry
from .idempotency import find_differences


class RequestConverter:
    """Converts requests between different provider formats"""

    @staticmethod
    def convert(
        data: Dict[str, Any],
        from_provider: ProviderLike,
        to_provider: ProviderLike,
    ) -> Dict[str, Any]:
        """Convert request from one provider format to another

        Args:
            data: Request data in source provider format
            from_provider: Source provider name or enum
            to_provider: Target provider name or enum

        Returns:
            Request data in target provider format

        Raises:
            UnsupportedProviderError: If provider is not supported
            ConversionError: If conversion fails
        """
        pipeline = get_registry().create_pipeline(from_provider, to_provider)
        return pipeline.convert_request(data)

    @staticmethod
    def round_trip(data: Dict[str, Any], provider: ProviderLike) -> Dict[str, Any]:
        return RequestConverter.convert(data, provider, provider)

    @staticmethod
    def check_idempotency(data: Dict[str, Any], provider: ProviderLike) -> bool:
        """Check if conversion is idempotent (A -> IR -> A)

        Returns:
            True if the round trip reproduces ``data`` exactly
        """
        return not find_differences(data, RequestConverter.round_trip(data, provider))

    @staticmethod
    def assert_idempotent(data: Dict[str, Any], provider: ProviderLike) -> None:
        """Raise IdempotencyError listing what the round trip changed"""
        final = RequestConverter.round_trip(data, provider)
        differences = find_differences(data, final)
        if differences:
            raise IdempotencyError(data, final, differences)
