"""Streaming format converter"""

from __future__ import annotations

from typing import AsyncIterable, AsyncIterator, Optional

from ..streaming.buffer import StreamingConfig
from ..utils.provider_registry import ProviderLike, get_registry


class StreamConverter:
    """Converts raw provider streams between formats"""

    @staticmethod
    async def convert(
        raw: AsyncIterable[str],
        from_provider: ProviderLike,
        to_provider: ProviderLike,
        config: Optional[StreamingConfig] = None,
    ) -> AsyncIterator[str]:
        """Re-encode a raw source SSE stream as target SSE frames

        Args:
            raw: Source transport text, chunked arbitrarily
            from_provider: Provider that produced ``raw``
            to_provider: Provider whose wire format the caller expects
            config: Optional buffer settings

        Yields:
            Encoded target frames, followed by the target's terminator if it
            has one
        """
        pipeline = get_registry().create_pipeline(from_provider, to_provider, config)
        async for frame in pipeline.convert_stream_to_sse(raw):
            yield frame
