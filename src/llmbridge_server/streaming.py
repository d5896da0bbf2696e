"""SSE event publisher that relays an upstream stream in the client's format"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncGenerator, Dict

import httpx

from llmbridge.converters.pipeline import ConversionPipeline
from llmbridge.core.exceptions import LLMBridgeError
from llmbridge.ir.schema import IRError, StreamError

logger = logging.getLogger(__name__)


def _truncate_text(text: str, limit: int = 2000) -> str:
    """Guardrail to avoid logging extremely large bodies."""
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def error_frame(pipeline: ConversionPipeline, error: IRError) -> str:
    """Encode an error as one frame of the client's stream format"""
    client = pipeline.target
    return client.encode_stream_event(client.transform_stream_event(StreamError(error=error)))


def upstream_error_frame(
    pipeline: ConversionPipeline, status_code: int, body: bytes
) -> str:
    """Convert an upstream HTTP error body into a client stream error frame"""
    text = body.decode("utf-8", errors="replace")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        payload = None

    if isinstance(payload, dict):
        try:
            error = pipeline.source.normalize_error(payload)
        except LLMBridgeError:
            error = IRError(type="upstream_error", message=_truncate_text(text))
    else:
        error = IRError(type="upstream_error", message=text or f"HTTP {status_code}")
    return error_frame(pipeline, error)


async def event_publisher(
    pipeline: ConversionPipeline,
    url: str,
    headers: Dict[str, str],
    upstream_body: Dict[str, Any],
    timeout: float | None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncGenerator[str, None]:
    """Proxy an upstream stream and convert its events.

    Args:
        pipeline: Upstream (source) to client (target) stream pipeline
        url: Upstream endpoint
        headers: Upstream request headers
        upstream_body: Request body already in the upstream format
        timeout: Upstream timeout in seconds, None for no timeout
        transport: Optional httpx transport (tests use MockTransport)

    Yields:
        SSE formatted event strings in the client's format
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            async with client.stream("POST", url, headers=headers, json=upstream_body) as response:
                if response.status_code >= 400:
                    error_body = await response.aread()
                    logger.error(
                        "Upstream stream error %s: %s",
                        response.status_code,
                        _truncate_text(error_body.decode("utf-8", errors="replace")),
                    )
                    yield upstream_error_frame(pipeline, response.status_code, error_body)
                    return

                async for frame in pipeline.convert_stream_to_sse(response.aiter_text()):
                    yield frame
    except LLMBridgeError as exc:
        logger.warning("Stream conversion failed (%s): %s", pipeline, exc)
        yield error_frame(pipeline, IRError(type="conversion_error", message=str(exc)))
    except httpx.HTTPError as exc:
        logger.error("Upstream stream request error: %s", exc)
        yield error_frame(
            pipeline, IRError(type="upstream_error", message=f"Upstream request failed: {exc}")
        )
