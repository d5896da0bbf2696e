"""FastAPI relay that accepts one provider's wire format, forwards the request
to the configured upstream provider, and converts the reply back.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse

from llmbridge.adapters import AnthropicAdapter, NativeAdapter, OpenAIAdapter
from llmbridge.converters.pipeline import ConversionPipeline
from llmbridge.core.exceptions import LLMBridgeError, ValidationError
from llmbridge.ir.schema import IRError
from llmbridge.types.provider import Provider
from llmbridge.utils.provider_registry import ProviderRegistry

from .config import BridgeSettings, configure_logging, load_settings
from .streaming import _truncate_text, event_publisher

logger = logging.getLogger(__name__)


def build_registry(settings: BridgeSettings) -> ProviderRegistry:
    """Adapters used by the relay; upstream requests get a default max_tokens"""
    registry = ProviderRegistry()
    registry.register(OpenAIAdapter())
    registry.register(AnthropicAdapter(default_max_tokens=settings.default_max_tokens))
    registry.register(NativeAdapter())
    registry.freeze()
    return registry


def _upstream_headers(settings: BridgeSettings, stream: bool) -> Dict[str, str]:
    headers = {
        "Content-Type": "application/json",
        "Accept": "text/event-stream" if stream else "application/json",
    }
    if settings.source is Provider.ANTHROPIC:
        headers["x-api-key"] = settings.apikey
        headers["anthropic-version"] = settings.anthropic_version
    else:
        headers["Authorization"] = f"Bearer {settings.apikey}"
    return headers


def _error_response(
    pipeline: ConversionPipeline, status_code: int, error_type: str, message: str
) -> JSONResponse:
    """Error body in the client's own envelope"""
    body = pipeline.source.transform_error(IRError(type=error_type, message=message))
    return JSONResponse(body, status_code=status_code)


def create_app(
    settings: Optional[BridgeSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the relay app

    Args:
        settings: Relay settings; loaded with ``load_settings()`` when omitted
        transport: Optional httpx transport for upstream calls
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    registry = build_registry(settings)
    app = FastAPI(title="llmbridge relay")
    app.state.settings = settings
    app.state.registry = registry

    async def relay(request: Request, client_provider: Provider) -> Any:
        # Client -> upstream for the request, upstream -> client for the reply
        request_pipeline = registry.create_pipeline(client_provider, settings.source)
        reply_pipeline = registry.create_pipeline(
            settings.source, client_provider, settings.streaming_config
        )

        try:
            payload = await request.json()
        except json.JSONDecodeError:
            return _error_response(
                request_pipeline, 400, "invalid_request_error", "Request body is not valid JSON"
            )

        try:
            upstream_body = request_pipeline.convert_request(payload)
        except ValidationError as exc:
            detail = "; ".join(exc.validation_errors) or str(exc)
            return _error_response(request_pipeline, 400, "invalid_request_error", detail)
        except LLMBridgeError as exc:
            return _error_response(request_pipeline, 400, "invalid_request_error", str(exc))

        logger.info(
            "Upstream request body (%s -> %s): %s",
            client_provider.value,
            settings.source.value,
            _truncate_text(json.dumps(upstream_body)),
        )

        stream = bool(upstream_body.get("stream"))
        headers = _upstream_headers(settings, stream)
        url = str(settings.url)
        timeout = settings.timeout_seconds if settings.timeout_seconds else None

        if stream:
            return StreamingResponse(
                event_publisher(reply_pipeline, url, headers, upstream_body, timeout, transport),
                media_type="text/event-stream",
            )

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
                response = await client.post(url, headers=headers, json=upstream_body)
        except httpx.RequestError as exc:
            logger.error("Upstream request error: %s", exc)
            return _error_response(
                request_pipeline, 502, "upstream_error", f"Upstream request failed: {exc}"
            )

        try:
            upstream_payload = response.json()
        except json.JSONDecodeError:
            logger.error(
                "Upstream returned non-JSON body (%s): %s",
                response.status_code,
                _truncate_text(response.text),
            )
            return _error_response(
                request_pipeline,
                502 if response.status_code < 400 else response.status_code,
                "upstream_error",
                response.text or response.reason_phrase,
            )

        try:
            if response.status_code >= 400:
                logger.error(
                    "Upstream error %s: %s",
                    response.status_code,
                    _truncate_text(response.text),
                )
                converted = reply_pipeline.convert_error(upstream_payload)
            else:
                converted = reply_pipeline.convert_response(upstream_payload)
        except LLMBridgeError as exc:
            return _error_response(request_pipeline, 502, "conversion_error", str(exc))

        return JSONResponse(converted, status_code=response.status_code)

    @app.post("/v1/chat/completions")
    async def chat_completions(request: Request) -> Any:
        """OpenAI chat completions clients"""
        return await relay(request, Provider.OPENAI)

    @app.post("/v1/messages")
    async def messages(request: Request) -> Any:
        """Anthropic Messages API clients"""
        return await relay(request, Provider.ANTHROPIC)

    @app.post("/v1/ir")
    async def native(request: Request) -> Any:
        """Clients speaking the IR directly"""
        return await relay(request, Provider.NATIVE)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {
            "status": "ok",
            "upstream": settings.source.value,
            "providers": registry.list_supported_providers(),
        }

    return app
