"""HTTP glue for the analysis pipeline.

Endpoints:
- POST /api/analyze (alias POST /analyze): run the requested checks
- OPTIONS on both paths: CORS preflight, ``{"ok": true}``
- /health/*: see ``textforensics.api.health``

Any other method on the analysis paths gets ``405 {"ok": false, "error":
"Use POST JSON"}``. A body that is not a JSON object is analyzed as an
empty request rather than rejected.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from textforensics import __version__
from textforensics.api import health
from textforensics.api.middleware import RequestIDMiddleware
from textforensics.config.runtime import RuntimeConfig, get_runtime_config
from textforensics.contracts.errors import ApiError
from textforensics.core.capabilities import Capabilities, detect_capabilities
from textforensics.core.pipeline import AnalysisRequest, analyze
from textforensics.observability.logger import EventType, payload_scrubber
from textforensics.observability.metrics import MetricsExporter
from textforensics.utils.config_loader import load_config_for_runtime
from textforensics.utils.config_schema import AnalyzerFileConfig

logger = logging.getLogger(__name__)

ANALYZE_PATHS = ("/api/analyze", "/analyze")


class UnicodeJSONResponse(JSONResponse):
    """JSON with Unicode left unescaped.

    Lone surrogates cannot be encoded as UTF-8; they are written as JSON
    ``\\uXXXX`` escapes instead.
    """

    def render(self, content: Any) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        ).encode("utf-8", "backslashreplace")


def _envelope(error: ApiError, status_code: int) -> UnicodeJSONResponse:
    return UnicodeJSONResponse(error.to_envelope(), status_code=status_code)


def _parse_body(raw: bytes) -> dict[str, Any]:
    """Decode a JSON object body; anything else becomes an empty request."""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError):
        return {}
    return data if isinstance(data, dict) else {}


def create_app(
    config: RuntimeConfig | None = None,
    *,
    capabilities: Capabilities | None = None,
    analyzer_config: AnalyzerFileConfig | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Runtime configuration; read from the environment when omitted.
        capabilities: External capabilities; detected once when omitted.
        analyzer_config: Limits and defaults; loaded from the configured YAML
            file when omitted.

    Raises:
        ConfigurationError: The analyzer configuration cannot be loaded.
    """
    runtime = config or get_runtime_config()
    analyzer = analyzer_config or load_config_for_runtime(
        runtime.analyzer.config_path, runtime.mode
    )
    caps = capabilities if capabilities is not None else detect_capabilities()
    exporter = MetricsExporter() if runtime.observability.metrics_enabled else None
    max_body_bytes = runtime.security.max_body_bytes

    app = FastAPI(
        title="textforensics",
        version=__version__,
        description="Forensic scanner for hidden signals in text",
        docs_url="/docs" if runtime.debug else None,
        redoc_url=None,
    )
    app.state.runtime_config = runtime
    app.state.analyzer_config = analyzer
    app.state.capabilities = caps
    app.state.metrics = exporter

    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=runtime.security.cors_origins,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(health.router)

    def reject(request: Request, error: ApiError, status_code: int) -> UnicodeJSONResponse:
        if exporter is not None:
            exporter.record_rejection(error.code)
        logger.info(
            "Request rejected: %s",
            error.code,
            extra={
                "event_type": EventType.REQUEST_REJECTED.value,
                "correlation_id": getattr(request.state, "request_id", None),
                "metrics": {"status_code": status_code},
            },
        )
        return _envelope(error, status_code)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 405:
            return reject(request, ApiError.method_not_allowed(request.method), 405)
        return await http_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def _internal_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled error while serving %s",
            request.url.path,
            exc_info=exc,
            extra={
                "event_type": EventType.INTERNAL_ERROR.value,
                "correlation_id": getattr(request.state, "request_id", None),
            },
        )
        return _envelope(ApiError.internal_error(), 500)

    async def preflight() -> UnicodeJSONResponse:
        return UnicodeJSONResponse({"ok": True})

    async def analyze_endpoint(request: Request) -> UnicodeJSONResponse:
        declared = request.headers.get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > max_body_bytes:
            return reject(request, ApiError.payload_too_large(max_body_bytes), 413)

        raw = await request.body()
        if len(raw) > max_body_bytes:
            return reject(request, ApiError.payload_too_large(max_body_bytes), 413)

        body = _parse_body(raw)
        if "settings" not in body and not analyzer.mask_urls:
            body["settings"] = {"mask_urls": False}
        analysis_request = AnalysisRequest.model_validate(body)

        started = time.perf_counter()
        response = await run_in_threadpool(analyze, analysis_request, caps, analyzer.limits)
        elapsed_ms = (time.perf_counter() - started) * 1000.0

        if exporter is not None:
            exporter.record_analysis(response, elapsed_ms, len(analysis_request.text))
        logger.debug(
            "Analyzed request body",
            extra={
                "correlation_id": getattr(request.state, "request_id", None),
                "text_preview": payload_scrubber(analysis_request.text),
            },
        )
        return UnicodeJSONResponse(response.to_wire())

    for path in ANALYZE_PATHS:
        app.add_api_route(path, analyze_endpoint, methods=["POST"], tags=["analysis"])
        app.add_api_route(path, preflight, methods=["OPTIONS"], include_in_schema=False)

    logger.info(
        "textforensics API created",
        extra={
            "event_type": EventType.SERVER_STARTUP.value,
            "metrics": {
                "mode": runtime.mode.value,
                "metrics_enabled": exporter is not None,
                "max_body_bytes": max_body_bytes,
                **caps.meta(),
            },
        },
    )
    return app


__all__ = ["ANALYZE_PATHS", "UnicodeJSONResponse", "create_app"]
