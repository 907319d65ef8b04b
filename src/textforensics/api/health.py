"""Health check endpoints for the textforensics API.

Health endpoints:
- GET /health           - Simple health check (always 200 if process alive)
- GET /health/liveness  - Liveness probe (process alive)
- GET /health/readiness - Readiness probe (capabilities and system resources)
- GET /health/metrics   - Prometheus metrics endpoint

Absent capabilities never make the service unready: the affected checks
degrade to ``available: false`` results. Readiness only fails when the host
is out of memory.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import psutil
from fastapi import APIRouter, Request, Response, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from textforensics.core.capabilities import Capabilities
from textforensics.observability.metrics import CONTENT_TYPE_LATEST, MetricsExporter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

# Readiness fails above this share of used system memory
MEMORY_PERCENT_LIMIT = 95.0

_start_time = time.time()


class SimpleHealthStatus(BaseModel):
    status: str


class HealthStatus(BaseModel):
    """Liveness response."""

    status: str = Field(description="Always 'alive' if process is responsive")
    timestamp: float = Field(description="Unix timestamp of response")


class ComponentStatus(BaseModel):
    """Status of a single component for readiness check."""

    healthy: bool = Field(description="Whether component is healthy")
    details: str | None = Field(default=None, description="Optional details about status")


class ReadinessStatus(BaseModel):
    """Readiness status response with aggregated component health."""

    ready: bool = Field(description="Overall readiness status")
    status: str = Field(description="Status string: 'ready' or 'not_ready'")
    timestamp: float = Field(description="Unix timestamp of response")
    uptime_seconds: float
    components: dict[str, ComponentStatus] = Field(description="Per-component health status")
    capabilities: dict[str, bool | str | None] = Field(
        description="Capability flags, same as the analysis response meta block"
    )


def _capability_component(available: bool, name: str) -> ComponentStatus:
    if available:
        return ComponentStatus(healthy=True)
    return ComponentStatus(healthy=False, details=f"{name} unavailable; check degrades")


def _check_system_resources() -> tuple[bool, str | None]:
    try:
        memory = psutil.virtual_memory()
    except Exception as e:
        logger.warning("Failed to read system memory: %s", e)
        return True, f"check_failed: {e}"
    if memory.percent > MEMORY_PERCENT_LIMIT:
        return False, f"memory_percent={memory.percent:.1f}"
    return True, None


@router.get("", response_model=SimpleHealthStatus)
async def health_check() -> SimpleHealthStatus:
    return SimpleHealthStatus(status="healthy")


@router.get("/liveness", response_model=HealthStatus)
async def liveness() -> HealthStatus:
    """Liveness probe. Always 200 if the process is responsive."""
    return HealthStatus(status="alive", timestamp=time.time())


@router.get("/readiness", response_model=ReadinessStatus)
async def readiness(request: Request, response: Response) -> ReadinessStatus:
    """Readiness probe.

    Returns 200 when system resources are available, 503 otherwise. The
    capability components are informational.
    """
    caps: Capabilities = request.app.state.capabilities

    components: dict[str, ComponentStatus] = {
        "unicode_db": _capability_component(caps.unicode_db_available, "unicode database"),
        "normalizer": _capability_component(caps.normalizer_available, "normalizer"),
        "confusable_engine": _capability_component(
            caps.confusable_engine_available, "confusable engine"
        ),
    }

    resources_ok, resources_details = _check_system_resources()
    components["system_resources"] = ComponentStatus(
        healthy=resources_ok, details=resources_details
    )

    if not resources_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessStatus(
        ready=resources_ok,
        status="ready" if resources_ok else "not_ready",
        timestamp=time.time(),
        uptime_seconds=time.time() - _start_time,
        components=components,
        capabilities=caps.meta(),
    )


@router.get("/metrics")
async def metrics(request: Request) -> Response:
    """Prometheus metrics in text exposition format (404 when disabled)."""
    exporter: MetricsExporter | None = request.app.state.metrics
    if exporter is None:
        return PlainTextResponse("metrics disabled\n", status_code=status.HTTP_404_NOT_FOUND)
    return Response(content=exporter.export_metrics(), media_type=CONTENT_TYPE_LATEST)


def health_summary(caps: Capabilities) -> dict[str, Any]:
    """Capability summary used by the CLI ``check`` command."""
    resources_ok, resources_details = _check_system_resources()
    return {
        "capabilities": caps.meta(),
        "system_resources": {"healthy": resources_ok, "details": resources_details},
    }


__all__ = ["router", "health_summary"]
