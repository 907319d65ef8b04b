"""Middleware components for the textforensics API.

Provides:
- Request ID tracking and correlation
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import TYPE_CHECKING

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from textforensics.observability.logger import EventType

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to every request.

    The ID is taken from ``X-Request-ID`` or generated, stored on
    ``request.state.request_id``, echoed in the response header and used as
    ``correlation_id`` in log records.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "Request completed",
                extra={
                    "event_type": EventType.REQUEST_COMPLETED.value,
                    "correlation_id": request_id,
                    "metrics": {
                        "duration_ms": round(duration_ms, 3),
                        "status_code": response.status_code if response is not None else None,
                    },
                    "method": request.method,
                    "path": request.url.path,
                },
            )

        response.headers["X-Request-ID"] = request_id
        return response


__all__ = ["RequestIDMiddleware"]
