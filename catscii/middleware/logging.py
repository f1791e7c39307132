"""
catscii — Request Logging Middleware
======================================

What:  One structured log line for every HTTP request and response.
How:   Measures time around the downstream call and logs method, path,
       status, duration and client IP on the `catscii.access` logger.
When:  Inside RequestIDMiddleware, so request.state.request_id is already set.

Log Format (JSON, via the formatter configured in catscii.observability):
    {
        "timestamp": "2024-01-15T12:00:00",
        "level": "INFO",
        "logger": "catscii.access",
        "message": "GET / 200 812.4ms [a1b2c3d4] from 10.0.0.7",
        "request_id": "a1b2c3d4",
        "method": "GET",
        "path": "/",
        "status": 200,
        "duration_ms": 812.43,
        "client_ip": "10.0.0.7"
    }

What we log vs what we DON'T log:
    ✅ Log: method, path, status, duration, IP, request ID
    ❌ Don't log: header values, response bodies
"""

import logging
import time
from typing import Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger("catscii.access")

DEFAULT_SKIP_PATHS = ("/health",)


def access_log_level(status: int) -> int:
    """5xx → ERROR, 4xx → WARNING, everything else → INFO."""
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs structured information about each HTTP request and response.

    Args:
        skip_paths:  Exact paths that are never logged (liveness probes
                     polled by orchestrators). Defaults to /health.

    Duration covers the whole downstream chain, so for GET / it is dominated
    by the outbound calls to the image API. A request that raises instead of
    answering is not logged here; the error handlers and uvicorn own it.
    """

    def __init__(self, app: ASGIApp, skip_paths: Optional[Iterable[str]] = None):
        super().__init__(app)
        self.skip_paths = frozenset(DEFAULT_SKIP_PATHS if skip_paths is None else skip_paths)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in self.skip_paths:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        client_ip = request.client.host if request.client else "unknown"
        rid = getattr(request.state, "request_id", "")
        status = response.status_code

        logger.log(
            access_log_level(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": duration_ms,
                "client_ip": client_ip,
            },
        )
        return response
