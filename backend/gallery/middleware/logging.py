"""
Gallery Backend — Request Logging Middleware
==============================================

What:  One access-log line per request: method, path, status, duration,
       request id and client IP.
How:   Level follows the status class so alerting can key off severity:
       5xx → ERROR, 4xx → WARNING, everything else → INFO.

Never logged: request bodies (passwords, image bytes) and the Authorization
header. /health is skipped because probes hit it every few seconds.

Typical durations:
    - GET /api/images: a few ms in memory, tens of ms against the database
    - POST /api/images/upload: dominated by the media host round trip
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from gallery.middleware.request_id import request_id_var

logger = logging.getLogger("gallery.access")

_SKIP_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in _SKIP_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code

        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
