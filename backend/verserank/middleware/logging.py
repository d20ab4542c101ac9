"""
VerseRank Backend: Request Logging Middleware
==============================================

What:  One access log line per HTTP request, on the "verserank.access" logger.
How:   Times the downstream handler and logs once the response is ready.

Line format:
    POST /api/memorized-verses 201 12.4ms [1f2e3d4c] user=42

    user= is the principal resolved by get_current_user_id (request.state),
    "-" for public routes and requests rejected before authentication.

Privacy:
    Request bodies are never logged (they carry the user's verse notes), and
    neither are raw headers.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from verserank.middleware.request_id import request_id_var

logger = logging.getLogger("verserank.access")

# Load balancer probes and API docs
QUIET_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log with status-dependent level: 5xx ERROR, 4xx WARNING, else INFO."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        user_id = getattr(request.state, "user_id", None)
        logger.log(
            level_for_status(response.status_code),
            "%s %s %d %.1fms [%s] user=%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id_var.get(""),
            user_id if user_id is not None else "-",
            extra={
                "request_id": request_id_var.get(""),
                "user_id": user_id,
                "status": response.status_code,
                "duration_ms": round(elapsed_ms, 2),
            },
        )
        return response
