"""
VerseRank Backend: Request ID Middleware
=========================================

What:  Assigns a correlation id to each request and echoes it in the response.
Why:   Every log entry of a request shares the id, and error bodies carry it,
       so a user report ("request 1f2e3d4c failed") maps straight to the logs.
How:   Reuses a client-sent X-Request-ID or generates a short UUID, stores it
       in a ContextVar (coroutine-local) and on request.state.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Use the client's X-Request-ID header when present
        2. Otherwise generate an 8-character id
        3. Store it in request_id_var and request.state.request_id
        4. Add it to the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
