# Middleware package init
"""
VerseRank Backend: Middleware Package
======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID first: every later log line can carry the correlation id
    2. Logging: records method, path, status and duration with that id
    3. GZip / CORS: applied by Starlette/FastAPI built-ins

    Responses travel the chain in reverse, so the X-Request-ID header is
    added last and the logged duration covers the whole handler.
"""
