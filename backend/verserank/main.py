"""
VerseRank Backend: FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (uvicorn verserank.main:app) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                      FastAPI App                        │
    │                                                         │
    │  Middleware: RequestID → Logging → GZip → CORS          │
    │                                                         │
    │  Routes:                                                │
    │   /api/memorized-verses  /api/progress  /api/ranks      │
    │   /api/progress/history  /api/leaderboard  /health      │
    │                                                         │
    │  Exception Handlers:                                    │
    │   Validation→400 │ Auth→401 │ NotFound→404 │ DB→500     │
    └─────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration validation
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from verserank import __version__
from verserank.config import settings
from verserank.database import dispose_engine
from verserank.exceptions import (
    AuthenticationError,
    DatabaseError,
    NotFoundError,
    ValidationError,
    VerseRankError,
)
from verserank.middleware.logging import RequestLoggingMiddleware
from verserank.middleware.request_id import RequestIDMiddleware, request_id_var
from verserank.routes import health, leaderboard, progress, ranks

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Container runtimes capture stdout
        ],
        force=True,
    )

    # These log every statement / connection at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup sequence:
        1. Setup logging
        2. Validate critical configuration (logged, not fatal, so /health
           still answers and shows the problem)

    Shutdown sequence:
        1. Dispose database engine (close all pooled connections)
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("VerseRank Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("VerseRank Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int, error: str, message: str, details: Optional[dict] = None
) -> JSONResponse:
    """Every error body has the ErrorResponse shape and carries the request id."""
    body = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map domain exceptions to HTTP responses.

        ValidationError, RequestValidationError  → 400 validation_error
        AuthenticationError                      → 401 unauthorized
        NotFoundError                            → 404 not_found
        DatabaseError                            → 500 server_error (service message)
        VerseRankError, Exception                → 500 generic message

    Server-side failures keep SQL, stack traces and exception context in the
    log only.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        # Body/query type failures get the same 400 shape as service-level checks
        errors = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ())),
                "message": error.get("msg", "Invalid value"),
            }
            for error in exc.errors()
        ]
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), errors)
        return error_response(400, "validation_error", "Validation failed", {"errors": errors})

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return error_response(401, "unauthorized", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return error_response(500, "server_error", exc.message)

    @app.exception_handler(VerseRankError)
    async def handle_app_error(request: Request, exc: VerseRankError):
        logger.error(
            "[%s] Application error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return error_response(500, "server_error", "Internal error while processing the request")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unhandled %s", request_id_var.get(""), type(exc).__name__, exc_info=True)
        return error_response(500, "internal_server_error", "Unexpected server error")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Tests build a fresh app per test and override get_db_session, so nothing
    here may open a database connection.
    """
    app = FastAPI(
        title="VerseRank API",
        description=(
            "Progress tracking for Bible verse memorization: record memorized verses, "
            "climb the biblical rank ladder, and compare on the leaderboard."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(progress.router)
    app.include_router(ranks.router)
    app.include_router(leaderboard.router)
    app.include_router(health.router)

    return app


# uvicorn expects `verserank.main:app` to be importable
app = create_app()
