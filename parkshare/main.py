"""
ParkShare Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn parkshare.main:app),
       and by the test suite with an injected Database handle.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐             │
    │  │ Req ID   │→│ Logging  │→│ GZip │→│ CORS │             │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘             │
    │                                                          │
    │  Routes:                                                 │
    │  ┌───────────┐ ┌─────────────────────┐ ┌──────────────┐  │
    │  │ /api/auth │ │ /api/parking-spaces │ │ /api/bookings│  │
    │  └───────────┘ └─────────────────────┘ └──────────────┘  │
    │  ┌───────────┐ ┌───────┐                                 │
    │  │ /health   │ │ /     │                                 │
    │  └───────────┘ └───────┘                                 │
    │                                                          │
    │  Exception Handlers:                                     │
    │  ┌────────────────────────────────────────────────────┐  │
    │  │ Validation→400 │ Auth→401 │ Forbidden→403 │        │  │
    │  │ NotFound→404   │ DB→500   │ anything else→500      │  │
    │  └────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (logged, not fatal)
    3. Create the Database handle unless one was injected
    Shutdown:
    1. Dispose the Database handle (close all pooled connections)
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
from starlette.exceptions import HTTPException as StarletteHTTPException

from parkshare import __version__
from parkshare.config import settings
from parkshare.database import Database
from parkshare.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DatabaseError,
    NotFoundError,
    ParkShareError,
    ValidationError,
)
from parkshare.middleware.logging import RequestLoggingMiddleware
from parkshare.middleware.request_id import RequestIDMiddleware, request_id_var
from parkshare.routes import auth, bookings, health, parking_spaces

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: 2024-01-15T12:00:00 [INFO] parkshare.access: GET /api/... 200 ...
    Output goes to stdout, where Docker collects it.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Own the Database handle for the life of the process.

    An injected handle (create_app(database=...)) is used as is and is
    still disposed at shutdown.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("ParkShare Backend starting up...")

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: the service still answers health checks.
        logger.error("Configuration error: %s", str(e))

    if getattr(app.state, "database", None) is None:
        app.state.database = Database.from_settings(settings)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("ParkShare Backend shutting down...")
    await app.state.database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    # request.state survives into the outermost handler; the ContextVar may not.
    return getattr(request.state, "request_id", None) or request_id_var.get("")


def _error_body(request: Request, error: str, message: str, **extra) -> dict:
    body = {
        "success": False,
        "error": error,
        "message": message,
        "request_id": _request_id(request),
    }
    body.update(extra)
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and one error body shape.

    Handler hierarchy:
        ValidationError / RequestValidationError → 400 (all failing fields)
        AuthenticationError                      → 401
        AuthorizationError                       → 403
        NotFoundError                            → 404
        unmatched route                          → 404 route_not_found
        DatabaseError                            → 500 (generic message)
        ParkShareError (base)                    → 500
        Exception (fallback)                     → 500 (detail only in debug)

    Internal details (SQL, stack traces) are logged, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        """Client sent invalid input; list every failing field."""
        logger.warning("[%s] Validation error: %s %s", _request_id(request), exc.message, exc.errors)
        return JSONResponse(
            status_code=400,
            content=_error_body(request, "validation_error", exc.message, errors=exc.errors),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """FastAPI's body/path/query validation, reported in the same 400 shape."""
        return await handle_validation_error(
            request, ValidationError.from_pydantic_errors(exc.errors())
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=401,
            content=_error_body(request, "unauthorized", exc.message),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(AuthorizationError)
    async def handle_authorization_error(request: Request, exc: AuthorizationError):
        logger.info("[%s] Forbidden: %s | Context: %s", _request_id(request), exc.message, exc.context)
        return JSONResponse(
            status_code=403,
            content=_error_body(request, "forbidden", exc.message),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        """Requested resource doesn't exist."""
        return JSONResponse(
            status_code=404,
            content=_error_body(request, "not_found", exc.message),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        """Router-level errors: unmatched path (404) or wrong method (405)."""
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content=_error_body(
                    request,
                    "route_not_found",
                    "Route not found",
                    path=request.url.path,
                    method=request.method,
                ),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, "http_error", str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        """Database error: generic message to user, details logged server-side."""
        logger.error("[%s] Database error: %s | Context: %s", _request_id(request), exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                request, "server_error", "An internal error occurred. Please try again later."
            ),
        )

    @app.exception_handler(ParkShareError)
    async def handle_application_error(request: Request, exc: ParkShareError):
        logger.error("[%s] Application error: %s | Context: %s", _request_id(request), exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body(request, "server_error", exc.message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Catch-all for truly unexpected errors.

        The exception text is included only when settings.debug is on;
        the stack trace is always logged server-side.
        """
        rid = _request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        extra = {"details": {"error": str(exc), "type": type(exc).__name__}} if settings.debug else {}
        return JSONResponse(
            status_code=500,
            content=_error_body(
                request,
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
                **extra,
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

ENDPOINTS = {
    "auth": "/api/auth",
    "parkingSpaces": "/api/parking-spaces",
    "bookings": "/api/bookings",
    "health": "/health",
    "docs": "/docs",
}


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        database: Store handle to use instead of building one from settings
                  at startup. Tests pass a fake here.
    """
    app = FastAPI(
        title="ParkShare API",
        description=(
            "Parking space marketplace: owners list spaces, drivers search "
            "by location, price, vehicle type and features, and book them."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.database = database

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(parking_spaces.router)
    app.include_router(bookings.router)
    app.include_router(health.router)

    @app.get("/", tags=["Health"], summary="API index")
    async def root() -> dict:
        return {
            "name": "ParkShare API",
            "version": __version__,
            "status": "running",
            "endpoints": ENDPOINTS,
        }

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `parkshare.main:app` to be importable.
app = create_app()
