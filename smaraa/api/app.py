"""
FastAPI application factory.
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from smaraa.api.dependencies import cleanup_dependencies
from smaraa.api.middleware.timeout import TimeoutMiddleware
from smaraa.api.routes import admin, archive, health, search, summarize
from smaraa.config.settings import get_settings
from smaraa.errors import (
    PermissionDenied,
    ProviderUnavailable,
    SmaraaError,
    StoreError,
    ValidationError,
)
from smaraa.observability.logging import bind_context, clear_context

logger = structlog.get_logger(__name__)

_ERROR_STATUS: dict[type[SmaraaError], int] = {
    ValidationError: 422,
    PermissionDenied: 403,
    ProviderUnavailable: 503,
    StoreError: 500,
}


def error_status(exc: SmaraaError) -> int:
    """HTTP status for a core error; unknown subclasses map to 500."""
    for error_type, status_code in _ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Archive API starting up")

    yield

    logger.info("Archive API shutting down")
    await cleanup_dependencies()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    openapi_tags = [
        {"name": "health", "description": "Service health checks"},
        {"name": "archive", "description": "Idempotent message archiving"},
        {"name": "search", "description": "Semantic search within a tenant"},
        {"name": "summarize", "description": "Retrieval-augmented summaries with citations"},
        {"name": "admin", "description": "Tenant settings and audit trail"},
    ]

    app = FastAPI(
        title="Smaraa Archive API",
        description="""
API for archiving chat messages and retrieving them by meaning.

## Errors

Error bodies carry `detail`, `error_type` and `retryable`. Only provider
outages (503) and timeouts (504) are worth retrying.

## Authentication

Requires `X-API-KEY` header for all requests except `/healthz`.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=openapi_tags,
    )

    # Add CORS middleware (origins from CORS_ORIGINS env var, comma-separated)
    cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        )

    # Added before the logging middleware so the budget covers the whole request
    if settings.request_timeout_seconds > 0:
        app.add_middleware(
            TimeoutMiddleware,
            timeout_seconds=settings.request_timeout_seconds,
            overrides={"/summarize": settings.summarize_timeout_seconds},
        )

    # Request logging and correlation ID middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        # Correlation ID: use incoming header or generate a new one
        request_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or str(uuid.uuid4())
        )

        # Bind to structlog contextvars for automatic log correlation
        bind_context(request_id=request_id)

        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            response.headers["X-Request-ID"] = request_id

            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            return response
        finally:
            clear_context()

    # Rate limiting (opt-in via RATE_LIMIT_ENABLED=true)
    if settings.rate_limit_enabled:
        from slowapi import _rate_limit_exceeded_handler
        from slowapi.errors import RateLimitExceeded

        from smaraa.api.rate_limit import limiter

        app.state.limiter = limiter
        app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(SmaraaError)
    async def smaraa_error_handler(request: Request, exc: SmaraaError):
        status_code = error_status(exc)
        log = logger.error if status_code >= 500 else logger.info
        log(
            "Request failed",
            path=request.url.path,
            error_type=exc.error_type,
            retryable=exc.retryable,
            error=str(exc),
        )
        return JSONResponse(
            status_code=status_code,
            content={
                "detail": str(exc),
                "error_type": exc.error_type,
                "retryable": exc.retryable,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        return JSONResponse(
            status_code=422,
            content={
                "detail": f"{location}: {message}" if location else message,
                "error_type": ValidationError.error_type,
                "retryable": False,
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "internal", "retryable": False},
        )

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(archive.router, tags=["archive"])
    app.include_router(search.router, tags=["search"])
    app.include_router(summarize.router, tags=["summarize"])
    app.include_router(admin.router, tags=["admin"])

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "service": "Smaraa Archive API",
            "version": "0.1.0",
            "docs": "/docs",
        }

    return app
