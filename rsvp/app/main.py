from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from rsvp.app.api import admin_router, csrf_router, guests_router, rsvp_router
from rsvp.app.core.config import Settings, settings as default_settings
from rsvp.app.core.logging import get_logger, setup_logging
from rsvp.app.db.async_session import (
    close_async_engine,
    create_engine_from_settings,
    create_session_maker,
    init_async_db,
)
from rsvp.app.exceptions import RSVPException, create_safe_error_message
from rsvp.app.middleware.csrf import CSRFProtector
from rsvp.app.middleware.rate_limit import FixedWindowRateLimiter
from rsvp.app.middleware.request_id import RequestIdMiddleware
from rsvp.app.middleware.request_size import RequestSizeLimitMiddleware
from rsvp.app.middleware.security_headers import SecurityHeadersMiddleware


def create_app(config: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Settings to use instead of the module-level instance.
            Tests pass their own to point at a temporary database.

    Returns:
        Configured FastAPI application instance
    """
    config = config or default_settings

    # Setup logging
    setup_logging(config)
    logger = get_logger(__name__)

    rate_limiter = FixedWindowRateLimiter(
        sweep_probability=config.rate_limit_sweep_probability,
        sweep_interval_seconds=config.rate_limit_sweep_interval_seconds,
    )
    csrf_protector = CSRFProtector.from_settings(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan context manager.

        Opens the database engine and starts the cleanup schedules for the
        rate limiter and CSRF registry on startup; stops them and disposes the
        engine on shutdown.
        """
        engine = create_engine_from_settings(config)
        app.state.engine = engine
        app.state.session_maker = create_session_maker(engine)

        if config.db_create_tables:
            await init_async_db(engine)

        await rate_limiter.start()
        await csrf_protector.start()

        logger.info(
            "Application startup complete",
            extra={
                "production": config.is_production,
                "rate_limit_disabled": config.disable_rsvp_rate_limit,
            },
        )

        yield

        await csrf_protector.stop()
        await rate_limiter.stop()
        await close_async_engine(engine)

        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Wedding RSVP",
        description="RSVP service with rate limiting, CSRF protection and input sanitization",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = config
    app.state.rate_limiter = rate_limiter
    app.state.csrf_protector = csrf_protector

    # Add middleware (order matters: last added = first executed)
    # CORS middleware (outermost - handles preflight requests first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", config.csrf_header_name, "X-Request-ID"],
        expose_headers=[
            "X-Request-ID",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "Retry-After",
        ],
        max_age=600,
    )

    # Request body size limit middleware
    app.add_middleware(RequestSizeLimitMiddleware, max_body_size=config.max_body_size)

    app.add_middleware(SecurityHeadersMiddleware)

    # Request ID middleware for tracing (innermost - closest to route)
    app.add_middleware(RequestIdMiddleware)

    # Include routers
    app.include_router(csrf_router)
    app.include_router(rsvp_router)
    app.include_router(guests_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        """Health check with database status and in-memory store sizes."""
        health_status: dict[str, Any] = {"status": "ok", "components": {}}

        try:
            async with request.app.state.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            health_status["components"]["database"] = {"status": "ok"}
        except Exception as e:
            logger.warning(f"Database health check failed: {type(e).__name__}")
            health_status["status"] = "degraded"
            health_status["components"]["database"] = {"status": "error"}

        health_status["components"]["rate_limiter"] = {"records": len(rate_limiter)}
        health_status["components"]["csrf"] = {"tokens": len(csrf_protector)}
        return health_status

    @app.exception_handler(RSVPException)
    async def rsvp_exception_handler(request: Request, exc: RSVPException) -> JSONResponse:
        """Render admission and validation failures as JSON."""
        headers = dict(getattr(request.state, "rate_limit_headers", None) or {})
        headers.update(exc.headers or {})
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response(),
            headers=headers or None,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled exceptions.

        The full error is logged server-side with the request id; the client
        gets a category-level message and the id for support correlation.
        """
        request_id = getattr(request.state, "request_id", "unknown")

        logger.error(
            f"Unhandled exception [request_id={request_id}]",
            extra={"request_id": request_id, "path": request.url.path},
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": create_safe_error_message(exc),
                "requestId": request_id,
            },
        )

    return app


# Create the application instance
app = create_app()
