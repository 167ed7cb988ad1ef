"""FastAPI application factory."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from mockjson.api.routes import jobs, live, resources, users
from mockjson.core import timezone  # noqa: F401
from mockjson.core.config import Settings, configure_logging
from mockjson.core.database import setup_db_session
from mockjson.services.generation.orchestrator import FallbackOrchestrator
from mockjson.services.generation.providers import build_default_providers
from mockjson.services.rate_limiter import SlidingWindowRateLimiter
from mockjson.uow import create_uow_factory

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Handles startup and shutdown tasks:
    - Startup: Configure logging, initialize database session factory, build the
      provider fallback chain and the live endpoint burst limiter
    - Shutdown: Dispose of the database engine
    """
    settings = Settings()  # type: ignore[call-arg]

    configure_logging(settings)

    session_factory = setup_db_session(settings.database_url, settings.db_pool_size)
    uow_factory = create_uow_factory(session_factory)

    # Store in app.state for access in routes
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.uow_factory = uow_factory
    app.state.orchestrator = FallbackOrchestrator(build_default_providers(settings))
    app.state.rate_limiter = SlidingWindowRateLimiter(
        limit=settings.live_burst_limit,
        window_seconds=settings.live_burst_window_seconds,
    )

    logger.info(
        "application.startup",
        db_url=settings.database_url.split("@")[-1],
        providers=settings.generation_models_list,
    )

    yield

    logger.info("application.shutdown")
    bind = session_factory.kw.get("bind")
    if bind is not None:
        await bind.dispose()


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = Settings()  # type: ignore[call-arg]

    app = FastAPI(
        title="mockjson API",
        description="AI mock JSON generation and live data hosting",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Dashboard origins only; the public live endpoint sets its own CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(jobs.router)
    app.include_router(resources.router)
    app.include_router(users.router)
    app.include_router(live.router)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            "request.unhandled_error",
            path=request.url.path,
            error=str(exc),
            error_type=type(exc).__name__,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # Health check endpoint with database validation
    @app.get("/health")
    async def health_check(response: Response):
        """Health check endpoint with database connectivity test.

        Returns:
            200: {"status": "healthy"} if database connection succeeds
            503: {"status": "unhealthy", "error": {...}} if database connection fails
        """
        try:
            async with app.state.session_factory() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()

            logger.debug("health_check.success")
            return {"status": "healthy"}

        except Exception as e:
            logger.error(
                "health_check.failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            return {
                "status": "unhealthy",
                "error": {
                    "type": type(e).__name__,
                    "message": str(e),
                },
            }

    return app


# Create app instance for uvicorn
app = create_app()
