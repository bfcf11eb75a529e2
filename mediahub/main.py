"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mediahub.api import activity, dashboard
from mediahub.core.cache import CacheService
from mediahub.core.clock import MonotonicClock
from mediahub.core.config import settings
from mediahub.core.logging_config import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build process-wide components once and tear them down on shutdown."""
    app.state.cache = CacheService(
        default_ttl=settings.CACHE_DEFAULT_TTL,
        max_entries=settings.CACHE_MAX_ENTRIES,
        enabled=settings.CACHE_ENABLED,
    )
    app.state.clock = MonotonicClock()
    logger.info(
        "%s %s started (cache %s)",
        settings.APP_NAME,
        settings.APP_VERSION,
        "enabled" if settings.CACHE_ENABLED else "disabled",
    )
    try:
        yield
    finally:
        app.state.cache.clear()
        logger.info("%s stopped", settings.APP_NAME)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        docs_url=f"{settings.API_PREFIX}/docs",
        redoc_url=f"{settings.API_PREFIX}/redoc",
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(activity.router, prefix=settings.API_PREFIX)
    app.include_router(dashboard.router, prefix=settings.API_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict:
        """Health check endpoint."""
        return {
            "status": "ok",
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    return app


app = create_app()
