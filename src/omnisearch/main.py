"""FastAPI application entry-point.

Assembles routers, middleware, exception handlers, and lifecycle hooks.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

import structlog
from fastapi import FastAPI
from fastapi.responses import ORJSONResponse

from omnisearch import __version__
from omnisearch.adapters.inbound.rest.routers import (
    budget_router,
    health_router,
    providers_router,
    search_router,
)
from omnisearch.config import Settings, get_settings
from omnisearch.shared.errors import register_exception_handlers
from omnisearch.shared.middleware import RequestContextMiddleware
from omnisearch.shared.observability import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifecycle — startup & shutdown hooks."""
    settings: Settings = app.state.settings
    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.is_production,
    )
    logger.info(
        "application_starting",
        env=settings.app_env.value,
        storage="redis" if settings.uses_redis else "file",
    )

    # Credential scan and backend selection happen once, here
    from omnisearch.dependencies import get_router, shutdown

    get_router(settings)

    yield

    await shutdown()
    logger.info("application_shutdown")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory — creates a fully configured FastAPI instance."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Omnisearch Budget Router",
        description=(
            "Routes web searches across free-tier search APIs in priority order, "
            "tracking quota usage and provider health, with a paid fallback."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # Store settings in app state for lifecycle access
    app.state.settings = settings

    # ── Middleware ───────────────────────────────────────────
    app.add_middleware(RequestContextMiddleware)

    # ── Exception handlers ───────────────────────────────────
    register_exception_handlers(app)

    # ── REST routers (versioned) ─────────────────────────────
    api_v1 = "/api/v1"
    app.include_router(health_router, prefix=api_v1)
    app.include_router(search_router, prefix=api_v1)
    app.include_router(budget_router, prefix=api_v1)
    app.include_router(providers_router, prefix=api_v1)

    @app.get("/")
    async def root():
        return {
            "message": "Omnisearch budget router is running",
            "docs": "/docs",
            "health": "/api/v1/health",
        }

    return app


# Uvicorn entry-point
app = create_app()
