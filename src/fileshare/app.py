"""FastAPI application factory and lifespan management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from starlette.middleware.gzip import GZipMiddleware

from fileshare import __version__
from fileshare.config import Settings
from fileshare.files.registry import SectionRegistry
from fileshare.middleware.auth import BasicAuthMiddleware
from fileshare.middleware.headers import SecurityHeadersMiddleware
from fileshare.middleware.logging import RequestLoggingMiddleware
from fileshare.middleware.ratelimit import RateLimitMiddleware
from fileshare.routes import browse, health

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log startup and shutdown together with the served sections.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    registry: SectionRegistry = app.state.registry
    logger.info("server_startup", host=settings.host, port=settings.port)
    for section in registry.sections:
        logger.info(
            "section_served",
            key=section.key,
            root=str(section.physical_root),
            buckets=[bucket.slug for bucket in section.buckets],
            available=section.physical_root.is_dir(),
        )

    try:
        yield
    finally:
        logger.info("server_shutdown")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Factory function to create configured FastAPI application.

    The section registry is built here, so a misconfigured section table
    stops the server before it accepts any request.

    Args:
        settings: Configuration instance. Creates default if None.

    Returns:
        Configured FastAPI application.

    Raises:
        RegistryError: If the section table is inconsistent.
    """
    if settings is None:
        settings = Settings()

    registry = SectionRegistry.build(settings.root, settings.sections)

    app = FastAPI(
        title="File share",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/v1/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/api/v1/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.registry = registry

    # Added innermost first; the rate limiter runs before authentication.
    app.add_middleware(GZipMiddleware, minimum_size=settings.gzip_minimum_size)
    if settings.auth_users:
        app.add_middleware(
            BasicAuthMiddleware,
            users=settings.auth_users,
            realm=settings.auth_realm,
        )
    if settings.rate_limit_max > 0:
        app.add_middleware(
            RateLimitMiddleware,
            limit=settings.rate_limit_max,
            window=settings.rate_limit_window,
        )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health.router, prefix="/api/v1")
    # Catch-all, must stay last.
    app.include_router(browse.router)

    return app
