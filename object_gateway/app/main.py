"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from object_gateway.app.exception_handlers import configure_exception_handlers
from object_gateway.app.lifespan import lifespan
from object_gateway.app.middleware import configure_middleware
from object_gateway.app.router import setup_routers
from object_gateway.core.settings import get_settings


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Uses unified settings from core.settings for all configuration.
    Settings are loaded once and cached via LRU cache.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()
    app_settings = settings.app

    app = FastAPI(
        title=app_settings.title,
        description=app_settings.description,
        version=app_settings.version,
        docs_url=app_settings.get_docs_url(),
        redoc_url=None,
        openapi_url=None if app_settings.disable_docs else app_settings.openapi_url,
        debug=app_settings.debug,
        lifespan=lifespan,
    )

    # Configure exception handlers (must be before middleware)
    configure_exception_handlers(app)

    # Configure middleware (centralized configuration with proper ordering)
    configure_middleware(app, settings)

    setup_routers(app, app_settings)

    return app


# Application instance for uvicorn
app = create_app()
