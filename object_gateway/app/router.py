"""Router registry and setup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from object_gateway.core.settings import get_app_settings
from object_gateway.features.health.router import router as health_router
from object_gateway.features.storage.router import router as storage_router

if TYPE_CHECKING:
    from fastapi import FastAPI

    from object_gateway.core.settings.app import AppSettings

logger = logging.getLogger(__name__)


def setup_routers(app: FastAPI, app_settings: AppSettings | None = None) -> None:
    """Register all feature routers with the application.

    Args:
        app: FastAPI application instance.
        app_settings: Optional application settings override.
    """
    app_settings = app_settings or get_app_settings()

    app.include_router(health_router, tags=["health"])
    app.include_router(storage_router, tags=["storage"])

    logger.info(
        "Routers registered",
        extra={"service": app_settings.service_name, "route_count": len(app.routes)},
    )
