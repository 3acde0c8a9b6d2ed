"""Application lifespan management.

Startup Order:
1. Logging
2. Object store client, only when storage is configured

Shutdown Order: Reverse of startup
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from object_gateway.core.settings import (
    get_app_settings,
    get_logging_settings,
    get_storage_settings,
)
from object_gateway.infra.logging.config import setup_logging
from object_gateway.infra.storage.dependencies import get_backend
from object_gateway.infra.storage.exceptions import GatewayError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

    from object_gateway.core.settings import StorageSettings

logger = logging.getLogger(__name__)


async def startup_storage(storage_settings: StorageSettings) -> bool:
    """Create the object store client.

    Without credentials the gateway still starts and every storage route
    answers 503 ``AUTH_MISSING_CREDENTIALS``.

    Args:
        storage_settings: Storage settings

    Returns:
        Whether the client is ready.

    Raises:
        GatewayError: If the client cannot be created and
            ``startup_require_storage`` is set
    """
    if not storage_settings.is_configured:
        logger.warning(
            "Object storage is not configured, storage endpoints will answer 503",
            extra={"enabled": storage_settings.enabled},
        )
        return False

    try:
        await get_backend().startup()
    except GatewayError as e:
        if storage_settings.startup_require_storage:
            logger.error(
                "Object storage required but unavailable, failing startup",
                extra={"error_code": e.code},
            )
            raise
        logger.warning(
            "Object storage unavailable, continuing in degraded mode",
            extra={"error_code": e.code},
        )
        return False

    logger.info(
        "Object storage initialized",
        extra={"endpoint": storage_settings.endpoint, "region": storage_settings.region},
    )
    return True


async def shutdown_storage() -> None:
    """Close the object store client if it was started."""
    backend = get_backend()
    if backend.is_ready:
        await backend.shutdown()
        logger.info("Object storage shutdown complete")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan events.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    app_settings = get_app_settings()
    storage_settings = get_storage_settings()

    setup_logging(get_logging_settings())

    storage_ready = await startup_storage(storage_settings)
    app.state.storage_ready = storage_ready

    logger.info(
        "Application is LIVE and ready to serve requests on http://%s:%s",
        app_settings.host,
        app_settings.port,
        extra={
            "service": app_settings.service_name,
            "environment": app_settings.environment,
            "version": app_settings.version,
            "storage_enabled": storage_ready,
        },
    )

    yield

    logger.info("Application shutting down", extra={"service": app_settings.service_name})
    await shutdown_storage()
    logger.info("Application shutdown complete")
