"""Health check and process control endpoints.

Liveness payloads are returned bare, without the response envelope, so
process supervisors can poll them with a plain JSON check. ``POST /shutdown``
lets the process that spawned the gateway stop it gracefully.
"""

import logging
import os
import signal
import time
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from object_gateway.core.schemas.envelope import build_meta, utc_timestamp
from object_gateway.core.settings import get_app_settings
from object_gateway.features.health.schemas import HealthResponse, ShutdownResponse
from object_gateway.infra.storage.backends import ObjectStoreBackend
from object_gateway.infra.storage.dependencies import get_object_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

_STARTED_AT = time.monotonic()

StoreDep = Annotated[ObjectStoreBackend, Depends(get_object_store)]


def _health(store: ObjectStoreBackend) -> HealthResponse:
    app_settings = get_app_settings()
    return HealthResponse(
        service=app_settings.service_name,
        version=app_settings.version,
        timestamp=utc_timestamp(),
        uptime=round(time.monotonic() - _STARTED_AT, 3),
        checks={"storage": store.is_ready},
    )


@router.get("/", response_model=HealthResponse, summary="Service status")
async def root(store: StoreDep) -> HealthResponse:
    """Report that the gateway is running."""
    return _health(store)


@router.get("/health", response_model=HealthResponse, summary="Liveness check")
async def health_check(store: StoreDep) -> HealthResponse:
    """Liveness probe; answers while the process is up, even without storage."""
    return _health(store)


def request_server_exit() -> None:
    """Ask uvicorn to stop the way it does on SIGTERM: finish in-flight requests, run shutdown."""
    logger.info("Stopping server after shutdown request")
    os.kill(os.getpid(), signal.SIGTERM)


@router.post("/shutdown", response_model=ShutdownResponse, summary="Graceful shutdown")
async def shutdown(request: Request, background_tasks: BackgroundTasks) -> ShutdownResponse:
    """Acknowledge, then stop the server once the response has been sent."""
    logger.info("Shutdown request received")
    background_tasks.add_task(request_server_exit)
    return ShutdownResponse(
        message="Server is shutting down gracefully",
        timestamp=utc_timestamp(),
        meta=build_meta(request),
    )
