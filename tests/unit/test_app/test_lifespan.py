"""Tests for application startup and shutdown."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from object_gateway.app.lifespan import lifespan, shutdown_storage, startup_storage
from object_gateway.core.settings import StorageSettings
from object_gateway.infra.storage.exceptions import GatewayError, normalize_error


def _configured(**overrides) -> StorageSettings:
    return StorageSettings(
        _env_file=None,
        enabled=True,
        access_key="AKIA",
        secret_key="secret",
        **overrides,
    )


class TestStartupStorage:
    """Tests for object store startup."""

    async def test_unconfigured_storage_is_skipped(self):
        with patch("object_gateway.app.lifespan.get_backend") as get_backend:
            ready = await startup_storage(StorageSettings(_env_file=None))

        assert ready is False
        get_backend.assert_not_called()

    async def test_configured_storage_starts_backend(self):
        backend = MagicMock(startup=AsyncMock())
        with patch("object_gateway.app.lifespan.get_backend", return_value=backend):
            ready = await startup_storage(_configured())

        assert ready is True
        backend.startup.assert_awaited_once()

    async def test_failure_degrades_by_default(self):
        error = GatewayError(normalize_error("EndpointConnectionError"))
        backend = MagicMock(startup=AsyncMock(side_effect=error))
        with patch("object_gateway.app.lifespan.get_backend", return_value=backend):
            ready = await startup_storage(_configured())

        assert ready is False

    async def test_failure_is_fatal_when_required(self):
        error = GatewayError(normalize_error("InvalidAccessKeyId"))
        backend = MagicMock(startup=AsyncMock(side_effect=error))
        with patch("object_gateway.app.lifespan.get_backend", return_value=backend):
            with pytest.raises(GatewayError):
                await startup_storage(_configured(startup_require_storage=True))


async def test_shutdown_only_closes_started_backend():
    backend = MagicMock(is_ready=False, shutdown=AsyncMock())
    with patch("object_gateway.app.lifespan.get_backend", return_value=backend):
        await shutdown_storage()

    backend.shutdown.assert_not_awaited()

    backend.is_ready = True
    with patch("object_gateway.app.lifespan.get_backend", return_value=backend):
        await shutdown_storage()

    backend.shutdown.assert_awaited_once()


async def test_lifespan_records_storage_state():
    app = MagicMock()
    with (
        patch("object_gateway.app.lifespan.setup_logging") as setup_logging,
        patch("object_gateway.app.lifespan.startup_storage", AsyncMock(return_value=False)),
        patch("object_gateway.app.lifespan.shutdown_storage", AsyncMock()) as shutdown,
    ):
        async with lifespan(app):
            assert app.state.storage_ready is False

    setup_logging.assert_called_once()
    shutdown.assert_awaited_once()
