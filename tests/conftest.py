"""Pytest configuration and shared fixtures.

Organization:
    - Environment: keeps the suite away from real credentials and stores
    - Settings Fixtures: cache resets between tests
    - Storage Fixtures: in-memory object store standing in for S3
    - Application Fixtures: FastAPI app and HTTP client wired to the fake store

When adding new features:
    1. Add fixtures to the appropriate section below
    2. Keep fixtures composable (fixtures can depend on other fixtures)
    3. Seed data through ``memory_store.put`` rather than the HTTP API when
       the test is not about uploads
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Iterator

import pytest
from httpx import ASGITransport, AsyncClient

from tests.fakes import InMemoryBackend

# Ensure tests run without external infrastructure
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("APP_ANNOUNCE_PORT", "false")
os.environ.setdefault("STORAGE_ENABLED", "false")
os.environ.setdefault("LOG_CONSOLE_ENABLED", "false")


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _reset_cached_state() -> Iterator[None]:
    """Drop cached settings and the backend singleton around every test."""
    from object_gateway.core.settings import clear_all_settings_cache, get_settings
    from object_gateway.infra.storage.dependencies import reset_backend

    def reset() -> None:
        clear_all_settings_cache()
        get_settings.cache_clear()
        reset_backend()

    reset()
    yield
    reset()


# ============================================================================
# Storage Fixtures
# ============================================================================


@pytest.fixture
def memory_store() -> InMemoryBackend:
    """Provide an in-memory object store with an empty ``photos`` bucket.

    Example:
        async def test_listing(memory_store):
            memory_store.put("photos", "a.jpg", b"...")
            page = await memory_store.list_objects("photos")
    """
    return InMemoryBackend(buckets=["photos", "reports"])


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def app(memory_store: InMemoryBackend):
    """Create a FastAPI application whose object store is the in-memory fake.

    Args:
        memory_store: In-memory backend fixture.

    Returns:
        FastAPI application instance.
    """
    from object_gateway.app.main import create_app
    from object_gateway.infra.storage.dependencies import get_object_store

    application = create_app()
    application.dependency_overrides[get_object_store] = lambda: memory_store
    return application


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for testing.

    Unhandled exceptions are rendered by the application's handlers instead
    of being re-raised into the test.

    Args:
        app: FastAPI application fixture.

    Yields:
        Async HTTP client for making test requests.

    Example:
        async def test_health_check(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
