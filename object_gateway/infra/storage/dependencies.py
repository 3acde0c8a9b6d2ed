"""FastAPI dependency injection for the object store backend.

The backend is a process-wide singleton created lazily and started by the
application lifespan. Routes declare :data:`ObjectStore` to receive it;
when storage is not configured or the client failed to start, the
dependency raises ``AUTH_MISSING_CREDENTIALS`` with HTTP 503 before the
route body runs.

Example:
    ```python
    from object_gateway.infra.storage.dependencies import ObjectStore

    @router.get("/buckets")
    async def list_buckets(store: ObjectStore) -> dict:
        return {"buckets": await store.list_buckets()}
    ```

Tests replace the backend with ``app.dependency_overrides[get_object_store]``.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from object_gateway.core.settings import get_storage_settings
from object_gateway.infra.storage.backends import ObjectStoreBackend, S3Backend
from object_gateway.infra.storage.exceptions import StorageNotConfiguredError

_backend: ObjectStoreBackend | None = None


def get_backend() -> ObjectStoreBackend:
    """Get the singleton backend instance.

    Creates the instance on first call. The backend must be started via
    ``startup()`` before use.
    """
    global _backend
    if _backend is None:
        _backend = S3Backend(get_storage_settings())
    return _backend


def reset_backend() -> None:
    """Reset the singleton instance (for testing only)."""
    global _backend
    _backend = None


def get_object_store() -> ObjectStoreBackend:
    """Dependency returning the backend, ready or not."""
    return get_backend()


async def require_object_store(
    store: Annotated[ObjectStoreBackend, Depends(get_object_store)],
) -> ObjectStoreBackend:
    """Dependency that requires a started backend.

    Raises:
        StorageNotConfiguredError: 503 when the client is not initialized
    """
    if not store.is_ready:
        raise StorageNotConfiguredError
    return store


ObjectStore = Annotated[ObjectStoreBackend, Depends(require_object_store)]
"""Started object store backend; answers 503 when storage is unavailable."""
