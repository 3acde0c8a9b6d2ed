"""Object storage infrastructure for S3-compatible stores.

This package provides:
- A backend protocol plus the aioboto3 implementation
- Error normalization into the gateway's closed error taxonomy
- Operations for listing, streaming transfer, deletes, search and presigned URLs
- FastAPI dependencies for route integration

Quick Start:
    from object_gateway.infra.storage import ObjectStore, list_objects_page

    @router.get("/buckets/{bucket}/objects")
    async def list_objects(bucket: str, store: ObjectStore):
        listing = await list_objects_page(store, bucket, prefix="photos/")
        return listing.to_dict()
"""

from __future__ import annotations

from object_gateway.core.settings.storage import StorageSettings

from .backends import ObjectStoreBackend, S3Backend
from .dependencies import (
    ObjectStore,
    get_backend,
    get_object_store,
    require_object_store,
    reset_backend,
)
from .exceptions import (
    ErrorCode,
    GatewayError,
    NormalizedError,
    StorageNotConfiguredError,
    normalize_error,
)
from .operations import (
    ListFilters,
    RequestBodyReader,
    delete_batch,
    delete_folder,
    delete_object,
    head_headers,
    head_object,
    list_objects_page,
    open_download,
    presign_download,
    resolve_range,
    search_objects,
    upload_stream,
)

__all__ = [
    "ErrorCode",
    "GatewayError",
    "ListFilters",
    "NormalizedError",
    "ObjectStore",
    "ObjectStoreBackend",
    "RequestBodyReader",
    "S3Backend",
    "StorageNotConfiguredError",
    "StorageSettings",
    "delete_batch",
    "delete_folder",
    "delete_object",
    "get_backend",
    "get_object_store",
    "head_headers",
    "head_object",
    "list_objects_page",
    "normalize_error",
    "open_download",
    "presign_download",
    "require_object_store",
    "reset_backend",
    "resolve_range",
    "search_objects",
    "upload_stream",
]
