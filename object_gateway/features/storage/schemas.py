"""Pydantic schemas for the object storage API.

All models serialize in camelCase. Responses are wrapped in
:class:`~object_gateway.core.schemas.envelope.ApiResponse`, except search,
which has its own envelope.
"""

from typing import Any, Literal

from pydantic import Field

from object_gateway.core.schemas.base import CustomBase
from object_gateway.core.schemas.envelope import ResponseMeta

# ============================================================================
# Bucket Schemas
# ============================================================================


class BucketSummary(CustomBase):
    """A bucket visible to the configured credentials."""

    name: str = Field(..., description="Bucket name")
    creation_date: str | None = Field(None, description="When bucket was created (ISO 8601)")


class BucketListData(CustomBase):
    """Response data for listing buckets."""

    buckets: list[BucketSummary] = Field(..., description="List of buckets")
    count: int = Field(..., description="Number of buckets")


# ============================================================================
# Object Schemas
# ============================================================================


class ObjectInfo(CustomBase):
    """One object in a listing."""

    key: str = Field(..., description="Object key")
    name: str = Field(..., description="Last path segment of the key")
    size: int = Field(..., description="Size in bytes")
    last_modified: str = Field(..., description="Last modification time (ISO 8601)")
    etag: str = Field("", description="Entity tag without quotes")
    storage_class: str = Field("STANDARD", description="Storage tier")
    is_folder: bool = Field(False, description="Whether the key ends with the delimiter")
    extension: str = Field("", description="Lower-cased file extension")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "key": "photos/2024/beach.jpg",
                    "name": "beach.jpg",
                    "size": 482133,
                    "lastModified": "2024-06-01T12:00:00.000Z",
                    "etag": "9b2cf535f27731c974343645a3985328",
                    "storageClass": "STANDARD",
                    "isFolder": False,
                    "extension": "jpg",
                }
            ]
        }
    }


class ListPagination(CustomBase):
    """Cursor state of a listing page.

    ``keyCount`` is the number of objects returned after post-filters.
    """

    is_truncated: bool
    max_keys: int
    key_count: int
    prefix: str | None = None
    delimiter: str | None = None
    continuation_token: str | None = None
    next_continuation_token: str | None = None
    common_prefixes: list[str] = Field(default_factory=list)


class ObjectListData(CustomBase):
    """Response data for listing objects."""

    objects: list[ObjectInfo]
    folders: list[str] = Field(..., description="Common prefixes under the requested prefix")
    pagination: ListPagination


class UploadData(CustomBase):
    """Response data for an upload."""

    key: str
    etag: str = Field(..., description="Entity tag returned by the put")
    size: int = Field(..., description="Stored size in bytes")
    content_type: str
    last_modified: str | None = None


class DeleteData(CustomBase):
    """Response data for a single delete."""

    key: str
    deleted: bool = True


class BatchDeleteRequest(CustomBase):
    """Request body for a batch delete.

    ``keys`` is checked by the delete operation itself so that size and
    item errors carry the gateway error codes.
    """

    keys: Any = Field(None, description="Object keys to delete (1-1000)")


class BatchDeleteErrorItem(CustomBase):
    """Per-key failure in a batch delete."""

    key: str
    code: str
    message: str


class BatchDeleteData(CustomBase):
    """Response data for a batch delete; ``errors`` is omitted when empty."""

    deleted_count: int
    deleted: list[str]
    errors: list[BatchDeleteErrorItem] | None = None


class FolderDeleteData(CustomBase):
    """Response data for a folder delete."""

    prefix: str
    total_deleted: int
    batch_count: int


# ============================================================================
# Search Schemas
# ============================================================================


class SearchHitInfo(ObjectInfo):
    """A matching object."""

    match_type: Literal["filename", "path"]


class SearchMeta(CustomBase):
    query: str
    prefix: str | None = None
    total_matches: int = Field(..., description="Matches within the scanned page")
    search_time: float = Field(..., description="Seconds spent searching")


class SearchPagination(CustomBase):
    is_truncated: bool
    max_keys: int
    key_count: int
    next_continuation_token: str | None = None


class SearchResponse(CustomBase):
    """Search envelope.

    Unlike other endpoints, ``data`` is the list of hits itself, with
    ``searchMeta`` and ``pagination`` alongside it.
    """

    status: Literal["ok"] = "ok"
    data: list[SearchHitInfo]
    search_meta: SearchMeta
    pagination: SearchPagination
    meta: ResponseMeta


# ============================================================================
# Presigned URL Schemas
# ============================================================================


class PresignedUrlData(CustomBase):
    """Response data for a presigned download URL."""

    key: str
    url: str
    expires_in: int = Field(..., description="Lifetime in seconds")
    expires_at: str = Field(..., description="Expiry time (ISO 8601)")
