"""Object store backend protocol and normalized data structures.

This module defines:
- Protocol interface the gateway engines depend on
- Normalized, provider-independent data structures returned by backends
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from datetime import datetime

DEFAULT_DELIMITER = "/"
DEFAULT_STORAGE_CLASS = "STANDARD"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

# ============================================================================
# Normalized Data Structures
# ============================================================================


@dataclass(frozen=True)
class StoredObject:
    """One object as reported by a listing.

    Attributes:
        key: Object key, unique within its bucket
        size: Object size in bytes
        last_modified: Last modification timestamp
        etag: Entity tag with surrounding quotes removed
        storage_class: Storage tier (e.g., STANDARD)
    """

    key: str
    size: int
    last_modified: datetime | None
    etag: str = ""
    storage_class: str = DEFAULT_STORAGE_CLASS

    @property
    def name(self) -> str:
        """Last path segment of the key."""
        return self.key.rstrip(DEFAULT_DELIMITER).rsplit(DEFAULT_DELIMITER, 1)[-1]

    @property
    def is_folder(self) -> bool:
        """Whether the key is a folder placeholder (ends with the delimiter)."""
        return self.key.endswith(DEFAULT_DELIMITER)

    @property
    def extension(self) -> str:
        """Lower-cased file extension without the dot, empty when there is none."""
        if self.is_folder:
            return ""
        stem, dot, suffix = self.name.rpartition(".")
        if not dot or not stem:
            return ""
        return suffix.lower()


@dataclass(frozen=True)
class BucketInfo:
    """Information about a storage bucket.

    Attributes:
        name: Bucket name
        creation_date: When bucket was created
    """

    name: str
    creation_date: datetime | None


@dataclass(frozen=True)
class ListPage:
    """One page of a cursor-based listing.

    The continuation token is only valid for the prefix and delimiter it
    was issued under.
    """

    objects: list[StoredObject]
    common_prefixes: list[str]
    is_truncated: bool
    max_keys: int
    key_count: int
    prefix: str | None = None
    delimiter: str | None = None
    continuation_token: str | None = None
    next_continuation_token: str | None = None


@dataclass(frozen=True)
class ObjectHead:
    """Metadata returned by a HEAD request."""

    key: str
    size: int
    content_type: str
    last_modified: datetime | None
    etag: str
    storage_class: str = DEFAULT_STORAGE_CLASS


@dataclass(frozen=True)
class PutResult:
    """Acknowledgment of a completed put."""

    key: str
    etag: str


@dataclass(frozen=True)
class DeleteError:
    """Per-key failure reported by a bulk delete."""

    key: str
    code: str
    message: str


@dataclass(frozen=True)
class DeleteOutcome:
    """Result of one bulk delete call."""

    deleted: list[str] = field(default_factory=list)
    errors: list[DeleteError] = field(default_factory=list)


class ByteSource(Protocol):
    """Streaming response body returned by the store client."""

    def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        """Yield the body in chunks of at most ``chunk_size`` bytes."""
        ...

    def close(self) -> None:
        """Release the underlying connection without draining it."""
        ...


class ByteReader(Protocol):
    """Async readable byte stream handed to ``put_object``."""

    async def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes; ``b""`` signals end of stream."""
        ...

    def __aiter__(self) -> AsyncIterator[bytes]: ...


@dataclass
class ObjectStream:
    """An opened object download.

    Holds response metadata and the live body. Consumers must call
    :meth:`close` once done, including on cancellation.
    """

    key: str
    body: ByteSource
    content_length: int
    content_type: str = DEFAULT_CONTENT_TYPE
    etag: str = ""
    last_modified: datetime | None = None
    content_range: str | None = None
    storage_class: str = DEFAULT_STORAGE_CLASS

    async def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        """Yield body chunks, one remote read per chunk."""
        async for chunk in self.body.iter_chunks(chunk_size):
            yield chunk

    def close(self) -> None:
        """Close the remote body."""
        self.body.close()


# ============================================================================
# Object Store Backend Protocol
# ============================================================================


class ObjectStoreBackend(Protocol):
    """Protocol interface for object store backends.

    Implementations raise :class:`~object_gateway.infra.storage.exceptions.GatewayError`
    for every failure; provider exceptions never cross this boundary.
    """

    @property
    def is_ready(self) -> bool:
        """Whether the client is initialized and usable."""
        ...

    async def startup(self) -> None:
        """Create the long-lived client."""
        ...

    async def shutdown(self) -> None:
        """Close the client and release connections."""
        ...

    async def list_buckets(self) -> list[BucketInfo]:
        """List buckets visible to the configured credentials."""
        ...

    async def list_objects(
        self,
        bucket: str,
        *,
        prefix: str | None = None,
        delimiter: str | None = None,
        max_keys: int = 1000,
        continuation_token: str | None = None,
    ) -> ListPage:
        """Fetch one listing page."""
        ...

    async def head_object(self, bucket: str, key: str) -> ObjectHead:
        """Fetch object metadata."""
        ...

    async def open_object(
        self,
        bucket: str,
        key: str,
        *,
        byte_range: str | None = None,
    ) -> ObjectStream:
        """Open an object for streaming, optionally restricted to a byte range."""
        ...

    async def put_object(
        self,
        bucket: str,
        key: str,
        body: ByteReader,
        *,
        content_type: str = DEFAULT_CONTENT_TYPE,
        content_length: int | None = None,
    ) -> PutResult:
        """Store an object from a byte stream."""
        ...

    async def delete_object(self, bucket: str, key: str) -> None:
        """Delete one object. Deleting an absent key succeeds."""
        ...

    async def delete_objects(self, bucket: str, keys: list[str]) -> DeleteOutcome:
        """Delete up to 1000 objects in a single call."""
        ...

    async def presign_get(self, bucket: str, key: str, expires_in: int) -> str:
        """Generate a presigned GET URL."""
        ...
