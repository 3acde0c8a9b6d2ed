"""Cursor-based object listing.

Drives one ListObjectsV2 page per call. Delimiter folding is done by the
store; the optional date and size filters are applied here, after the page
arrives. A filtered page can therefore be empty while ``isTruncated`` is
still true: callers keep following ``nextContinuationToken`` until the
listing reports it is complete.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from object_gateway.core.schemas.envelope import utc_timestamp
from object_gateway.infra.storage.backends.protocol import DEFAULT_DELIMITER
from object_gateway.infra.storage.operations.validation import (
    MAX_PAGE_SIZE,
    validate_bucket,
    validate_page_size,
)

if TYPE_CHECKING:
    from object_gateway.infra.storage.backends.protocol import (
        ListPage,
        ObjectStoreBackend,
        StoredObject,
    )

logger = logging.getLogger(__name__)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


@dataclass(frozen=True)
class ListFilters:
    """Post-filters applied to a received page.

    ``modified_after`` and ``modified_before`` are exclusive bounds; the
    size bounds are inclusive. Naive datetimes are taken as UTC.
    """

    modified_after: datetime | None = None
    modified_before: datetime | None = None
    min_size: int | None = None
    max_size: int | None = None

    @property
    def is_active(self) -> bool:
        return any(
            value is not None
            for value in (self.modified_after, self.modified_before, self.min_size, self.max_size)
        )

    def matches(self, obj: StoredObject) -> bool:
        """Check whether an object passes every configured filter."""
        if self.modified_after is not None or self.modified_before is not None:
            if obj.last_modified is None:
                return False
            modified = _as_utc(obj.last_modified)
            if self.modified_after is not None and not modified > _as_utc(self.modified_after):
                return False
            if self.modified_before is not None and not modified < _as_utc(self.modified_before):
                return False
        if self.min_size is not None and obj.size < self.min_size:
            return False
        if self.max_size is not None and obj.size > self.max_size:
            return False
        return True


def object_to_dict(obj: StoredObject) -> dict[str, Any]:
    """Serialize a stored object in the client wire format."""
    return {
        "key": obj.key,
        "name": obj.name,
        "size": obj.size,
        "lastModified": utc_timestamp(obj.last_modified) if obj.last_modified else "",
        "etag": obj.etag,
        "storageClass": obj.storage_class,
        "isFolder": obj.is_folder,
        "extension": obj.extension,
    }


@dataclass
class ObjectListing:
    """One filtered listing page."""

    page: ListPage
    objects: list[StoredObject]

    @property
    def folders(self) -> list[str]:
        return list(self.page.common_prefixes)

    def pagination(self) -> dict[str, Any]:
        """Pagination block; ``keyCount`` counts objects after filtering."""
        return {
            "isTruncated": self.page.is_truncated,
            "maxKeys": self.page.max_keys,
            "keyCount": len(self.objects),
            "prefix": self.page.prefix,
            "delimiter": self.page.delimiter,
            "continuationToken": self.page.continuation_token,
            "nextContinuationToken": self.page.next_continuation_token,
            "commonPrefixes": self.folders,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "objects": [object_to_dict(obj) for obj in self.objects],
            "folders": self.folders,
            "pagination": self.pagination(),
        }


async def list_objects_page(
    backend: ObjectStoreBackend,
    bucket: str,
    *,
    prefix: str | None = None,
    delimiter: str | None = DEFAULT_DELIMITER,
    max_keys: int = MAX_PAGE_SIZE,
    continuation_token: str | None = None,
    filters: ListFilters | None = None,
) -> ObjectListing:
    """List one page of objects and folders under a prefix.

    Args:
        backend: Object store backend
        bucket: Bucket name (required)
        prefix: Only keys under this prefix
        delimiter: Folder separator; empty string disables folding
        max_keys: Remote page size, 1-1000
        continuation_token: Cursor returned by the previous page for the
            same prefix and delimiter
        filters: Optional post-filters

    Returns:
        ObjectListing with filtered objects and the page cursor state

    Raises:
        GatewayError: On invalid parameters or store failures
    """
    validate_bucket(bucket)
    validate_page_size(max_keys)

    page = await backend.list_objects(
        bucket,
        prefix=prefix or None,
        delimiter=delimiter or None,
        max_keys=max_keys,
        continuation_token=continuation_token or None,
    )

    objects = page.objects
    if filters is not None and filters.is_active:
        objects = [obj for obj in objects if filters.matches(obj)]

    logger.debug(
        "Listed objects",
        extra={
            "bucket": bucket,
            "prefix": prefix,
            "received": len(page.objects),
            "returned": len(objects),
            "folders": len(page.common_prefixes),
            "is_truncated": page.is_truncated,
        },
    )

    return ObjectListing(page=page, objects=objects)
