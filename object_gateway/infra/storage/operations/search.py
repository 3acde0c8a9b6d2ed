"""Substring search over one listing page.

There is no server-side index: each call lists a single page of up to
1000 keys and filters it in memory. ``totalMatches`` therefore counts
matches within that page only; callers page through a large bucket with
``nextContinuationToken``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from object_gateway.infra.storage.backends.protocol import DEFAULT_DELIMITER
from object_gateway.infra.storage.exceptions import missing_query_error
from object_gateway.infra.storage.operations.listing import object_to_dict
from object_gateway.infra.storage.operations.validation import (
    MAX_PAGE_SIZE,
    validate_bucket,
    validate_page_size,
)

if TYPE_CHECKING:
    from object_gateway.infra.storage.backends.protocol import ObjectStoreBackend, StoredObject

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 100

MatchType = Literal["filename", "path"]


def classify_match(key: str, query: str) -> MatchType | None:
    """Decide whether and where a key matches a query, ignoring case.

    Returns:
        ``"filename"`` when the last path segment contains the query,
        ``"path"`` when only the full key does, otherwise None.
    """
    needle = query.lower()
    filename = key.rsplit(DEFAULT_DELIMITER, 1)[-1]
    if needle in filename.lower():
        return "filename"
    if needle in key.lower():
        return "path"
    return None


@dataclass(frozen=True)
class SearchHit:
    """A matching object and where the query matched."""

    obj: StoredObject
    match_type: MatchType

    def to_dict(self) -> dict[str, Any]:
        return {**object_to_dict(self.obj), "matchType": self.match_type}


@dataclass
class SearchResult:
    """Matches found in one listing page."""

    query: str
    prefix: str | None
    hits: list[SearchHit] = field(default_factory=list)
    total_matches: int = 0
    search_time: float = 0.0
    max_keys: int = DEFAULT_SEARCH_LIMIT
    is_truncated: bool = False
    next_continuation_token: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "data": [hit.to_dict() for hit in self.hits],
            "searchMeta": {
                "query": self.query,
                "prefix": self.prefix,
                "totalMatches": self.total_matches,
                "searchTime": round(self.search_time, 4),
            },
            "pagination": {
                "isTruncated": self.is_truncated,
                "maxKeys": self.max_keys,
                "keyCount": len(self.hits),
                "nextContinuationToken": self.next_continuation_token,
            },
        }


async def search_objects(
    backend: ObjectStoreBackend,
    bucket: str,
    query: str | None,
    *,
    prefix: str | None = None,
    max_keys: int = DEFAULT_SEARCH_LIMIT,
    continuation_token: str | None = None,
) -> SearchResult:
    """Search one page of keys for a case-insensitive substring.

    Args:
        backend: Object store backend
        bucket: Bucket name
        query: Search text, required and non-blank
        prefix: Restrict the scanned page to keys under this prefix
        max_keys: Maximum number of hits returned, 1-1000
        continuation_token: Cursor of the page to scan

    Returns:
        SearchResult with hits truncated to ``max_keys``

    Raises:
        GatewayError: On a missing query, invalid parameters or store failures
    """
    if query is None or not query.strip():
        raise missing_query_error("q")
    validate_bucket(bucket)
    validate_page_size(max_keys)

    started = time.perf_counter()
    page = await backend.list_objects(
        bucket,
        prefix=prefix or None,
        delimiter=None,
        max_keys=MAX_PAGE_SIZE,
        continuation_token=continuation_token or None,
    )

    hits: list[SearchHit] = []
    for obj in page.objects:
        match_type = classify_match(obj.key, query)
        if match_type is not None:
            hits.append(SearchHit(obj=obj, match_type=match_type))

    result = SearchResult(
        query=query,
        prefix=prefix or None,
        hits=hits[:max_keys],
        total_matches=len(hits),
        search_time=time.perf_counter() - started,
        max_keys=max_keys,
        is_truncated=page.is_truncated,
        next_continuation_token=page.next_continuation_token,
    )

    logger.debug(
        "Search completed",
        extra={
            "bucket": bucket,
            "scanned": len(page.objects),
            "matches": result.total_matches,
            "returned": len(result.hits),
        },
    )

    return result
