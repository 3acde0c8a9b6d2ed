"""Delete operations: single object, explicit key batch, and whole folder.

Batch deletes are bounded by the provider limit of 1000 keys per
DeleteObjects call. Per-key failures reported by the store are aggregated
into the result instead of failing the request; only a failure of the call
itself (or of a listing, for folder deletes) is raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from object_gateway.infra.storage.exceptions import (
    GatewayError,
    invalid_key_error,
    invalid_param_error,
    missing_query_error,
)
from object_gateway.infra.storage.operations.validation import (
    MAX_PAGE_SIZE,
    validate_bucket,
    validate_key,
)

if TYPE_CHECKING:
    from object_gateway.infra.storage.backends.protocol import DeleteError, ObjectStoreBackend

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 1000
# Per-key failures logged for each folder batch
_LOGGED_ERRORS_PER_BATCH = 3


@dataclass
class BatchDeleteResult:
    """Aggregated result of one bulk delete."""

    deleted: list[str] = field(default_factory=list)
    errors: list[DeleteError] = field(default_factory=list)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses; ``errors`` only when present."""
        result: dict[str, Any] = {
            "deletedCount": self.deleted_count,
            "deleted": list(self.deleted),
        }
        if self.errors:
            result["errors"] = [
                {"key": error.key, "code": error.code, "message": error.message}
                for error in self.errors
            ]
        return result


@dataclass
class FolderDeleteResult:
    """Progress of a folder delete.

    ``total_deleted`` only ever grows while the loop runs.
    """

    prefix: str
    total_deleted: int = 0
    batch_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "prefix": self.prefix,
            "totalDeleted": self.total_deleted,
            "batchCount": self.batch_count,
        }


async def delete_object(backend: ObjectStoreBackend, bucket: str, key: str) -> dict[str, Any]:
    """Delete one object. Deleting a key that does not exist also succeeds.

    Returns:
        ``{"key": key, "deleted": True}``
    """
    validate_bucket(bucket)
    validate_key(key)

    await backend.delete_object(bucket, key)
    logger.info("Object deleted", extra={"bucket": bucket, "key": key})

    return {"key": key, "deleted": True}


def validate_batch_keys(keys: Any) -> list[str]:
    """Check a batch delete key list.

    Args:
        keys: Value of the ``keys`` field as sent by the client

    Returns:
        The keys, unchanged

    Raises:
        GatewayError: ``VALIDATION_INVALID_PARAM`` when ``keys`` is not a list
            of 1 to 1000 items, ``VALIDATION_INVALID_KEY`` when an item is
            not a non-empty string
    """
    if not isinstance(keys, list) or not 1 <= len(keys) <= MAX_BATCH_SIZE:
        actual = len(keys) if isinstance(keys, list) else type(keys).__name__
        raise invalid_param_error(
            "keys",
            f"array of 1 to {MAX_BATCH_SIZE} object keys",
            actual,
        )

    for index, key in enumerate(keys):
        if not isinstance(key, str) or not key:
            raise invalid_key_error(
                str(key) if key is not None else "",
                f"item {index} must be a non-empty string",
            )

    return keys


async def delete_batch(backend: ObjectStoreBackend, bucket: str, keys: Any) -> BatchDeleteResult:
    """Delete an explicit list of keys with one DeleteObjects call.

    Args:
        backend: Object store backend
        bucket: Bucket name
        keys: Keys to delete (1-1000 non-empty strings)

    Returns:
        BatchDeleteResult; partial failures are reported in ``errors``

    Raises:
        GatewayError: On invalid input or when the call itself fails
    """
    validate_bucket(bucket)
    keys = validate_batch_keys(keys)

    outcome = await backend.delete_objects(bucket, keys)
    result = BatchDeleteResult(deleted=list(outcome.deleted), errors=list(outcome.errors))

    log = logger.warning if result.errors else logger.info
    log(
        "Batch delete completed",
        extra={
            "bucket": bucket,
            "requested": len(keys),
            "deleted": result.deleted_count,
            "failed": len(result.errors),
        },
    )

    return result


async def delete_folder(
    backend: ObjectStoreBackend,
    bucket: str,
    prefix: str | None,
) -> FolderDeleteResult:
    """Delete every object under a prefix, one listing page at a time.

    Each iteration lists up to 1000 keys without a delimiter, deletes that
    page with a single bulk call, and follows the continuation token until
    the listing is complete. Per-key failures are logged and skipped; a
    failed listing aborts the whole operation.

    Args:
        backend: Object store backend
        bucket: Bucket name
        prefix: Folder prefix, required and non-blank

    Returns:
        FolderDeleteResult with the total deleted and the number of batches

    Raises:
        GatewayError: On a missing prefix or a failed remote call
    """
    validate_bucket(bucket)
    if prefix is None or not prefix.strip():
        raise missing_query_error("prefix")

    result = FolderDeleteResult(prefix=prefix)
    continuation_token: str | None = None

    while True:
        try:
            page = await backend.list_objects(
                bucket,
                prefix=prefix,
                delimiter=None,
                max_keys=MAX_PAGE_SIZE,
                continuation_token=continuation_token,
            )
        except GatewayError as e:
            # Report the failed listing against the folder being deleted
            raise GatewayError.from_exception(e, bucket_name=bucket, object_key=prefix) from e
        keys = [obj.key for obj in page.objects]
        if not keys:
            break

        outcome = await backend.delete_objects(bucket, keys)
        result.total_deleted += len(outcome.deleted)
        result.batch_count += 1

        for error in outcome.errors[:_LOGGED_ERRORS_PER_BATCH]:
            logger.warning(
                "Folder delete could not remove object",
                extra={
                    "bucket": bucket,
                    "key": error.key,
                    "error_code": error.code,
                    "batch": result.batch_count,
                },
            )

        logger.debug(
            "Folder delete batch completed",
            extra={
                "bucket": bucket,
                "prefix": prefix,
                "batch": result.batch_count,
                "deleted": len(outcome.deleted),
                "failed": len(outcome.errors),
            },
        )

        continuation_token = page.next_continuation_token
        if not page.is_truncated or not continuation_token:
            break

    logger.info(
        "Folder deleted",
        extra={
            "bucket": bucket,
            "prefix": prefix,
            "total_deleted": result.total_deleted,
            "batch_count": result.batch_count,
        },
    )

    return result
