"""S3-compatible object store backend.

Implements the ObjectStoreBackend protocol for Cloudflare R2, AWS S3, MinIO
and other S3-compatible services using aioboto3. Every provider exception is
normalized into a GatewayError with bucket/key context before it leaves
this module.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from object_gateway.infra.storage.backends.protocol import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_STORAGE_CLASS,
    BucketInfo,
    DeleteError,
    DeleteOutcome,
    ListPage,
    ObjectHead,
    ObjectStream,
    PutResult,
    StoredObject,
)
from object_gateway.infra.storage.exceptions import (
    GatewayError,
    StorageNotConfiguredError,
    error_identifier,
)

if TYPE_CHECKING:
    from object_gateway.core.settings.storage import StorageSettings
    from object_gateway.infra.storage.backends.protocol import ByteReader

logger = logging.getLogger(__name__)

# Errors raised by aiobotocore itself, not returned by the service
_PROVIDER_ERRORS = (ClientError, BotoCoreError, OSError)


def strip_etag(etag: str | None) -> str:
    """Remove the quotes S3 wraps around ETags."""
    return (etag or "").strip('"')


class S3Backend:
    """S3-compatible object store backend.

    Attributes:
        settings: Storage configuration settings
        is_ready: Whether the client has been created

    Example:
        backend = S3Backend(settings)
        await backend.startup()
        page = await backend.list_objects("photos", prefix="2024/")
        await backend.shutdown()
    """

    def __init__(self, settings: StorageSettings) -> None:
        """Initialize S3 backend.

        Args:
            settings: Storage settings with endpoint and credentials
        """
        self.settings = settings
        self._session = aioboto3.Session()
        self._client: Any = None
        self._client_context: Any = None

    @property
    def is_ready(self) -> bool:
        """Check if backend is initialized and ready."""
        return self._client is not None

    # ========================================================================
    # Lifecycle Management
    # ========================================================================

    async def startup(self) -> None:
        """Create the S3 client and its connection pool."""
        if self._client is not None:
            logger.debug("S3 backend already initialized")
            return

        if not self.settings.is_configured:
            raise StorageNotConfiguredError

        logger.info(
            "Initializing S3 backend",
            extra={"endpoint": self.settings.endpoint, "region": self.settings.region},
        )

        boto_config = Config(
            retries={
                "max_attempts": self.settings.max_attempts,
                "mode": self.settings.retry_mode,
            },
            connect_timeout=self.settings.connect_timeout,
            read_timeout=self.settings.read_timeout,
            max_pool_connections=self.settings.max_pool_connections,
            request_checksum_calculation=self.settings.checksum_calculation,
            # Request bodies are async streams and cannot be hashed up front
            s3={"payload_signing_enabled": False},
            response_checksum_validation=self.settings.checksum_calculation,
        )

        client_context = self._session.client(
            "s3",
            **self.settings.get_client_config(),
            config=boto_config,
        )
        try:
            self._client = await client_context.__aenter__()
        except (*_PROVIDER_ERRORS, ValueError) as e:
            raise self._normalize(e, operation="startup") from e
        self._client_context = client_context

        logger.info("S3 backend initialized successfully")

    async def shutdown(self) -> None:
        """Close the S3 client gracefully."""
        if self._client_context is None:
            logger.debug("S3 backend not initialized, nothing to shutdown")
            return

        logger.info("Shutting down S3 backend")

        try:
            await self._client_context.__aexit__(None, None, None)
        except _PROVIDER_ERRORS as e:
            logger.warning("Error closing S3 client", extra={"error": str(e)})
        finally:
            self._client = None
            self._client_context = None

        logger.info("S3 backend shutdown complete")

    def _ensure_client(self) -> Any:
        """Return the live client or fail with a configuration error."""
        if self._client is None:
            raise StorageNotConfiguredError
        return self._client

    def _normalize(
        self,
        error: BaseException,
        *,
        operation: str,
        bucket: str | None = None,
        key: str | None = None,
    ) -> GatewayError:
        """Normalize a provider error and log the raw details server-side only."""
        gateway_error = GatewayError.from_exception(error, bucket_name=bucket, object_key=key)
        logger.warning(
            f"S3 {operation} failed",
            extra={
                "operation": operation,
                "bucket": bucket,
                "key": key,
                "error_code": gateway_error.code,
                "provider_error": error_identifier(error),
                "provider_message": str(error),
            },
        )
        return gateway_error

    # ========================================================================
    # Read Operations
    # ========================================================================

    async def list_buckets(self) -> list[BucketInfo]:
        """List all buckets visible to the credentials."""
        client = self._ensure_client()
        try:
            response = await client.list_buckets()
        except _PROVIDER_ERRORS as e:
            raise self._normalize(e, operation="list_buckets") from e

        return [
            BucketInfo(name=bucket["Name"], creation_date=bucket.get("CreationDate"))
            for bucket in response.get("Buckets", [])
        ]

    async def list_objects(
        self,
        bucket: str,
        *,
        prefix: str | None = None,
        delimiter: str | None = None,
        max_keys: int = 1000,
        continuation_token: str | None = None,
    ) -> ListPage:
        """Fetch one ListObjectsV2 page.

        Args:
            bucket: Bucket name
            prefix: Only keys starting with this prefix
            delimiter: Fold keys sharing a segment into common prefixes
            max_keys: Page size (at most 1000)
            continuation_token: Cursor from the previous page

        Returns:
            ListPage with objects, common prefixes and cursor state
        """
        client = self._ensure_client()

        params: dict[str, Any] = {"Bucket": bucket, "MaxKeys": max_keys}
        if prefix:
            params["Prefix"] = prefix
        if delimiter:
            params["Delimiter"] = delimiter
        if continuation_token:
            params["ContinuationToken"] = continuation_token

        try:
            response = await client.list_objects_v2(**params)
        except _PROVIDER_ERRORS as e:
            raise self._normalize(e, operation="list_objects", bucket=bucket) from e

        objects = [
            StoredObject(
                key=obj.get("Key", ""),
                size=obj.get("Size", 0),
                last_modified=obj.get("LastModified"),
                etag=strip_etag(obj.get("ETag")),
                storage_class=obj.get("StorageClass") or DEFAULT_STORAGE_CLASS,
            )
            for obj in response.get("Contents", [])
        ]
        common_prefixes = [
            cp["Prefix"] for cp in response.get("CommonPrefixes", []) if cp.get("Prefix")
        ]

        return ListPage(
            objects=objects,
            common_prefixes=common_prefixes,
            is_truncated=response.get("IsTruncated", False),
            max_keys=response.get("MaxKeys", max_keys),
            key_count=response.get("KeyCount", len(objects) + len(common_prefixes)),
            prefix=response.get("Prefix") or prefix,
            delimiter=response.get("Delimiter") or delimiter,
            continuation_token=response.get("ContinuationToken") or continuation_token,
            next_continuation_token=response.get("NextContinuationToken"),
        )

    async def head_object(self, bucket: str, key: str) -> ObjectHead:
        """Fetch object metadata without the body."""
        client = self._ensure_client()
        try:
            response = await client.head_object(Bucket=bucket, Key=key)
        except _PROVIDER_ERRORS as e:
            raise self._normalize(e, operation="head_object", bucket=bucket, key=key) from e

        return ObjectHead(
            key=key,
            size=response.get("ContentLength", 0),
            content_type=response.get("ContentType") or DEFAULT_CONTENT_TYPE,
            last_modified=response.get("LastModified"),
            etag=strip_etag(response.get("ETag")),
            storage_class=response.get("StorageClass") or DEFAULT_STORAGE_CLASS,
        )

    async def open_object(
        self,
        bucket: str,
        key: str,
        *,
        byte_range: str | None = None,
    ) -> ObjectStream:
        """Issue GetObject and return the live body without reading it.

        Args:
            bucket: Bucket name
            key: Object key
            byte_range: HTTP Range value such as ``bytes=0-1023``

        Returns:
            ObjectStream the caller must close
        """
        client = self._ensure_client()

        params: dict[str, Any] = {"Bucket": bucket, "Key": key}
        if byte_range:
            params["Range"] = byte_range

        try:
            response = await client.get_object(**params)
        except _PROVIDER_ERRORS as e:
            raise self._normalize(e, operation="get_object", bucket=bucket, key=key) from e

        return ObjectStream(
            key=key,
            body=response["Body"],
            content_length=response.get("ContentLength", 0),
            content_type=response.get("ContentType") or DEFAULT_CONTENT_TYPE,
            etag=strip_etag(response.get("ETag")),
            last_modified=response.get("LastModified"),
            content_range=response.get("ContentRange"),
            storage_class=response.get("StorageClass") or DEFAULT_STORAGE_CLASS,
        )

    async def presign_get(self, bucket: str, key: str, expires_in: int) -> str:
        """Generate a presigned GetObject URL valid for ``expires_in`` seconds."""
        client = self._ensure_client()
        try:
            return await client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except _PROVIDER_ERRORS as e:
            raise self._normalize(e, operation="presign_get", bucket=bucket, key=key) from e

    # ========================================================================
    # Write Operations
    # ========================================================================

    async def put_object(
        self,
        bucket: str,
        key: str,
        body: ByteReader,
        *,
        content_type: str = DEFAULT_CONTENT_TYPE,
        content_length: int | None = None,
    ) -> PutResult:
        """Store an object from an async byte stream.

        The body is read by the HTTP client as it is sent, so the payload is
        never held in memory as a whole.
        """
        client = self._ensure_client()

        params: dict[str, Any] = {
            "Bucket": bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
        }
        if content_length is not None:
            params["ContentLength"] = content_length

        try:
            response = await client.put_object(**params)
        except _PROVIDER_ERRORS as e:
            raise self._normalize(e, operation="put_object", bucket=bucket, key=key) from e

        return PutResult(key=key, etag=strip_etag(response.get("ETag")))

    async def delete_object(self, bucket: str, key: str) -> None:
        """Delete one object; absent keys are not an error."""
        client = self._ensure_client()
        try:
            await client.delete_object(Bucket=bucket, Key=key)
        except _PROVIDER_ERRORS as e:
            raise self._normalize(e, operation="delete_object", bucket=bucket, key=key) from e

    async def delete_objects(self, bucket: str, keys: list[str]) -> DeleteOutcome:
        """Delete up to 1000 objects with one DeleteObjects call.

        Per-key failures are reported in the outcome rather than raised.
        """
        client = self._ensure_client()
        try:
            response = await client.delete_objects(
                Bucket=bucket,
                Delete={"Objects": [{"Key": key} for key in keys], "Quiet": False},
            )
        except _PROVIDER_ERRORS as e:
            raise self._normalize(e, operation="delete_objects", bucket=bucket) from e

        return DeleteOutcome(
            deleted=[item["Key"] for item in response.get("Deleted", []) if item.get("Key")],
            errors=[
                DeleteError(
                    key=item.get("Key", ""),
                    code=item.get("Code") or "UnknownError",
                    message=item.get("Message") or "Unknown error occurred",
                )
                for item in response.get("Errors", [])
            ],
        )
