"""Streaming upload and download between HTTP clients and the object store.

Neither direction buffers the payload. Uploads hand the store client a
reader that pulls ASGI body messages only when the outgoing request asks
for more bytes; downloads relay the store's response body one chunk per
send, so a slow client slows the remote read down with it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from email.utils import format_datetime
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from object_gateway.core.schemas.envelope import utc_timestamp
from object_gateway.infra.storage.backends.protocol import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_DELIMITER,
    DEFAULT_STORAGE_CLASS,
)
from object_gateway.infra.storage.operations.validation import (
    validate_bucket,
    validate_key,
    validate_range,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator

    from object_gateway.infra.storage.backends.protocol import (
        ObjectHead,
        ObjectStoreBackend,
        ObjectStream,
    )

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
FALLBACK_FILENAME = "download"
# Punctuation left unescaped in filenames, on top of quote()'s defaults
_FILENAME_SAFE = "!~*'()"


def http_date(moment: datetime | None) -> str | None:
    """Format a datetime as an RFC 7231 HTTP date."""
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return format_datetime(moment.astimezone(UTC), usegmt=True)


def quote_etag(etag: str) -> str:
    """Wrap a bare entity tag in the quotes HTTP expects."""
    return f'"{etag}"' if etag else ""


def content_disposition(key: str) -> str:
    """Build an attachment Content-Disposition for the key's last segment."""
    filename = key.rsplit(DEFAULT_DELIMITER, 1)[-1] or FALLBACK_FILENAME
    return f'attachment; filename="{quote(filename, safe=_FILENAME_SAFE)}"'


def parse_content_length(value: str | None) -> int | None:
    """Read a Content-Length header, ignoring absent or malformed values."""
    if value is None or not value.strip().isdigit():
        return None
    return int(value.strip())


def resolve_range(query_range: str | None, header_range: str | None) -> str | None:
    """Pick the requested byte range; the query parameter wins over the header."""
    requested = query_range or header_range
    if not requested:
        return None
    return validate_range(requested)


# ============================================================================
# Upload
# ============================================================================


class RequestBodyReader:
    """File-like async reader over an incoming request body.

    Wraps an async iterator of body chunks (``Request.stream()``) and serves
    ``read(size)`` calls from it, keeping whatever part of a chunk was not
    consumed for the next call.

    Attributes:
        bytes_read: Number of bytes handed out so far
    """

    def __init__(self, chunks: AsyncIterable[bytes], chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._chunks = aiter(chunks)
        self._chunk_size = chunk_size
        self._pending = b""
        self._exhausted = False
        self.bytes_read = 0

    async def _next_chunk(self) -> bytes:
        while not self._exhausted:
            try:
                chunk = await anext(self._chunks)
            except StopAsyncIteration:
                self._exhausted = True
                break
            if chunk:
                return chunk
        return b""

    async def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes, or everything left when ``size`` is negative.

        Returns:
            The bytes read; ``b""`` once the body is exhausted.
        """
        if size is None or size < 0:
            parts = [self._pending]
            self._pending = b""
            while chunk := await self._next_chunk():
                parts.append(chunk)
            data = b"".join(parts)
        else:
            if not self._pending:
                self._pending = await self._next_chunk()
            data, self._pending = self._pending[:size], self._pending[size:]

        self.bytes_read += len(data)
        return data

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while chunk := await self.read(self._chunk_size):
            yield chunk


@dataclass
class UploadConfirmation:
    """Result of a completed upload, confirmed by a follow-up HEAD."""

    key: str
    etag: str
    size: int
    content_type: str
    last_modified: datetime | None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "key": self.key,
            "etag": self.etag,
            "size": self.size,
            "contentType": self.content_type,
            "lastModified": utc_timestamp(self.last_modified) if self.last_modified else None,
        }


async def upload_stream(
    backend: ObjectStoreBackend,
    bucket: str,
    key: str,
    body: RequestBodyReader,
    *,
    content_type: str | None = None,
    content_length: int | None = None,
) -> UploadConfirmation:
    """Stream a request body into an object, then read back its metadata.

    Args:
        backend: Object store backend
        bucket: Target bucket
        key: Target object key
        body: Reader over the incoming request body
        content_type: MIME type, defaults to application/octet-stream
        content_length: Declared body size when the client sent one

    Returns:
        UploadConfirmation with the put ETag and the HEAD metadata

    Raises:
        GatewayError: On invalid parameters or store failures
    """
    validate_bucket(bucket)
    validate_key(key)
    content_type = content_type or DEFAULT_CONTENT_TYPE

    put_result = await backend.put_object(
        bucket,
        key,
        body,
        content_type=content_type,
        content_length=content_length,
    )
    head = await backend.head_object(bucket, key)

    logger.info(
        "Object uploaded",
        extra={
            "bucket": bucket,
            "key": key,
            "size": head.size,
            "content_type": head.content_type,
            "bytes_streamed": body.bytes_read,
        },
    )

    return UploadConfirmation(
        key=key,
        etag=put_result.etag,
        size=head.size,
        content_type=head.content_type,
        last_modified=head.last_modified,
    )


# ============================================================================
# Download
# ============================================================================


@dataclass
class DownloadHandle:
    """An opened download ready to be relayed to the client.

    The owner must call :meth:`close`, whether or not the body was ever
    iterated. A response cancelled before its first chunk never starts
    :meth:`iter_body`, so that generator cannot be relied on to release
    the remote connection.
    """

    stream: ObjectStream
    ranged: bool = False
    bytes_sent: int = field(default=0, init=False)
    closed: bool = field(default=False, init=False)

    @property
    def status_code(self) -> int:
        """206 when a range was served, 200 otherwise."""
        return 206 if self.ranged and self.stream.content_range else 200

    @property
    def media_type(self) -> str:
        return self.stream.content_type or DEFAULT_CONTENT_TYPE

    def headers(self) -> dict[str, str]:
        """Response headers describing the streamed body."""
        headers = {
            "Content-Type": self.media_type,
            "Content-Length": str(self.stream.content_length),
            "Accept-Ranges": "bytes",
            "Content-Disposition": content_disposition(self.stream.key),
        }
        if self.stream.etag:
            headers["ETag"] = quote_etag(self.stream.etag)
        last_modified = http_date(self.stream.last_modified)
        if last_modified:
            headers["Last-Modified"] = last_modified
        if self.stream.content_range:
            headers["Content-Range"] = self.stream.content_range
        return headers

    async def iter_body(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
        """Yield the body, closing the remote stream when iteration ends or is abandoned."""
        try:
            async for chunk in self.stream.iter_chunks(chunk_size):
                self.bytes_sent += len(chunk)
                yield chunk
        finally:
            self.close()

    def close(self) -> None:
        """Release the remote body. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        self.stream.close()
        logger.debug(
            "Download stream closed",
            extra={"key": self.stream.key, "bytes_sent": self.bytes_sent},
        )


async def open_download(
    backend: ObjectStoreBackend,
    bucket: str,
    key: str,
    *,
    byte_range: str | None = None,
) -> DownloadHandle:
    """Open an object for streaming download.

    Args:
        backend: Object store backend
        bucket: Source bucket
        key: Object key
        byte_range: Already-resolved ``bytes=`` range, see :func:`resolve_range`

    Returns:
        DownloadHandle holding the live remote body

    Raises:
        GatewayError: On invalid parameters or store failures
    """
    validate_bucket(bucket)
    validate_key(key)
    if byte_range:
        byte_range = validate_range(byte_range)

    stream = await backend.open_object(bucket, key, byte_range=byte_range)

    logger.debug(
        "Download opened",
        extra={
            "bucket": bucket,
            "key": key,
            "range": byte_range,
            "content_length": stream.content_length,
        },
    )

    return DownloadHandle(stream=stream, ranged=bool(byte_range))


async def head_object(backend: ObjectStoreBackend, bucket: str, key: str) -> ObjectHead:
    """Fetch object metadata for a HEAD request."""
    validate_bucket(bucket)
    validate_key(key)
    return await backend.head_object(bucket, key)


def head_headers(head: ObjectHead) -> dict[str, str]:
    """Response headers for a HEAD request."""
    headers = {
        "Content-Type": head.content_type or DEFAULT_CONTENT_TYPE,
        "Content-Length": str(head.size),
        "Accept-Ranges": "bytes",
        "X-Amz-Storage-Class": head.storage_class or DEFAULT_STORAGE_CLASS,
    }
    if head.etag:
        headers["ETag"] = quote_etag(head.etag)
    last_modified = http_date(head.last_modified)
    if last_modified:
        headers["Last-Modified"] = last_modified
    return headers
