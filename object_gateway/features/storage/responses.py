"""Streaming response for object downloads."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.responses import StreamingResponse

if TYPE_CHECKING:
    from starlette.types import Receive, Scope, Send

    from object_gateway.infra.storage.operations import DownloadHandle


class ObjectDownloadResponse(StreamingResponse):
    """Relay an opened download and release it however the response ends.

    Starlette may cancel a response while it is still sending the headers,
    before the body iterator has started. Closing the handle here, rather
    than inside the iterator, covers that case as well as disconnects
    mid-body.
    """

    def __init__(self, handle: DownloadHandle, chunk_size: int) -> None:
        super().__init__(
            handle.iter_body(chunk_size),
            status_code=handle.status_code,
            headers=handle.headers(),
            media_type=handle.media_type,
        )
        self.handle = handle

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self.handle.close()
