"""Request ID middleware for per-request tracking.

This middleware:
1. Generates a new UUID for every request, ignoring any X-Request-ID sent
   by the client so ids stay unique
2. Stores the ID in request.state.request_id, where the response envelope
   builder reads it for ``meta.requestId``
3. Adds the ID to logging context
4. Includes X-Request-ID in response headers
5. Cleans up logging context after request completes
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from object_gateway.app.middleware.base import HeaderContextMiddleware, generate_uuid

if TYPE_CHECKING:
    from starlette.types import ASGIApp


def clear_log_context() -> None:
    """Proxy to logging context's clear_log_context for easy patching."""
    from object_gateway.infra.logging.context import clear_log_context as _clear_log_context

    _clear_log_context()


class RequestIDMiddleware(HeaderContextMiddleware):
    """Assign a unique request ID to every request.

    Usage:
        app = FastAPI()
        app.add_middleware(RequestIDMiddleware)

        @app.get("/")
        async def root(request: Request):
            return {"request_id": request.state.request_id}
    """

    header_name = "x-request-id"
    state_key = "request_id"
    log_context_key = "request_id"
    trust_incoming_header = False
    should_clear_context_on_finish = True

    def __init__(self, app: ASGIApp) -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application to wrap.
        """
        self._clear_log_context = clear_log_context
        super().__init__(app)

    def generate_value(self) -> str:
        """Generate a new UUID v4 for request ID."""
        return generate_uuid()
