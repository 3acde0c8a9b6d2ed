"""Base middleware class for header-based context propagation.

Middleware built on this base:
1. Determines a per-request value (from a request header or freshly generated)
2. Stores the value in request state
3. Sets the value in the logging context
4. Adds the value to the response headers
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from starlette.datastructures import MutableHeaders

from object_gateway.infra.logging.context import clear_log_context, set_log_context

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send


class HeaderContextMiddleware(ABC):
    """Abstract base for header-based context propagation middleware.

    Subclasses must define:
    - header_name: The HTTP header to read/write (lowercase)
    - state_key: The key to use in scope["state"]
    - log_context_key: The key to use in logging context
    - generate_value(): Method producing a new value

    Optional configuration via class attributes:
    - trust_incoming_header: Reuse the value sent by the client (default: True).
      When False the header is only ever written, never read.
    - should_clear_context_on_finish: Whether to clear log context (default: False)

    Example:
        class MyIDMiddleware(HeaderContextMiddleware):
            header_name = "x-my-id"
            state_key = "my_id"
            log_context_key = "my_id"

            def generate_value(self) -> str:
                return str(uuid.uuid4())
    """

    header_name: str
    state_key: str
    log_context_key: str

    trust_incoming_header: bool = True
    should_clear_context_on_finish: bool = False

    def __init__(self, app: ASGIApp) -> None:
        """Initialize middleware with the wrapped ASGI app.

        Args:
            app: The ASGI application to wrap.
        """
        self.app = app
        # Allow subclasses/tests to override logging helpers
        self._set_log_context = getattr(self, "_set_log_context", set_log_context)
        self._clear_log_context = getattr(self, "_clear_log_context", clear_log_context)

    @abstractmethod
    def generate_value(self) -> str:
        """Generate a new value for the request."""
        ...

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Process ASGI request with header context propagation.

        Args:
            scope: ASGI connection scope.
            receive: ASGI receive channel.
            send: ASGI send channel.
        """
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        value = self._resolve_value(scope)

        state = scope.setdefault("state", {})
        state[self.state_key] = value
        self._set_log_context(**{self.log_context_key: value})

        async def send_with_header(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers[self.header_name] = value
            await send(message)

        try:
            await self.app(scope, receive, send_with_header)
        finally:
            if self.should_clear_context_on_finish:
                self._clear_log_context()

    def _resolve_value(self, scope: Scope) -> str:
        """Pick the value for this request.

        Args:
            scope: ASGI connection scope.

        Returns:
            The client's header value when trusted and present, otherwise a
            newly generated one.
        """
        if self.trust_incoming_header:
            headers = dict(scope.get("headers", []))
            header_bytes = headers.get(self.header_name.encode("latin-1"))
            if header_bytes:
                return header_bytes.decode("latin-1")
        return self.generate_value()


def generate_uuid() -> str:
    """Generate a new UUID v4 string."""
    return str(uuid.uuid4())
