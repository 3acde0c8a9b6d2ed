"""Request/response logging middleware with sensitive value redaction.

Implemented as pure ASGI so streamed request and response bodies pass
through untouched: bodies are never read or logged, only the request line,
the redacted query string and headers, the response status, the number of
bytes sent, and the duration.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, ClassVar
from urllib.parse import parse_qsl

from object_gateway.infra.logging.context import set_log_context

if TYPE_CHECKING:
    from collections.abc import Iterable

    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)
SLOW_REQUEST_THRESHOLD = 5.0


class Redactor:
    """Replace values of sensitive query parameters and headers.

    Example:
        redactor = Redactor()
        redactor.redact_pairs([("token", "abc"), ("prefix", "photos/")])
        # {"token": "********", "prefix": "photos/"}
    """

    SENSITIVE_FIELDS: ClassVar[set[str]] = {
        "authorization",
        "proxy-authorization",
        "cookie",
        "set-cookie",
        "x-api-key",
        "api_key",
        "apikey",
        "token",
        "access_token",
        "refresh_token",
        "secret",
        "password",
        "access_key",
        "secret_key",
        "x-amz-security-token",
        "x-amz-signature",
        "x-amz-credential",
    }

    def __init__(self, mask: str = "********", custom_fields: Iterable[str] | None = None) -> None:
        """Initialize redactor.

        Args:
            mask: Replacement for redacted values
            custom_fields: Additional sensitive names, matched case-insensitively
        """
        self.mask = mask
        self.sensitive_fields = self.SENSITIVE_FIELDS | {f.lower() for f in custom_fields or ()}

    def is_sensitive(self, name: str) -> bool:
        return name.lower() in self.sensitive_fields

    def redact_pairs(self, pairs: Iterable[tuple[str, str]]) -> dict[str, str]:
        """Build a dict from name/value pairs with sensitive values masked."""
        return {
            name: self.mask if self.is_sensitive(name) else value for name, value in pairs
        }


class RequestLoggingMiddleware:
    """Log the start and end of every HTTP request.

    Attributes:
        redactor: Redactor applied to the query string and headers
        exempt_paths: Paths excluded from logging
        log_level: Level for the start/finish records

    Example:
        app.add_middleware(
            RequestLoggingMiddleware,
            sensitive_fields=["x-session"],
        )
    """

    def __init__(
        self,
        app: ASGIApp,
        redactor: Redactor | None = None,
        exempt_paths: list[str] | None = None,
        log_level: int = logging.INFO,
        sensitive_fields: list[str] | None = None,
    ) -> None:
        """Initialize request logging middleware.

        Args:
            app: The ASGI application
            redactor: Redactor instance (creates default if None)
            exempt_paths: Paths to exclude from logging
            log_level: Logging level for request logs
            sensitive_fields: Additional names to redact
        """
        self.app = app
        self.redactor = redactor or Redactor(custom_fields=sensitive_fields)
        if redactor is not None and sensitive_fields:
            self.redactor.sensitive_fields |= {f.lower() for f in sensitive_fields}
        self.exempt_paths = exempt_paths if exempt_paths is not None else ["/health"]
        self.log_level = log_level

    def _is_exempt(self, path: str) -> bool:
        return any(path == exempt or path.startswith(f"{exempt}/") for exempt in self.exempt_paths)

    @staticmethod
    def _get_client_ip(scope: Scope, headers: dict[str, str]) -> str:
        """Client address, preferring proxy headers."""
        for header in ("x-forwarded-for", "x-real-ip"):
            ip = headers.get(header)
            if ip:
                return ip.split(",")[0].strip()
        client = scope.get("client")
        if client:
            return client[0]
        return "unknown"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Process ASGI request with start/finish logging.

        Args:
            scope: ASGI connection scope.
            receive: ASGI receive channel.
            send: ASGI send channel.
        """
        if scope["type"] != "http" or self._is_exempt(scope.get("path", "")):
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        method = scope.get("method", "")
        path = scope.get("path", "")
        headers = {
            name.decode("latin-1").lower(): value.decode("latin-1")
            for name, value in scope.get("headers", [])
        }
        query_string = scope.get("query_string", b"").decode("latin-1")
        client_ip = self._get_client_ip(scope, headers)
        request_id = scope.get("state", {}).get("request_id")

        set_log_context(method=method, path=path, client_ip=client_ip)

        logger.log(
            self.log_level,
            "HTTP Request",
            extra={
                "event": "request",
                "event_type": "request_start",
                "request_id": request_id,
                "method": method,
                "path": path,
                "query_params": self.redactor.redact_pairs(
                    parse_qsl(query_string, keep_blank_values=True)
                ),
                "headers": self.redactor.redact_pairs(headers.items()),
                "client_ip": client_ip,
                "user_agent": headers.get("user-agent", ""),
                "request_size": headers.get("content-length"),
            },
        )

        response: dict[str, Any] = {"status_code": None, "bytes_sent": 0}

        async def send_with_capture(message: Message) -> None:
            if message["type"] == "http.response.start":
                response["status_code"] = message["status"]
            elif message["type"] == "http.response.body":
                response["bytes_sent"] += len(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, receive, send_with_capture)
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(
                "Request failed",
                extra={
                    "event": "request_error",
                    "event_type": "request_error",
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": round(duration * 1000, 2),
                    "exception_type": type(e).__name__,
                },
                exc_info=True,
            )
            raise

        duration = time.perf_counter() - start_time
        level = logging.WARNING if duration > SLOW_REQUEST_THRESHOLD else self.log_level
        logger.log(
            level,
            "HTTP Response",
            extra={
                "event": "response",
                "event_type": "request_complete",
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": response["status_code"],
                "response_size": response["bytes_sent"],
                "duration_ms": round(duration * 1000, 2),
                "slow_request": duration > SLOW_REQUEST_THRESHOLD,
            },
        )
