"""Custom exception classes for the application."""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """Base application exception.

    All custom exceptions should inherit from this class. Handlers in
    ``object_gateway.app.exception_handlers`` render it as an error envelope.

    Attributes:
        status_code: HTTP status code for the error.
        code: Stable machine-readable error code.
        detail: Human-readable, client-safe error message.
        title: Short, human-readable summary of the status code.
        extra: Additional context-specific information about the error.

    Example:
            raise AppException(
            status_code=404,
            code="OBJECT_NOT_FOUND",
            detail="Object 'a.txt' not found",
            extra={"objectKey": "a.txt"},
        )
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        code: str = "INTERNAL_SERVER_ERROR",
        title: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application exception.

        Args:
            status_code: HTTP status code.
            detail: Human-readable error message.
            code: Machine-readable error code.
            title: Short summary of the problem type.
            extra: Additional context about the error.
        """
        self.status_code = status_code
        self.detail = detail
        self.code = code
        self.title = title or self._default_title(status_code)
        self.extra = extra or {}
        super().__init__(detail)

    @staticmethod
    def _default_title(status_code: int) -> str:
        """Get default title for HTTP status code.

        Args:
            status_code: HTTP status code.

        Returns:
            Human-readable title for the status code.
        """
        titles = {
            400: "Bad Request",
            401: "Unauthorized",
            403: "Forbidden",
            404: "Not Found",
            409: "Conflict",
            413: "Payload Too Large",
            416: "Range Not Satisfiable",
            422: "Unprocessable Entity",
            429: "Too Many Requests",
            500: "Internal Server Error",
            502: "Bad Gateway",
            503: "Service Unavailable",
            504: "Gateway Timeout",
        }
        return titles.get(status_code, "Error")
