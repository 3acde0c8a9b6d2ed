"""Global exception handlers for FastAPI application.

Every error leaves the gateway as an error envelope:
``{"status": "error", "error": {"code", "message", "details"?}, "meta"}``.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from object_gateway.core.exceptions import AppException
from object_gateway.core.schemas.envelope import error_envelope, get_request_id
from object_gateway.infra.storage.exceptions import ErrorCode

logger = logging.getLogger(__name__)


def _retry_after(extra: dict[str, Any]) -> dict[str, str] | None:
    """Retry-After header from a ``retryAfter`` detail such as ``"60s"``."""
    retry_after = extra.get("retryAfter")
    if not retry_after:
        return None
    return {"Retry-After": str(retry_after).removesuffix("s")}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle application exceptions, including normalized storage errors.

    Args:
        request: The FastAPI request object.
        exc: The application exception that was raised.

    Returns:
        JSONResponse with the error envelope.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Application exception occurred",
        extra={
            "request_id": get_request_id(request),
            "path": request.url.path,
            "method": request.method,
            "error_code": exc.code,
            "status_code": exc.status_code,
            "detail": exc.detail,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(request, exc.code, exc.detail, exc.extra),
        headers=_retry_after(exc.extra),
    )


_LOCATIONS = ("query", "body", "path", "header")


def _parameter_name(loc: tuple[Any, ...]) -> str:
    """Dotted parameter path without the leading location segment."""
    return ".".join(str(part) for part in loc if part not in _LOCATIONS) or "request"


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle FastAPI request validation errors as invalid parameters.

    Args:
        request: The FastAPI request object.
        exc: The validation error that was raised.

    Returns:
        JSONResponse with status 400 and code ``VALIDATION_INVALID_PARAM``.
    """
    errors = [
        {
            "parameter": _parameter_name(error["loc"]),
            "location": str(error["loc"][0]) if error["loc"] else None,
            "message": error["msg"],
        }
        for error in exc.errors()
    ]

    logger.warning(
        "Request validation failed",
        extra={
            "request_id": get_request_id(request),
            "path": request.url.path,
            "method": request.method,
            "error_count": len(errors),
            "errors": errors,
        },
    )

    parameter = errors[0]["parameter"] if errors else "request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_envelope(
            request,
            ErrorCode.VALIDATION_INVALID_PARAM,
            f"Parameter '{parameter}' is invalid",
            {"parameter": parameter, "errors": errors},
        ),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle routing errors (unknown route, method not allowed) and other HTTP errors.

    Args:
        request: The FastAPI request object.
        exc: The HTTP exception that was raised.

    Returns:
        JSONResponse with the original status code.
    """
    if exc.status_code >= 500:
        code = ErrorCode.INTERNAL_SERVER_ERROR
        message = "An unexpected error occurred while processing your request"
        details = None
    else:
        code = ErrorCode.VALIDATION_INVALID_PARAM
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message = f"Route {request.method} {request.url.path} not found"
        elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            message = f"Method {request.method} not allowed for {request.url.path}"
        else:
            message = str(exc.detail)
        details = {"method": request.method, "url": str(request.url)}

    logger.info(
        "HTTP exception occurred",
        extra={
            "request_id": get_request_id(request),
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(request, code, message, details),
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions.

    Logs the full traceback and returns a generic 500 error; exception text
    never reaches the client.

    Args:
        request: The FastAPI request object.
        exc: The exception that was raised.

    Returns:
        JSONResponse with code ``INTERNAL_SERVER_ERROR``.
    """
    logger.error(
        "Unexpected exception occurred",
        extra={
            "request_id": get_request_id(request),
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_envelope(
            request,
            ErrorCode.INTERNAL_SERVER_ERROR,
            "An unexpected error occurred while processing your request",
        ),
    )


def configure_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers for the FastAPI application.

    Args:
        app: The FastAPI application instance.

    Example:
        app = FastAPI()
        configure_exception_handlers(app)
    """
    # Application and normalized storage errors
    app.add_exception_handler(AppException, app_exception_handler)

    # FastAPI validation errors
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Unknown routes, wrong methods
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # Catch-all for unexpected exceptions
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers configured")
