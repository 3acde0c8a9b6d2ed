"""Middleware configuration for the FastAPI application.

The middleware stack includes:
- Request ID: unique id per request, echoed as X-Request-ID
- CORS: cross-origin access for browser-based desktop clients
- Request Logging: start/finish logs with redaction

Example Usage:
    from object_gateway.app.middleware import configure_middleware
    from object_gateway.core.settings import get_settings

    configure_middleware(app, get_settings())
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware

from object_gateway.app.middleware.base import HeaderContextMiddleware
from object_gateway.app.middleware.request_id import RequestIDMiddleware
from object_gateway.app.middleware.request_logging import Redactor, RequestLoggingMiddleware

if TYPE_CHECKING:
    from fastapi import FastAPI

    from object_gateway.core.settings import Settings

logger = logging.getLogger(__name__)

__all__ = [
    "HeaderContextMiddleware",
    "Redactor",
    "RequestIDMiddleware",
    "RequestLoggingMiddleware",
    "configure_middleware",
]


def configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure all middleware for the FastAPI application.

    Middleware is applied in REVERSE order (last added = first to execute).
    Execution order, outermost to innermost:

    1. Request ID Middleware
       - Runs first so every response, including CORS preflights and
         errors, carries X-Request-ID and the envelope can read the id
    2. CORS Middleware
       - Answers preflights and exposes transfer headers (Content-Range,
         ETag, ...) to browser clients
    3. Request Logging Middleware
       - Logs request start/finish; disabled with APP_ENABLE_REQUEST_LOGGING=false

    Args:
        app: FastAPI application instance
        settings: Unified settings instance with all configuration domains
    """
    app_settings = settings.app

    logger.info(
        "Configuring middleware stack",
        extra={
            "environment": app_settings.environment,
            "debug": app_settings.debug,
            "service": app_settings.service_name,
        },
    )

    # 3. Request Logging Middleware
    if app_settings.enable_request_logging:
        app.add_middleware(
            RequestLoggingMiddleware,
            sensitive_fields=app_settings.request_log_redact_fields,
        )
        logger.info("RequestLoggingMiddleware enabled")

    # 2. CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=app_settings.cors_allow_credentials,
        allow_methods=app_settings.cors_allow_methods,
        allow_headers=app_settings.cors_allow_headers,
        expose_headers=app_settings.cors_expose_headers,
        max_age=app_settings.cors_max_age,
    )
    logger.info(f"CORSMiddleware enabled with origins: {app_settings.cors_origins}")

    # 1. Request ID Middleware
    app.add_middleware(RequestIDMiddleware)
    logger.info("RequestIDMiddleware enabled")
