"""Logging configuration setup.

Provides production-ready logging configuration using:
- dictConfig for the root logger and filters
- QueueHandler + QueueListener for non-blocking I/O
- ContextInjectingFilter for automatic context propagation
- JSONL format for machine parsing
"""

from __future__ import annotations

import atexit
import logging
import logging.config
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import Queue
from typing import TYPE_CHECKING, Any

from object_gateway.infra.logging.context import ContextInjectingFilter
from object_gateway.infra.logging.formatters import JSONFormatter

if TYPE_CHECKING:
    from object_gateway.core.settings.logs import LoggingSettings

_log_queue: Queue[logging.LogRecord] | None = None
_listener: QueueListener | None = None
_queue_handler: QueueHandler | None = None
_LOGGING_INITIALIZED = False
logger = logging.getLogger(__name__)

TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"
FILE_MAX_BYTES = 10 * 1024 * 1024
FILE_BACKUP_COUNT = 5
STORE_CLIENT_LOGGERS = ("botocore", "aiobotocore", "aioboto3")


def shutdown() -> None:
    """Stop the QueueListener, flushing pending records.

    Registered with ``atexit`` when logging is configured.
    """
    global _log_queue, _listener, _queue_handler

    if _listener is not None:
        _listener.stop()
        _listener = None

    if _queue_handler is not None:
        logging.getLogger().removeHandler(_queue_handler)
        _queue_handler = None

    _log_queue = None


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **configure_kwargs: Any,
) -> None:
    """Ensure logging is configured once across entrypoints.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.
        **configure_kwargs: Explicit overrides for configure_logging().
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    if log_settings is None:
        from object_gateway.core.settings import get_logging_settings

        log_settings = get_logging_settings()

    log_config = {**log_settings.to_logging_kwargs(), **configure_kwargs}
    configure_logging(**log_config)
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    file_path: str | Path | None = None,
    json_logs: bool = True,
    console_enabled: bool = True,
    service_name: str = "object-gateway",
    store_client_level: str = "WARNING",
) -> None:
    """Configure logging with dictConfig and the QueueHandler pattern.

    All handlers run on a QueueListener thread; the root logger only gets a
    single QueueHandler so request tasks never block on I/O.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file_path: Path to log file. None disables file logging.
        json_logs: Enable JSONL structured logging.
        console_enabled: Enable console/stderr logging.
        service_name: Static ``service`` field in JSON records.
        store_client_level: Level for the S3 client library loggers.
    """
    global _log_queue, _listener, _queue_handler

    # Reconfiguration replaces the previous listener
    shutdown()

    logging.captureWarnings(True)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "root": {"level": log_level.upper(), "handlers": []},
            "loggers": {
                "uvicorn.access": {"level": "WARNING"},
                **{name: {"level": store_client_level.upper()} for name in STORE_CLIENT_LOGGERS},
            },
        }
    )

    path = Path(file_path) if file_path else None
    if path:
        path.parent.mkdir(parents=True, exist_ok=True)

    handlers: list[logging.Handler] = []

    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(_build_formatter(json_logs, service_name))
        handlers.append(console_handler)

    if path:
        file_handler = RotatingFileHandler(
            path,
            maxBytes=FILE_MAX_BYTES,
            backupCount=FILE_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(_build_formatter(json_logs, service_name))
        handlers.append(file_handler)

    _log_queue = Queue()
    _queue_handler = QueueHandler(_log_queue)
    _queue_handler.addFilter(ContextInjectingFilter())
    logging.getLogger().addHandler(_queue_handler)

    if handlers:
        _listener = QueueListener(_log_queue, *handlers, respect_handler_level=True)
        _listener.start()
        atexit.register(shutdown)

    logger.debug(
        "Logging configured",
        extra={"log_level": log_level, "json_logs": json_logs, "file_path": str(path) if path else None},
    )


def _build_formatter(json_logs: bool, service_name: str) -> logging.Formatter:
    if json_logs:
        return JSONFormatter(
            fmt_keys={"level": "levelname", "logger": "name", "message": "message"},
            static={"service": service_name},
        )
    return logging.Formatter(fmt=TEXT_FORMAT, datefmt=TEXT_DATEFMT)
