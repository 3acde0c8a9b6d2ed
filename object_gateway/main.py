"""Main entry point for object-gateway.

Runs the FastAPI application under uvicorn with host and port from
``APP_HOST``/``APP_PORT``. When ``APP_ANNOUNCE_PORT`` is on (the default) the
bound port is printed as ``PORT=<port>`` on stdout before serving, for a
parent process that spawned the gateway and waits to connect to it.
"""

from __future__ import annotations

import sys
from typing import NoReturn


def announce_port(port: int) -> None:
    """Print the port line the parent process waits for."""
    sys.stdout.write(f"PORT={port}\n")
    sys.stdout.flush()


def run() -> NoReturn:
    """Run the FastAPI application server."""
    import uvicorn

    from object_gateway.core.settings import get_app_settings, get_logging_settings

    settings = get_app_settings()
    log_settings = get_logging_settings()

    if settings.announce_port:
        announce_port(settings.port)

    uvicorn.run(
        "object_gateway.app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        access_log=settings.debug,
        log_level=log_settings.level.lower(),
    )
    sys.exit(0)


if __name__ == "__main__":
    run()
