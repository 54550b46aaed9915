"""
Entry point for running the API with uvicorn.

Usage:
    transactions-api            # console script installed with the package
    python -m src.api.server

Exits non-zero when STARTUP_POLICY=fatal and the document store cannot be
reached (uvicorn aborts when application startup fails).
"""
from __future__ import annotations

import uvicorn

from .logging_setup import configure_logging, get_logger
from .main import create_app
from .settings import get_settings

log = get_logger(__name__)


# PUBLIC_INTERFACE
def main() -> None:
    """Configure logging from settings and serve the app until interrupted."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    log.info(
        "server_starting host=%s port=%s backend=%s startup_policy=%s",
        settings.host,
        settings.port,
        settings.persistence_backend,
        settings.startup_policy,
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
