"""Logging configuration."""

import logging
import os
import sys

from rich.logging import RichHandler

LOG_LEVEL_ENV = "MONITORHUB_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Chatty third-party loggers
QUIET_LOGGERS = ("uvicorn.access", "grpc", "websockets")


def setup_logging(level: str = "INFO", rich_output: bool | None = None) -> None:
    """Configure the root logger.

    Args:
        level: Log level name.
        rich_output: Use rich formatting; defaults to True on a TTY.
    """
    if rich_output is None:
        rich_output = sys.stderr.isatty()

    if rich_output:
        handler: logging.Handler = RichHandler(rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging_from_env() -> None:
    """Configure logging from ``MONITORHUB_LOG_LEVEL`` (default INFO)."""
    setup_logging(os.environ.get(LOG_LEVEL_ENV, "INFO"))
