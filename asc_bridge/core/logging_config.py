"""Logging setup shared by the entry point and tests."""
import logging
import sys
from typing import TextIO

import structlog


def configure_logging(level: str = "INFO", stream: TextIO = sys.stderr) -> None:
    """
    Send stdlib and structlog output to ``stream``.

    structlog prints to stdout unless configured, and stdout carries the
    MCP protocol, so its events are routed through stdlib logging.

    Args:
        level: Log level name
        stream: Destination for log records
    """
    logging.basicConfig(
        stream=stream,
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
