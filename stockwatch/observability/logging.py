"""Structured logging for the service and CLI.

Reconciliation passes bind ``kind`` and ``pass_id`` through contextvars,
so every event logged while a pass is being launched carries them.
"""

import logging
import sys
from typing import TextIO

import structlog


# Standard library loggers of the libraries the service drives
_LIBRARY_LOGGERS = ("apscheduler", "httpx")

_PASS_KEYS = ("kind", "pass_id")


def configure_logging(
    level: int = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Configure structlog and route library logs to the same stream.

    Args:
        level: Minimum level for stockwatch events.
        output: Stream to write to.
        json_format: JSON lines when True, colored console output otherwise.
    """
    renderer: structlog.types.Processor
    if json_format:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=output.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(output)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    for name in _LIBRARY_LOGGERS:
        library_logger = logging.getLogger(name)
        library_logger.handlers = [handler]
        library_logger.propagate = False
        # Request lines from httpx are only wanted when debugging
        if name == "httpx" and level > logging.DEBUG:
            library_logger.setLevel(logging.WARNING)
        else:
            library_logger.setLevel(level)


def bind_pass_context(kind: str, pass_id: str) -> None:
    """Tag subsequent events with the reconciliation pass."""
    structlog.contextvars.bind_contextvars(kind=kind, pass_id=pass_id)


def clear_pass_context() -> None:
    structlog.contextvars.unbind_contextvars(*_PASS_KEYS)
