"""Logging for repoflow: structlog events and stdlib records share one handler.

Application code logs snake_case events with key/value context through
structlog. uvicorn and httpx log through the standard library; their records
go through the same ``ProcessorFormatter``, so a process emits one format.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable, TextIO

import structlog

_RENDERERS: dict[str, Callable[[], structlog.types.Processor]] = {
    "json": structlog.processors.JSONRenderer,
    "console": structlog.dev.ConsoleRenderer,
}

# One line per request from the HTTP client; GitHub pagination makes these noisy.
QUIET_LOGGERS = ("httpx", "httpcore")


def _pre_chain(log_format: str) -> list[structlog.types.Processor]:
    """Processors shared by structlog events and foreign stdlib records."""
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if log_format == "json":
        # ConsoleRenderer formats exceptions itself.
        processors.append(structlog.processors.format_exc_info)
    return processors


def build_formatter(log_format: str = "json") -> structlog.stdlib.ProcessorFormatter:
    """Formatter rendering every record as *log_format* ("json" or "console")."""
    try:
        renderer = _RENDERERS[log_format]()
    except KeyError:
        raise ValueError(
            f"unknown log format {log_format!r}, expected one of {sorted(_RENDERERS)}"
        ) from None
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_pre_chain(log_format),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    stream: TextIO | None = None,
) -> None:
    """Configure structlog and route stdlib logging through the same handler.

    Args:
        level: Root level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: "json" for production, "console" for development.
        stream: Destination, stderr by default.

    Raises:
        ValueError: for an unknown *log_format*. Nothing is reconfigured then.
    """
    formatter = build_formatter(log_format)
    root_level = logging.getLevelName(level.upper())
    if not isinstance(root_level, int):
        root_level = logging.INFO

    structlog.configure(
        processors=[
            *_pre_chain(log_format),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(root_level)

    # Propagated records skip the root level check, so cap these explicitly.
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root_level))


def get_logger(name: str, **context) -> structlog.stdlib.BoundLogger:
    """Named logger with *context* bound to every event it emits.

    Binding materialises the logger, so call this after :func:`setup_logging`
    (e.g. in a constructor) rather than at import time.
    """
    return structlog.get_logger(name).bind(**context)
