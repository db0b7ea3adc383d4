from __future__ import annotations

import logging
import sys
from typing import cast

import structlog

_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: str = "INFO", json: bool = True) -> None:
    """Configure structlog for the notifier service.

    In production (json=True) every record is one JSON line on stdout, which
    Cloud Run forwards to Cloud Logging. In development (json=False) uses
    ConsoleRenderer for human-readable output. uvicorn's and httpx's stdlib
    records go through the same renderer.

    Args:
        level: Standard logging level string, e.g. "DEBUG", "INFO", "WARNING".
        json: If True, render log entries as JSON. If False, use coloured console output.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        exception_processors: list[structlog.types.Processor] = [
            structlog.processors.format_exc_info
        ]
    else:
        renderer = structlog.dev.ConsoleRenderer()
        exception_processors = []

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *exception_processors,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # Request lines from the backend HTTP client are only useful when debugging.
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a named structlog logger.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.

    Returns:
        A structlog BoundLogger bound to *name*.
    """
    return cast(structlog.BoundLogger, structlog.get_logger(name))
