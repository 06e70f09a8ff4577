"""Logging configuration helpers using structlog."""

from __future__ import annotations

import logging
from typing import Any, Iterable

import structlog

# Third-party loggers that are chatty at INFO during model loads and HTTP calls.
NOISY_LOGGERS = ("ultralytics", "httpx", "httpcore", "openai")


def setup_logging(level: str = "INFO", quiet: Iterable[str] = NOISY_LOGGERS) -> None:
    """Initialise structlog on top of stdlib logging.

    Worker threads log concurrently, so every event carries the thread name.
    """

    logging.basicConfig(level=level.upper(), format="%(message)s")
    for name in quiet:
        logging.getLogger(name).setLevel(max(logging.WARNING, logging.getLogger().level))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.CallsiteParameterAdder(
                {structlog.processors.CallsiteParameter.THREAD_NAME}
            ),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, **kwargs: Any) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name`` and any extra context."""

    logger = structlog.get_logger(name)
    if kwargs:
        logger = logger.bind(**kwargs)
    return logger


__all__ = ["NOISY_LOGGERS", "setup_logging", "get_logger"]
