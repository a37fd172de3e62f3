"""Logging configuration for pix."""

from __future__ import annotations

import logging

import structlog

# Chatty third-party loggers kept at WARNING unless debugging.
QUIET_LOGGERS = ("python_multipart", "sqlalchemy.engine", "multipart")


def configure_logging(*, debug: bool = False) -> None:
    """Configure stdlib logging and route structlog through it.

    Pipeline modules log through ``logging.getLogger(__name__)`` with a dotted
    event name and the context in ``extra``.
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
