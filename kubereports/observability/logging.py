"""Structured logging configuration using structlog.

Every line is one JSON object on stderr. The cluster name is bound once at
startup so that log shipping from several exporters can be told apart.
"""

from __future__ import annotations

import logging
import sys

import structlog

# Chatty third-party loggers that go through the stdlib logging module.
_QUIET_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3", "aiohttp.access")


def setup_logging(level: str = "info", cluster: str | None = None) -> None:
    """Configure structlog for JSON output to stderr at *level*."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(level=log_level, stream=sys.stderr, format="%(message)s")
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    if cluster:
        structlog.contextvars.bind_contextvars(cluster=cluster)


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]
