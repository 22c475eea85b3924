"""
Logging configuration module for structured logging.

This module configures the application's logging system using structlog.
It provides structured logging with JSON output for production and
human-readable console output for development. Request-scoped values such
as the correlation id are merged in from structlog contextvars.
"""

import logging
import sys

import structlog


def configure_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configures the application's logging system.

    Sets up structlog with ISO timestamps, log level, contextvars merging and
    either a JSON or console renderer, routed through the standard library so
    uvicorn and SQLAlchemy logs share the same sink.
    """
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level.upper())

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def mask_email(email: str | None) -> str:
    """Masks the local part of an email address for log output."""
    if not email or "@" not in email:
        return "***"
    local, domain = email.split("@", 1)
    return f"{local[:1]}***@{domain}"


# Create a singleton logger instance for the application
logger = structlog.get_logger()

__all__ = ["configure_logging", "logger", "mask_email"]
