"""
Structured logging setup (structlog on top of stdlib logging).

Usage:
    from docimporter.core.logging import get_logger, setup_logging

    setup_logging("DEBUG")      # once, at application startup
    setup_logging_from_settings()   # or from IMPORTER_LOG_* variables
    logger = get_logger(__name__)
    logger.info("Document imported", reference=ref, status="SUCCESS")
"""

from __future__ import annotations

import logging
import sys

import structlog

from docimporter.core.config import ImporterSettings


def setup_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Configure stdlib logging and the structlog processor chain."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named after the calling module."""
    return structlog.get_logger(name)


def setup_logging_from_settings(settings: ImporterSettings | None = None) -> None:
    """Configure logging from ``IMPORTER_LOG_LEVEL`` / ``IMPORTER_LOG_JSON``."""
    settings = settings or ImporterSettings()
    setup_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
