"""
Module: logger.py
Description: Structured logging configuration for webhook redelivery.

Configures structlog for JSON output on stdout so that runs under
GitHub Actions, cron or Lambda produce the same machine-readable lines.

Key Components:
- JSON output with timestamp and log level processors
- Level filtering driven by the log_level setting
- get_logger() helper function

Dependencies: structlog, logging, datetime
"""

import logging
import sys
from datetime import datetime, timezone

import structlog


def _add_timestamp(logger, method_name, event_dict):
    """
    Add ISO 8601 timestamp to log entries.

    Args:
        logger: Logger instance
        method_name: Log method name (info, error, etc.)
        event_dict: Current log event dictionary

    Returns:
        Updated event dictionary with timestamp
    """
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _add_log_level(logger, method_name, event_dict):
    """Add log level to event dictionary."""
    event_dict["level"] = method_name.upper()
    return event_dict


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure structlog processors and the minimum emitted level.

    Safe to call more than once; the last call wins.

    Args:
        log_level: Name of the minimum level (DEBUG, INFO, ...)
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            _add_timestamp,
            _add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.WriteLoggerFactory(file=sys.stdout),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )


configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Redelivering webhook delivery 42 for webhook 7", webhook_id=7)
    """
    return structlog.get_logger(name)
