"""
Centralized logging configuration with structured logging support.
"""
import json
import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from adaptive_exam.core.config import settings

# Context variable for correlating all log entries emitted while one adaptive
# session is being driven. Set by AdaptiveSession around start/answer calls.
session_id_context: ContextVar[Optional[str]] = ContextVar("session_id", default=None)


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for production logging.

    Produces structured log entries with consistent fields for log aggregation.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_entry: Dict[str, Any] = {
            "timestamp": timestamp.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        session_id = session_id_context.get()
        if session_id:
            log_entry["session_id"] = session_id

        # Add extra structured fields from record
        if hasattr(record, "bank_id"):
            log_entry["bank_id"] = record.bank_id
        if hasattr(record, "item_id"):
            log_entry["item_id"] = record.item_id
        if hasattr(record, "theta"):
            log_entry["theta"] = record.theta
        if hasattr(record, "sem"):
            log_entry["sem"] = record.sem
        if hasattr(record, "stop_reason"):
            log_entry["stop_reason"] = record.stop_reason

        # Add source location for error-level logs
        if record.levelno >= logging.ERROR:
            log_entry["source"] = f"{record.pathname}:{record.lineno}"

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging() -> None:
    """
    Configure package-wide logging with structured output.

    Configures:
    - Log level from settings
    - JSON formatting for production (structured for log aggregators)
    - Human-readable format for development
    - Session ID correlation via context variables
    """
    log_level_name = getattr(settings, "LOG_LEVEL", "INFO")
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)

    is_production = settings.ENV == "production"

    logging_config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": JSONFormatter,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "json" if is_production else "default",
                "stream": sys.stdout,
            },
        },
        "root": {
            "level": log_level,
            "handlers": ["console"],
        },
        "loggers": {
            "adaptive_exam": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }

    logging.config.dictConfig(logging_config)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
