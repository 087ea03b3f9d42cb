"""
Structured logging utilities for the CRD extractor.

This module provides correlation ID tracking per extraction run and
structured log formatting for machine-readable output.
"""

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime

# Context variable for tracking the current run across worker threads
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

# Extra attributes copied into the JSON payload when present on a record
STRUCTURED_FIELDS = (
    "crd_name",
    "operation",
    "duration",
    "error_type",
    "path",
    "completed",
    "total",
    "attempt",
    "exit_status",
)


class CorrelationIDFilter(logging.Filter):
    """Logging filter that adds correlation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Add correlation ID to the log record.

        Args:
            record: The log record to process

        Returns:
            True to allow the record to be processed
        """
        current_correlation_id = correlation_id.get()
        if not current_correlation_id:
            current_correlation_id = generate_correlation_id()
            correlation_id.set(current_correlation_id)

        record.correlation_id = current_correlation_id
        return True


class StructuredFormatter(logging.Formatter):
    """
    Structured JSON formatter for logs with correlation ID support.

    Formats log records as one JSON object per line.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format the log record as structured JSON.

        Args:
            record: The log record to format

        Returns:
            JSON-formatted log message
        """
        log_data = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", ""),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for field in STRUCTURED_FIELDS:
            if hasattr(record, field):
                value = getattr(record, field)
                log_data[field] = str(value) if field == "path" else value

        return json.dumps(log_data)


def generate_correlation_id() -> str:
    """
    Generate a new correlation ID.

    Returns:
        Unique correlation ID string
    """
    return str(uuid.uuid4())[:8]


def set_correlation_id(corr_id: str) -> str:
    """Set the correlation ID for the current context."""
    correlation_id.set(corr_id)
    return corr_id


def get_correlation_id() -> str:
    """Get the current correlation ID, or empty string if none set."""
    return correlation_id.get("")


def setup_structured_logging(
    log_level: str = "INFO",
    enable_json_formatting: bool = False,
    correlation_id_enabled: bool = True,
) -> None:
    """
    Set up logging for the extractor.

    Log records go to stderr so the report on stdout stays clean.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        enable_json_formatting: Whether to use JSON formatting
        correlation_id_enabled: Whether to enable correlation ID tracking
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()

    if enable_json_formatting:
        formatter: logging.Formatter = StructuredFormatter()
    elif correlation_id_enabled:
        formatter = logging.Formatter(
            "%(asctime)s - %(correlation_id)s - %(name)s - %(levelname)s - %(message)s"
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)

    if correlation_id_enabled:
        handler.addFilter(CorrelationIDFilter())

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Set specific logger levels for third-party libraries
    logging.getLogger("kubernetes").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
