"""Logging configuration with structured JSON or plain text output.

Adds a ContextFilter to inject core fields (service, environment, host,
version, correlation_id) into every record.
"""

import logging
import os
import socket
import sys

from pythonjsonlogger import jsonlogger

from threadscope.utils.correlation import get_correlation_id


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields."""

    def add_fields(
        self, log_record: dict, record: logging.LogRecord, message_dict: dict
    ) -> None:
        """Add custom fields to log record.

        Args:
            log_record: Dictionary to be logged
            record: Original LogRecord
            message_dict: Message dictionary from format string
        """
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        if getattr(record, "correlation_id", None):
            log_record["correlation_id"] = record.correlation_id

        for key in ("service", "environment", "host", "version"):
            if hasattr(record, key):
                log_record[key] = getattr(record, key)


class _ContextFilter(logging.Filter):
    """Inject default context fields into every log record if missing."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self._service = service_name
        self._environment = os.getenv("ENVIRONMENT", "development")
        # Prefer ENV HOSTNAME over socket hostname for consistency in containers
        self._host = os.getenv("HOSTNAME", socket.gethostname())
        self._version = os.getenv("APP_VERSION", None)

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "service"):
            record.service = self._service
        if not hasattr(record, "environment"):
            record.environment = self._environment
        if not hasattr(record, "host"):
            record.host = self._host
        if self._version and not hasattr(record, "version"):
            record.version = self._version
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id()
        return True


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    service_name: str = "threadscope",
) -> None:
    """Setup logging with a console handler.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format - 'json' or 'text'
        service_name: Service name for log labels
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    # Handler-level so records from any logger get the context fields
    console_handler.addFilter(_ContextFilter(service_name))

    if log_format == "json":
        json_formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(logger)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        console_handler.setFormatter(json_formatter)
    else:
        text_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        console_handler.setFormatter(text_formatter)

    root_logger.addHandler(console_handler)

    # Keep HTTP client chatter out of pipeline logs
    for noisy in ("requests", "urllib3"):
        logging.getLogger(noisy).setLevel(max(logging.WARNING, numeric_level))

    root_logger.info(
        "Logging configured",
        extra={
            "level": level,
            "format": log_format,
            "service": service_name,
        },
    )


def get_logger(name: str) -> logging.Logger:
    """Get logger instance for a module.

    Args:
        name: Logger name (usually __name__ from calling module)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
