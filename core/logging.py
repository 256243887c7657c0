"""
Logging configuration with JSON formatter for structured logging.
"""
import logging
import sys
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from core.settings import Settings


MASKED_FIELDS = ("phone", "recipient", "sender", "email")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields."""

    def __init__(self, *args: Any, app_name: str = "", environment: str = "", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.app_name = app_name
        self.environment = environment

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any]
    ) -> None:
        """Add custom fields to log record."""
        super().add_fields(log_record, record, message_dict)

        # Add standard fields
        log_record['timestamp'] = self.formatTime(record, self.datefmt)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['module'] = record.module
        log_record['function'] = record.funcName
        log_record['line'] = record.lineno

        # Add application context
        log_record['app_name'] = self.app_name
        log_record['environment'] = self.environment

        for key in MASKED_FIELDS:
            if isinstance(log_record.get(key), str):
                log_record[key] = mask_value(log_record[key])

        # Add exception info if present
        if record.exc_info:
            log_record['exc_info'] = self.formatException(record.exc_info)


def mask_value(value: str, visible: int = 3) -> str:
    """Mask a phone number or email, keeping the last few characters."""
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return f"{'*' * (len(value) - visible)}{value[-visible:]}"


def setup_logging(settings: Settings) -> None:
    """
    Configure application logging with JSON formatter.

    Sets up structured JSON logging for production environments
    and human-readable logging for development.
    """
    # Determine log format based on environment
    use_json = settings.app_env in ["production", "staging"]

    # Create formatter
    if use_json:
        formatter = CustomJsonFormatter(
            fmt='%(timestamp)s %(level)s %(name)s %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
            app_name=settings.app_name,
            environment=settings.app_env,
        )
    else:
        # Human-readable format for development
        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level))

    # Remove existing handlers
    root_logger.handlers.clear()

    # Add console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Configure third-party loggers
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    # SQL echo only when explicitly debugging
    if settings.is_development and settings.debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    logging.info(
        "Logging configured",
        extra={
            "log_level": settings.log_level,
            "environment": settings.app_env,
            "json_logging": use_json
        }
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: The name of the logger (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def log_api_failure(
    logger: logging.Logger,
    scope: str,
    detail: Any,
    *,
    method: Optional[str] = None,
    path: Optional[str] = None,
    **extra_fields: Any,
) -> None:
    """
    Emit one structured warning for a failed API operation.

    Args:
        logger: Logger to write to
        scope: Dotted operation name, e.g. 'reservation.create'
        detail: Exception or short failure code
        method: HTTP method of the request, if any
        path: Request path, if any
        **extra_fields: Additional fields to include in log
    """
    safe_detail = str(detail) if isinstance(detail, Exception) else str(detail or "unknown-error")
    logger.warning(
        "api failure: %s",
        scope,
        extra={
            "scope": scope,
            "method": method,
            "path": path,
            "detail": safe_detail,
            **extra_fields,
        },
    )
