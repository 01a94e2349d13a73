"""
Logging Configuration for gallery-api

Features:
- JSON structured logs via structlog for production
- Pretty console output for development
- Request trace IDs carried through a ContextVar
- Third-party library noise filtering
- Dual streams: INFO/DEBUG -> stdout, ERROR/CRITICAL -> stderr

Architecture:
- structlog: Structured logging with context
- python-json-logger: JSON formatting for stdlib records
- Standard library logging: Backend compatibility
"""

import logging
import logging.config
from contextvars import ContextVar
from typing import Any, Dict, Optional

import structlog
from structlog.types import EventDict
from pythonjsonlogger import jsonlogger


# Per-request trace ID (set by RequestLoggingMiddleware)
_trace_id_context: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)


def set_trace_id(trace_id: str) -> None:
    """Set the trace ID for the current request context."""
    _trace_id_context.set(trace_id)


def get_trace_id() -> Optional[str]:
    """Get the current trace ID, or None outside a request."""
    return _trace_id_context.get()


def clear_trace_id() -> None:
    """Clear the trace ID after request completes."""
    _trace_id_context.set(None)


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add service identity and the trace ID to every structlog event."""
    from gallery_api.core.config import settings

    event_dict["service"] = settings.SERVICE_NAME
    event_dict["version"] = settings.VERSION
    event_dict["environment"] = settings.ENVIRONMENT

    trace_id = get_trace_id()
    if trace_id:
        event_dict["trace_id"] = trace_id

    return event_dict


def configure_structlog(debug: bool = False, json_logs: bool = True) -> None:
    """Configure structlog for structured logging.

    Args:
        debug: Enable debug mode with pretty console output
        json_logs: Use JSON formatting (True) or console (False)
    """
    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
    ]

    if debug and not json_logs:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        ]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter for stdlib records (uvicorn, sqlalchemy, ...)."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get('timestamp'):
            log_record['timestamp'] = self.formatTime(record, self.datefmt)

        log_record['level'] = (log_record.get('level') or record.levelname).upper()
        log_record['logger'] = record.name

        trace_id = get_trace_id()
        if trace_id and 'trace_id' not in log_record:
            log_record['trace_id'] = trace_id


class InfoAndBelowFilter(logging.Filter):
    """Only lets INFO and DEBUG through, so errors are not duplicated on stdout."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= logging.INFO


def _logger(level: str, handlers: Optional[list] = None) -> Dict[str, Any]:
    return {
        "handlers": handlers if handlers is not None else ["stdout", "stderr"],
        "level": level,
        "propagate": False,
    }


def get_logging_config(debug: bool = False, json_logs: bool = True) -> Dict[str, Any]:
    """Generate logging dictConfig.

    Args:
        debug: Enable debug mode
        json_logs: Use JSON formatting

    Returns:
        Dictionary configuration for logging.config.dictConfig
    """
    from gallery_api.core.config import settings

    log_level = settings.LOG_LEVEL.upper()
    formatter = "json" if json_logs else "console"

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "gallery_api.core.logging_config.CustomJsonFormatter",
                "format": "%(timestamp)s %(level)s %(name)s %(message)s",
            },
            "console": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "filters": {
            "info_and_below": {
                "()": "gallery_api.core.logging_config.InfoAndBelowFilter",
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "level": "DEBUG",
                "formatter": formatter,
                "stream": "ext://sys.stdout",
                "filters": ["info_and_below"],
            },
            "stderr": {
                "class": "logging.StreamHandler",
                "level": "ERROR",
                "formatter": formatter,
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "": _logger(log_level),
            "gallery_api": _logger(log_level),
            "uvicorn": _logger("INFO"),
            "uvicorn.error": _logger("INFO", ["stderr"]),
            # Disabled - RequestLoggingMiddleware logs every request
            "uvicorn.access": _logger("CRITICAL", []),
            "fastapi": _logger("INFO"),
            "sqlalchemy.engine": _logger("INFO" if debug else "WARNING"),
            "aiosqlite": _logger("WARNING"),
            "asyncio": _logger("WARNING", ["stderr"]),
            "cloudinary": _logger("WARNING"),
            "urllib3": _logger("WARNING"),
            "httpx": _logger("WARNING"),
            "httpcore": _logger("WARNING"),
        },
    }


def setup_logging(debug: bool = False, json_logs: bool = True) -> None:
    """Initialize the complete logging system.

    Call this once at application startup, before any logger is used.

    Example:
        >>> from gallery_api.core.config import settings
        >>> setup_logging(debug=settings.is_debug_mode, json_logs=settings.use_json_logs)
    """
    logging.config.dictConfig(get_logging_config(debug=debug, json_logs=json_logs))
    configure_structlog(debug=debug, json_logs=json_logs)

    get_logger(__name__).info(
        "logging_system_initialized",
        debug_mode=debug,
        json_logs=json_logs,
        log_level=logging.getLevelName(logging.root.level),
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("gallery_created", gallery_id="abc", image_count=3)
    """
    return structlog.get_logger(name)
