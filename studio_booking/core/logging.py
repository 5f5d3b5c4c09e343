"""
Logging for the booking engine.

structlog processors sit in front of the standard library, JSON lines are
produced by python-json-logger, and every record carries the request and
actor that caused it so one booking can be followed across services.
"""

import logging
import logging.handlers
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
from pythonjsonlogger import jsonlogger

from studio_booking.config.settings import settings
from studio_booking.utils.datetime_utils import DateTimeHelper

# Set per request by RequestContextMiddleware
request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
actor_id: ContextVar[Optional[str]] = ContextVar("actor_id", default=None)

SERVICE_NAME = "studio-booking"
REDACTED = "[REDACTED]"
SENSITIVE_KEYS = ("password", "token", "secret", "authorization", "cookie", "signature")
QUIET_LIBRARIES = ("uvicorn.access", "httpx")


def add_request_context(logger, method_name, event_dict):
    """structlog processor: request, actor and deployment identity."""
    if request_id.get():
        event_dict["request_id"] = request_id.get()
    if actor_id.get():
        event_dict["actor_id"] = actor_id.get()
    event_dict["timestamp"] = DateTimeHelper.utc_now().isoformat()
    event_dict["service"] = SERVICE_NAME
    event_dict["environment"] = settings.ENVIRONMENT
    return event_dict


def redact_sensitive(logger, method_name, event_dict):
    """structlog processor: mask gateway credentials in nested payloads."""
    _redact(event_dict)
    return event_dict


def _redact(payload: Dict[str, Any]) -> None:
    for key, value in list(payload.items()):
        if any(marker in key.lower() for marker in SENSITIVE_KEYS):
            payload[key] = REDACTED
        elif isinstance(value, dict):
            _redact(value)


class BookingJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["function"] = record.funcName
        log_record["line"] = record.lineno
        log_record.setdefault("request_id", request_id.get())
        log_record.setdefault("actor_id", actor_id.get())
        _redact(log_record)
        if record.exc_info and "exception" not in log_record:
            log_record["exception"] = self.formatException(record.exc_info)


def _configure_structlog() -> None:
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.logging.LOG_FORMAT == "json"
        else structlog.processors.KeyValueRenderer()
    )
    structlog.configure(
        processors=[
            add_request_context,
            redact_sensitive,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def _build_formatter() -> logging.Formatter:
    if settings.logging.LOG_FORMAT == "json":
        return BookingJsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s")
    return logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def _configure_handlers() -> None:
    level = getattr(logging, settings.logging.LOG_LEVEL)
    formatter = _build_formatter()

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)

    if settings.logging.LOG_FILE:
        path = Path(settings.logging.LOG_FILE)
        path.parent.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.TimedRotatingFileHandler(path, when="midnight", backupCount=30)
        rotating.setFormatter(formatter)
        root.addHandler(rotating)

    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.logging.LOG_SQL_QUERIES else logging.WARNING
    )


class ContextLogger:
    """
    Thin wrapper over a stdlib logger that merges bound fields into
    ``extra`` on every call. Services log with
    ``self._logger.info("...", extra={...})``.
    """

    def __init__(self, logger: logging.Logger, **context: Any):
        self.logger = logger
        self._context: Dict[str, Any] = dict(context)

    def bind(self, **context: Any) -> "ContextLogger":
        return ContextLogger(self.logger, **{**self._context, **context})

    def _log(self, level: int, message: str, *args, **kwargs) -> None:
        kwargs["extra"] = {**self._context, **(kwargs.get("extra") or {})}
        self.logger.log(level, message, *args, **kwargs)

    def debug(self, message: str, *args, **kwargs) -> None:
        self._log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs) -> None:
        self._log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs) -> None:
        self._log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs) -> None:
        self._log(logging.ERROR, message, *args, **kwargs)


def get_logger(name: Optional[str] = None) -> ContextLogger:
    return ContextLogger(logging.getLogger(name or "studio_booking"))


def setup_logging() -> None:
    if settings.logging.ENABLE_STRUCTURED_LOGGING:
        _configure_structlog()
    _configure_handlers()

    get_logger(__name__).info(
        "Logging initialized",
        extra={"log_level": settings.logging.LOG_LEVEL, "log_format": settings.logging.LOG_FORMAT},
    )


__all__ = [
    "get_logger",
    "setup_logging",
    "ContextLogger",
    "BookingJsonFormatter",
    "add_request_context",
    "redact_sensitive",
    "request_id",
    "actor_id",
]
