"""
Logging configuration for the CloudCtrl API.

Structured (JSON) or human-readable output, with the request ID and the
caller's user ID attached to every record emitted while serving a request.

Environment:
    LOG_LEVEL   DEBUG | INFO | WARNING | ERROR (default INFO)
    LOG_FORMAT  json | standard (default json)
"""
import json
import logging
import os
import sys
from contextvars import ContextVar
from typing import Optional

# Set by RequestContextMiddleware for the lifetime of one request
request_id_var: ContextVar[Optional[str]] = ContextVar("cloudctrl_request_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("cloudctrl_user_id", default=None)

NO_REQUEST = "-"
ANONYMOUS = "anonymous"

# Provider SDKs and the DB driver are chatty at INFO
QUIET_LOGGERS = ("botocore", "boto3", "urllib3", "sqlalchemy.engine", "uvicorn.access")

STANDARD_FORMAT = "[%(asctime)s] %(levelname)s %(name)s [%(request_id)s %(user_id)s]: %(message)s"


class RequestContextFilter(logging.Filter):
    """Stamps request_id and user_id from the current context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or NO_REQUEST
        record.user_id = user_id_var.get() or ANONYMOUS
        return True


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line:
    {"timestamp", "level", "logger", "request_id", "user_id", "message"[, "exception"]}
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", NO_REQUEST),
            "user_id": getattr(record, "user_id", ANONYMOUS),
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def _build_formatter(format_style: Optional[str]) -> logging.Formatter:
    style = (format_style or os.getenv("LOG_FORMAT") or "json").lower()
    if style == "json":
        return JSONFormatter(datefmt="%Y-%m-%dT%H:%M:%S")
    return logging.Formatter(STANDARD_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(level: Optional[str] = None, format_style: Optional[str] = None) -> None:
    """
    Route every logger through a single stdout handler.

    Args:
        level: Log level name; falls back to LOG_LEVEL, then INFO.
        format_style: "json" or "standard"; falls back to LOG_FORMAT, then "json".
    """
    numeric_level = _resolve_level(level)

    stream = logging.StreamHandler(sys.stdout)
    stream.setLevel(numeric_level)
    stream.addFilter(RequestContextFilter())
    stream.setFormatter(_build_formatter(format_style))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(stream)
    root.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Module logger; call with ``__name__``."""
    return logging.getLogger(name)


def set_request_context(request_id: Optional[str], user_id: Optional[str]) -> None:
    """Bind request and user identity for log records in the current context."""
    request_id_var.set(request_id)
    user_id_var.set(user_id)


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def get_user_id() -> Optional[str]:
    return user_id_var.get()
