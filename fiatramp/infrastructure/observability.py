"""Structured Logging — JSON formatter, request correlation, and setup.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - request_id present on every record emitted while a request is in flight
    - Extra fields (order_id, quote_id, user_id, error_code, path) surfaced when present
    - JSON format in production, human-readable in development
    - setup_logging is idempotent (one handler, however often it runs)

Design Decisions:
    - stdlib logging + contextvars: request_id follows the request across awaits
    - setup_logging called once on startup via lifespan
"""

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

_EXTRA_FIELDS = (
    "request_id", "order_id", "order_number", "quote_id", "user_id",
    "error_code", "path", "method", "operation",
)
_HANDLER_NAME = "fiatramp"


def new_request_id(incoming: str | None = None) -> str:
    """Use the caller's X-Request-ID when sane, else mint one."""
    if incoming and len(incoming) <= 64 and incoming.isprintable():
        return incoming
    return uuid.uuid4().hex


class RequestContextFilter(logging.Filter):
    """Stamp the current request id onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()
        return True


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val if isinstance(val, (int, float, bool)) else str(val)
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure logging for the application."""
    for existing in list(logging.root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logging.root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.addFilter(RequestContextFilter())
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(request_id)s] — %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
