# Overview: Application logging configuration (level, dev/prod format, request ids).

"""
Logging for the shopfront backend.

Everything goes through the standard library `logging` module via
`app.logger`, so Flask, SQLAlchemy and our own services share handlers.

FORMAT:
- development/test: one human-readable line per record
- production: one JSON object per line (for log shippers)

REQUEST IDS:
Every record carries `request_id`. Inside a request it comes from
flask.g.request_id (see register_request_id_hooks), otherwise "-".
Services pass extra structured fields with `extra={"fields": {...}}`.
"""

import json
import logging
import uuid

from flask import Flask, g, has_request_context, request

from .time_utils import to_utc_z, utcnow

REQUEST_ID_HEADER = "X-Request-Id"

_RESERVED = {"fields", "request_id"}


class RequestIdFilter(logging.Filter):
    """Attach the current request id to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            rid = None
            if has_request_context():
                rid = getattr(g, "request_id", None)
            record.request_id = rid or "-"
        if not hasattr(record, "fields"):
            record.fields = {}
        return True


class DevFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = getattr(record, "fields", None) or {}
        if fields:
            line += " " + " ".join(f"{k}={v!r}" for k, v in fields.items())
        return line


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": to_utc_z(utcnow()),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }
        for key, value in (getattr(record, "fields", None) or {}).items():
            if key not in _RESERVED:
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(app: Flask) -> None:
    """Install a single handler on app.logger according to LOG_LEVEL / APP_ENV."""
    level = logging.getLevelName(app.config.get("LOG_LEVEL", "INFO"))
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler()
    if app.config.get("APP_ENV") == "production":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            DevFormatter("%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s")
        )
    handler.addFilter(RequestIdFilter())

    app.logger.handlers.clear()
    app.logger.addHandler(handler)
    app.logger.setLevel(level)
    app.logger.propagate = app.config.get("APP_ENV") == "test"


def register_request_id_hooks(app: Flask) -> None:
    @app.before_request
    def assign_request_id():
        incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
        # Accept caller-provided ids only when they look sane
        if incoming and len(incoming) <= 64:
            g.request_id = incoming
        else:
            g.request_id = uuid.uuid4().hex

    @app.after_request
    def echo_request_id(response):
        rid = getattr(g, "request_id", None)
        if rid:
            response.headers[REQUEST_ID_HEADER] = rid
        return response


class ContextLogger(logging.LoggerAdapter):
    """
    LoggerAdapter that stamps request_id and merges keyword fields.

    Usage: ctx.logger.warning("Orders: Order not found", orderId=5)
    """

    def __init__(self, logger: logging.Logger, request_id: str | None = None):
        super().__init__(logger, {"request_id": request_id})

    def _log_with_fields(self, level, msg, args, exc_info=None, **fields):
        if self.isEnabledFor(level):
            extra = {"request_id": self.extra.get("request_id") or "-", "fields": fields}
            self.logger.log(level, msg, *args, exc_info=exc_info, extra=extra)

    def debug(self, msg, *args, **fields):
        self._log_with_fields(logging.DEBUG, msg, args, **fields)

    def info(self, msg, *args, **fields):
        self._log_with_fields(logging.INFO, msg, args, **fields)

    def warning(self, msg, *args, **fields):
        self._log_with_fields(logging.WARNING, msg, args, **fields)

    def error(self, msg, *args, **fields):
        self._log_with_fields(logging.ERROR, msg, args, **fields)

    def exception(self, msg, *args, **fields):
        self._log_with_fields(logging.ERROR, msg, args, exc_info=True, **fields)
