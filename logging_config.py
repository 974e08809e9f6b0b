"""
Structured logging configuration.

- JSON lines in production, readable text in development
- Per-request id plus the acting account on every record
- Access log line per API request
"""

from __future__ import annotations

import json
import logging
import time
import uuid

from flask import Flask, g, has_request_context, request

QUIET_LOGGERS = ("werkzeug", "apscheduler", "urllib3")


class RequestContextFilter(logging.Filter):
    """Stamp request_id and actor onto records emitted inside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            if not hasattr(record, "request_id"):
                record.request_id = getattr(g, "request_id", "-")
            if not hasattr(record, "actor"):
                record.actor = _actor()
        else:
            record.request_id = getattr(record, "request_id", "-")
            record.actor = getattr(record, "actor", "system")
        return True


class JSONFormatter(logging.Formatter):
    """Emit log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
            "actor": getattr(record, "actor", "system"),
        }
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _actor() -> str:
    from flask_login import current_user
    try:
        if current_user.is_authenticated:
            return current_user.get_id()
    except AttributeError:
        pass
    return "anonymous"


def init_logging(app: Flask) -> None:
    """Configure the root logger from LOG_FORMAT / LOG_LEVEL."""
    log_format = app.config.get("LOG_FORMAT", "text")
    log_level = app.config.get("LOG_LEVEL", "INFO")

    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.addFilter(RequestContextFilter())
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s (%(actor)s %(request_id)s): %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    @app.before_request
    def _attach_request_id():
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        g.request_start = time.time()

    @app.after_request
    def _log_request(response):
        response.headers["X-Request-ID"] = getattr(g, "request_id", "-")
        if request.path in ("/health", "/live"):
            return response
        duration_ms = (time.time() - getattr(g, "request_start", time.time())) * 1000
        app.logger.info(
            "%s %s %s %.0fms",
            request.method,
            request.path,
            response.status_code,
            duration_ms,
        )
        return response
