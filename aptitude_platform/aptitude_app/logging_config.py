"""Application logging configuration.

Every record is emitted as one JSON line tagged with the request id, route
and, on authenticated routes, the acting user. Records from the answer
audit logger keep their structured ``audit`` payload so fallbacks can be
grepped out of the stream without parsing the message text.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any
from uuid import uuid4

from flask import g, has_request_context, request
from flask_jwt_extended import get_jwt_identity

AUDIT_LOGGER_NAME = "aptitude_app.audit"
QUIET_LOGGERS = ("urllib3", "werkzeug")


def _current_identity() -> str:
    try:
        identity = get_jwt_identity()
    except RuntimeError:
        return "-"
    return str(identity) if identity is not None else "-"


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.request_id = getattr(g, "request_id", "n/a")
            record.path = request.path
            record.method = request.method
            record.user_id = _current_identity()
        else:
            record.request_id = "-"
            record.path = "-"
            record.method = "-"
            record.user_id = "-"
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base: dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "request_id": getattr(record, "request_id", "-"),
            "path": getattr(record, "path", "-"),
            "method": getattr(record, "method", "-"),
            "user_id": getattr(record, "user_id", "-"),
        }
        audit = getattr(record, "audit", None)
        if audit is not None:
            base["audit"] = audit
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False, default=str)


def configure_logging(app) -> None:
    level = app.config.get("LOG_LEVEL", "INFO").upper()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestContextFilter())
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root.level))
    # Audit entries stay visible whatever LOG_LEVEL says.
    logging.getLogger(AUDIT_LOGGER_NAME).setLevel(logging.WARNING)


def assign_request_id() -> str:
    req_id = request.headers.get("X-Request-ID") if has_request_context() else None
    if not req_id:
        req_id = uuid4().hex
    g.request_id = req_id
    return req_id
