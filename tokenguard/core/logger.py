"""JSON logging for token lifecycle events (issue, rotation, reuse)."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import IO, Any

from flask import Flask, has_request_context, request

LOGGER_NAME = "tokenguard"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")

# Record attributes rendered when set; the service passes the last two via ``extra=``.
CONTEXT_KEYS = ("request_id", "user_id", "token_id")


class JSONFormatter(logging.Formatter):
    """Render a record as one JSON object, stamped with its creation time."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, UTC).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def incoming_request_id() -> str | None:
    """Return the correlation id sent with the current Flask request, if any."""
    if not has_request_context():
        return None
    for header in CORRELATION_HEADERS:
        value = request.headers.get(header)
        if value:
            return value
    return None


class CorrelationFilter(logging.Filter):
    """Tag records emitted while serving a request with the caller's correlation id."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = incoming_request_id()
        return True


class TokenLogHandler(logging.StreamHandler):
    """Stream handler owned by :func:`configure_logging`."""


def configure_logging(
    level: str | int = "INFO", stream: IO[str] | None = None
) -> TokenLogHandler:
    """
    Install the JSON handler on the ``tokenguard`` logger.

    A handler from a previous call is replaced; other handlers are left alone
    and records keep propagating to the root logger.

    :param level: Level name or number for the ``tokenguard`` logger.
    :param stream: Output stream, ``sys.stdout`` by default.
    :returns: The installed handler.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for existing in [h for h in logger.handlers if isinstance(h, TokenLogHandler)]:
        logger.removeHandler(existing)

    handler = TokenLogHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(CorrelationFilter())
    logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    return handler


def init_app(app: Flask) -> TokenLogHandler:
    """Emit ``tokenguard`` logs as JSON at the app's ``LOG_LEVEL``."""
    return configure_logging(app.config.get("LOG_LEVEL") or "INFO")


__all__ = [
    "CorrelationFilter",
    "JSONFormatter",
    "TokenLogHandler",
    "configure_logging",
    "incoming_request_id",
    "init_app",
]
