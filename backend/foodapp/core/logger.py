"""Structured JSON logging with request correlation.

Every record carries the ``request_id`` of the HTTP request it was emitted
under (``None`` outside requests, e.g. batch worker threads started from the
CLI) and the emitting thread, so interleaved batch workers can be told apart.
Bearer tokens that slip into a message are masked before formatting.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")

# Structured ``extra=`` keys copied onto the JSON payload when present
EXTRA_KEYS = (
    "endpoint",
    "elapsed_ms",
    "batch_size",
    "workers",
    "partitions",
    "succeeded",
    "failed",
    "index",
    "error_kind",
)

_BEARER = re.compile(r"(?i)(bearer\s+)[\w\-.~+/]+=*")


class JSONFormatter(logging.Formatter):
    """Render one record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "name": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        payload.update({key: getattr(record, key) for key in EXTRA_KEYS if hasattr(record, key)})
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    """Stamp ``request_id`` on each record and mask bearer tokens in its message."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        if isinstance(record.msg, str) and not record.args:
            record.msg = _BEARER.sub(r"\1<redacted>", record.msg)
        return True


def ensure_request_id() -> str:
    """Return the correlation id of the current request, creating it on first use.

    An incoming ``X-Request-ID``/``X-Correlation-ID`` header wins; otherwise a
    UUID4 is generated. Outside a request a fresh UUID4 is returned each call.
    """

    if not has_request_context():
        return str(uuid4())
    request_id = g.get("request_id")
    if request_id is None:
        incoming = (request.headers.get(h) for h in CORRELATION_HEADERS)
        request_id = next((v for v in incoming if v), None) or str(uuid4())
        g.request_id = request_id
    return request_id


def configure_logging(level: str | int = "INFO") -> None:
    """Route the root logger to stdout through :class:`JSONFormatter`.

    :param level: Level name (case-insensitive) or numeric level. Unknown names
        fall back to ``INFO``.
    """

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    root.setLevel(level)


def init_app(app: Flask) -> None:
    """Assign a request id per request and echo it in the response headers."""

    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _seed_request_id() -> None:
        # ``g`` can outlive one request when an app context is already pushed
        g.pop("request_id", None)
        ensure_request_id()

    @app.after_request
    def _inject_response_header(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = ["JSONFormatter", "RequestIdFilter", "configure_logging", "ensure_request_id", "init_app"]
