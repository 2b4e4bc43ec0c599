"""JSON logging for the security core.

Every record is one JSON line on stdout carrying the request id of the HTTP
request that produced it. Credentials must never reach a sink: only the
whitelisted ``extra`` keys are emitted, and anything shaped like a JWT or a
bearer header inside the message is masked before formatting.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from flask import Flask, Response, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
_INBOUND_ID_HEADERS = (REQUEST_ID_HEADER, "X-Correlation-ID")

# Structured fields allowed through to the JSON line (ids and outcomes only).
LOGGED_EXTRAS: frozenset[str] = frozenset(
    {
        "endpoint",
        "elapsed_ms",
        "user_id",
        "token_id",
        "org_id",
        "role",
        "field",
        "detector",
        "attempt",
    }
)

_JWT_RE = re.compile(r"\beyJ[\w-]+\.[\w-]+\.[\w-]+")
_BEARER_RE = re.compile(r"(?i)\bbearer\s+\S+")
MASK = "[redacted]"


def redact(text: str) -> str:
    """Mask JWTs and bearer credentials embedded in ``text``."""
    return _BEARER_RE.sub(f"Bearer {MASK}", _JWT_RE.sub(MASK, text))


def ensure_request_id() -> str:
    """Return the id of the current request, adopting an inbound header when present.

    Outside a request a fresh id is returned on each call.
    """
    if not has_request_context():
        return uuid4().hex
    current = getattr(g, "request_id", None)
    if current:
        return str(current)
    inbound = next((request.headers[h] for h in _INBOUND_ID_HEADERS if request.headers.get(h)), None)
    g.request_id = inbound or uuid4().hex
    return str(g.request_id)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with redacted message and exception text."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=UTC).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": redact(record.getMessage()),
            "request_id": getattr(record, "request_id", None),
        }
        line.update({k: v for k, v in vars(record).items() if k in LOGGED_EXTRAS})
        if record.exc_info:
            line["exc_info"] = redact(self.formatException(record.exc_info))
        return json.dumps(line, default=str)


class RequestIdFilter(logging.Filter):
    """Stamp ``request_id`` on records emitted while a request is active."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def configure_logging(level: str | int = "INFO") -> None:
    """Replace root handlers with a single JSON stdout handler."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper() if isinstance(level, str) else level)


def init_app(app: Flask) -> None:
    """Seed the request id early and echo it back on every response."""
    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _seed_request_id() -> None:
        ensure_request_id()

    @app.after_request
    def _echo_request_id(response: Response) -> Response:
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = ["JSONFormatter", "configure_logging", "ensure_request_id", "init_app", "redact"]
