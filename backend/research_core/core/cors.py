"""CORS policy for the API blueprints."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS

# Headers the browser client sends and reads back.
ALLOW_HEADERS = ["Authorization", "Content-Type", "X-Request-ID", "X-Correlation-ID"]
EXPOSE_HEADERS = ["X-Request-ID"]


def parse_origins(raw: str | None) -> list[str]:
    """Split a comma-separated ``CORS_ORIGINS`` value, dropping blanks."""
    return [o.strip() for o in (raw or "").split(",") if o.strip()]


def init_app(app: Flask) -> None:
    """Configure CORS on ``/api/*`` from ``CORS_ORIGINS``.

    Bearer tokens travel in the ``Authorization`` header, so credentials
    (cookies) are only enabled for an explicit origin list. A blank value or
    ``"*"`` opens the API to any origin without credentials.
    """
    origins = parse_origins(app.config.get("CORS_ORIGINS"))
    wildcard = not origins or origins == ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if wildcard else origins}},
        allow_headers=ALLOW_HEADERS,
        expose_headers=EXPOSE_HEADERS,
        supports_credentials=not wildcard,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
