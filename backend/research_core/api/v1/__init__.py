"""Version 1 of the HTTP API."""

from __future__ import annotations

from flask import Blueprint

from .auth import bp as auth_bp
from .health import bp as health_bp
from .submissions import bp as submissions_bp

API_VERSION = "v1"

ROUTES: tuple[tuple[Blueprint, str], ...] = (
    (health_bp, ""),
    (auth_bp, "auth"),
    (submissions_bp, "submissions"),
)
