"""HTTP delivery layer: versioned blueprints mounted under ``API_BASE_PREFIX``."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def _join(*parts: str) -> str:
    path = "/".join(p.strip("/") for p in parts if p and p.strip("/"))
    return f"/{path}"


def mount(app: Flask, prefix: str, routes: Iterable[tuple[Blueprint, str]]) -> None:
    """Register each ``(blueprint, subpath)`` at ``prefix + subpath``."""
    for blueprint, subpath in routes:
        app.register_blueprint(blueprint, url_prefix=_join(prefix, subpath))


def init_app(app: Flask) -> None:
    from research_core.api import v1

    mount(app, _join(app.config.get("API_BASE_PREFIX", "/api"), v1.API_VERSION), v1.ROUTES)


__all__ = ["init_app", "mount"]
