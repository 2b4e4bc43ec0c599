"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from research_core.api.deps import json_response, timing
from research_core.core.extensions import db, get_redis

bp = Blueprint("health", __name__)


def _database_status() -> str:
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:  # pragma: no cover - depends on DB backend
        current_app.logger.exception("healthcheck.db_error")
        return "fail"
    return "ok"


def _token_store_status(backend: str) -> str:
    if backend != "redis":
        return "ok"
    try:
        get_redis().ping()
    except (RedisError, RuntimeError):
        current_app.logger.exception("healthcheck.redis_error")
        return "fail"
    return "ok"


@bp.get("/health")
@timing
def healthcheck():
    """Report database and token-store reachability. Always 200; read the fields."""

    backend = str(current_app.config.get("TOKEN_STORE_BACKEND", "sql")).lower()
    payload = {
        "status": "ok",
        "db": _database_status(),
        "token_store": backend,
        "token_store_status": _token_store_status(backend),
        "version": current_app.config.get("APP_VERSION", "dev"),
    }
    return json_response(payload)
