"""Extension singletons: SQLAlchemy, Alembic migrations and the Redis client."""

from __future__ import annotations

import logging

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

logger = logging.getLogger(__name__)

REDIS_EXTENSION_KEY = "research_core.redis"

# Named constraints so batch migrations on SQLite can drop/alter them.
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

db = SQLAlchemy(
    metadata=MetaData(naming_convention=NAMING_CONVENTION),
    session_options={"autoflush": False},
)
migrate = Migrate(render_as_batch=True)


def _connect_redis(url: str) -> redis.Redis:
    client = redis.Redis.from_url(url)
    try:
        client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Redis at {url!r} is unreachable") from exc
    return client


def init_app(app: Flask) -> None:
    """
    Bind the database and migrations; connect Redis when ``REDIS_URL`` is set.

    The ``redis`` token store backend needs the client, so start-up fails
    fast when it is selected without a reachable server.
    """
    db.init_app(app)

    # Register the mapped classes on the shared metadata before Alembic reads it.
    from research_core import models  # noqa: F401

    migrate.init_app(app, db)

    url = app.config.get("REDIS_URL")
    if url:
        app.extensions[REDIS_EXTENSION_KEY] = _connect_redis(url)
        logger.info("redis.connected")
    elif str(app.config.get("TOKEN_STORE_BACKEND", "")).lower() == "redis":
        raise RuntimeError("TOKEN_STORE_BACKEND=redis requires REDIS_URL.")


def get_redis(app: Flask | None = None) -> redis.Redis:
    """Return the Redis client of ``app`` (default: the current app)."""
    target = app or current_app
    client = target.extensions.get(REDIS_EXTENSION_KEY)
    if client is None:
        raise RuntimeError("Redis client is not initialized. Set REDIS_URL.")
    return client
