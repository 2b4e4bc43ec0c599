"""Flask application factory."""

from __future__ import annotations

from importlib import import_module

from flask import Flask

from research_core.core.config import BaseConfig, get_config, validate_secrets
from research_core.core.logger import configure_logging

# ``init_app(app)`` providers, in registration order. Extensions come before
# services (the Redis client is needed to build the credential store) and
# error handlers are registered after the blueprints.
INIT_ORDER: tuple[str, ...] = (
    "research_core.core.proxy",
    "research_core.core.extensions",
    "research_core.core.logger",
    "research_core.core.cors",
    "research_core.core.services",
    "research_core.api",
    "research_core.core.errors",
    "research_core.cli",
)


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_config: str | None = "config.py",
) -> Flask:
    """Build the security core application.

    :param config: Config object or import path; defaults to the class
        selected by ``APP_ENV``.
    :param instance_config: Optional override file read from the instance
        folder; ``None`` skips it.
    :raises RuntimeError: Unsafe signing secrets outside debug/testing, or
        ``TOKEN_STORE_BACKEND=redis`` without a reachable ``REDIS_URL``.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config if config is not None else get_config())
    if instance_config:
        app.config.from_pyfile(instance_config, silent=True)

    validate_secrets(app.config)
    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    for module in INIT_ORDER:
        import_module(module).init_app(app)

    return app
