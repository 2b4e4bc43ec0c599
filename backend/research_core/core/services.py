"""Composition root: build adapters and services from the Flask config."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, cast

from flask import Flask, current_app

from research_core.services._shared.base import ServiceContext
from research_core.services._shared.ports import (
    CredentialStore,
    IdentityDirectory,
    InMemoryCredentialStore,
    TokenProvider,
)
from research_core.services.access import AccessScopingService
from research_core.services.auth import AuthService, TokenLifecycleManager
from research_core.services.auth.dto import AuthTokenConfig
from research_core.services.submissions import SubmissionValidator

EXTENSION_KEY = "research_core.services"
STORE_BACKENDS = ("sql", "redis", "memory")


@dataclass(slots=True)
class ServiceRegistry:
    """Process-wide service graph stored in ``app.extensions``."""

    token_provider: TokenProvider
    credential_store: CredentialStore
    directory: IdentityDirectory
    lifecycle: TokenLifecycleManager
    auth: AuthService
    access: AccessScopingService
    numeric_id_guard: bool = True

    def submission_validator(self, ctx: ServiceContext | None = None) -> SubmissionValidator:
        return SubmissionValidator(numeric_id_guard=self.numeric_id_guard, ctx=ctx)


def token_config_from(config: Mapping[str, Any]) -> AuthTokenConfig:
    return AuthTokenConfig(
        access_expires=timedelta(minutes=int(config.get("JWT_ACCESS_TTL_MINUTES", 15))),
        refresh_expires=timedelta(days=int(config.get("JWT_REFRESH_TTL_DAYS", 7))),
        cas_max_attempts=int(config.get("CAS_MAX_ATTEMPTS", 3)),
        revoke_all_on_reuse=bool(config.get("REFRESH_REUSE_REVOKES_ALL", False)),
    )


def build_token_provider(config: Mapping[str, Any]) -> TokenProvider:
    from research_core.infra.jwt.pyjwt_token_provider import PyJWTTokenProvider

    return PyJWTTokenProvider(
        access_secret=str(config["JWT_ACCESS_SECRET"]),
        refresh_secret=str(config["JWT_REFRESH_SECRET"]),
        algorithm=str(config.get("JWT_ALGORITHM", "HS256")),
        leeway=int(config.get("JWT_LEEWAY_SECONDS", 0)),
    )


def build_credential_store(
    config: Mapping[str, Any], *, redis_client: Any | None = None
) -> CredentialStore:
    """Select the credential store adapter named by ``TOKEN_STORE_BACKEND``.

    :param redis_client: Connected client, required by the ``redis`` backend.
    :raises RuntimeError: Unknown backend name, or ``redis`` without a client.
    """
    backend = str(config.get("TOKEN_STORE_BACKEND", "sql")).strip().lower()
    if backend == "sql":
        from research_core.infra.sqlalchemy.sqlalchemy_credential_store import (
            SQLAlchemyCredentialStore,
        )

        return SQLAlchemyCredentialStore()
    if backend == "redis":
        from research_core.infra.redis.redis_credential_store import RedisCredentialStore

        if redis_client is None:
            raise RuntimeError("TOKEN_STORE_BACKEND=redis requires a Redis client (REDIS_URL).")
        return RedisCredentialStore(redis_client)
    if backend == "memory":
        return InMemoryCredentialStore()
    raise RuntimeError(
        f"Unknown TOKEN_STORE_BACKEND {backend!r}; expected one of {', '.join(STORE_BACKENDS)}."
    )


def build_registry(
    config: Mapping[str, Any], *, redis_client: Any | None = None
) -> ServiceRegistry:
    from research_core.infra.security.werkzeug_token_hasher import WerkzeugTokenHasher
    from research_core.infra.sqlalchemy.sqlalchemy_directory import SQLAlchemyIdentityDirectory

    provider = build_token_provider(config)
    store = build_credential_store(config, redis_client=redis_client)
    directory = SQLAlchemyIdentityDirectory()
    lifecycle = TokenLifecycleManager(
        token_provider=provider,
        credential_store=store,
        hasher=WerkzeugTokenHasher(method=str(config.get("TOKEN_HASH_METHOD", "scrypt"))),
        token_cfg=token_config_from(config),
    )
    return ServiceRegistry(
        token_provider=provider,
        credential_store=store,
        directory=directory,
        lifecycle=lifecycle,
        auth=AuthService(directory=directory, lifecycle=lifecycle),
        access=AccessScopingService(token_provider=provider, directory=directory),
        numeric_id_guard=bool(config.get("PII_NUMERIC_ID_GUARD", True)),
    )


def init_app(app: Flask) -> None:
    """Build the service graph once and expose it via ``app.extensions``."""
    from research_core.core.extensions import REDIS_EXTENSION_KEY

    app.extensions[EXTENSION_KEY] = build_registry(
        app.config, redis_client=app.extensions.get(REDIS_EXTENSION_KEY)
    )


def get_services() -> ServiceRegistry:
    """Return the registry of the current application.

    :raises RuntimeError: If :func:`init_app` was not called.
    """
    registry = current_app.extensions.get(EXTENSION_KEY)
    if registry is None:
        raise RuntimeError("Services are not initialized. Call core.services.init_app().")
    return cast(ServiceRegistry, registry)
