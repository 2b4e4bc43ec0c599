"""Shared fixtures.

Database fixtures give every test its own rolled-back transaction on an
in-memory SQLite schema. Service fixtures build the token and access
services over in-memory ports with a controllable clock.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta

import pytest
from research_core.core.config import TestingConfig
from research_core.core.extensions import db as _db
from research_core.factory import create_app
from research_core.infra.jwt.pyjwt_token_provider import PyJWTTokenProvider
from research_core.infra.security.werkzeug_token_hasher import WerkzeugTokenHasher
from research_core.services._shared.ports import (
    InMemoryCredentialStore,
    InMemoryIdentityDirectory,
)
from research_core.services.access import AccessScopingService
from research_core.services.auth import AuthService, TokenLifecycleManager
from research_core.services.auth.dto import AuthTokenConfig
from sqlalchemy.orm import scoped_session, sessionmaker

ACCESS_SECRET = "test-access-secret-0123456789abcdef"
REFRESH_SECRET = "test-refresh-secret-fedcba9876543210"
HASH_METHOD = "pbkdf2:sha256:1000"


class TestConfig(TestingConfig):
    """App config for the suite: fixed long HMAC keys, SQL token store, quiet logs."""

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_ACCESS_SECRET = ACCESS_SECRET
    JWT_REFRESH_SECRET = REFRESH_SECRET
    TOKEN_STORE_BACKEND = "sql"
    LOG_LEVEL = "WARNING"


@pytest.fixture(scope="session")
def app():
    os.environ.pop("DATABASE_URL", None)
    return create_app(TestConfig)


@pytest.fixture(scope="session")
def db(app):
    """Schema created once for the run and dropped at the end."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture()
def session(db, connection):
    """Per-test session that can commit freely and still leaves no trace.

    The connection holds an outer transaction plus a SAVEPOINT; the session
    joins in ``create_savepoint`` mode, so a Unit of Work commit only releases
    its own SAVEPOINT. The outer transaction is rolled back on teardown.
    ``db.session`` is swapped for the duration of the test so repositories
    and adapters pick the same session up.
    """
    outer = connection.begin()
    connection.begin_nested()
    scoped = scoped_session(
        sessionmaker(bind=connection, join_transaction_mode="create_savepoint")
    )

    previous = db.session
    previous.remove()
    db.session = scoped
    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = previous
        outer.rollback()


@pytest.fixture(scope="session")
def faker():
    from faker import Faker

    Faker.seed(1337)
    return Faker()


# -- Factory Boy ---------------------------------------------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Bind the factories to the per-test session."""
    from tests.factories import bind_session

    bind_session(session)
    yield
    bind_session(None)


# -- In-memory service graph ---------------------------------------------------
class FrozenClock:
    """Mutable UTC clock injected into services that age records."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime.now(UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def token_provider() -> PyJWTTokenProvider:
    return PyJWTTokenProvider(access_secret=ACCESS_SECRET, refresh_secret=REFRESH_SECRET)


@pytest.fixture()
def hasher() -> WerkzeugTokenHasher:
    return WerkzeugTokenHasher(method=HASH_METHOD)


@pytest.fixture()
def credential_store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture()
def directory() -> InMemoryIdentityDirectory:
    return InMemoryIdentityDirectory()


@pytest.fixture()
def token_cfg() -> AuthTokenConfig:
    return AuthTokenConfig()


@pytest.fixture()
def lifecycle(token_provider, credential_store, hasher, token_cfg, clock) -> TokenLifecycleManager:
    return TokenLifecycleManager(
        token_provider=token_provider,
        credential_store=credential_store,
        hasher=hasher,
        token_cfg=token_cfg,
        clock=clock,
    )


@pytest.fixture()
def auth_service(directory, lifecycle) -> AuthService:
    return AuthService(directory=directory, lifecycle=lifecycle)


@pytest.fixture()
def access_service(token_provider, directory) -> AccessScopingService:
    return AccessScopingService(token_provider=token_provider, directory=directory)


# -- HTTP ----------------------------------------------------------------------
@pytest.fixture()
def client(app, session):
    """Flask test client sharing the transactional session."""
    return app.test_client()
