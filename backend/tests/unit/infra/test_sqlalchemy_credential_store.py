# tests/unit/infra/test_sqlalchemy_credential_store.py
"""
Integration-style tests for the relational adapters (SQLite, SAVEPOINT per test).

- SQLAlchemyCredentialStore: token list on the ``users`` row, CAS via a
  conditional UPDATE on ``token_list_version``.
- SQLAlchemyIdentityDirectory: projections onto the service read models.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from research_core.infra.sqlalchemy.sqlalchemy_credential_store import SQLAlchemyCredentialStore
from research_core.infra.sqlalchemy.sqlalchemy_directory import SQLAlchemyIdentityDirectory
from research_core.models import User
from research_core.services._shared.dto import OrgStatus, RefreshTokenRecord, Role, TokenList
from research_core.services._shared.errors import (
    ConcurrentModificationError,
    NotFoundError,
    TokenReusedError,
)
from research_core.services.auth import TokenLifecycleManager
from research_core.services.auth.dto import AuthTokenConfig
from sqlalchemy import select
from tests.factories.organization import OrganizationFactory
from tests.factories.user import UserFactory


def _record(i: int) -> RefreshTokenRecord:
    now = datetime.now(UTC).replace(microsecond=0)
    return RefreshTokenRecord(
        token_id=f"tid-{i}",
        token_hash=f"hash-{i}",
        created_at=now,
        expires_at=now + timedelta(days=7),
    )


@pytest.fixture()
def store() -> SQLAlchemyCredentialStore:
    return SQLAlchemyCredentialStore()


@pytest.fixture()
def sql_directory() -> SQLAlchemyIdentityDirectory:
    return SQLAlchemyIdentityDirectory()


class TestSQLAlchemyCredentialStore:
    def test_new_user_starts_empty(self, store):
        user = UserFactory()
        assert store.load_token_list(str(user.id)) == TokenList()

    def test_unknown_user_loads_empty(self, store):
        assert store.load_token_list("424242") == TokenList()

    def test_non_numeric_id_is_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.load_token_list("not-a-pk")

    def test_save_persists_on_the_user_row(self, store, session):
        user = UserFactory()
        uid = str(user.id)

        rec = _record(1)

        saved = store.save_token_list(uid, store.load_token_list(uid), [rec])

        assert saved.version == 1
        row = session.execute(
            select(User.token_list_version, User.refresh_tokens).where(User.id == user.id)
        ).one()
        assert row[0] == 1
        assert row[1][0]["token_id"] == "tid-1"
        assert store.load_token_list(uid).records == (rec,)

    def test_stale_snapshot_is_rejected_and_rolled_back(self, store):
        user = UserFactory()
        uid = str(user.id)
        stale = store.load_token_list(uid)
        store.save_token_list(uid, stale, [_record(1)])

        with pytest.raises(ConcurrentModificationError):
            store.save_token_list(uid, stale, [_record(2)])

        current = store.load_token_list(uid)
        assert current.version == 1
        assert [r.token_id for r in current.records] == ["tid-1"]

    def test_lifecycle_over_sql_store(self, store, token_provider, hasher):
        """Full issue/rotate/reuse cycle persisted through the relational store."""
        user = UserFactory()
        record = SQLAlchemyIdentityDirectory().find_user_by_id(str(user.id))
        lifecycle = TokenLifecycleManager(
            token_provider=token_provider,
            credential_store=store,
            hasher=hasher,
            token_cfg=AuthTokenConfig(),
        )

        first = lifecycle.issue_refresh(record)
        pair = lifecycle.rotate_refresh(first, record)

        assert store.load_token_list(str(user.id)).version == 2
        with pytest.raises(TokenReusedError):
            lifecycle.rotate_refresh(first, record)
        assert lifecycle.revoke_all(record) is True
        assert store.load_token_list(str(user.id)).records == ()
        assert pair.access_token


class TestSQLAlchemyIdentityDirectory:
    def test_find_user_by_id(self, sql_directory):
        user = UserFactory(role=Role.STAFF)

        rec = sql_directory.find_user_by_id(str(user.id))

        assert rec.id == str(user.id)
        assert rec.role is Role.STAFF
        assert rec.org_id == str(user.org_id)
        assert rec.is_active is True

    def test_find_user_by_email_is_case_insensitive(self, sql_directory):
        user = UserFactory(email="Mixed.Case@Example.org")
        assert sql_directory.find_user_by_email("MIXED.case@example.ORG").id == str(user.id)

    @pytest.mark.parametrize("key", ["999999", "abc"])
    def test_missing_user(self, sql_directory, key):
        assert sql_directory.find_user_by_id(key) is None

    def test_find_org_reflects_kill_switch(self, sql_directory, session):
        org = OrganizationFactory(status=OrgStatus.APPROVED)
        assert sql_directory.find_org_by_id(str(org.id)).is_open is True

        org.is_active = False
        session.flush()

        rec = sql_directory.find_org_by_id(str(org.id))
        assert rec.is_active is False
        assert rec.is_open is False

    def test_superadmin_without_org(self, sql_directory):
        root = UserFactory(role=Role.SUPERADMIN, organization=None)
        assert sql_directory.find_user_by_id(str(root.id)).org_id is None
