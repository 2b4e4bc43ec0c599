"""Tests for the ``users`` and ``sessions`` Flask CLI groups."""

from __future__ import annotations

from research_core.core.services import get_services
from research_core.models import User
from research_core.services._shared.dto import Role
from research_core.uow import SQLAlchemyReadOnlyUnitOfWork
from tests.factories.user import UserFactory


def _superadmin(email: str) -> User | None:
    with SQLAlchemyReadOnlyUnitOfWork() as uow:
        return uow.users.get_by_email(email)


class TestCreateSuperadmin:
    def test_creates_account(self, app, session):
        runner = app.test_cli_runner()

        result = runner.invoke(
            args=["users", "create-superadmin", "--email", "Root@Example.org", "--password", "pw-1"]
        )

        assert result.exit_code == 0, result.output
        assert "created=True" in result.output
        user = _superadmin("root@example.org")
        assert user.role is Role.SUPERADMIN
        assert user.org_id is None
        assert user.verify_password("pw-1")

    def test_reset_revokes_sessions(self, app, session):
        member = UserFactory(email="boss@example.org", role=Role.ADMIN)
        record = get_services().directory.find_user_by_id(str(member.id))
        get_services().lifecycle.issue_refresh(record)

        result = app.test_cli_runner().invoke(
            args=["users", "create-superadmin", "--email", "boss@example.org", "--password", "pw-2"]
        )

        assert result.exit_code == 0, result.output
        assert "created=False" in result.output
        assert get_services().credential_store.load_token_list(str(member.id)).records == ()
        user = _superadmin("boss@example.org")
        assert user.role is Role.SUPERADMIN
        assert user.verify_password("pw-2")


class TestRevokeAllSessions:
    def test_revokes(self, app, session):
        member = UserFactory()
        record = get_services().directory.find_user_by_id(str(member.id))
        get_services().lifecycle.issue_refresh(record)

        result = app.test_cli_runner().invoke(args=["sessions", "revoke-all", str(member.id)])

        assert result.exit_code == 0, result.output
        assert "yes" in result.output
        assert get_services().credential_store.load_token_list(str(member.id)).records == ()

    def test_unknown_user(self, app, session):
        result = app.test_cli_runner().invoke(args=["sessions", "revoke-all", "999999"])
        assert result.exit_code != 0
        assert "not found" in result.output
