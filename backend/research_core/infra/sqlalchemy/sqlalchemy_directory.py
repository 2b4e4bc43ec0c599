# research_core/infra/sqlalchemy/sqlalchemy_directory.py
from __future__ import annotations

from collections.abc import Callable

from research_core.models import Organization, User
from research_core.services._shared.dto import OrganizationRecord, UserRecord
from research_core.services._shared.ports import IdentityDirectory
from research_core.uow import SQLAlchemyReadOnlyUnitOfWork, UnitOfWork


def user_to_record(user: User) -> UserRecord:
    """Project an ORM user onto the read model used by the services."""
    return UserRecord(
        id=str(user.id),
        role=user.role,
        org_id=str(user.org_id) if user.org_id is not None else None,
        is_active=bool(user.is_active),
        email=user.email,
        password_hash=user.password_hash,
    )


def org_to_record(org: Organization) -> OrganizationRecord:
    return OrganizationRecord(id=str(org.id), is_active=bool(org.is_active), status=org.status)


def _as_int(value: str) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class SQLAlchemyIdentityDirectory(IdentityDirectory):
    """Identity lookups served from the relational store (read-only scopes)."""

    def __init__(self, *, uow_factory: Callable[[], UnitOfWork] = SQLAlchemyReadOnlyUnitOfWork):
        self._uow_factory = uow_factory

    def find_user_by_id(self, user_id: str) -> UserRecord | None:
        pk = _as_int(user_id)
        if pk is None:
            return None
        with self._uow_factory() as uow:
            user = uow.users.get(pk)
            return user_to_record(user) if user is not None else None

    def find_user_by_email(self, email: str) -> UserRecord | None:
        with self._uow_factory() as uow:
            user = uow.users.get_by_email(email)
            return user_to_record(user) if user is not None else None

    def find_org_by_id(self, org_id: str) -> OrganizationRecord | None:
        pk = _as_int(org_id)
        if pk is None:
            return None
        with self._uow_factory() as uow:
            org = uow.organizations.get(pk)
            return org_to_record(org) if org is not None else None
