from __future__ import annotations

from typing import Protocol

from research_core.services._shared.dto import OrganizationRecord, UserRecord


class IdentityDirectory(Protocol):
    """Read-only lookups of users and organizations owned by the persistence layer."""

    def find_user_by_id(self, user_id: str) -> UserRecord | None: ...

    def find_user_by_email(self, email: str) -> UserRecord | None: ...

    def find_org_by_id(self, org_id: str) -> OrganizationRecord | None: ...


class InMemoryIdentityDirectory(IdentityDirectory):
    """Simple dictionary-backed directory used in unit tests."""

    def __init__(self) -> None:
        self.users: dict[str, UserRecord] = {}
        self.orgs: dict[str, OrganizationRecord] = {}

    def add_user(self, user: UserRecord) -> UserRecord:
        self.users[user.id] = user
        return user

    def add_org(self, org: OrganizationRecord) -> OrganizationRecord:
        self.orgs[org.id] = org
        return org

    def find_user_by_id(self, user_id: str) -> UserRecord | None:
        return self.users.get(str(user_id))

    def find_user_by_email(self, email: str) -> UserRecord | None:
        needle = email.strip().lower()
        for user in self.users.values():
            if user.email and user.email.lower() == needle:
                return user
        return None

    def find_org_by_id(self, org_id: str) -> OrganizationRecord | None:
        return self.orgs.get(str(org_id))
