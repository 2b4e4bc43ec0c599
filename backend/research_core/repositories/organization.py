"""Organization repository."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select

from research_core.models.organization import Organization
from research_core.repositories.base import BaseRepository


class OrganizationRepository(BaseRepository[Organization]):
    """Persistence-only repository for :class:`Organization`."""

    model = Organization

    filterable = frozenset({"name", "status", "is_active"})
    updatable = frozenset({"name", "status", "is_active"})

    def get_by_name(self, name: str) -> Organization | None:
        stmt = select(Organization).where(Organization.name == name.strip())
        return cast(Organization | None, self.session.execute(stmt).scalars().first())
