"""Shared SQLAlchemy repository behaviour.

Repositories only read and stage rows. Transactions belong to the Unit of
Work; nothing here commits or rolls back.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar, Generic, TypeVar, cast

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from research_core.core.extensions import db

M = TypeVar("M")


class BaseRepository(Generic[M]):
    """Persistence helpers for one mapped class.

    Subclasses set ``model`` and may widen ``filterable`` (attribute names
    usable in equality lookups) and ``updatable`` (attribute names accepted
    by :meth:`assign_updates`).
    """

    model: type[M]
    filterable: ClassVar[frozenset[str]] = frozenset()
    updatable: ClassVar[frozenset[str]] = frozenset()

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        return self._session if self._session is not None else cast(Session, db.session)

    def _where(self, stmt: Select[Any], criteria: Mapping[str, Any]) -> Select[Any]:
        # Keys outside the whitelist are dropped, not rejected.
        for name, value in criteria.items():
            if name in self.filterable:
                stmt = stmt.where(getattr(self.model, name) == value)
        return stmt

    def add(self, obj: M) -> M:
        """Stage ``obj`` and flush so its primary key is assigned."""
        self.session.add(obj)
        self.session.flush()
        return obj

    def get(self, pk: Any) -> M | None:
        return self.session.get(self.model, pk)

    def find_one(self, **criteria: Any) -> M | None:
        stmt = self._where(select(self.model), criteria).limit(1)
        return cast(M | None, self.session.scalars(stmt).first())

    def exists(self, **criteria: Any) -> bool:
        return self.find_one(**criteria) is not None

    def assign_updates(self, obj: M, changes: Mapping[str, Any]) -> M:
        """Set whitelisted attributes on ``obj`` and flush.

        Assignment goes through ``setattr`` so ``@validates`` hooks run.

        :raises ValueError: If ``changes`` names a non-updatable attribute.
        """
        rejected = sorted(set(changes) - self.updatable)
        if rejected:
            raise ValueError(f"Non-updatable fields: {rejected}")
        for name, value in changes.items():
            setattr(obj, name, value)
        self.session.flush()
        return obj
