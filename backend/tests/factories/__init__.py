"""Factory Boy base wired to the per-test SAVEPOINT session."""

from __future__ import annotations

import factory
from sqlalchemy.orm import Session

_bound: Session | None = None


def bind_session(session: Session | None) -> None:
    """Point every factory at ``session`` (``None`` unbinds)."""
    global _bound
    _bound = session


def current_session() -> Session:
    if _bound is None:
        raise RuntimeError("No session bound for factories; request the 'session' fixture.")
    return _bound


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Flush-only persistence; the surrounding test transaction is rolled back."""

    class Meta:
        abstract = True
        sqlalchemy_session_factory = current_session
        sqlalchemy_session_persistence = "flush"
