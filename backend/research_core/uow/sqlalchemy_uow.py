"""Unit of Work implementations over the Flask-SQLAlchemy scoped session."""

from __future__ import annotations

from contextlib import suppress

from sqlalchemy import event
from sqlalchemy.exc import InvalidRequestError
from sqlalchemy.orm import Session, SessionTransaction, scoped_session

from research_core.core.extensions import db
from research_core.repositories import OrganizationRepository, UserRepository
from research_core.uow.base import UnitOfWork


class SQLAlchemyRepositoryContainer:
    """Repositories sharing one session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=session)
        self.organizations = OrganizationRepository(session=session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Writer scope: commit on clean exit, rollback on error.

    Token list compare-and-swap updates run here so a lost race (raised inside
    the block) never leaves a half-written list behind.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session)

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


def _reject_writes(session: Session, flush_context, instances) -> None:
    if session.new or session.dirty or session.deleted:
        raise RuntimeError(
            "Read-only UnitOfWork: ORM flush blocked (new/dirty/deleted objects present)."
        )


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only scope used by identity lookups and token list loads.

    A ``before_flush`` guard rejects pending ORM changes for the lifetime of
    the scope. If the session is idle the scope opens its own transaction and
    rolls it back on exit; inside a running transaction (request or test
    fixture) it joins it and leaves it untouched.
    """

    read_only = True

    def __init__(self) -> None:
        super().__init__(session=db.session)
        self._owned: SessionTransaction | None = None
        self._guarded: Session | None = None

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        try:
            self._owned = self.session.begin()
        except InvalidRequestError:
            self._owned = None
        # Guard this thread's Session only, not every session of the factory.
        session = self.session
        self._guarded = session() if isinstance(session, scoped_session) else session
        event.listen(self._guarded, "before_flush", _reject_writes)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        guarded, self._guarded = self._guarded, None
        if guarded is not None:
            with suppress(InvalidRequestError):
                event.remove(guarded, "before_flush", _reject_writes)
        owned, self._owned = self._owned, None
        if owned is not None and owned.is_active:
            owned.rollback()

    def commit(self) -> None:
        """
        :raises RuntimeError: Always; read-only scopes never write.
        """
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()
