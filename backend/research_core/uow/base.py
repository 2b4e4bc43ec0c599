"""Unit of Work contract shared by the writer and read-only scopes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from research_core.repositories import OrganizationRepository, UserRepository


class UnitOfWork(ABC):
    """
    One transactional scope over the identity tables.

    Writer scopes commit when the block exits cleanly and roll back otherwise.
    Read-only scopes never commit. Both expose the same repositories, bound
    to a single session.
    """

    read_only: ClassVar[bool] = False

    users: UserRepository
    organizations: OrganizationRepository

    def __enter__(self) -> UnitOfWork:
        return self

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
