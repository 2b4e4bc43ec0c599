"""Column mixins shared by the relational models (SQLAlchemy 2.0 typed)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar

from sqlalchemy import JSON, DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column


class PKMixin:
    """Integer surrogate key ``id``."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True)


class TimestampMixin:
    """Database-maintained ``created_at`` / ``updated_at`` (timezone-aware)."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class TokenListMixin:
    """
    Refresh-token list stored inline on the owning row.

    ``refresh_tokens`` holds serialized records (hashes only) and
    ``token_list_version`` is the compare-and-swap witness bumped by every
    write. Both columns are written together through a conditional ``UPDATE``
    and never through ORM attribute assignment.
    """

    refresh_tokens: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    token_list_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class ReprMixin:
    """``<Model id=.. field=..>`` built from ``__repr_fields__``; never prints secrets."""

    __repr_fields__: ClassVar[tuple[str, ...]] = ()

    def __repr__(self) -> str:
        parts = [f"id={getattr(self, 'id', None)}"]
        parts += [f"{name}={getattr(self, name, None)!r}" for name in self.__repr_fields__]
        return f"<{type(self).__name__} {' '.join(parts)}>"
