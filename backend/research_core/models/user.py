"""User model: login identity, role and refresh-token list."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from werkzeug.security import check_password_hash, generate_password_hash

from research_core.core.extensions import db
from research_core.services._shared.dto import Role

from .base import PKMixin, ReprMixin, TimestampMixin, TokenListMixin

if TYPE_CHECKING:
    from .organization import Organization


class User(PKMixin, ReprMixin, TimestampMixin, TokenListMixin, db.Model):
    """
    A person who signs in: credentials, platform role and tenant.

    ``org_id`` is ``NULL`` only for superadmins. ``refresh_tokens`` holds
    serialized :class:`~research_core.services._shared.dto.RefreshTokenRecord`
    entries (hashes, never raw tokens) and ``token_list_version`` is bumped on
    every write so stores can compare-and-swap the list.
    """

    __tablename__ = "users"
    __repr_fields__ = ("email", "role")

    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(254), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    role: Mapped[Role] = mapped_column(
        SAEnum(
            Role,
            name="user_role",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    org_id: Mapped[int | None] = mapped_column(
        ForeignKey("organizations.id", ondelete="RESTRICT"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # refresh_tokens / token_list_version come from TokenListMixin.

    organization: Mapped[Organization | None] = relationship(back_populates="members")

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        Index("ix_users_email", "email"),
        Index("ix_users_org_id", "org_id"),
    )

    @property
    def password(self) -> Any:  # pragma: no cover - write-only
        raise AttributeError("User.password cannot be read; use verify_password().")

    @password.setter
    def password(self, raw: str) -> None:
        """Hash and store ``raw``; an empty value is rejected."""
        if not raw or not isinstance(raw, str):
            raise ValueError("A password is required.")
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        return bool(self.password_hash) and check_password_hash(self.password_hash, raw)

    @validates("email")
    def _clean_email(self, _key: str, value: str) -> str:
        """Lowercase and trim; reject values without ``local@domain.tld`` shape."""
        email = value.strip().lower() if isinstance(value, str) else ""
        local, _, domain = email.partition("@")
        if not local or "." not in domain:
            raise ValueError("Invalid email address.")
        return email
