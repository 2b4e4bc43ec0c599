"""Organization (tenant) model."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from research_core.core.extensions import db
from research_core.services._shared.dto import OrgStatus

from .base import PKMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .user import User


class Organization(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Tenant that owns users and research data.

    Members of an organization can act only while it is both active and
    approved. The ``is_active`` flag is the kill switch: clearing it locks out
    every member on their next request.

    Fields
    ------
    name : str
        Display name. Unique per system.
    status : OrgStatus
        Onboarding state (``pending`` / ``approved`` / ``rejected``).
    is_active : bool
        Kill switch flag.
    """

    __tablename__ = "organizations"
    __repr_fields__ = ("name", "status")

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    status: Mapped[OrgStatus] = mapped_column(
        SAEnum(
            OrgStatus,
            name="org_status",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=OrgStatus.PENDING,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    members: Mapped[list[User]] = relationship(back_populates="organization")

    __table_args__ = (
        UniqueConstraint("name", name="uq_organizations_name"),
        Index("ix_organizations_status", "status"),
    )

    @validates("name")
    def _normalize_name(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Organization name is required.")
        return value.strip()
