# comments in English; reST docstrings strict
"""Read models shared by the auth, access and persistence layers."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class Role(str, Enum):
    """Platform roles. ``superadmin`` operates across every organization."""

    ADMIN = "admin"
    RESEARCHER = "researcher"
    STAFF = "staff"
    SUPERADMIN = "superadmin"


class OrgStatus(str, Enum):
    """Onboarding state of an organization."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class UserRecord:
    """
    Fields of a user the core reads.

    :param id: User identifier (stringified).
    :param role: Platform role.
    :param org_id: Owning organization, ``None`` for superadmins.
    :param is_active: Deactivated users cannot authenticate.
    :param email: Login email (only used by login).
    :param password_hash: Werkzeug password hash (only used by login).
    """

    id: str
    role: Role
    org_id: str | None
    is_active: bool = True
    email: str | None = None
    password_hash: str | None = field(default=None, repr=False)


@dataclass(frozen=True, slots=True)
class OrganizationRecord:
    """Tenant fields gating access for non-superadmin roles."""

    id: str
    is_active: bool
    status: OrgStatus

    @property
    def is_open(self) -> bool:
        return self.is_active and self.status is OrgStatus.APPROVED


@dataclass(frozen=True, slots=True)
class Principal:
    """Identity resolved from a verified access token; immutable per request."""

    subject_id: str
    role: Role
    org_id: str | None


def _parse_dt(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    return datetime.fromtimestamp(int(value), tz=UTC)


def _to_ts(value: datetime | None) -> int | None:
    if value is None:
        return None
    return int(value.replace(tzinfo=value.tzinfo or UTC).timestamp())


@dataclass(frozen=True, slots=True)
class RefreshTokenRecord:
    """
    Server-side trace of one issued refresh token.

    :param token_id: Opaque unique id embedded in the token as ``tid``.
    :param token_hash: One-way hash of the signed token. The raw token is never stored.
    :param created_at: Issuance time (UTC).
    :param expires_at: Expiry copied from the token ``exp`` claim.
    """

    token_id: str
    token_hash: str = field(repr=False)
    created_at: datetime
    expires_at: datetime | None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe mapping (epoch seconds)."""
        return {
            "token_id": self.token_id,
            "token_hash": self.token_hash,
            "created_at": _to_ts(self.created_at),
            "expires_at": _to_ts(self.expires_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RefreshTokenRecord:
        created = _parse_dt(data.get("created_at"))
        return cls(
            token_id=str(data["token_id"]),
            token_hash=str(data["token_hash"]),
            created_at=created or datetime.fromtimestamp(0, tz=UTC),
            expires_at=_parse_dt(data.get("expires_at")),
        )


@dataclass(frozen=True, slots=True)
class TokenList:
    """
    Versioned snapshot of a user's refresh-token records.

    ``version`` is the compare-and-swap witness: a store accepts a write only
    when the stored version still equals the one this snapshot was read at.
    """

    version: int = 0
    records: tuple[RefreshTokenRecord, ...] = ()

    def find(self, token_id: str) -> RefreshTokenRecord | None:
        for record in self.records:
            if record.token_id == token_id:
                return record
        return None

    def pruned(self, now: datetime) -> tuple[RefreshTokenRecord, ...]:
        """Return the records that have not expired at ``now``."""
        return tuple(r for r in self.records if not r.is_expired(now))

    def without(self, token_id: str) -> tuple[RefreshTokenRecord, ...]:
        return tuple(r for r in self.records if r.token_id != token_id)

    def with_records(self, records: Iterable[RefreshTokenRecord]) -> TokenList:
        return replace(self, version=self.version + 1, records=tuple(records))

    def to_payload(self) -> list[dict[str, Any]]:
        return [r.to_dict() for r in self.records]

    @classmethod
    def from_payload(cls, version: int, payload: Iterable[Mapping[str, Any]] | None) -> TokenList:
        return cls(
            version=int(version),
            records=tuple(RefreshTokenRecord.from_dict(item) for item in payload or ()),
        )
