"""Request/response shapes of the authentication service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from research_core.services._shared.dto import UserRecord


@dataclass(frozen=True, slots=True)
class LoginIn:
    """Credentials as submitted; ``email`` is normalized by the service."""

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    :param refresh_token: Refresh JWT identifying the session to end.
    :param all_sessions: End every session of the token's owner instead.
    """

    refresh_token: str
    all_sessions: bool = False


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Signed access/refresh pair. After a rotation the refresh token here is the
    only live successor of the one presented.
    """

    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class LoginOut:
    tokens: TokenPairOut
    user: UserRecord


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Lifetimes and write policy for the token lifecycle.

    ``cas_max_attempts`` bounds retries of issue/revoke writes that lose a
    version race; rotation never retries. ``revoke_all_on_reuse`` ends every
    session of a user whose consumed refresh token is replayed.
    """

    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=7)
    cas_max_attempts: int = 3
    revoke_all_on_reuse: bool = False
