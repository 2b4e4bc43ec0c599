# research_core/services/auth/service.py
from __future__ import annotations

import logging

from werkzeug.security import check_password_hash

from research_core.services._shared.base import BaseService, ServiceContext
from research_core.services._shared.dto import UserRecord
from research_core.services._shared.errors import (
    AuthenticationError,
    InvalidTokenError,
)
from research_core.services._shared.policies import ensure_org_open
from research_core.services._shared.ports import IdentityDirectory
from research_core.services.auth.dto import (
    LoginIn,
    LoginOut,
    LogoutIn,
    RefreshIn,
    TokenPairOut,
)
from research_core.services.auth.tokens import TokenLifecycleManager

logger = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Authentication lifecycle service (login / refresh / logout).

    Credentials are checked against the identity directory; every token
    operation is delegated to :class:`TokenLifecycleManager`. The organization
    kill switch is re-applied on login and on each refresh so a deactivated
    tenant cannot mint new tokens.
    """

    def __init__(
        self,
        *,
        directory: IdentityDirectory,
        lifecycle: TokenLifecycleManager,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param directory: User/organization lookups.
        :param lifecycle: Token issuing, rotation and revocation.
        """
        super().__init__(ctx=ctx)
        self.directory = directory
        self.lifecycle = lifecycle

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> LoginOut:
        """
        Authenticate credentials and issue a fresh token pair.

        Unknown email, wrong password and deactivated accounts share one
        message so the response does not reveal which accounts exist.

        :raises AuthenticationError: If credentials are invalid.
        :raises AuthorizationError: If the user's organization is closed.
        """
        user = self.directory.find_user_by_email(dto.email)
        if user is None or not user.is_active or not self._password_ok(user, dto.password):
            raise AuthenticationError("Invalid credentials")

        ensure_org_open(self.directory, user_id=user.id, role=user.role, org_id=user.org_id)

        tokens = TokenPairOut(
            access_token=self.lifecycle.sign_access(user),
            refresh_token=self.lifecycle.issue_refresh(user),
        )
        logger.info("auth.login", extra={"user_id": user.id, "role": user.role.value})
        return LoginOut(tokens=tokens, user=user)

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        """
        Rotate a refresh token and emit a new token pair.

        The subject is read before verification only to locate the owner;
        :meth:`TokenLifecycleManager.rotate_refresh` does the full check.
        """
        subject = self.lifecycle.tokens.peek_subject(dto.refresh_token)
        if subject is None:
            raise InvalidTokenError("Invalid refresh token")

        user = self.directory.find_user_by_id(subject)
        if user is None or not user.is_active:
            raise InvalidTokenError("Invalid refresh token")

        ensure_org_open(self.directory, user_id=user.id, role=user.role, org_id=user.org_id)
        return self.lifecycle.rotate_refresh(dto.refresh_token, user)

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> bool:
        """
        End the session bound to ``dto.refresh_token`` (or every session).

        Tolerant: an unreadable token, an unknown user or a token that is no
        longer live (rotated, revoked, expired or hash mismatch) is a no-op.

        :returns: ``True`` if any session was revoked.
        """
        subject = self.lifecycle.tokens.peek_subject(dto.refresh_token)
        user = self.directory.find_user_by_id(subject) if subject is not None else None
        if user is None:
            return False

        record = self.lifecycle.live_record(dto.refresh_token, user)
        if record is None:
            logger.info("auth.logout_ignored", extra={"user_id": user.id})
            return False

        if dto.all_sessions:
            return self.lifecycle.revoke_all(user)
        return self.lifecycle.revoke_one(user, record.token_id)

    def logout_all(self, user_id: str) -> bool:
        """Revoke every session of ``user_id`` (authenticated caller)."""
        user = self.directory.find_user_by_id(user_id)
        if user is None:
            return False
        return self.lifecycle.revoke_all(user)

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    @staticmethod
    def _password_ok(user: UserRecord, raw: str) -> bool:
        if not user.password_hash or not raw:
            return False
        return bool(check_password_hash(user.password_hash, raw))
