# research_core/services/auth/tokens.py
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any
from uuid import uuid4

from research_core.services._shared.base import BaseService, ServiceContext
from research_core.services._shared.dto import RefreshTokenRecord, TokenList, UserRecord
from research_core.services._shared.errors import (
    ConcurrentModificationError,
    HashMismatchError,
    InvalidTokenError,
    TokenReusedError,
)
from research_core.services._shared.ports import (
    REFRESH_TOKEN_TYPE,
    CredentialStore,
    TokenHasher,
    TokenProvider,
)
from research_core.services.auth.dto import AuthTokenConfig, TokenPairOut

logger = logging.getLogger(__name__)

# Returns the records to persist, or ``None`` when no write is needed.
ListMutation = Callable[[TokenList], Iterable[RefreshTokenRecord] | None]


class TokenLifecycleManager(BaseService):
    """
    Issue, rotate and revoke paired access/refresh tokens.

    Access tokens are stateless. Every refresh token has exactly one
    server-side :class:`RefreshTokenRecord` (hash only) in the user's token
    list; a token is usable while its record is present. Lifecycle::

        issued -> rotated -> dead (a new record replaces it)
               -> revoked -> dead
               -> expired -> dead (pruned lazily on the next issuance)

    Rotation is a single compare-and-swap write, so two concurrent rotations of
    the same token cannot both succeed. Issue and revoke only need
    last-writer-wins and retry a bounded number of times on conflict.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        credential_store: CredentialStore,
        hasher: TokenHasher,
        token_cfg: AuthTokenConfig | None = None,
        clock: Callable[[], datetime] | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the manager with its ports.

        :param token_provider: Signs/verifies tokens (distinct keys per token type).
        :param credential_store: Versioned per-user token list (CAS writes).
        :param hasher: One-way hash applied to signed refresh tokens.
        :param token_cfg: Lifetimes and retry policy.
        :param clock: UTC clock override, used by tests to age records.
        """
        super().__init__(ctx=ctx, clock=clock)
        self.tokens = token_provider
        self.store = credential_store
        self.hasher = hasher
        self.cfg = token_cfg or AuthTokenConfig()

    @staticmethod
    def new_token_id() -> str:
        """Generate a new random refresh token identifier."""
        return uuid4().hex

    @staticmethod
    def _claims(user: UserRecord) -> dict[str, Any]:
        # Stable wire contract shared with already-issued tokens.
        return {
            "role": getattr(user.role, "value", user.role),
            "orgId": str(user.org_id) if user.org_id is not None else None,
        }

    # ------------------------------------------------------------------ #
    # Access tokens
    # ------------------------------------------------------------------ #

    def sign_access(self, user: UserRecord) -> str:
        """Sign an access token carrying ``{sub, role, orgId}``. No side effects."""
        return self.tokens.create_access_token(
            identity=str(user.id),
            additional_claims=self._claims(user),
            expires_delta=self.cfg.access_expires,
        )

    # ------------------------------------------------------------------ #
    # Refresh tokens
    # ------------------------------------------------------------------ #

    def _mint_refresh(self, user: UserRecord, now: datetime) -> tuple[str, RefreshTokenRecord]:
        token_id = self.new_token_id()
        claims = {"tid": token_id, **self._claims(user)}
        raw = self.tokens.create_refresh_token(
            identity=str(user.id),
            additional_claims=claims,
            expires_delta=self.cfg.refresh_expires,
        )
        record = RefreshTokenRecord(
            token_id=token_id,
            token_hash=self.hasher.hash(raw),
            created_at=now,
            expires_at=now + self.cfg.refresh_expires,
        )
        return raw, record

    def issue_refresh(self, user: UserRecord) -> str:
        """
        Issue a new refresh token and record its hash.

        Expired records are pruned in the same write. The raw token is only
        returned, never stored.

        :returns: Signed refresh token.
        """
        now = self.now_utc()
        raw, record = self._mint_refresh(user, now)

        self._write_with_retry(str(user.id), lambda current: (*current.pruned(now), record))
        logger.info(
            "refresh_token.issued",
            extra={"user_id": str(user.id), "token_id": record.token_id},
        )
        return raw

    def rotate_refresh(self, raw_refresh_token: str, user: UserRecord) -> TokenPairOut:
        """
        Exchange a refresh token for a new access/refresh pair (single use).

        :param raw_refresh_token: Signed refresh token presented by the client.
        :param user: Owner of the token, already loaded by the caller.
        :returns: New pair. The presented refresh token is dead afterwards.
        :raises InvalidTokenError: Bad signature/expiry, wrong subject, or no live record.
        :raises TokenReusedError: The token was already rotated or revoked.
        :raises HashMismatchError: The stored hash does not match the token.
        :raises ConcurrentModificationError: Another rotation won the race.
        """
        claims = self.tokens.decode(raw_refresh_token, token_type=REFRESH_TOKEN_TYPE)
        token_id = claims.get("tid")
        if not token_id:
            raise InvalidTokenError("Invalid refresh token")
        if str(claims.get("sub")) != str(user.id):
            raise InvalidTokenError("Invalid refresh token")

        user_id = str(user.id)
        current = self.store.load_token_list(user_id)
        record = current.find(str(token_id))
        if record is None:
            self._on_reuse(user, str(token_id))
            raise TokenReusedError()

        if not self.hasher.verify(record.token_hash, raw_refresh_token):
            logger.warning(
                "refresh_token.hash_mismatch",
                extra={"user_id": user_id, "token_id": record.token_id},
            )
            raise HashMismatchError()

        now = self.now_utc()
        if record.is_expired(now):
            raise InvalidTokenError("Refresh token expired")

        new_raw, new_record = self._mint_refresh(user, now)
        remaining = tuple(r for r in current.pruned(now) if r.token_id != record.token_id)
        try:
            # Delete + insert in one CAS write: a racing rotation sees a version change.
            self.store.save_token_list(user_id, current, (*remaining, new_record))
        except ConcurrentModificationError:
            logger.warning(
                "refresh_token.rotation_conflict",
                extra={"user_id": user_id, "token_id": record.token_id},
            )
            raise

        logger.info(
            "refresh_token.rotated",
            extra={"user_id": user_id, "token_id": new_record.token_id},
        )
        return TokenPairOut(access_token=self.sign_access(user), refresh_token=new_raw)

    def live_record(self, raw_refresh_token: str, user: UserRecord) -> RefreshTokenRecord | None:
        """
        Return the stored record backing ``raw_refresh_token``, or ``None``.

        A record is returned only for a verified, unexpired token of ``user``
        whose ``tid`` is still listed and whose hash matches. Nothing is
        written and nothing is raised.
        """
        try:
            claims = self.tokens.decode(raw_refresh_token, token_type=REFRESH_TOKEN_TYPE)
        except InvalidTokenError:
            return None
        token_id = claims.get("tid")
        if not token_id or str(claims.get("sub")) != str(user.id):
            return None
        record = self.store.load_token_list(str(user.id)).find(str(token_id))
        if record is None or record.is_expired(self.now_utc()):
            return None
        if not self.hasher.verify(record.token_hash, raw_refresh_token):
            return None
        return record

    def revoke_one(self, user: UserRecord, token_id: str) -> bool:
        """
        Remove a single session (logout from one device). Idempotent.

        :returns: ``True`` if a record was removed.
        """

        def _drop(current: TokenList) -> Iterable[RefreshTokenRecord] | None:
            if current.find(token_id) is None:
                return None
            return current.without(token_id)

        removed = self._write_with_retry(str(user.id), _drop)
        logger.info(
            "refresh_token.revoked",
            extra={"user_id": str(user.id), "token_id": token_id},
        )
        return removed

    def revoke_all(self, user: UserRecord) -> bool:
        """
        Remove every session of the user (password change, deactivation, compromise).

        :returns: ``True`` if any record was removed.
        """
        removed = self._write_with_retry(
            str(user.id), lambda current: () if current.records else None
        )
        logger.info("refresh_token.revoked_all", extra={"user_id": str(user.id)})
        return removed

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _write_with_retry(self, user_id: str, mutate: ListMutation) -> bool:
        """Apply ``mutate`` with last-writer-wins semantics over the CAS store."""
        attempts = max(1, self.cfg.cas_max_attempts)
        for attempt in range(1, attempts + 1):
            current = self.store.load_token_list(user_id)
            records = mutate(current)
            if records is None:
                return False
            try:
                self.store.save_token_list(user_id, current, records)
                return True
            except ConcurrentModificationError:
                if attempt == attempts:
                    raise
                logger.info(
                    "credential_store.retry",
                    extra={"user_id": user_id, "attempt": attempt},
                )
        return False  # pragma: no cover - loop always returns or raises

    def _on_reuse(self, user: UserRecord, token_id: str) -> None:
        logger.warning(
            "refresh_token.reuse_detected",
            extra={"user_id": str(user.id), "token_id": token_id},
        )
        if self.cfg.revoke_all_on_reuse:
            self.revoke_all(user)
