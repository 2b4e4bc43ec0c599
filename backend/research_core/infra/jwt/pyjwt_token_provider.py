# research_core/infra/jwt/pyjwt_token_provider.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from research_core.services._shared.errors import InvalidTokenError
from research_core.services._shared.ports import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    TokenProvider,
)

# Claims every token must carry before it is trusted.
_REQUIRED = ["exp", "iat", "sub"]


@dataclass(slots=True)
class PyJWTTokenProvider(TokenProvider):
    """
    Adapter signing access and refresh tokens with PyJWT.

    Each token family has its own HMAC secret; a ``type`` claim is added as a
    discriminator so a token of one family never decodes as the other.

    :param access_secret: Key for access tokens.
    :param refresh_secret: Key for refresh tokens. Must differ from ``access_secret``.
    :param algorithm: HMAC algorithm.
    :param leeway: Seconds of tolerated clock skew on ``exp``.
    """

    access_secret: str
    refresh_secret: str
    algorithm: str = "HS256"
    leeway: int = 0

    def __post_init__(self) -> None:
        if not self.access_secret or not self.refresh_secret:
            raise ValueError("Both signing secrets are required.")
        if self.access_secret == self.refresh_secret:
            raise ValueError("Access and refresh secrets must be distinct.")

    def _secret_for(self, token_type: str) -> str:
        if token_type == ACCESS_TOKEN_TYPE:
            return self.access_secret
        if token_type == REFRESH_TOKEN_TYPE:
            return self.refresh_secret
        raise ValueError(f"Unknown token type: {token_type!r}")

    def _encode(
        self,
        *,
        token_type: str,
        identity: str,
        additional_claims: dict[str, Any] | None,
        expires_delta: timedelta,
    ) -> str:
        now = datetime.now(UTC)
        payload: dict[str, Any] = dict(additional_claims or {})
        payload.update(
            {
                "sub": str(identity),
                "type": token_type,
                "iat": now,
                "exp": now + expires_delta,
            }
        )
        return jwt.encode(payload, self._secret_for(token_type), algorithm=self.algorithm)

    def create_access_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta,
    ) -> str:
        return self._encode(
            token_type=ACCESS_TOKEN_TYPE,
            identity=identity,
            additional_claims=additional_claims,
            expires_delta=expires_delta,
        )

    def create_refresh_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta,
    ) -> str:
        claims = additional_claims or {}
        if not claims.get("tid"):
            # The token id is the lookup key into the user's token list.
            raise ValueError("Refresh tokens must carry a 'tid' claim.")
        return self._encode(
            token_type=REFRESH_TOKEN_TYPE,
            identity=identity,
            additional_claims=claims,
            expires_delta=expires_delta,
        )

    def decode(self, token: str, *, token_type: str) -> dict[str, Any]:
        if not token or not isinstance(token, str):
            raise InvalidTokenError()
        try:
            claims = jwt.decode(
                token,
                self._secret_for(token_type),
                algorithms=[self.algorithm],
                leeway=self.leeway,
                options={"require": _REQUIRED},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidTokenError("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError() from exc
        if claims.get("type") != token_type:
            raise InvalidTokenError("Wrong token type")
        return claims

    def peek_subject(self, token: str) -> str | None:
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            return None
        subject = claims.get("sub")
        return str(subject) if subject is not None else None
