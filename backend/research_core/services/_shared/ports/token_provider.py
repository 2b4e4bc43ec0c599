from __future__ import annotations

from datetime import timedelta
from typing import Any, Protocol

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenProvider(Protocol):
    """
    Port for issuing and decoding signed tokens.

    Access and refresh tokens are signed with distinct keys and carry a
    ``type`` claim; :meth:`decode` checks both.
    """

    def create_access_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta,
    ) -> str: ...

    def create_refresh_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta,
    ) -> str: ...

    def decode(self, token: str, *, token_type: str) -> dict[str, Any]:
        """
        Verify signature, expiry and type, returning the claims.

        :raises InvalidTokenError: On any verification failure.
        """
        ...

    def peek_subject(self, token: str) -> str | None:
        """Return ``sub`` without verifying; ``None`` if the token is unreadable."""
        ...
