"""Refresh-token hashing backed by :mod:`werkzeug.security`."""

from __future__ import annotations

from dataclasses import dataclass

from werkzeug.security import check_password_hash, generate_password_hash

from research_core.services._shared.ports import TokenHasher


@dataclass(slots=True)
class WerkzeugTokenHasher(TokenHasher):
    """
    Salted one-way hash of signed refresh tokens.

    :param method: Werkzeug method string, e.g. ``"scrypt"`` or ``"pbkdf2:sha256:600000"``.
    """

    method: str = "scrypt"

    def hash(self, raw: str) -> str:
        if not isinstance(raw, str) or not raw:
            raise ValueError("Token must be a non-empty string.")
        return generate_password_hash(raw, method=self.method)

    def verify(self, stored_hash: str, raw: str) -> bool:
        if not stored_hash or not raw:
            return False
        # ``check_password_hash`` is untyped; coerce to bool for mypy.
        return bool(check_password_hash(stored_hash, raw))
