from __future__ import annotations

from typing import Protocol


class TokenHasher(Protocol):
    """One-way, salted hashing of signed refresh tokens."""

    def hash(self, raw: str) -> str: ...

    def verify(self, stored_hash: str, raw: str) -> bool: ...
