"""
research_core.services._shared.ports
====================================

Collection of *ports* (hexagonal interfaces) that define the contracts for
session persistence, identity lookups and token infrastructure.

Modules
-------
- :mod:`credential_store`:
    Defines :class:`~.CredentialStore` (versioned, compare-and-swap storage of
    a user's refresh-token records) and an in-memory implementation.

- :mod:`directory`:
    Defines :class:`~.IdentityDirectory` (user and organization lookups) and an
    in-memory implementation.

- :mod:`token_provider`:
    Defines :class:`~.TokenProvider`: signing and verification of tokens.

- :mod:`token_hasher`:
    Defines :class:`~.TokenHasher`: one-way hashing of refresh tokens.

Design Notes
------------
Concrete adapters (Redis, SQLAlchemy, PyJWT, Werkzeug) live under
``research_core.infra`` and are wired by ``research_core.core.services``.
"""

from __future__ import annotations

from .credential_store import CredentialStore, InMemoryCredentialStore
from .directory import IdentityDirectory, InMemoryIdentityDirectory
from .token_hasher import TokenHasher
from .token_provider import ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE, TokenProvider

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "CredentialStore",
    "IdentityDirectory",
    "InMemoryCredentialStore",
    "InMemoryIdentityDirectory",
    "TokenHasher",
    "TokenProvider",
]
