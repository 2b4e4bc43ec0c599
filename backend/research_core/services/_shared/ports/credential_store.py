from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Protocol

from research_core.services._shared.dto import RefreshTokenRecord, TokenList
from research_core.services._shared.errors import ConcurrentModificationError


class CredentialStore(Protocol):
    """
    Persistence of a user's refresh-token records.

    The store is keyed by user id and versioned. ``save_token_list`` MUST be a
    compare-and-swap: it succeeds only if the stored version still equals
    ``expected.version`` and otherwise raises
    :class:`~research_core.services._shared.errors.ConcurrentModificationError`.
    """

    def load_token_list(self, user_id: str) -> TokenList:
        """Return the current snapshot (an empty version-0 list when unknown)."""
        ...

    def save_token_list(
        self,
        user_id: str,
        expected: TokenList,
        records: Iterable[RefreshTokenRecord],
    ) -> TokenList:
        """
        Atomically replace the list read as ``expected`` with ``records``.

        :returns: The new snapshot (``expected.version + 1``).
        :raises ConcurrentModificationError: If another writer got there first.
        """
        ...


class InMemoryCredentialStore(CredentialStore):
    """
    In-memory credential store with CAS semantics.

    .. note::
       Uses a threading lock so concurrent tests observe a real race outcome.
    """

    def __init__(self) -> None:
        self._lists: dict[str, TokenList] = {}
        self._lock = threading.Lock()

    def load_token_list(self, user_id: str) -> TokenList:
        with self._lock:
            return self._lists.get(str(user_id), TokenList())

    def save_token_list(
        self,
        user_id: str,
        expected: TokenList,
        records: Iterable[RefreshTokenRecord],
    ) -> TokenList:
        key = str(user_id)
        with self._lock:
            current = self._lists.get(key, TokenList())
            if current.version != expected.version:
                raise ConcurrentModificationError(key, expected.version)
            updated = current.with_records(records)
            self._lists[key] = updated
            return updated
