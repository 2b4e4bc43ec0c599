# comments in English; reST docstrings
from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass

import redis  # type: ignore[import-untyped]

from research_core.services._shared.dto import RefreshTokenRecord, TokenList
from research_core.services._shared.errors import ConcurrentModificationError
from research_core.services._shared.ports import CredentialStore


@dataclass(slots=True)
class RedisCredentialStore(CredentialStore):
    """
    Redis-backed credential store with compare-and-swap writes.

    Each user owns one hash ``rt:u:<user_id>`` with two fields:

    - ``version``: monotonically increasing CAS witness.
    - ``records``: JSON array of serialized :class:`RefreshTokenRecord`.

    :param r: A Redis client (already connected).
    """

    r: redis.Redis

    # -------------------- helpers --------------------

    @staticmethod
    def _ku(user_id: str) -> str:
        return f"rt:u:{user_id}"

    @staticmethod
    def _decode(raw: dict[bytes, bytes]) -> TokenList:
        if not raw:
            return TokenList()
        version = int(raw.get(b"version", b"0").decode())
        payload = json.loads(raw.get(b"records", b"[]").decode())
        return TokenList.from_payload(version, payload)

    # -------------------- API ------------------------

    def load_token_list(self, user_id: str) -> TokenList:
        return self._decode(self.r.hgetall(self._ku(str(user_id))))

    def save_token_list(
        self,
        user_id: str,
        expected: TokenList,
        records: Iterable[RefreshTokenRecord],
    ) -> TokenList:
        """
        Replace the list using Redis WATCH/MULTI/EXEC (optimistic locking).

        - Watch the user key.
        - Re-read the stored version and compare it with ``expected.version``.
        - Write version + records in one transaction.

        A mismatch, or a concurrent write between WATCH and EXEC, raises
        :class:`ConcurrentModificationError`. There is no retry loop here: the
        caller decides whether a retry is safe.
        """
        key = self._ku(str(user_id))
        updated = expected.with_records(records)

        try:
            with self.r.pipeline() as p:
                p.watch(key)
                stored = p.hget(key, "version")
                stored_version = int(stored.decode()) if stored else 0
                if stored_version != expected.version:
                    p.unwatch()
                    raise ConcurrentModificationError(str(user_id), expected.version)

                p.multi()
                p.hset(
                    key,
                    mapping={
                        "version": str(updated.version),
                        "records": json.dumps(updated.to_payload()),
                    },
                )
                p.execute()
        except redis.WatchError as exc:
            raise ConcurrentModificationError(str(user_id), expected.version) from exc

        return updated
