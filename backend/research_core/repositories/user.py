"""User repository: lookups and the refresh-token list compare-and-swap."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, cast

from sqlalchemy import select, update

from research_core.models.user import User
from research_core.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It NEVER handles JWT signing or policy decisions. The token list is
    exposed as raw JSON plus its version; the credential store adapter turns
    them into domain records.
    """

    model = User

    filterable = frozenset({"email", "org_id", "role", "is_active"})
    updatable = frozenset({"display_name", "role", "org_id", "is_active"})

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == email.lower().strip())
        result = self.session.execute(stmt).scalars().first()
        return cast(User | None, result)

    def exists_by_email(self, email: str) -> bool:
        return self.exists(email=email.lower().strip())

    # ---------------------------- Token list --------------------------------

    def load_token_list(self, user_id: int) -> tuple[int, list[dict[str, Any]]] | None:
        """Read ``(token_list_version, refresh_tokens)`` without loading the entity.

        :returns: The pair, or ``None`` when the user does not exist.
        """
        stmt = select(User.token_list_version, User.refresh_tokens).where(User.id == user_id)
        row = self.session.execute(stmt).first()
        if row is None:
            return None
        return int(row[0] or 0), list(row[1] or [])

    def compare_and_swap_token_list(
        self,
        user_id: int,
        *,
        expected_version: int,
        payload: Sequence[Mapping[str, Any]],
    ) -> bool:
        """Replace the token list only if its version is still ``expected_version``.

        Issues ``UPDATE users SET ... WHERE id = :id AND token_list_version = :v``.
        The ORM identity map is bypassed (``synchronize_session=False``).

        :returns: ``True`` when exactly one row was updated.
        """
        stmt = (
            update(User)
            .where(User.id == user_id, User.token_list_version == expected_version)
            .values(
                refresh_tokens=[dict(item) for item in payload],
                token_list_version=expected_version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        return bool(result.rowcount == 1)
