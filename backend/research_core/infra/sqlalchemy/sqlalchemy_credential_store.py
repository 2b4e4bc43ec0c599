# research_core/infra/sqlalchemy/sqlalchemy_credential_store.py
from __future__ import annotations

from collections.abc import Callable, Iterable

from research_core.services._shared.dto import RefreshTokenRecord, TokenList
from research_core.services._shared.errors import ConcurrentModificationError, NotFoundError
from research_core.services._shared.ports import CredentialStore
from research_core.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork, UnitOfWork


def _pk(user_id: str) -> int:
    try:
        return int(user_id)
    except (TypeError, ValueError) as exc:
        raise NotFoundError("User", str(user_id)) from exc


class SQLAlchemyCredentialStore(CredentialStore):
    """
    Keep each user's token list on the ``users`` row.

    ``refresh_tokens`` holds the serialized records and ``token_list_version``
    the CAS witness. A save is one conditional ``UPDATE``; zero affected rows
    means another writer bumped the version first.

    :param uow_factory: Writer Unit of Work factory (commit on success).
    :param read_uow_factory: Read-only Unit of Work factory.
    """

    def __init__(
        self,
        *,
        uow_factory: Callable[[], UnitOfWork] = SQLAlchemyUnitOfWork,
        read_uow_factory: Callable[[], UnitOfWork] = SQLAlchemyReadOnlyUnitOfWork,
    ) -> None:
        self._uow_factory = uow_factory
        self._read_uow_factory = read_uow_factory

    def load_token_list(self, user_id: str) -> TokenList:
        with self._read_uow_factory() as uow:
            row = uow.users.load_token_list(_pk(user_id))
        if row is None:
            return TokenList()
        version, payload = row
        return TokenList.from_payload(version, payload)

    def save_token_list(
        self,
        user_id: str,
        expected: TokenList,
        records: Iterable[RefreshTokenRecord],
    ) -> TokenList:
        updated = expected.with_records(records)
        with self._uow_factory() as uow:
            swapped = uow.users.compare_and_swap_token_list(
                _pk(user_id),
                expected_version=expected.version,
                payload=updated.to_payload(),
            )
            if not swapped:
                # Raising inside the scope rolls the transaction back.
                raise ConcurrentModificationError(str(user_id), expected.version)
        return updated
