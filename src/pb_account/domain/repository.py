"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from src.pb_account.domain.models import User
from src.pb_ledger.domain.store import LedgerStoreProtocol


class UserRepositoryProtocol(Protocol):
    async def get_user(
        self, store: LedgerStoreProtocol, user_id: str
    ) -> User | None: ...

    async def get_user_id_by_name(
        self, store: LedgerStoreProtocol, name: str
    ) -> str | None: ...

    async def list_users(self, store: LedgerStoreProtocol) -> list[User]: ...

    async def insert_user(self, store: LedgerStoreProtocol, user: User) -> None: ...

    async def save_user(self, store: LedgerStoreProtocol, user: User) -> None: ...

    async def delete_user(self, store: LedgerStoreProtocol, user: User) -> None: ...
