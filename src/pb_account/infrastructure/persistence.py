"""UserRepository — concrete implementation of UserRepositoryProtocol.

Stored shape (key users:{id}):
    {"id": ..., "name": ..., "balance": 100, "createdAt": "<ISO>"}

Plus the name index users:byName:{lower-name} -> id and the users:all set.
Locking is the caller's responsibility (AccountService).
"""

import asyncio
from typing import Any

from src.pb_account.domain.models import User
from src.pb_ledger import codec
from src.pb_ledger.domain.keys import ALL_USERS, user_key, user_name_key
from src.pb_ledger.domain.store import LedgerStoreProtocol


def user_to_record(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "balance": user.balance,
        "createdAt": codec.ts_out(user.created_at),
    }


def user_from_record(record: dict[str, Any]) -> User:
    return User(
        id=record["id"],
        name=record["name"],
        balance=float(record["balance"]),
        created_at=codec.ts_in(record["createdAt"]),
    )


class UserRepository:
    async def get_user(self, store: LedgerStoreProtocol, user_id: str) -> User | None:
        key = user_key(user_id)
        raw = await store.get(key)
        if raw is None:
            return None
        return user_from_record(codec.loads(key, raw))

    async def get_user_id_by_name(self, store: LedgerStoreProtocol, name: str) -> str | None:
        return await store.get(user_name_key(name))

    async def list_users(self, store: LedgerStoreProtocol) -> list[User]:
        ids = await store.members_of(ALL_USERS)
        users = await asyncio.gather(*(self.get_user(store, uid) for uid in ids))
        return [u for u in users if u is not None]

    async def insert_user(self, store: LedgerStoreProtocol, user: User) -> None:
        await store.set(user_key(user.id), codec.dumps(user_to_record(user)))
        await store.set(user_name_key(user.name), user.id)
        await store.add_to_set(ALL_USERS, user.id)

    async def save_user(self, store: LedgerStoreProtocol, user: User) -> None:
        await store.set(user_key(user.id), codec.dumps(user_to_record(user)))

    async def delete_user(self, store: LedgerStoreProtocol, user: User) -> None:
        await store.delete(user_key(user.id))
        await store.delete(user_name_key(user.name))
        await store.remove_from_set(ALL_USERS, user.id)
