# src/pb_ledger/domain/store.py
"""Ledger store Protocol — dependency inversion over the storage backend.

The engine is written once against this Protocol. Infrastructure provides a
Redis implementation and a local JSON file implementation. No transactional
guarantee across keys is assumed; multi-key consistency is the engine's job.
"""

from __future__ import annotations

from typing import Protocol


class LockNotAcquired(Exception):
    """Raised by acquire_lock when the bounded wait elapses."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Lock not acquired: {name}")


class LockHandle(Protocol):
    async def release(self) -> None: ...


class LedgerStoreProtocol(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def exists(self, key: str) -> bool: ...

    async def delete(self, key: str) -> None: ...

    async def add_to_set(self, set_key: str, member: str) -> None: ...

    async def remove_from_set(self, set_key: str, member: str) -> None: ...

    async def members_of(self, set_key: str) -> set[str]: ...

    async def acquire_lock(self, name: str) -> LockHandle: ...

    async def ping(self) -> None: ...

    async def close(self) -> None: ...
