"""RedisLedgerStore — LedgerStoreProtocol over redis.asyncio.

Values are JSON strings under plain keys; indexes are Redis sets. Entity
locks are Redis locks (SET NX PX with a random token) so that several API
processes sharing one Redis serialize on the same market/user.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import redis.asyncio as aioredis
from redis.asyncio.lock import Lock
from redis.exceptions import LockNotOwnedError, RedisError

from src.pb_common.errors import StoreUnavailableError
from src.pb_ledger.domain.store import LockHandle, LockNotAcquired

logger = logging.getLogger(__name__)

_LOCK_PREFIX = "lock:"


@contextmanager
def _store_errors(op: str) -> Iterator[None]:
    try:
        yield
    except RedisError as e:
        raise StoreUnavailableError(f"redis {op} failed: {e}") from e


class _RedisLockHandle:
    def __init__(self, lock: Lock, name: str) -> None:
        self._lock = lock
        self._name = name

    async def release(self) -> None:
        try:
            await self._lock.release()
        except LockNotOwnedError:
            # Lease expired inside the critical section; another holder may have run.
            logger.error("Lock lease expired before release: %s", self._name)
        except RedisError as e:
            raise StoreUnavailableError(f"redis unlock failed: {e}") from e


class RedisLedgerStore:
    def __init__(
        self,
        client: aioredis.Redis,
        lock_wait_seconds: float,
        lock_lease_seconds: float,
    ) -> None:
        self._redis = client
        self._lock_wait = lock_wait_seconds
        self._lock_lease = lock_lease_seconds

    async def get(self, key: str) -> str | None:
        with _store_errors("get"):
            return await self._redis.get(key)

    async def set(self, key: str, value: str) -> None:
        with _store_errors("set"):
            await self._redis.set(key, value)

    async def exists(self, key: str) -> bool:
        with _store_errors("exists"):
            return bool(await self._redis.exists(key))

    async def delete(self, key: str) -> None:
        with _store_errors("delete"):
            await self._redis.delete(key)

    async def add_to_set(self, set_key: str, member: str) -> None:
        with _store_errors("sadd"):
            await self._redis.sadd(set_key, member)

    async def remove_from_set(self, set_key: str, member: str) -> None:
        with _store_errors("srem"):
            await self._redis.srem(set_key, member)

    async def members_of(self, set_key: str) -> set[str]:
        with _store_errors("smembers"):
            return set(await self._redis.smembers(set_key))

    async def acquire_lock(self, name: str) -> LockHandle:
        lock = self._redis.lock(
            _LOCK_PREFIX + name,
            timeout=self._lock_lease,
            blocking_timeout=self._lock_wait,
        )
        with _store_errors("lock"):
            acquired = await lock.acquire()
        if not acquired:
            raise LockNotAcquired(name)
        return _RedisLockHandle(lock, name)

    async def ping(self) -> None:
        with _store_errors("ping"):
            await self._redis.ping()

    async def close(self) -> None:
        await self._redis.aclose()
