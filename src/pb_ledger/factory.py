"""Ledger store factory — picks the backend from settings.STORE_BACKEND.

The opened store is process-wide; routers receive it through the
get_ledger_store dependency, tests override that dependency.
"""

import logging

import redis.asyncio as aioredis

from config.settings import settings
from src.pb_common.enums import StoreBackend
from src.pb_ledger.domain.store import LedgerStoreProtocol
from src.pb_ledger.infrastructure.file_store import FileLedgerStore
from src.pb_ledger.infrastructure.redis_store import RedisLedgerStore

logger = logging.getLogger(__name__)

_store: LedgerStoreProtocol | None = None


async def _build_store(backend: StoreBackend) -> LedgerStoreProtocol:
    if backend is StoreBackend.REDIS:
        client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
        return RedisLedgerStore(
            client,
            lock_wait_seconds=settings.LOCK_WAIT_SECONDS,
            lock_lease_seconds=settings.LOCK_LEASE_SECONDS,
        )
    return await FileLedgerStore.open(
        settings.LEDGER_FILE_PATH,
        lock_wait_seconds=settings.LOCK_WAIT_SECONDS,
    )


async def open_ledger_store() -> LedgerStoreProtocol:
    """Create the configured store (once) and verify it is reachable."""
    global _store  # noqa: PLW0603
    if _store is None:
        backend = StoreBackend(settings.STORE_BACKEND)
        store = await _build_store(backend)
        try:
            await store.ping()
        except Exception:
            await store.close()
            raise
        _store = store
        logger.info("Ledger store ready: backend=%s", backend.value)
    return _store


async def get_ledger_store() -> LedgerStoreProtocol:
    """FastAPI dependency: the process-wide ledger store."""
    return await open_ledger_store()


async def close_ledger_store() -> None:
    global _store  # noqa: PLW0603
    if _store is not None:
        await _store.close()
        _store = None
        logger.info("Ledger store closed")
