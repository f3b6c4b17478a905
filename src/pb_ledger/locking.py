"""Per-entity critical sections over the ledger store.

Every read-modify-write of a User or Market record runs inside
entity_lock(store, kind, id). Acquisition waits a bounded time per attempt
and is retried a bounded number of times; exhaustion surfaces as
ConflictError (transient, the caller may retry the whole operation).

Lock order is market before user, and several users are locked in sorted id
order. Nothing takes a market lock while holding a user lock.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import AsyncExitStack, asynccontextmanager

from config.settings import settings
from src.pb_common.errors import ConflictError
from src.pb_ledger.domain.keys import lock_name
from src.pb_ledger.domain.store import LedgerStoreProtocol, LockNotAcquired

logger = logging.getLogger(__name__)

MARKET = "market"
USER = "user"


@asynccontextmanager
async def entity_lock(
    store: LedgerStoreProtocol,
    kind: str,
    entity_id: str,
    retries: int | None = None,
    backoff_seconds: float | None = None,
) -> AsyncIterator[None]:
    name = lock_name(kind, entity_id)
    retries = retries if retries is not None else settings.LOCK_RETRIES
    backoff = backoff_seconds if backoff_seconds is not None else settings.LOCK_RETRY_BACKOFF_SECONDS

    handle = None
    for attempt in range(1, retries + 1):
        try:
            handle = await store.acquire_lock(name)
            break
        except LockNotAcquired:
            logger.warning("Lock contention on %s (attempt %d/%d)", name, attempt, retries)
            if attempt < retries:
                await asyncio.sleep(backoff * attempt)
    if handle is None:
        raise ConflictError(name)

    try:
        yield
    except BaseException:
        try:
            await handle.release()
        except Exception:
            logger.exception("Lock release failed on %s after an error in the critical section", name)
        raise
    await handle.release()


@asynccontextmanager
async def entity_locks(
    store: LedgerStoreProtocol,
    kind: str,
    entity_ids: Iterable[str],
) -> AsyncIterator[None]:
    """Hold the locks of several entities of one kind, taken in sorted id order."""
    async with AsyncExitStack() as stack:
        for entity_id in sorted(set(entity_ids)):
            await stack.enter_async_context(entity_lock(store, kind, entity_id))
        yield
