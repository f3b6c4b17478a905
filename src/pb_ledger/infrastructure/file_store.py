"""FileLedgerStore — LedgerStoreProtocol over one local JSON document.

Document layout:
    {"values": {"<key>": "<json string>", ...},
     "sets":   {"<set key>": ["<member>", ...], ...}}

The document is held in memory and rewritten atomically (temp file +
os.replace) after every mutation. A mutation whose write fails is undone in
memory before StoreUnavailableError is raised, so readers never observe it.

Entity locks are in-process asyncio locks: this backend serves a single
API process.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path

from src.pb_common.errors import StoreUnavailableError
from src.pb_ledger.domain.store import LockHandle, LockNotAcquired

logger = logging.getLogger(__name__)


def _read_document(path: Path) -> dict:
    if not path.exists():
        return {"values": {}, "sets": {}}
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _write_document(path: Path, document: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(document, f, sort_keys=True)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class _FileLockHandle:
    def __init__(self, lock: asyncio.Lock) -> None:
        self._lock = lock

    async def release(self) -> None:
        self._lock.release()


class FileLedgerStore:
    def __init__(
        self,
        path: Path,
        values: dict[str, str],
        sets: dict[str, set[str]],
        lock_wait_seconds: float,
    ) -> None:
        self._path = path
        self._values = values
        self._sets = sets
        self._lock_wait = lock_wait_seconds
        self._io_lock = asyncio.Lock()
        self._entity_locks: dict[str, asyncio.Lock] = {}

    @classmethod
    async def open(cls, path: str | Path, lock_wait_seconds: float) -> "FileLedgerStore":
        path = Path(path)
        try:
            document = await asyncio.to_thread(_read_document, path)
        except (OSError, ValueError) as e:
            raise StoreUnavailableError(f"cannot read {path}: {e}") from e
        values = dict(document.get("values", {}))
        sets = {k: set(v) for k, v in document.get("sets", {}).items()}
        logger.info(
            "Ledger file opened: %s (%d keys, %d sets)", path, len(values), len(sets)
        )
        return cls(path, values, sets, lock_wait_seconds)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _document(self) -> dict:
        return {
            "values": dict(self._values),
            "sets": {k: sorted(v) for k, v in self._sets.items()},
        }

    async def _commit(self, apply: Callable[[], None], undo: Callable[[], None]) -> None:
        async with self._io_lock:
            apply()
            try:
                await asyncio.to_thread(_write_document, self._path, self._document())
            except OSError as e:
                undo()
                raise StoreUnavailableError(f"cannot write {self._path}: {e}") from e

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        previous = self._values.get(key)

        def apply() -> None:
            self._values[key] = value

        def undo() -> None:
            if previous is None:
                self._values.pop(key, None)
            else:
                self._values[key] = previous

        await self._commit(apply, undo)

    async def exists(self, key: str) -> bool:
        return key in self._values or bool(self._sets.get(key))

    async def delete(self, key: str) -> None:
        if key not in self._values and key not in self._sets:
            return
        previous_value = self._values.get(key)
        previous_set = self._sets.get(key)

        def apply() -> None:
            self._values.pop(key, None)
            self._sets.pop(key, None)

        def undo() -> None:
            if previous_value is not None:
                self._values[key] = previous_value
            if previous_set is not None:
                self._sets[key] = previous_set

        await self._commit(apply, undo)

    # ------------------------------------------------------------------
    # Sets
    # ------------------------------------------------------------------

    async def add_to_set(self, set_key: str, member: str) -> None:
        if member in self._sets.get(set_key, set()):
            return

        def apply() -> None:
            self._sets.setdefault(set_key, set()).add(member)

        def undo() -> None:
            self._sets[set_key].discard(member)
            if not self._sets[set_key]:
                del self._sets[set_key]

        await self._commit(apply, undo)

    async def remove_from_set(self, set_key: str, member: str) -> None:
        if member not in self._sets.get(set_key, set()):
            return

        def apply() -> None:
            self._sets[set_key].discard(member)
            if not self._sets[set_key]:
                del self._sets[set_key]

        def undo() -> None:
            self._sets.setdefault(set_key, set()).add(member)

        await self._commit(apply, undo)

    async def members_of(self, set_key: str) -> set[str]:
        return set(self._sets.get(set_key, set()))

    # ------------------------------------------------------------------
    # Locks
    # ------------------------------------------------------------------

    async def acquire_lock(self, name: str) -> LockHandle:
        lock = self._entity_locks.setdefault(name, asyncio.Lock())
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self._lock_wait)
        except TimeoutError as e:
            raise LockNotAcquired(name) from e
        return _FileLockHandle(lock)

    async def ping(self) -> None:
        if not self._path.parent.exists():
            await asyncio.to_thread(self._path.parent.mkdir, parents=True, exist_ok=True)

    async def close(self) -> None:
        return None
