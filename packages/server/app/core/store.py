"""
Document store: the persistent collaborator behind the access model.

Documents are JSON objects addressed by (collection, key). The store offers:
- whole-document writes (set / create-if-absent)
- field-path updates, so concurrent edits to different fields do not clobber
  each other (last write wins per field path)
- ArrayUnion appends
- multi-document transactions: all writes commit or none do
- change subscriptions per collection

Two backends share this contract: an in-process memory store (tests, single
node) and an aiosqlite file store.
"""

from __future__ import annotations

import asyncio
import copy
import json
import os
import sqlite3
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Union

import aiosqlite
import structlog

from app.core.config import Settings, get_settings
from app.core.errors import StoreUnavailable

log = structlog.get_logger()

ORGANIZATIONS = "organizations"
REQUESTS = "requests"

FieldPath = Union[str, tuple[str, ...]]


class DocumentNotFound(LookupError):
    def __init__(self, collection: str, key: str):
        super().__init__(f"{collection}/{key} does not exist")
        self.collection = collection
        self.key = key


class DocumentExists(Exception):
    def __init__(self, collection: str, key: str):
        super().__init__(f"{collection}/{key} already exists")
        self.collection = collection
        self.key = key


class ArrayUnion:
    """Update sentinel: append each value not already in the array."""

    def __init__(self, *values: Any):
        self.values = values


@dataclass
class ChangeEvent:
    collection: str
    key: str


@dataclass
class _Write:
    op: str  # set | create | update
    collection: str
    key: str
    data: Any


def _split_path(path: FieldPath) -> tuple[str, ...]:
    # Tuples allow segments containing dots or spaces ("Super Admin")
    if isinstance(path, tuple):
        return path
    return tuple(path.split("."))


def apply_updates(doc: dict, updates: Mapping[FieldPath, Any]) -> dict:
    """Return a copy of ``doc`` with field-path updates applied."""
    result = copy.deepcopy(doc)
    for path, value in updates.items():
        parts = _split_path(path)
        target = result
        for part in parts[:-1]:
            child = target.get(part)
            if not isinstance(child, dict):
                child = {}
                target[part] = child
            target = child
        leaf = parts[-1]
        if isinstance(value, ArrayUnion):
            current = list(target.get(leaf) or [])
            for item in value.values:
                if item not in current:
                    current.append(copy.deepcopy(item))
            target[leaf] = current
        else:
            target[leaf] = copy.deepcopy(value)
    return result


def _resolve(write: _Write, current: dict | None) -> dict:
    if write.op == "create":
        if current is not None:
            raise DocumentExists(write.collection, write.key)
        return copy.deepcopy(write.data)
    if write.op == "set":
        return copy.deepcopy(write.data)
    if current is None:
        raise DocumentNotFound(write.collection, write.key)
    return apply_updates(current, write.data)


class Transaction:
    """
    Serialized read-validate-write unit.

    Reads see committed state; writes are buffered and applied atomically on
    a clean exit. Raising inside the block discards every buffered write.
    Do not call the store's own write methods inside a transaction.
    """

    def __init__(self, store: DocumentStore):
        self._store = store
        self._writes: list[_Write] = []

    async def __aenter__(self) -> Transaction:
        await self._store._lock.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc_type is None and self._writes:
                await self._store._apply(self._writes)
        finally:
            self._store._lock.release()
        if exc_type is None:
            self._store._notify(self._writes)
        return False

    async def get(self, collection: str, key: str) -> dict | None:
        return await self._store._read(collection, key)

    def set(self, collection: str, key: str, data: dict) -> None:
        self._writes.append(_Write("set", collection, key, data))

    def create(self, collection: str, key: str, data: dict) -> None:
        self._writes.append(_Write("create", collection, key, data))

    def update(self, collection: str, key: str, updates: Mapping[FieldPath, Any]) -> None:
        self._writes.append(_Write("update", collection, key, dict(updates)))


class Subscription:
    """Async stream of change events for one or more collections."""

    def __init__(self, store: DocumentStore, collections: tuple[str, ...]):
        self._store = store
        self._collections = collections
        self._queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
        for collection in collections:
            store._subscribers[collection].add(self._queue)

    def close(self) -> None:
        for collection in self._collections:
            self._store._subscribers[collection].discard(self._queue)

    async def get(self, timeout: float | None = None) -> ChangeEvent:
        return await asyncio.wait_for(self._queue.get(), timeout=timeout)

    def pending(self) -> int:
        return self._queue.qsize()

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> ChangeEvent:
        return await self._queue.get()


class DocumentStore:
    """Backend-independent store API. Subclasses implement _read/_list/_apply."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._subscribers: dict[str, set[asyncio.Queue]] = defaultdict(set)

    async def open(self) -> None:
        pass

    async def close(self) -> None:
        pass

    # --- Reads ---

    async def get(self, collection: str, key: str) -> dict | None:
        return await self._read(collection, key)

    async def list(self, collection: str) -> list[dict]:
        return await self._list(collection)

    # --- Writes ---

    async def set(self, collection: str, key: str, data: dict) -> None:
        async with self.transaction() as txn:
            txn.set(collection, key, data)

    async def create(self, collection: str, key: str, data: dict) -> None:
        """Write only if absent; raises DocumentExists otherwise."""
        async with self.transaction() as txn:
            txn.create(collection, key, data)

    async def update(
        self, collection: str, key: str, updates: Mapping[FieldPath, Any]
    ) -> None:
        """Field-path update; raises DocumentNotFound if the document is absent."""
        async with self.transaction() as txn:
            txn.update(collection, key, updates)

    def transaction(self) -> Transaction:
        return Transaction(self)

    # --- Subscriptions ---

    def subscribe(self, *collections: str) -> Subscription:
        return Subscription(self, collections)

    def _notify(self, writes: list[_Write]) -> None:
        for write in writes:
            for queue in list(self._subscribers.get(write.collection, ())):
                queue.put_nowait(ChangeEvent(write.collection, write.key))

    # --- Backend hooks ---

    async def _read(self, collection: str, key: str) -> dict | None:
        raise NotImplementedError

    async def _list(self, collection: str) -> list[dict]:
        raise NotImplementedError

    async def _apply(self, writes: list[_Write]) -> None:
        raise NotImplementedError


class MemoryDocumentStore(DocumentStore):
    """In-process store; documents are deep-copied in and out."""

    def __init__(self) -> None:
        super().__init__()
        self._docs: dict[str, dict[str, dict]] = defaultdict(dict)

    async def _read(self, collection: str, key: str) -> dict | None:
        doc = self._docs[collection].get(key)
        return copy.deepcopy(doc) if doc is not None else None

    async def _list(self, collection: str) -> list[dict]:
        return [copy.deepcopy(d) for d in self._docs[collection].values()]

    async def _apply(self, writes: list[_Write]) -> None:
        # Resolve everything first so a failing write leaves no trace
        staged: dict[tuple[str, str], dict] = {}
        for write in writes:
            ref = (write.collection, write.key)
            current = staged[ref] if ref in staged else self._docs[write.collection].get(write.key)
            staged[ref] = _resolve(write, current)
        for (collection, key), doc in staged.items():
            self._docs[collection][key] = doc


_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    collection  TEXT NOT NULL,
    key         TEXT NOT NULL,
    body        TEXT NOT NULL,
    updated_at  TEXT NOT NULL,
    PRIMARY KEY (collection, key)
);
"""


class SqliteDocumentStore(DocumentStore):
    """aiosqlite-backed store; each transaction is one BEGIN IMMEDIATE block."""

    def __init__(self, db_path: str):
        super().__init__()
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def open(self) -> None:
        os.makedirs(os.path.dirname(self._db_path) or ".", exist_ok=True)
        try:
            self._db = await aiosqlite.connect(self._db_path, isolation_level=None)
            self._db.row_factory = aiosqlite.Row
            await self._db.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            log.error("store.unavailable", backend="sqlite", error=str(exc))
            raise StoreUnavailable(f"Cannot open store at {self._db_path}") from exc

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StoreUnavailable("Store is not open")
        return self._db

    async def _fetch(self, collection: str, key: str) -> dict | None:
        cursor = await self._conn().execute(
            "SELECT body FROM documents WHERE collection = ? AND key = ?",
            (collection, key),
        )
        row = await cursor.fetchone()
        return json.loads(row["body"]) if row else None

    async def _read(self, collection: str, key: str) -> dict | None:
        try:
            return await self._fetch(collection, key)
        except sqlite3.Error as exc:
            log.error("store.unavailable", backend="sqlite", error=str(exc))
            raise StoreUnavailable("Document read failed") from exc

    async def _list(self, collection: str) -> list[dict]:
        try:
            cursor = await self._conn().execute(
                "SELECT body FROM documents WHERE collection = ? ORDER BY rowid",
                (collection,),
            )
            rows = await cursor.fetchall()
        except sqlite3.Error as exc:
            log.error("store.unavailable", backend="sqlite", error=str(exc))
            raise StoreUnavailable("Collection read failed") from exc
        return [json.loads(r["body"]) for r in rows]

    async def _apply(self, writes: list[_Write]) -> None:
        db = self._conn()
        now = datetime.now(timezone.utc).isoformat()
        try:
            await db.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as exc:
            log.error("store.unavailable", backend="sqlite", error=str(exc))
            raise StoreUnavailable("Could not begin transaction") from exc
        try:
            staged: dict[tuple[str, str], dict] = {}
            for write in writes:
                ref = (write.collection, write.key)
                current = staged[ref] if ref in staged else await self._fetch(*ref)
                staged[ref] = _resolve(write, current)
            for (collection, key), doc in staged.items():
                await db.execute(
                    """INSERT INTO documents (collection, key, body, updated_at)
                       VALUES (?, ?, ?, ?)
                       ON CONFLICT(collection, key) DO UPDATE
                       SET body = excluded.body, updated_at = excluded.updated_at""",
                    (collection, key, json.dumps(doc), now),
                )
            await db.execute("COMMIT")
        except sqlite3.Error as exc:
            await db.execute("ROLLBACK")
            log.error("store.unavailable", backend="sqlite", error=str(exc))
            raise StoreUnavailable("Transaction failed and was rolled back") from exc
        except BaseException:
            await db.execute("ROLLBACK")
            raise


# ---------------------------------------------------------------------------
# Process-wide store
# ---------------------------------------------------------------------------

_store: DocumentStore | None = None


def create_store(settings: Settings) -> DocumentStore:
    if settings.store_backend == "sqlite":
        return SqliteDocumentStore(settings.sqlite_path)
    return MemoryDocumentStore()


async def get_store() -> DocumentStore:
    """Get or open the configured store (FastAPI dependency)."""
    global _store
    if _store is None:
        store = create_store(get_settings())
        await store.open()
        _store = store
    return _store


async def close_store() -> None:
    global _store
    if _store is not None:
        await _store.close()
        _store = None
