"""Brand Sheet Sync -- Document Store

SQLite-backed document database with the small surface the engine needs
from a hosted document store: point reads, ordered paging queries with
an equality filter, and atomic write batches.

Every document is a JSON object addressed by ``(collection, doc_id)``.
A batch holds at most ``max_ops`` pending operations and is committed in
one transaction, so it is applied completely or not at all.

Database schema:
    documents   - (collection, doc_id) -> JSON data, plus bookkeeping times

Usage:
    from brandsync.store import SERVER_TIMESTAMP, SQLiteDocumentStore

    store = SQLiteDocumentStore("data/brandsync.db")
    batch = store.batch()
    batch.create("products", "A1", {"price": 12.5, "importedAt": SERVER_TIMESTAMP})
    batch.commit()
    store.get("products", "A1")
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional, Protocol

from .config import MAX_BATCH_SIZE
from .models import BatchCommitError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_PRAGMA_SETTINGS = [
    "PRAGMA journal_mode=WAL;",
    "PRAGMA busy_timeout=5000;",
]

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS documents (
    collection      TEXT NOT NULL,
    doc_id          TEXT NOT NULL,
    data            TEXT NOT NULL DEFAULT '{}',      -- JSON object
    created_at      TEXT NOT NULL DEFAULT '',
    updated_at      TEXT NOT NULL DEFAULT '',
    PRIMARY KEY (collection, doc_id)
);
"""


class _ServerTimestamp:
    """Placeholder replaced by the commit time when a batch is written."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


def _now_iso() -> str:
    """Return current UTC datetime as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


def _resolve_timestamps(data: dict[str, Any], now: str) -> dict[str, Any]:
    resolved: dict[str, Any] = {}
    for key, value in data.items():
        if value is SERVER_TIMESTAMP:
            resolved[key] = now
        elif isinstance(value, dict):
            resolved[key] = _resolve_timestamps(value, now)
        else:
            resolved[key] = value
    return resolved


def _json_path(field_path: str) -> str:
    """``salesInfo.merch`` -> ``$."salesInfo"."merch"`` for json_extract."""
    return "$" + "".join(f'."{part}"' for part in field_path.split("."))


def _dumps(data: dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False, sort_keys=True)


# ---------------------------------------------------------------------------
# Documents and batches
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Document:
    id: str
    data: dict[str, Any]


@dataclass(frozen=True)
class WriteOp:
    kind: str                           # "create" | "set" | "update" | "delete"
    collection: str
    doc_id: str
    data: Optional[dict[str, Any]] = None


@dataclass
class WriteBatch:
    """Pending writes; never holds more than ``max_ops`` operations."""

    store: DocumentStore
    max_ops: int = MAX_BATCH_SIZE
    ops: list[WriteOp] = field(default_factory=list)

    def _add(self, op: WriteOp) -> None:
        if len(self.ops) >= self.max_ops:
            raise ValueError(f"Write batch is full ({self.max_ops} operations)")
        self.ops.append(op)

    def create(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Write a new document; the commit fails if it already exists."""
        self._add(WriteOp("create", collection, doc_id, dict(data)))

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Write a document, replacing any existing one."""
        self._add(WriteOp("set", collection, doc_id, dict(data)))

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Overwrite top-level fields of an existing document."""
        self._add(WriteOp("update", collection, doc_id, dict(fields)))

    def delete(self, collection: str, doc_id: str) -> None:
        self._add(WriteOp("delete", collection, doc_id))

    def commit(self) -> int:
        return self.store.commit(self)

    def __len__(self) -> int:
        return len(self.ops)

    @property
    def is_full(self) -> bool:
        return len(self.ops) >= self.max_ops


class DocumentStore(Protocol):
    """What the engine needs from a destination database."""

    def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]: ...

    def batch(self, max_ops: int = MAX_BATCH_SIZE) -> WriteBatch: ...

    def commit(self, batch: WriteBatch) -> int: ...

    def query(
        self,
        collection: str,
        *,
        where: Optional[tuple[str, Any]] = None,
        limit: Optional[int] = None,
        start_after: Optional[str] = None,
    ) -> list[Document]: ...

    def stream(self, collection: str, *, page_size: int = MAX_BATCH_SIZE) -> Iterator[Document]: ...

    def count(self, collection: str, *, where: Optional[tuple[str, Any]] = None) -> int: ...


# ---------------------------------------------------------------------------
# SQLite implementation
# ---------------------------------------------------------------------------

class SQLiteDocumentStore:
    """Document store backed by one SQLite table of JSON documents.

    Thread safety: each call opens and closes its own connection, so
    batches may be committed from worker threads.  WAL journaling plus a
    busy timeout serializes concurrent writers.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    # ------------------------------------------------------------------
    # Database connection helpers
    # ------------------------------------------------------------------

    def _get_conn(self) -> sqlite3.Connection:
        """Open a new SQLite connection with row_factory and pragmas."""
        conn = sqlite3.connect(str(self.db_path), timeout=30)
        conn.row_factory = sqlite3.Row
        for pragma in _PRAGMA_SETTINGS:
            conn.execute(pragma)
        return conn

    def _init_db(self) -> None:
        """Create tables if they don't exist."""
        conn = self._get_conn()
        try:
            conn.executescript(_SCHEMA_SQL)
            conn.commit()
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        """Return the document's data, or None if it does not exist."""
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            ).fetchone()
        finally:
            conn.close()
        return json.loads(row["data"]) if row else None

    def query(
        self,
        collection: str,
        *,
        where: Optional[tuple[str, Any]] = None,
        limit: Optional[int] = None,
        start_after: Optional[str] = None,
    ) -> list[Document]:
        """Documents ordered by id, optionally filtered by one equality.

        ``where`` is ``(field_path, value)``; dotted paths reach into
        nested groups.  ``start_after`` is the last id of the previous page.
        """
        sql = "SELECT doc_id, data FROM documents WHERE collection = ?"
        params: list[Any] = [collection]
        if where is not None:
            field_path, value = where
            sql += " AND json_extract(data, ?) = ?"
            params.extend([_json_path(field_path), value])
        if start_after is not None:
            sql += " AND doc_id > ?"
            params.append(start_after)
        sql += " ORDER BY doc_id"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))

        conn = self._get_conn()
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()
        return [Document(r["doc_id"], json.loads(r["data"])) for r in rows]

    def stream(self, collection: str, *, page_size: int = MAX_BATCH_SIZE) -> Iterator[Document]:
        """Every document of *collection*, fetched page by page."""
        last_id: Optional[str] = None
        while True:
            page = self.query(collection, limit=page_size, start_after=last_id)
            if not page:
                return
            yield from page
            last_id = page[-1].id

    def count(self, collection: str, *, where: Optional[tuple[str, Any]] = None) -> int:
        sql = "SELECT COUNT(*) AS cnt FROM documents WHERE collection = ?"
        params: list[Any] = [collection]
        if where is not None:
            sql += " AND json_extract(data, ?) = ?"
            params.extend([_json_path(where[0]), where[1]])
        conn = self._get_conn()
        try:
            return conn.execute(sql, params).fetchone()["cnt"]
        finally:
            conn.close()

    def collections(self) -> list[str]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT DISTINCT collection FROM documents ORDER BY collection"
            ).fetchall()
        finally:
            conn.close()
        return [r["collection"] for r in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def batch(self, max_ops: int = MAX_BATCH_SIZE) -> WriteBatch:
        return WriteBatch(store=self, max_ops=max_ops)

    def commit(self, batch: WriteBatch) -> int:
        """Apply every operation of *batch* in one transaction.

        Raises:
            BatchCommitError: any operation failed; nothing was written.
        """
        if not batch.ops:
            return 0
        now = _now_iso()
        conn = self._get_conn()
        try:
            for op in batch.ops:
                self._apply(conn, op, now)
            conn.commit()
        except (sqlite3.Error, KeyError) as exc:
            conn.rollback()
            collection = batch.ops[0].collection
            raise BatchCommitError(
                f"Commit of {len(batch.ops)} operations on '{collection}' failed: {exc}",
                collection=collection,
                size=len(batch.ops),
            ) from exc
        finally:
            conn.close()
        logger.debug("Committed batch of %d operations", len(batch.ops))
        return len(batch.ops)

    def _apply(self, conn: sqlite3.Connection, op: WriteOp, now: str) -> None:
        if op.kind == "delete":
            conn.execute(
                "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                (op.collection, op.doc_id),
            )
            return

        data = _resolve_timestamps(op.data or {}, now)
        if op.kind == "create":
            conn.execute(
                "INSERT INTO documents (collection, doc_id, data, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (op.collection, op.doc_id, _dumps(data), now, now),
            )
        elif op.kind == "set":
            conn.execute(
                "INSERT INTO documents (collection, doc_id, data, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?) "
                "ON CONFLICT(collection, doc_id) DO UPDATE SET "
                "data = excluded.data, updated_at = excluded.updated_at",
                (op.collection, op.doc_id, _dumps(data), now, now),
            )
        elif op.kind == "update":
            row = conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND doc_id = ?",
                (op.collection, op.doc_id),
            ).fetchone()
            if row is None:
                raise KeyError(f"No document to update: {op.collection}/{op.doc_id}")
            merged = json.loads(row["data"])
            merged.update(data)
            conn.execute(
                "UPDATE documents SET data = ?, updated_at = ? "
                "WHERE collection = ? AND doc_id = ?",
                (_dumps(merged), now, op.collection, op.doc_id),
            )
        else:
            raise ValueError(f"Unknown write operation: {op.kind}")
