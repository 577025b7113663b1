# src/taskwindow/tasks/task_store.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from ..core.ports import Document, Query
from ..errors import DocumentNotFound, DuplicateDocument, StoreError

logger = logging.getLogger(__name__)

_MISSING = object()


def _is_operator_dict(cond: Any) -> bool:
    return isinstance(cond, dict) and bool(cond) and all(str(k).startswith("$") for k in cond)


def _compare(op: str, value: Any, operand: Any) -> bool:
    if op == "$ne":
        return value is _MISSING or value != operand
    if op == "$in":
        return value is not _MISSING and value in operand

    # Range operators never match missing/null fields.
    if value is _MISSING or value is None:
        return False
    try:
        if op == "$lt":
            return value < operand
        if op == "$lte":
            return value <= operand
        if op == "$gt":
            return value > operand
        if op == "$gte":
            return value >= operand
    except TypeError:
        return False
    raise StoreError(f"Unsupported query operator: {op}")


def match_document(doc: Document, query: Query) -> bool:
    """Return True if doc satisfies every clause of query. {} matches everything."""
    for field, cond in query.items():
        value = doc.get(field, _MISSING)
        if _is_operator_dict(cond):
            for op, operand in cond.items():
                if not _compare(op, value, operand):
                    return False
        elif (None if value is _MISSING else value) != cond:
            return False
    return True


def upsert_seed(query: Query) -> Document:
    """Exact-match fields of a query, used as the base of an upserted document."""
    return {k: v for k, v in query.items() if not _is_operator_dict(v)}


class TaskStore:
    """
    SQLite document store for task records.

    One row per document: documents(id TEXT PRIMARY KEY, doc TEXT) with the
    document JSON-encoded. Queries are evaluated in Python with match_document().

    Thread-safety:
    - each method opens its own SQLite connection
    - writes run inside BEGIN IMMEDIATE so read-modify-write is atomic
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count()
        except Exception:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    id TEXT PRIMARY KEY,
                    doc TEXT NOT NULL
                )
                """
            )
        finally:
            conn.close()

    @staticmethod
    def _encode(doc: Document) -> str:
        return json.dumps(doc, ensure_ascii=False, default=str)

    @staticmethod
    def _decode(raw: str) -> Document:
        val = json.loads(raw)
        if not isinstance(val, dict):
            raise StoreError(f"Corrupt document: {raw[:80]!r}")
        return val

    def _select(self, conn: sqlite3.Connection, query: Query) -> list[Document]:
        key = query.get("id", _MISSING)
        if key is not _MISSING and not _is_operator_dict(key):
            rows = conn.execute("SELECT doc FROM documents WHERE id = ?", (str(key),)).fetchall()
        else:
            rows = conn.execute("SELECT doc FROM documents ORDER BY id").fetchall()
        docs = (self._decode(r["doc"]) for r in rows)
        return [d for d in docs if match_document(d, query)]

    # ---- public API ----

    def count(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM documents").fetchone()
            return int(n)
        finally:
            conn.close()

    def insert(self, doc: Document) -> Document:
        doc_id = doc.get("id")
        if doc_id is None or str(doc_id) == "":
            raise StoreError("Documents require an id")

        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT INTO documents(id, doc) VALUES (?, ?)",
                (str(doc_id), self._encode(doc)),
            )
        except sqlite3.IntegrityError as e:
            raise DuplicateDocument(f"Document {doc_id!r} already exists") from e
        finally:
            conn.close()
        logger.debug("Document inserted id=%s", doc_id)
        return dict(doc)

    def find(self, query: Query) -> list[Document]:
        conn = self._get_conn()
        try:
            return self._select(conn, query)
        finally:
            conn.close()

    def find_one(self, query: Query) -> Document:
        found = self.find(query)
        if not found:
            raise DocumentNotFound(f"No document matches {query!r}")
        return found[0]

    def update(self, query: Query, fields: Document, *, upsert: bool = False) -> int:
        """
        Set `fields` on every document matching `query`.

        Returns the number of documents written (including an upserted one).
        """
        conn = self._get_conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                matched = self._select(conn, query)
                for doc in matched:
                    doc.update(fields)
                    conn.execute(
                        "UPDATE documents SET doc = ? WHERE id = ?",
                        (self._encode(doc), str(doc["id"])),
                    )

                written = len(matched)
                if not matched and upsert:
                    doc = {**upsert_seed(query), **fields}
                    if doc.get("id") is None:
                        raise StoreError("Upsert requires an id in the query or fields")
                    conn.execute(
                        "INSERT INTO documents(id, doc) VALUES (?, ?)",
                        (str(doc["id"]), self._encode(doc)),
                    )
                    written = 1
                conn.execute("COMMIT")
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            return written
        finally:
            conn.close()


class AsyncDocumentStore:
    """
    Async adapter over TaskStore.

    Each call runs in a worker thread so store I/O never blocks the event loop.
    """

    def __init__(self, store: TaskStore) -> None:
        self._store = store

    @property
    def sync(self) -> TaskStore:
        return self._store

    async def insert(self, doc: Document) -> Document:
        return await asyncio.to_thread(self._store.insert, doc)

    async def find(self, query: Query) -> list[Document]:
        return await asyncio.to_thread(self._store.find, query)

    async def find_one(self, query: Query) -> Document:
        return await asyncio.to_thread(self._store.find_one, query)

    async def update(self, query: Query, fields: Document, *, upsert: bool = False) -> int:
        return await asyncio.to_thread(self._store.update, query, fields, upsert=upsert)

    async def close(self) -> None:
        self._store.close()
