"""
archive/store.py — Where CanonicalRecords live.

THE CORE CONCEPT:
  The pipeline and the scorer never touch a database directly. They receive
  a ResearchStore and use five operations:

    exists_by_url(url)        → duplicate check before any fetch
    insert(record)            → assigns id, enforces URL uniqueness
    increment_upvote(id)      → +1, refresh updated_at, return new count
    increment_view(id)        → +1, refresh updated_at, return new count
    list_all()                → every record, insertion order — the
                                candidate set for search and featured lists

  The store — not the pipeline — owns atomicity. Two simultaneous
  submissions of the same URL can both pass exists_by_url(); the second
  insert() then raises DuplicateUrlError and the pipeline reports a
  duplicate. Counters are incremented inside the store, never read-
  modify-written by the caller.

TWO BACKENDS:
  InMemoryStore — dict + lock. Tests, demos, the default.
  SqliteStore   — one table, UNIQUE(url), counters via UPDATE n = n + 1.

USAGE:
  from archive.store import make_store
  store = make_store()                    # backend from settings.store_backend
  record = store.insert(record)
  store.increment_upvote(record.id)       # → 1
"""

from __future__ import annotations

import json
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from archive.records import CanonicalRecord, ProcessingStatus, utcnow
from tools.providers import Provider


class DuplicateUrlError(ValueError):
    """A record with this URL is already stored."""


class RecordNotFoundError(KeyError):
    """No record with this id."""


# ── Interface ─────────────────────────────────────────────────────────────────

class ResearchStore(ABC):
    """The five operations the core consumes, plus get() for callers."""

    @abstractmethod
    def exists_by_url(self, url: str) -> bool: ...

    @abstractmethod
    def insert(self, record: CanonicalRecord) -> CanonicalRecord: ...

    @abstractmethod
    def get(self, record_id: int) -> CanonicalRecord: ...

    @abstractmethod
    def increment_upvote(self, record_id: int) -> int: ...

    @abstractmethod
    def increment_view(self, record_id: int) -> int: ...

    @abstractmethod
    def list_all(self) -> list[CanonicalRecord]: ...

    def __len__(self) -> int:
        return len(self.list_all())


# ── In-memory ─────────────────────────────────────────────────────────────────

class InMemoryStore(ResearchStore):
    """
    Process-local store. Thread-safe: one lock guards every operation.

    list_all() and get() return copies so callers cannot mutate stored
    records behind the store's back.
    """

    def __init__(self) -> None:
        self._records: dict[int, CanonicalRecord] = {}
        self._url_index: dict[str, int] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def exists_by_url(self, url: str) -> bool:
        with self._lock:
            return url in self._url_index

    def insert(self, record: CanonicalRecord) -> CanonicalRecord:
        with self._lock:
            if record.url in self._url_index:
                raise DuplicateUrlError(f"This research has already been submitted: {record.url}")
            stored = _copy(record, id=self._next_id)
            self._records[stored.id] = stored
            self._url_index[stored.url] = stored.id
            self._next_id += 1
            return _copy(stored)

    def get(self, record_id: int) -> CanonicalRecord:
        with self._lock:
            return _copy(self._require(record_id))

    def increment_upvote(self, record_id: int) -> int:
        with self._lock:
            record = self._require(record_id)
            record.upvotes += 1
            record.updated_at = utcnow()
            return record.upvotes

    def increment_view(self, record_id: int) -> int:
        with self._lock:
            record = self._require(record_id)
            record.view_count += 1
            record.updated_at = utcnow()
            return record.view_count

    def list_all(self) -> list[CanonicalRecord]:
        with self._lock:
            return [_copy(r) for r in self._records.values()]

    def _require(self, record_id: int) -> CanonicalRecord:
        try:
            return self._records[record_id]
        except KeyError:
            raise RecordNotFoundError(f"Research not found: {record_id}") from None


def _copy(record: CanonicalRecord, **changes) -> CanonicalRecord:
    """Copy with its own tags list and metadata dict."""
    return replace(record, tags=list(record.tags), metadata=dict(record.metadata), **changes)


# ── SQLite ────────────────────────────────────────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS researches (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    url           TEXT NOT NULL UNIQUE,
    title         TEXT NOT NULL,
    description   TEXT DEFAULT '',
    content       TEXT DEFAULT '',
    summary       TEXT,
    provider      TEXT NOT NULL,
    category      TEXT,
    tags          TEXT DEFAULT '[]',
    metadata      TEXT DEFAULT '{}',
    author_name   TEXT,
    author_handle TEXT,
    view_count    INTEGER NOT NULL DEFAULT 0,
    upvotes       INTEGER NOT NULL DEFAULT 0,
    is_processed  TEXT NOT NULL DEFAULT 'pending',
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL
)
"""


class SqliteStore(ResearchStore):
    """
    SQLite-backed store. One short-lived connection per operation.

    URL uniqueness is the UNIQUE constraint; counters are a single
    UPDATE ... SET n = n + 1 so concurrent increments never lose a count.
    """

    def __init__(self, db_path: str | Path = "data/research.db") -> None:
        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute(_SCHEMA)

    @contextmanager
    def _connect(self):
        conn = sqlite3.connect(self.db_path, timeout=30.0, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def exists_by_url(self, url: str) -> bool:
        with self._connect() as conn:
            row = conn.execute("SELECT 1 FROM researches WHERE url = ?", (url,)).fetchone()
        return row is not None

    def insert(self, record: CanonicalRecord) -> CanonicalRecord:
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO researches (
                        url, title, description, content, summary, provider,
                        category, tags, metadata, author_name, author_handle,
                        view_count, upvotes, is_processed, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.url,
                        record.title,
                        record.description,
                        record.content,
                        record.summary,
                        record.provider.value,
                        record.category,
                        json.dumps(record.tags),
                        json.dumps(record.metadata, default=str),
                        record.author_name,
                        record.author_handle,
                        record.view_count,
                        record.upvotes,
                        record.is_processed.value,
                        record.created_at.isoformat(),
                        record.updated_at.isoformat(),
                    ),
                )
                record_id = cursor.lastrowid
        except sqlite3.IntegrityError as e:
            raise DuplicateUrlError(
                f"This research has already been submitted: {record.url}"
            ) from e
        return replace(record, id=record_id)

    def get(self, record_id: int) -> CanonicalRecord:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM researches WHERE id = ?", (record_id,)).fetchone()
        if row is None:
            raise RecordNotFoundError(f"Research not found: {record_id}")
        return _row_to_record(row)

    def increment_upvote(self, record_id: int) -> int:
        return self._increment("upvotes", record_id)

    def increment_view(self, record_id: int) -> int:
        return self._increment("view_count", record_id)

    def list_all(self) -> list[CanonicalRecord]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM researches ORDER BY id").fetchall()
        return [_row_to_record(row) for row in rows]

    def _increment(self, column: str, record_id: int) -> int:
        # column comes from the two methods above, never from user input
        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE researches SET {column} = {column} + 1, updated_at = ? WHERE id = ?",
                (utcnow().isoformat(), record_id),
            )
            if cursor.rowcount == 0:
                raise RecordNotFoundError(f"Research not found: {record_id}")
            row = conn.execute(
                f"SELECT {column} FROM researches WHERE id = ?", (record_id,)
            ).fetchone()
        return int(row[0])


def _row_to_record(row: sqlite3.Row) -> CanonicalRecord:
    return CanonicalRecord(
        id=row["id"],
        url=row["url"],
        title=row["title"],
        description=row["description"] or "",
        content=row["content"] or "",
        summary=row["summary"],
        provider=Provider(row["provider"]),
        category=row["category"],
        tags=json.loads(row["tags"] or "[]"),
        metadata=json.loads(row["metadata"] or "{}"),
        author_name=row["author_name"],
        author_handle=row["author_handle"],
        view_count=row["view_count"],
        upvotes=row["upvotes"],
        is_processed=ProcessingStatus(row["is_processed"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


# ── Factory ───────────────────────────────────────────────────────────────────

def make_store(backend: str | None = None, sqlite_path: str | None = None) -> ResearchStore:
    """Build the store selected by settings (or the explicit arguments)."""
    from config import settings

    backend = backend or settings.store_backend
    if backend == "sqlite":
        return SqliteStore(sqlite_path or settings.sqlite_path)
    if backend == "memory":
        return InMemoryStore()
    raise ValueError(f"Unknown store backend: {backend!r}")
