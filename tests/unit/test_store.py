"""
tests/unit/test_store.py — Unit tests for archive/store.py

Both backends run the same contract tests. SqliteStore uses a file under
tmp_path (":memory:" would give every connection its own empty database).
"""

import sys
import threading
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest
from archive.records import CanonicalRecord, ProcessingStatus
from archive.store import (
    DuplicateUrlError,
    InMemoryStore,
    RecordNotFoundError,
    SqliteStore,
    make_store,
)
from tools.providers import Provider


# ── Fixtures ──────────────────────────────────────────────────────────────────

def make_record(n: int = 1, **overrides) -> CanonicalRecord:
    defaults = dict(
        url=f"https://claude.ai/share/{n}",
        title=f"Record {n}",
        provider=Provider.CLAUDE,
        content="Some extracted content",
        description="desc",
        tags=["alpha", "beta"],
        metadata={"selector": "main", "content_length": 22},
    )
    defaults.update(overrides)
    return CanonicalRecord(**defaults)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryStore()
    return SqliteStore(tmp_path / "research.db")


# ── Contract ──────────────────────────────────────────────────────────────────

class TestInsert:
    def test_assigns_ids(self, store):
        a = store.insert(make_record(1))
        b = store.insert(make_record(2))
        assert a.id is not None
        assert b.id != a.id

    def test_duplicate_url_raises(self, store):
        store.insert(make_record(1))
        with pytest.raises(DuplicateUrlError):
            store.insert(make_record(1, title="Other title"))

    def test_duplicate_is_value_error(self, store):
        store.insert(make_record(1))
        with pytest.raises(ValueError):
            store.insert(make_record(1))

    def test_exists_by_url(self, store):
        assert not store.exists_by_url("https://claude.ai/share/1")
        store.insert(make_record(1))
        assert store.exists_by_url("https://claude.ai/share/1")

    def test_fields_preserved(self, store):
        record = make_record(
            1,
            summary="S",
            category="AI/ML",
            author_name="Ada",
            author_handle="ada",
            is_processed=ProcessingStatus.PROCESSED,
        )
        stored = store.insert(record)
        fetched = store.get(stored.id)
        assert fetched.title == "Record 1"
        assert fetched.tags == ["alpha", "beta"]
        assert fetched.metadata == {"selector": "main", "content_length": 22}
        assert fetched.provider == Provider.CLAUDE
        assert fetched.category == "AI/ML"
        assert fetched.summary == "S"
        assert fetched.author_handle == "ada"
        assert fetched.is_processed == ProcessingStatus.PROCESSED
        assert fetched.created_at == record.created_at


class TestGet:
    def test_unknown_id_raises(self, store):
        with pytest.raises(RecordNotFoundError):
            store.get(999)

    def test_not_found_is_key_error(self, store):
        with pytest.raises(KeyError):
            store.get(999)


class TestIncrements:
    def test_upvote_adds_one(self, store):
        rid = store.insert(make_record(1)).id
        assert store.increment_upvote(rid) == 1
        assert store.increment_upvote(rid) == 2
        assert store.get(rid).upvotes == 2

    def test_view_adds_one(self, store):
        rid = store.insert(make_record(1)).id
        assert store.increment_view(rid) == 1
        assert store.get(rid).view_count == 1
        assert store.get(rid).upvotes == 0

    def test_increment_refreshes_updated_at(self, store):
        stored = store.insert(make_record(1))
        time.sleep(0.01)
        store.increment_upvote(stored.id)
        assert store.get(stored.id).updated_at > stored.updated_at

    def test_increment_leaves_content_untouched(self, store):
        stored = store.insert(make_record(1))
        store.increment_upvote(stored.id)
        after = store.get(stored.id)
        assert after.title == stored.title
        assert after.content == stored.content

    def test_unknown_id_raises(self, store):
        with pytest.raises(RecordNotFoundError):
            store.increment_upvote(42)
        with pytest.raises(RecordNotFoundError):
            store.increment_view(42)

    def test_concurrent_upvotes_not_lost(self, store):
        rid = store.insert(make_record(1)).id

        def vote():
            for _ in range(10):
                store.increment_upvote(rid)

        threads = [threading.Thread(target=vote) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert store.get(rid).upvotes == 40


class TestListAll:
    def test_insertion_order(self, store):
        for n in (3, 1, 2):
            store.insert(make_record(n))
        assert [r.url for r in store.list_all()] == [
            "https://claude.ai/share/3",
            "https://claude.ai/share/1",
            "https://claude.ai/share/2",
        ]

    def test_len(self, store):
        store.insert(make_record(1))
        store.insert(make_record(2))
        assert len(store) == 2

    def test_returned_records_are_copies(self, store):
        store.insert(make_record(1))
        listed = store.list_all()[0]
        listed.tags.append("mutated")
        listed.upvotes = 99
        fresh = store.get(listed.id)
        assert fresh.tags == ["alpha", "beta"]
        assert fresh.upvotes == 0


# ── make_store ────────────────────────────────────────────────────────────────

class TestMakeStore:
    def test_memory(self):
        assert isinstance(make_store("memory"), InMemoryStore)

    def test_sqlite(self, tmp_path):
        store = make_store("sqlite", str(tmp_path / "db" / "r.db"))
        assert isinstance(store, SqliteStore)
        assert (tmp_path / "db" / "r.db").exists()

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown store backend"):
            make_store("postgres")
