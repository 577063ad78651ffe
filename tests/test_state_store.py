"""Tests for the state store's transaction discipline and document layout."""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from keygate_relay.db.session import build_engine
from keygate_relay.models import CompletionRecord, PendingRequest
from keygate_relay.services.errors import ConflictError, StorageError
from keygate_relay.services.state_store import StateStore
from keygate_relay.services.tracker import CompletionTracker


def _count_records(store: StateStore) -> int:
    with store.read() as session:
        return len(session.scalars(select(CompletionRecord)).all())


def test_snapshot_of_empty_store(store: StateStore) -> None:
    assert store.snapshot() == {"pending": {}, "completed": {}, "users": {}}


def test_snapshot_layout(store: StateStore) -> None:
    tracker = CompletionTracker(store)
    tracker.register_pending("u1", "s1", 1, {"callback_url": "http://cb"})
    tracker.apply_completion("u1", "s1", 0)
    tracker.apply_completion("u2", "s1", 0)
    tracker.apply_completion("u1", "s2", 4)

    snapshot = store.snapshot()

    pending = snapshot["pending"]["u1:s1:1"]
    assert pending["userId"] == "u1"
    assert pending["scriptId"] == "s1"
    assert pending["keyIndex"] == 1
    assert pending["metadata"] == {"callback_url": "http://cb"}
    assert pending["registeredAt"].endswith("+00:00")

    assert [e["userId"] for e in snapshot["completed"]["s1"]] == ["u1", "u2"]
    assert [e["keyIndex"] for e in snapshot["completed"]["s2"]] == [4]
    assert snapshot["users"]["u1"]["completedKeys"] == {"s1": [0], "s2": [4]}
    assert "lastActive" in snapshot["users"]["u1"]


def test_write_rolls_back_on_error(store: StateStore) -> None:
    """An exception inside the cycle leaves no partial write behind."""
    with pytest.raises(RuntimeError):
        with store.write() as session:
            session.add(CompletionRecord(user_id="u1", script_id="s1", key_index=0))
            session.flush()
            raise RuntimeError("boom")

    assert _count_records(store) == 0


def test_duplicate_row_raises_conflict(store: StateStore) -> None:
    with store.write() as session:
        session.add(CompletionRecord(user_id="u1", script_id="s1", key_index=0))

    with pytest.raises(ConflictError):
        with store.write() as session:
            session.add(PendingRequest(user_id="u9", script_id="s9", key_index=9))
            session.add(CompletionRecord(user_id="u1", script_id="s1", key_index=0))

    assert _count_records(store) == 1
    assert store.snapshot()["pending"] == {}


def test_database_errors_become_storage_errors(store: StateStore) -> None:
    with pytest.raises(StorageError):
        with store.write() as session:
            raise OperationalError("UPDATE", {}, Exception("disk I/O error"))

    with pytest.raises(StorageError):
        with store.read() as session:
            raise OperationalError("SELECT", {}, Exception("disk I/O error"))


def test_closed_store_raises_storage_error() -> None:
    state_store = StateStore("sqlite://")

    with pytest.raises(StorageError):
        with state_store.read():
            pass

    tracker = CompletionTracker(state_store)
    with pytest.raises(StorageError):
        tracker.apply_completion("u1", "s1", 0)


def test_store_persists_across_reopen(tmp_path) -> None:
    """Completions survive closing and reopening a file-backed store."""
    url = f"sqlite:///{tmp_path / 'relay.db'}"
    first = StateStore(url)
    first.open()
    CompletionTracker(first).apply_completion("u1", "s1", 2)
    first.close()

    second = StateStore(url)
    second.open()
    try:
        tracker = CompletionTracker(second)
        assert tracker.get_status("u1", "s1") == {2}
        assert tracker.apply_completion("u1", "s1", "2").already_completed is True
    finally:
        second.close()


def test_open_is_idempotent() -> None:
    engine = build_engine("sqlite://")
    state_store = StateStore("sqlite://", engine=engine)
    state_store.open()
    state_store.open()
    assert state_store.is_open
    state_store.close()
    assert not state_store.is_open
    engine.dispose()
