from __future__ import annotations

from services.persistence_service import RepliedStore


def test_replied_store_roundtrip(tmp_path):
    db_path = tmp_path / "replied.db"
    store = RepliedStore(db_path)

    assert store.has_replied("abc") is False

    store.mark_replied("abc", "a@x.com")
    assert store.has_replied("abc") is True

    # Survives reopening the database
    assert RepliedStore(db_path).has_replied("abc") is True


def test_marking_twice_keeps_single_entry(tmp_path):
    store = RepliedStore(tmp_path / "replied.db")
    store.mark_replied("abc", "a@x.com")
    store.mark_replied("abc", "other@x.com")

    entries = store.recent_entries()
    assert [(entry.message_id, entry.recipient) for entry in entries] == [("abc", "a@x.com")]
