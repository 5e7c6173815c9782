# pylint: disable=missing-function-docstring
"""
Tests for the saved-model store: append-only saves, deletion and fail-soft
reads of the stored document.
"""

import json
import logging
from datetime import datetime, timezone

import pytest

from restorecalc.core.storage import LocalFS, MemoryStorage
from restorecalc.services.store import ModelStore, StoreError


class FailingStorage(MemoryStorage):
    """Storage whose writes always fail."""

    def write_bytes(self, uri: str, data: bytes) -> str:
        raise OSError("disk full")


def test_save_and_load(complete_record):
    """
    A saved record comes back equal, with its id and UTC timestamp.
    """
    store = ModelStore(MemoryStorage(), key="models")
    when = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    saved = store.save(complete_record, now=when)

    assert saved.saved_at == "2024-05-01T12:00:00+00:00"
    loaded = store.load_all()
    assert [m.id for m in loaded] == [saved.id]
    assert loaded[0].record == complete_record
    assert store.get(saved.id).record.ecosystem == "Atlantic Forest"
    assert store.get("unknown") is None


def test_save_appends_with_unique_ids(complete_record):
    store = ModelStore(MemoryStorage())
    first = store.save(complete_record)
    second = store.save(complete_record)
    assert first.id != second.id
    assert [m.id for m in store.load_all()] == [first.id, second.id]


def test_stored_document_layout(complete_record):
    storage = MemoryStorage()
    store = ModelStore(storage, key="models")
    saved = store.save(complete_record)
    data = json.loads(storage.objects["models.json"])
    assert data == [
        {"id": saved.id, "savedAt": saved.saved_at, "data": complete_record.to_dict()}
    ]


def test_default_key_from_config():
    store = ModelStore(MemoryStorage())
    assert store.uri == "restoration-calculator-models.json"


def test_delete_by_id(complete_record):
    store = ModelStore(MemoryStorage())
    first = store.save(complete_record)
    second = store.save(complete_record)
    assert store.delete_by_id(first.id)
    assert [m.id for m in store.load_all()] == [second.id]
    assert not store.delete_by_id(first.id)


def test_load_all_missing_document():
    assert ModelStore(MemoryStorage()).load_all() == []


@pytest.mark.parametrize("payload", [b"not json", b'{"id": 1}', b"\xff\xfe"])
def test_load_all_fails_soft(payload, caplog):
    """
    An unreadable document is logged and treated as empty.
    """
    storage = MemoryStorage()
    store = ModelStore(storage, logger=logging.getLogger("store-test"))
    storage.write_bytes(store.uri, payload)
    with caplog.at_level(logging.WARNING, logger="store-test"):
        assert store.load_all() == []
    assert "Ignoring" in caplog.text


def test_malformed_entries_are_skipped(complete_record):
    storage = MemoryStorage()
    store = ModelStore(storage)
    good = {"id": "abc", "savedAt": "2024-01-01T00:00:00+00:00", "data": complete_record.to_dict()}
    storage.write_bytes(
        store.uri,
        json.dumps([good, {"id": "x"}, "junk", {"id": "", "savedAt": "t", "data": {}}]).encode(),
    )
    assert [m.id for m in store.load_all()] == ["abc"]


def test_unrecognised_entries_survive_save_and_delete(complete_record):
    """
    Entries load_all() skips are still part of the document and are written
    back untouched by save() and delete_by_id().
    """
    storage = MemoryStorage()
    store = ModelStore(storage)
    legacy = {"id": "legacy-1", "savedAt": 1700000000, "data": {"ecosystem": "Cerrado"}}
    storage.write_bytes(store.uri, json.dumps([legacy, "junk"]).encode())
    assert store.load_all() == []

    saved = store.save(complete_record)
    data = json.loads(storage.objects[store.uri])
    assert data[:2] == [legacy, "junk"]
    assert data[2]["id"] == saved.id
    assert [m.id for m in store.load_all()] == [saved.id]

    assert store.delete_by_id(saved.id)
    assert json.loads(storage.objects[store.uri]) == [legacy, "junk"]

    assert store.delete_by_id("legacy-1")
    assert json.loads(storage.objects[store.uri]) == ["junk"]


def test_write_failure_raises_store_error(complete_record):
    store = ModelStore(FailingStorage())
    with pytest.raises(StoreError):
        store.save(complete_record)


def test_localfs_store(tmp_path, complete_record):
    store = ModelStore(LocalFS(str(tmp_path)))
    saved = store.save(complete_record)
    assert (tmp_path / "restoration-calculator-models.json").exists()
    assert ModelStore(LocalFS(str(tmp_path))).get(saved.id) is not None
