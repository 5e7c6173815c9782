"""Tests for the storage adapters: atomic local writes and the in-memory store."""

import os

import pytest

from restorecalc.core.storage import LocalFS, MemoryStorage


def test_localfs_roundtrip(tmp_path):
    """Bytes written through LocalFS read back unchanged."""
    storage = LocalFS(str(tmp_path))
    uri = storage.join("nested", "data.json")
    assert uri == os.path.join(str(tmp_path), "nested", "data.json")

    assert not storage.exists(uri)
    storage.write_bytes(uri, b"payload")
    assert storage.exists(uri)
    assert storage.read_bytes(uri) == b"payload"
    # temporary file is replaced, not left behind
    assert sorted(os.listdir(tmp_path / "nested")) == ["data.json"]


def test_localfs_overwrite(tmp_path):
    """Overwriting replaces the previous contents."""
    storage = LocalFS()
    uri = storage.join(str(tmp_path), "x.bin")
    storage.write_bytes(uri, b"one")
    storage.write_bytes(uri, b"two")
    assert storage.read_bytes(uri) == b"two"


def test_memory_storage():
    storage = MemoryStorage()
    uri = storage.join("models", "saved.json")
    assert uri == "models/saved.json"
    storage.write_bytes(uri, b"{}")
    assert storage.exists(uri)
    assert storage.read_bytes(uri) == b"{}"
    with pytest.raises(FileNotFoundError):
        storage.read_bytes("missing")
