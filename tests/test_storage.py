"""Tests for the durable key-value storage backends."""

import json

import pytest

from pokedex.storage import JsonFileStorage, MemoryStorage, StorageWriteFailure


class TestMemoryStorage:
    def test_set_get_delete(self):
        storage = MemoryStorage()
        storage.set("a", "1")
        assert storage.get("a") == "1"
        storage.delete("a")
        assert storage.get("a") is None
        assert storage.keys() == []

    def test_quota_refuses_new_keys(self):
        storage = MemoryStorage(max_entries=1)
        storage.set("a", "1")
        with pytest.raises(StorageWriteFailure):
            storage.set("b", "2")

    def test_quota_allows_overwrite(self):
        storage = MemoryStorage(max_entries=1)
        storage.set("a", "1")
        storage.set("a", "2")
        assert storage.get("a") == "2"


class TestJsonFileStorage:
    def test_entries_survive_reopen(self, tmp_path):
        path = tmp_path / "cache.json"
        storage = JsonFileStorage(path)
        storage.set("k", "v")
        storage.flush()

        reopened = JsonFileStorage(path)
        assert reopened.get("k") == "v"
        assert json.loads(path.read_text(encoding="utf-8")) == {"k": "v"}

    def test_delete_many(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "cache.json")
        for key in ("a", "b", "c"):
            storage.set(key, key)
        storage.delete_many(["a", "c"])
        assert storage.keys() == ["b"]

    def test_corrupt_file_is_ignored(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text("{not json", encoding="utf-8")
        storage = JsonFileStorage(path)
        assert storage.keys() == []
        storage.set("a", "1")
        assert storage.get("a") == "1"

    def test_quota(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "cache.json", max_entries=2)
        storage.set("a", "1")
        storage.set("b", "2")
        with pytest.raises(StorageWriteFailure):
            storage.set("c", "3")
        assert sorted(storage.keys()) == ["a", "b"]

    def test_writes_wait_for_flush(self, tmp_path):
        path = tmp_path / "cache.json"
        storage = JsonFileStorage(path)
        for i in range(100):
            storage.set(f"k{i}", str(i))
        assert not path.exists()
        assert storage.dirty

        storage.flush()

        assert not storage.dirty
        assert len(json.loads(path.read_text(encoding="utf-8"))) == 100

    def test_flush_without_changes_leaves_file_alone(self, tmp_path):
        path = tmp_path / "cache.json"
        storage = JsonFileStorage(path)
        storage.flush()
        assert not path.exists()

        storage.delete("missing")
        storage.flush()
        assert not path.exists()

    def test_unwritable_path_raises_write_failure(self, tmp_path):
        """The target is a directory, so the rewrite fails with an OSError."""
        storage = JsonFileStorage(tmp_path)
        storage.set("a", "1")

        with pytest.raises(StorageWriteFailure):
            storage.flush()

        assert storage.dirty
        assert storage.get("a") == "1"
