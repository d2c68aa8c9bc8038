"""Unit tests for persistent store adapters."""

from __future__ import annotations

import json

import pytest

from gemchat.config import StorageSettings
from gemchat.storage import InMemoryStore, JsonFileStore, KeyValueStore, create_store


class TestInMemoryStore:
    """Test dict-backed store."""

    def test_get_missing_key_returns_none(self):
        assert InMemoryStore().get("apiKey") is None

    def test_set_overwrites_and_counts_writes(self):
        store = InMemoryStore()
        store.set("apiKey", "first")
        store.set("apiKey", "second")

        assert store.get("apiKey") == "second"
        assert store.write_count == 2

    def test_delete_and_keys(self):
        store = InMemoryStore({"a": "1", "b": "2"})
        store.delete("a")
        store.delete("missing")

        assert store.keys() == ["b"]
        assert "b" in store
        assert "a" not in store


class TestJsonFileStore:
    """Test single-document JSON store."""

    def test_values_survive_new_instance(self, tmp_path):
        path = tmp_path / "nested" / "storage.json"
        JsonFileStore(path).set("systemInstruction", "Be brief.")

        assert JsonFileStore(path).get("systemInstruction") == "Be brief."

    def test_writes_preserve_other_keys(self, tmp_path):
        path = tmp_path / "storage.json"
        store = JsonFileStore(path)
        store.set("apiKey", "key-1234")
        store.set("conversations", "[]")

        with open(path, encoding="utf-8") as handle:
            data = json.load(handle)
        assert data == {"apiKey": "key-1234", "conversations": "[]"}

    def test_file_permissions_are_private(self, tmp_path):
        path = tmp_path / "storage.json"
        JsonFileStore(path).set("apiKey", "secret")

        assert path.stat().st_mode & 0o777 == 0o600

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text("{not json", encoding="utf-8")
        store = JsonFileStore(path)

        assert store.get("apiKey") is None
        store.set("apiKey", "fresh")
        assert store.get("apiKey") == "fresh"

    def test_undecodable_bytes_read_as_empty(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_bytes(b'{"apiKey": "\xff\xfe"}')
        store = JsonFileStore(path)

        assert store.get("apiKey") is None
        store.set("apiKey", "fresh")
        assert store.get("apiKey") == "fresh"

    def test_non_object_document_reads_as_empty(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")

        assert JsonFileStore(path).keys() == []

    def test_delete_and_clear(self, tmp_path):
        path = tmp_path / "storage.json"
        store = JsonFileStore(path)
        store.set("a", "1")
        store.set("b", "2")
        store.delete("a")

        assert store.keys() == ["b"]

        store.clear()
        assert not path.exists()
        assert store.get("b") is None


class TestStoreFactory:
    """Test create_store adapter selection."""

    def test_memory_backend(self):
        store = create_store(StorageSettings(backend="memory"))
        assert isinstance(store, InMemoryStore)

    def test_file_backend_uses_configured_path(self, tmp_path):
        path = tmp_path / "storage.json"
        store = create_store(StorageSettings(backend="file", path=path))

        assert isinstance(store, JsonFileStore)
        assert store.path == path

    def test_port_is_abstract(self):
        with pytest.raises(TypeError):
            KeyValueStore()  # type: ignore[abstract]
