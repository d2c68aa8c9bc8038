"""Persistent store factory."""

from __future__ import annotations

from gemchat.config import StorageSettings
from gemchat.storage.base import KeyValueStore
from gemchat.storage.json_file import JsonFileStore
from gemchat.storage.memory import InMemoryStore


def create_store(settings: StorageSettings) -> KeyValueStore:
    """Create the store adapter selected in settings."""
    if settings.backend == "memory":
        return InMemoryStore()
    if settings.backend == "file":
        return JsonFileStore(settings.path)
    raise ValueError(f"Unsupported storage backend: {settings.backend}")
