"""
Persistent Store Module

Key-value storage of serialized JSON strings that survives restarts.

Available Stores:
    - KeyValueStore: Abstract port
    - JsonFileStore: Single JSON document on disk
    - InMemoryStore: Dict-backed store for tests and throwaway sessions

Usage:
    from gemchat.storage import JsonFileStore

    store = JsonFileStore(Path("~/.gemchat/storage.json").expanduser())
    store.set("systemInstruction", "You are a helpful assistant.")
    print(store.get("systemInstruction"))
"""

from gemchat.storage.base import (
    API_KEY_KEY,
    CONVERSATIONS_BACKUP_KEY,
    CONVERSATIONS_KEY,
    SYSTEM_INSTRUCTION_KEY,
    KeyValueStore,
    StorageError,
)
from gemchat.storage.factory import create_store
from gemchat.storage.json_file import JsonFileStore
from gemchat.storage.memory import InMemoryStore

__all__ = [
    "KeyValueStore",
    "JsonFileStore",
    "InMemoryStore",
    "create_store",
    "StorageError",
    "API_KEY_KEY",
    "SYSTEM_INSTRUCTION_KEY",
    "CONVERSATIONS_KEY",
    "CONVERSATIONS_BACKUP_KEY",
]
