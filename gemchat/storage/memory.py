"""In-memory persistent store used by tests and throwaway sessions."""

from __future__ import annotations

from gemchat.storage.base import KeyValueStore


class InMemoryStore(KeyValueStore):
    """Dict-backed store. Counts writes so callers can assert persistence."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self.write_count = 0

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self.write_count += 1

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)
