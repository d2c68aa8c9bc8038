"""
Base Persistent Store

Abstract port for the string key-value store that holds session
configuration and the serialized conversation list.
"""

from abc import ABC, abstractmethod

API_KEY_KEY = "apiKey"
SYSTEM_INSTRUCTION_KEY = "systemInstruction"
CONVERSATIONS_KEY = "conversations"
CONVERSATIONS_BACKUP_KEY = "conversations.bak"


class StorageError(Exception):
    """Error reading or writing the persistent store."""

    pass


class KeyValueStore(ABC):
    """
    Abstract base class for persistent stores.

    Values are plain strings; callers serialize structured data to JSON
    before writing. Every write replaces the previous value for the key.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value for key, or None when absent."""
        pass  # pragma: no cover - abstract method

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key."""
        pass  # pragma: no cover - abstract method

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key if present."""
        pass  # pragma: no cover - abstract method

    @abstractmethod
    def keys(self) -> list[str]:
        """Return all stored keys."""
        pass  # pragma: no cover - abstract method

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
