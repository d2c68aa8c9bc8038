"""
Session configuration.

Holds the API key and system instruction. Both are read from the
persistent store at startup and written back on every change,
independently of conversation data.
"""

from __future__ import annotations

import logging

from gemchat.config import Settings
from gemchat.storage import API_KEY_KEY, SYSTEM_INSTRUCTION_KEY, KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_INSTRUCTION = "You are a helpful assistant."

_FULLY_MASKED_KEY_LENGTH = 8


class SessionConfig:
    """Process-wide credentials and system instruction backed by a store."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._api_key = store.get(API_KEY_KEY) or ""
        self._system_instruction = (
            store.get(SYSTEM_INSTRUCTION_KEY) or DEFAULT_SYSTEM_INSTRUCTION
        )

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def system_instruction(self) -> str:
        return self._system_instruction

    @property
    def has_api_key(self) -> bool:
        return bool(self._api_key.strip())

    def set_api_key(self, value: str) -> None:
        self._api_key = value.strip()
        self._store.set(API_KEY_KEY, self._api_key)
        logger.info("API key updated", extra={"configured": self.has_api_key})

    def set_system_instruction(self, value: str) -> None:
        self._system_instruction = value
        self._store.set(SYSTEM_INSTRUCTION_KEY, value)
        logger.info("System instruction updated", extra={"length": len(value)})

    def masked_api_key(self) -> str:
        """Return the key with all but the last four characters hidden."""
        if not self._api_key:
            return ""
        if len(self._api_key) <= _FULLY_MASKED_KEY_LENGTH:
            return "***"
        tail = self._api_key[-4:]
        return "*" * (len(self._api_key) - 4) + tail


def apply_session_defaults(store: KeyValueStore, settings: Settings) -> None:
    """
    Seed stored session values from settings (one-time).

    An API key from LLM_API_KEY is persisted only when the store holds none,
    so a key set through the client is never overwritten by the environment.
    """
    if settings.llm.api_key and not store.get(API_KEY_KEY):
        store.set(API_KEY_KEY, settings.llm.api_key)
        logger.info("Seeded API key from environment")
    if store.get(SYSTEM_INSTRUCTION_KEY) is None:
        store.set(SYSTEM_INSTRUCTION_KEY, DEFAULT_SYSTEM_INSTRUCTION)
