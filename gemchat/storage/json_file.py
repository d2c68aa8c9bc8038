"""
JSON file store.

Persists every key into one JSON document (by default
~/.gemchat/storage.json). Each write re-reads the whole document and
rewrites it, so the last writer wins.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from gemchat.storage.base import KeyValueStore, StorageError

logger = logging.getLogger(__name__)


class JsonFileStore(KeyValueStore):
    """Persist string values in a single JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        if value is None:
            return None
        return str(value)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def keys(self) -> list[str]:
        return list(self._load())

    def clear(self) -> None:
        """Remove the backing file."""
        try:
            if self.path.exists():
                self.path.unlink()
        except OSError:
            return

    def _ensure_dir(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except ValueError:
            logger.warning("Ignoring unreadable store file", extra={"path": str(self.path)})
            return {}
        except OSError as e:
            raise StorageError(f"Failed to read {self.path}: {e}") from e
        if not isinstance(data, dict):
            logger.warning("Ignoring non-object store file", extra={"path": str(self.path)})
            return {}
        return data

    def _save(self, data: dict[str, Any]) -> None:
        self._ensure_dir()
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", dir=self.path.parent, text=True
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise StorageError(f"Failed to write {self.path}: {e}") from e
        try:
            self.path.chmod(0o600)
        except OSError:
            pass
        logger.debug("Store written", extra={"path": str(self.path), "keys": len(data)})
