"""
Key-value string storage for guest carts and wishlists.

Mirrors the browser local storage contract: string keys, string values,
one bucket per guest.
"""
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from storefront.config.logging_config import get_logger
from storefront.utils.error_handling import LocalStorageUnavailable

logger = get_logger(__name__)


class KeyValueStorage(ABC):
    """Interface of a string key-value store."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the value stored under ``key``, or None."""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove ``key`` if present."""
        pass


class InMemoryStorage(KeyValueStorage):
    """Process-local storage, primarily for tests and server-side rendering.

    ``quota`` caps the total number of stored characters to emulate a full
    browser store; ``disabled`` emulates storage being turned off.
    """

    def __init__(self, quota: Optional[int] = None, disabled: bool = False):
        self._store: Dict[str, str] = {}
        self.quota = quota
        self.disabled = disabled

    def get_item(self, key: str) -> Optional[str]:
        self._check_enabled()
        return self._store.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._check_enabled()
        if self.quota is not None:
            used = sum(len(v) for k, v in self._store.items() if k != key)
            if used + len(value) > self.quota:
                raise LocalStorageUnavailable(f"Storage quota exceeded while writing '{key}'")
        self._store[key] = value

    def remove_item(self, key: str) -> None:
        self._check_enabled()
        self._store.pop(key, None)

    def _check_enabled(self) -> None:
        if self.disabled:
            raise LocalStorageUnavailable("Local storage is disabled")


class JsonFileStorage(KeyValueStorage):
    """Storage persisted as a single JSON object in a file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise LocalStorageUnavailable(f"Cannot read storage file {self.path}", cause=e)
        if not isinstance(data, dict):
            raise LocalStorageUnavailable(f"Storage file {self.path} does not hold an object")
        return data

    def _write(self, data: Dict[str, str]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise LocalStorageUnavailable(f"Cannot write storage file {self.path}", cause=e)
        logger.debug(f"Wrote {len(data)} key(s) to {self.path}")
