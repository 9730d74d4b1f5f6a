"""Key/value persistence and the stored credential list.

The store mirrors the browser's localStorage: a flat mapping of string keys
to string values, persisted as a single JSON file.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Iterable, Optional

from georeview.config import CREDENTIALS_KEY
from georeview.errors import CredentialFormatError

logger = logging.getLogger(__name__)

API_KEY_LENGTH = 39


class MemoryStore:
    """In-process store, used for tests and dry runs."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore:
    """Store backed by a JSON object on disk, rewritten atomically on change."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Store file {self.path} does not contain a JSON object")
        return data

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".store-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            os.unlink(tmp)
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._read())


def mask_credential(credential: str) -> str:
    """Return a log-safe form of an API key."""
    if len(credential) <= 8:
        return "****"
    return f"{credential[:4]}...{credential[-4:]}"


def parse_credentials(raw: Optional[str]) -> list[str]:
    """Split a comma-separated key string, trimming and dropping empties."""
    if not raw:
        return []
    return [k.strip() for k in raw.split(",") if k.strip()]


def load_credentials(store) -> list[str]:
    return parse_credentials(store.get(CREDENTIALS_KEY))


def validate_credentials(keys: Iterable[str]) -> list[str]:
    """Check keys from the setup flow: at least one, right length, no repeats."""
    cleaned = [k.strip() for k in keys]
    if not cleaned or any(not k for k in cleaned):
        raise CredentialFormatError("At least one non-empty API key is required")

    for i, key in enumerate(cleaned, 1):
        if len(key) != API_KEY_LENGTH:
            raise CredentialFormatError(
                f"API key {i} has {len(key)} characters, expected {API_KEY_LENGTH}"
            )
        if "," in key:
            raise CredentialFormatError(f"API key {i} contains a comma")

    if len(set(cleaned)) != len(cleaned):
        raise CredentialFormatError("API keys must be unique")
    return cleaned


def save_credentials(store, keys: Iterable[str]) -> list[str]:
    cleaned = validate_credentials(keys)
    store.set(CREDENTIALS_KEY, ",".join(cleaned))
    logger.info(f"Saved {len(cleaned)} API key(s)")
    return cleaned


def clear_credentials(store) -> None:
    store.delete(CREDENTIALS_KEY)
