"""Local directory storage."""

from __future__ import annotations

import re
from pathlib import Path

from envsync.storage.base import Storage, StorageConnectionError, StorageError

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class LocalStorage(Storage):
    """Stores each key as a file inside a base directory."""

    def __init__(self, base: Path | str):
        self.base = Path(base)
        self._ready = False

    def authenticate(self) -> None:
        """Create the base directory."""
        try:
            self.base.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageConnectionError(f"Cannot use local storage at {self.base}: {e}") from e
        self._ready = True

    def is_authenticated(self) -> bool:
        return self._ready

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key) or key in (".", ".."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self.base / key

    def has(self, key: str) -> bool:
        self.ensure_authenticated()
        return self._path(key).is_file()

    def get(self, key: str) -> str | None:
        self.ensure_authenticated()
        path = self._path(key)
        if not path.is_file():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise StorageError(f"Stored value for {key} is not valid UTF-8: {e}") from e
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        self.ensure_authenticated()
        path = self._path(key)
        try:
            path.write_text(value, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

    def delete(self, key: str) -> None:
        self.ensure_authenticated()
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e
