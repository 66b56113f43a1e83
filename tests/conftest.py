"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from envsync.config import EnvFile, EnvsyncConfig, LocalBackend, LocalOptions
from envsync.storage.base import Storage, StorageError


class MemoryStorage(Storage):
    """In-memory storage double."""

    def __init__(self, items: dict[str, str] | None = None):
        self.items: dict[str, str] = dict(items or {})
        self.authenticated = False
        self.set_calls: list[tuple[str, str]] = []
        self.fail_set_for: set[str] = set()

    def authenticate(self) -> None:
        self.authenticated = True

    def is_authenticated(self) -> bool:
        return self.authenticated

    def has(self, key: str) -> bool:
        self.ensure_authenticated()
        return key in self.items

    def get(self, key: str) -> str | None:
        self.ensure_authenticated()
        return self.items.get(key)

    def set(self, key: str, value: str) -> None:
        self.ensure_authenticated()
        if key in self.fail_set_for:
            raise StorageError(f"write refused for {key}")
        self.set_calls.append((key, value))
        self.items[key] = value

    def delete(self, key: str) -> None:
        self.ensure_authenticated()
        self.items.pop(key, None)


@pytest.fixture
def memory_storage():
    """Empty in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A small project tree with a few .env files."""
    (tmp_path / ".env").write_text("APP_NAME=demo\nDEBUG=true\n")
    (tmp_path / ".env.local").write_text("DEBUG=false\n")

    api = tmp_path / "services" / "api"
    api.mkdir(parents=True)
    (api / ".env").write_text("DATABASE_URL=postgres://localhost/api\n")

    (tmp_path / "node_modules" / "pkg").mkdir(parents=True)
    (tmp_path / "node_modules" / "pkg" / ".env").write_text("IGNORED=1\n")

    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / ".env").write_text("IGNORED=1\n")

    return tmp_path


def make_config(*paths: str, merge: bool = False, base: str = ".envsync") -> EnvsyncConfig:
    """Build a config tracking ``paths`` with a local backend."""
    return EnvsyncConfig(
        merge_env_files=merge,
        backend=LocalBackend(config=LocalOptions(base=base)),
        files=[EnvFile(name=Path(p).name, path=p, extension=Path(p).suffix) for p in paths],
    )


@pytest.fixture
def config_factory():
    """Factory for configs tracking the given project-relative paths."""
    return make_config
