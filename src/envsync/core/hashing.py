"""Stable hashes for remote keys and content comparison."""

from __future__ import annotations

import hashlib
from pathlib import PurePath, PurePosixPath


def stable_hash(value: str) -> str:
    """Return a hex SHA-256 digest of ``value``."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def with_leading_slash(path: str | PurePath) -> str:
    """Return ``path`` in POSIX form with exactly one leading slash."""
    parts = PurePath(path).parts
    if not parts:
        return "/"
    return "/" + PurePosixPath(*parts).as_posix().lstrip("/")


def remote_key(path: str | PurePath) -> str:
    """Derive the storage key for a tracked file from its project-relative path."""
    return stable_hash(with_leading_slash(path))


def content_hash(content: str) -> str:
    """Hash raw file content; reformatting alone changes the hash."""
    return stable_hash(content)
