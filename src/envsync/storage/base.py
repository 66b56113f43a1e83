"""Abstract base class for remote key-value storage."""

from __future__ import annotations

from abc import ABC, abstractmethod


class StorageError(Exception):
    """Base exception for storage operations."""

    pass


class StorageConnectionError(StorageError):
    """The storage backend could not be reached."""

    pass


class AuthenticationError(StorageConnectionError):
    """Authentication to the storage backend failed."""

    pass


class Storage(ABC):
    """Abstract interface for storage backends.

    Implementations must provide:
    - has: Check whether a key exists
    - get: Retrieve the text stored under a key
    - set: Store text under a key
    - delete: Remove a key
    - authenticate: Connect to the backend

    All methods connect lazily through ``ensure_authenticated``.
    """

    @abstractmethod
    def has(self, key: str) -> bool:
        """Check whether ``key`` exists.

        Raises:
            StorageConnectionError: If the backend is unreachable
            StorageError: For other storage errors
        """
        ...

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value stored under ``key``, or None if it is absent.

        Raises:
            StorageConnectionError: If the backend is unreachable
            StorageError: For other storage errors
        """
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value.

        Raises:
            StorageConnectionError: If the backend is unreachable
            StorageError: For other storage errors
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; removing a missing key is not an error.

        Raises:
            StorageConnectionError: If the backend is unreachable
            StorageError: For other storage errors
        """
        ...

    @abstractmethod
    def is_authenticated(self) -> bool:
        """Check if the client is connected."""
        ...

    @abstractmethod
    def authenticate(self) -> None:
        """Connect to the backend.

        Raises:
            AuthenticationError: If authentication fails
        """
        ...

    def ensure_authenticated(self) -> None:
        """Ensure client is authenticated, authenticating if needed."""
        if not self.is_authenticated():
            self.authenticate()
