"""Reconciliation between local .env files and remote storage."""

from envsync.sync.engine import FileAction, FileSyncResult, SyncEngine, SyncMode, SyncResult

__all__ = ["FileAction", "FileSyncResult", "SyncEngine", "SyncMode", "SyncResult"]
