"""Reconciliation of tracked .env files with remote storage.

The engine never prompts or exits on its own. Confirmations go through
``prompt_callback`` and progress messages through ``progress_callback`` so
the CLI decides how to talk to the user.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from envsync.config import EnvFile, EnvsyncConfig
from envsync.core.diff import DiffEngine, DiffResult
from envsync.core.hashing import content_hash, remote_key, with_leading_slash
from envsync.core.parser import EnvParser, merge, normalize, parse, serialize
from envsync.storage.base import Storage, StorageConnectionError, StorageError

logger = logging.getLogger(__name__)


class FileAction(Enum):
    """Outcome for a single tracked file."""

    UP_TO_DATE = "up-to-date"
    OUT_OF_DATE = "out-of-date"
    UPDATED = "updated"
    MISSING_REMOTE = "missing-remote"
    MISSING_LOCAL = "missing-local"
    SKIPPED = "skipped"
    DELETED = "deleted"
    ERROR = "error"


@dataclass
class FileSyncResult:
    """Result for one tracked file."""

    path: str  # Project-relative, with a leading slash
    remote_key: str
    action: FileAction
    message: str | None = None
    diff: DiffResult | None = None


@dataclass
class SyncResult:
    """Aggregated result of one engine run."""

    files: list[FileSyncResult] = field(default_factory=list)
    cancelled: bool = False

    def count(self, action: FileAction) -> int:
        return sum(1 for f in self.files if f.action == action)

    @property
    def has_errors(self) -> bool:
        return self.count(FileAction.ERROR) > 0

    @property
    def needs_sync(self) -> bool:
        """Whether any file is stale compared to the remote."""
        return any(
            f.action in (FileAction.OUT_OF_DATE, FileAction.MISSING_LOCAL) for f in self.files
        )


@dataclass
class SyncMode:
    """Flags that modify engine behaviour."""

    merge: bool = False  # Merge local pairs under remote ones on pull
    overwrite: bool = False  # Replace existing remote entries without asking


def _always_no(_message: str) -> bool:
    return False


def _discard(_message: str) -> None:
    return None


class SyncEngine:
    """Reconcile tracked files between the project tree and a storage backend.

    Example:
        engine = SyncEngine(config, storage, root=Path("."))
        result = engine.status()
        if result.needs_sync:
            engine.sync()
    """

    def __init__(
        self,
        config: EnvsyncConfig,
        storage: Storage,
        root: Path | str,
        mode: SyncMode | None = None,
        prompt_callback: Callable[[str], bool] | None = None,
        progress_callback: Callable[[str], None] | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Loaded project config
            storage: Connected or lazily-connecting storage backend
            root: Project root the tracked paths are relative to
            mode: Merge/overwrite flags
            prompt_callback: Asked yes/no questions; defaults to always "no"
            progress_callback: Receives human-readable progress lines
        """
        self.config = config
        self.storage = storage
        self.root = Path(root)
        self.mode = mode or SyncMode()
        self.prompt = prompt_callback or _always_no
        self.progress = progress_callback or _discard
        self._parser = EnvParser()
        self._diff = DiffEngine()

    @property
    def should_merge(self) -> bool:
        return self.mode.merge or self.config.merge_env_files

    def _local_path(self, env_file: EnvFile) -> Path:
        return self.root / env_file.path

    def _read_local(self, env_file: EnvFile) -> str | None:
        """Return local content, or None when the file cannot be opened.

        Raises:
            UnicodeDecodeError: If the file is not valid UTF-8
        """
        try:
            return self._local_path(env_file).read_text(encoding="utf-8")
        except OSError:
            logger.debug("Local file missing: %s", with_leading_slash(env_file.path))
            return None

    def _local_read_error(
        self, display: str, key: str, error: UnicodeDecodeError
    ) -> FileSyncResult:
        logger.debug("Cannot decode %s: %s", display, error)
        return FileSyncResult(
            display, key, FileAction.ERROR, f"Failed to read local file (not UTF-8): {error}"
        )

    def _read_remote(self, key: str) -> str | None:
        """Return remote content, or None when the remote has no entry."""
        if not self.storage.has(key):
            return None
        return self.storage.get(key)

    def sync(self) -> SyncResult:
        """Pull remote content into local files.

        Raises:
            StorageConnectionError: If the backend cannot be reached
        """
        result = SyncResult()

        for env_file in self.config.files:
            display = with_leading_slash(env_file.path)
            key = remote_key(env_file.path)

            try:
                remote_content = self._read_remote(key)
            except StorageConnectionError:
                raise
            except StorageError as e:
                result.files.append(
                    FileSyncResult(display, key, FileAction.ERROR, f"Failed to read remote: {e}")
                )
                continue

            if remote_content is None:
                logger.debug("No remote entry %s for %s", key, display)
                result.files.append(FileSyncResult(display, key, FileAction.MISSING_REMOTE))
                continue

            try:
                local_content = self._read_local(env_file) or ""
            except UnicodeDecodeError as e:
                result.files.append(self._local_read_error(display, key, e))
                continue

            if content_hash(local_content) == content_hash(remote_content):
                result.files.append(FileSyncResult(display, key, FileAction.UP_TO_DATE))
                continue

            variables = parse(remote_content)
            if self.should_merge:
                variables = merge(variables, parse(local_content))

            self.progress(f"Updating local file from remote: {display}")
            local_path = self._local_path(env_file)
            try:
                local_path.parent.mkdir(parents=True, exist_ok=True)
                local_path.write_text(serialize(variables), encoding="utf-8")
            except OSError as e:
                logger.debug("Write failed for %s: %s", local_path, e)
                result.files.append(
                    FileSyncResult(display, key, FileAction.ERROR, f"Failed to write file: {e}")
                )
                continue

            result.files.append(FileSyncResult(display, key, FileAction.UPDATED))

        return result

    def update(self) -> SyncResult:
        """Push local files to the remote.

        Raises:
            StorageConnectionError: If the backend cannot be reached
        """
        result = SyncResult()

        for env_file in self.config.files:
            display = with_leading_slash(env_file.path)
            key = remote_key(env_file.path)

            try:
                local_content = self._read_local(env_file)
            except UnicodeDecodeError as e:
                result.files.append(self._local_read_error(display, key, e))
                continue
            if local_content is None:
                result.files.append(
                    FileSyncResult(display, key, FileAction.MISSING_LOCAL, "Local file missing")
                )
                continue

            try:
                has_remote = self.storage.has(key)
            except StorageConnectionError:
                raise
            except StorageError as e:
                result.files.append(
                    FileSyncResult(display, key, FileAction.ERROR, f"Failed to read remote: {e}")
                )
                continue

            if has_remote and not self.mode.overwrite:
                if not self.prompt(f"Remote already has {display}. Overwrite?"):
                    result.files.append(FileSyncResult(display, key, FileAction.SKIPPED))
                    continue

            normalized = normalize(local_content)
            if not normalized:
                self.progress(f"Local file is empty: {display}. Remote will be cleared.")

            try:
                self.storage.set(key, normalized)
            except StorageConnectionError:
                raise
            except StorageError as e:
                result.files.append(
                    FileSyncResult(display, key, FileAction.ERROR, f"Failed to write remote: {e}")
                )
                continue

            result.files.append(FileSyncResult(display, key, FileAction.UPDATED))

        return result

    def status(self) -> SyncResult:
        """Compare local files with the remote without writing anything.

        Raises:
            StorageConnectionError: If the backend cannot be reached
        """
        result = SyncResult()

        for env_file in self.config.files:
            display = with_leading_slash(env_file.path)
            key = remote_key(env_file.path)

            try:
                remote_content = self._read_remote(key)
            except StorageConnectionError:
                raise
            except StorageError as e:
                result.files.append(
                    FileSyncResult(display, key, FileAction.ERROR, f"Failed to read remote: {e}")
                )
                continue

            if remote_content is None:
                result.files.append(FileSyncResult(display, key, FileAction.MISSING_REMOTE))
                continue

            try:
                local_content = self._read_local(env_file)
            except UnicodeDecodeError as e:
                result.files.append(self._local_read_error(display, key, e))
                continue
            if local_content is None:
                result.files.append(
                    FileSyncResult(display, key, FileAction.MISSING_LOCAL, "Local file missing")
                )
                continue

            if content_hash(local_content) == content_hash(remote_content):
                result.files.append(FileSyncResult(display, key, FileAction.UP_TO_DATE))
            else:
                diff = self._diff.diff(
                    self._parser.parse_string(local_content),
                    self._parser.parse_string(remote_content),
                )
                result.files.append(
                    FileSyncResult(display, key, FileAction.OUT_OF_DATE, diff=diff)
                )

        return result

    def clear(self) -> SyncResult:
        """Delete every tracked file's remote entry after confirmation.

        Raises:
            StorageConnectionError: If the backend cannot be reached
        """
        if not self.prompt(
            "This will delete all .env files from the remote storage. Are you sure?"
        ):
            return SyncResult(cancelled=True)

        result = SyncResult()
        for env_file in self.config.files:
            display = with_leading_slash(env_file.path)
            key = remote_key(env_file.path)

            try:
                if not self.storage.has(key):
                    result.files.append(FileSyncResult(display, key, FileAction.MISSING_REMOTE))
                    continue
                self.storage.delete(key)
            except StorageConnectionError:
                raise
            except StorageError as e:
                result.files.append(
                    FileSyncResult(display, key, FileAction.ERROR, f"Failed to delete: {e}")
                )
                continue

            result.files.append(FileSyncResult(display, key, FileAction.DELETED))

        return result
