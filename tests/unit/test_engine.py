"""Tests for envsync.sync.engine - reconciling tracked files with storage."""

from __future__ import annotations

from pathlib import Path

import pytest

from envsync.core.diff import DiffType
from envsync.core.hashing import remote_key
from envsync.core.parser import parse
from envsync.storage.base import StorageConnectionError, StorageError
from envsync.storage.local import LocalStorage
from envsync.sync.engine import FileAction, SyncEngine, SyncMode


def _actions(result) -> list[FileAction]:
    return [f.action for f in result.files]


class TestSync:
    """Tests for pulling remote content."""

    def test_merge_keeps_local_only_keys(self, tmp_path: Path, memory_storage, config_factory):
        (tmp_path / ".env").write_text("A=1\nLOCAL=x\n")
        memory_storage.items[remote_key(".env")] = "A=2\nB=3"

        engine = SyncEngine(config_factory(".env", merge=True), memory_storage, tmp_path)
        result = engine.sync()

        assert _actions(result) == [FileAction.UPDATED]
        assert parse((tmp_path / ".env").read_text()) == {"A": "2", "B": "3", "LOCAL": "x"}

    def test_remote_wins_on_conflict(self, tmp_path: Path, memory_storage, config_factory):
        (tmp_path / ".env").write_text("A=1\n")
        memory_storage.items[remote_key(".env")] = "A=2\nB=3"

        SyncEngine(config_factory(".env", merge=True), memory_storage, tmp_path).sync()

        assert parse((tmp_path / ".env").read_text()) == {"A": "2", "B": "3"}

    def test_no_merge_replaces_local(self, tmp_path: Path, memory_storage, config_factory):
        (tmp_path / ".env").write_text("A=1\nLOCAL=x\n")
        memory_storage.items[remote_key(".env")] = "A=2\n"

        SyncEngine(config_factory(".env"), memory_storage, tmp_path).sync()

        assert (tmp_path / ".env").read_text() == "A=2\n"

    def test_merge_flag_overrides_config(self, tmp_path: Path, memory_storage, config_factory):
        (tmp_path / ".env").write_text("LOCAL=x\n")
        memory_storage.items[remote_key(".env")] = "A=2\n"

        engine = SyncEngine(
            config_factory(".env"), memory_storage, tmp_path, mode=SyncMode(merge=True)
        )
        engine.sync()

        assert parse((tmp_path / ".env").read_text()) == {"A": "2", "LOCAL": "x"}

    def test_missing_remote_leaves_local_untouched(
        self, tmp_path: Path, memory_storage, config_factory
    ):
        (tmp_path / ".env").write_text("A=1\n")

        result = SyncEngine(config_factory(".env"), memory_storage, tmp_path).sync()

        assert _actions(result) == [FileAction.MISSING_REMOTE]
        assert (tmp_path / ".env").read_text() == "A=1\n"

    def test_creates_missing_local_file(self, tmp_path: Path, memory_storage, config_factory):
        memory_storage.items[remote_key("apps/web/.env")] = "PORT=3000\n"
        progress: list[str] = []

        engine = SyncEngine(
            config_factory("apps/web/.env"),
            memory_storage,
            tmp_path,
            progress_callback=progress.append,
        )
        result = engine.sync()

        assert _actions(result) == [FileAction.UPDATED]
        assert (tmp_path / "apps" / "web" / ".env").read_text() == "PORT=3000\n"
        assert progress == ["Updating local file from remote: /apps/web/.env"]

    def test_is_idempotent(self, tmp_path: Path, memory_storage, config_factory):
        (tmp_path / ".env").write_text("A=1\n")
        memory_storage.items[remote_key(".env")] = "A=2\nB=3\n"
        engine = SyncEngine(config_factory(".env", merge=True), memory_storage, tmp_path)

        engine.sync()
        first = (tmp_path / ".env").read_text()
        second_result = engine.sync()

        assert (tmp_path / ".env").read_text() == first
        assert _actions(second_result) == [FileAction.UP_TO_DATE]

    def test_write_error_continues(self, tmp_path: Path, memory_storage, config_factory):
        # A regular file where a parent directory is needed makes the write fail
        (tmp_path / "blocked").write_text("")
        memory_storage.items[remote_key("blocked/.env")] = "A=1\n"
        memory_storage.items[remote_key(".env")] = "B=2\n"

        result = SyncEngine(
            config_factory("blocked/.env", ".env"), memory_storage, tmp_path
        ).sync()

        assert _actions(result) == [FileAction.ERROR, FileAction.UPDATED]
        assert "Failed to write file" in result.files[0].message
        assert result.has_errors

    def test_undecodable_local_file_is_per_file_error(
        self, tmp_path: Path, memory_storage, config_factory
    ):
        (tmp_path / ".env").write_bytes(b"A=\xff\xfe\n")
        memory_storage.items[remote_key(".env")] = "A=1\n"
        memory_storage.items[remote_key("other/.env")] = "B=2\n"

        result = SyncEngine(
            config_factory(".env", "other/.env"), memory_storage, tmp_path
        ).sync()

        assert _actions(result) == [FileAction.ERROR, FileAction.UPDATED]
        assert "not UTF-8" in result.files[0].message
        assert (tmp_path / ".env").read_bytes() == b"A=\xff\xfe\n"
        assert (tmp_path / "other" / ".env").read_text() == "B=2\n"

    def test_undecodable_remote_record_is_per_file_error(self, tmp_path: Path, config_factory):
        store = tmp_path / ".envsync"
        store.mkdir()
        (store / remote_key(".env")).write_bytes(b"A=\xff\n")
        (store / remote_key("b/.env")).write_text("B=2\n")

        result = SyncEngine(
            config_factory(".env", "b/.env"), LocalStorage(store), tmp_path
        ).sync()

        assert _actions(result) == [FileAction.ERROR, FileAction.UPDATED]
        assert "Failed to read remote" in result.files[0].message
        assert (tmp_path / "b" / ".env").read_text() == "B=2\n"

    def test_connection_error_propagates(self, tmp_path: Path, memory_storage, config_factory):
        def unreachable():
            raise StorageConnectionError("no route")

        memory_storage.authenticate = unreachable

        with pytest.raises(StorageConnectionError):
            SyncEngine(config_factory(".env"), memory_storage, tmp_path).sync()


class TestUpdate:
    """Tests for pushing local content."""

    def test_pushes_normalized_content(self, tmp_path: Path, memory_storage, config_factory):
        (tmp_path / ".env").write_text("# comment\nexport A = 1\n")

        result = SyncEngine(config_factory(".env"), memory_storage, tmp_path).update()

        assert _actions(result) == [FileAction.UPDATED]
        assert memory_storage.items[remote_key(".env")] == "A=1\n"

    def test_missing_local_file(self, tmp_path: Path, memory_storage, config_factory):
        result = SyncEngine(config_factory(".env"), memory_storage, tmp_path).update()

        assert _actions(result) == [FileAction.MISSING_LOCAL]
        assert memory_storage.set_calls == []

    def test_declined_overwrite_is_skipped(self, tmp_path: Path, memory_storage, config_factory):
        (tmp_path / ".env").write_text("A=1\n")
        memory_storage.items[remote_key(".env")] = "A=0\n"
        questions: list[str] = []

        def decline(message: str) -> bool:
            questions.append(message)
            return False

        engine = SyncEngine(
            config_factory(".env"), memory_storage, tmp_path, prompt_callback=decline
        )
        result = engine.update()

        assert _actions(result) == [FileAction.SKIPPED]
        assert questions == ["Remote already has /.env. Overwrite?"]
        assert memory_storage.items[remote_key(".env")] == "A=0\n"

    def test_confirmed_overwrite(self, tmp_path: Path, memory_storage, config_factory):
        (tmp_path / ".env").write_text("A=1\n")
        memory_storage.items[remote_key(".env")] = "A=0\n"

        engine = SyncEngine(
            config_factory(".env"), memory_storage, tmp_path, prompt_callback=lambda _: True
        )
        engine.update()

        assert memory_storage.items[remote_key(".env")] == "A=1\n"

    def test_overwrite_mode_skips_prompt(self, tmp_path: Path, memory_storage, config_factory):
        (tmp_path / ".env").write_text("A=1\n")
        memory_storage.items[remote_key(".env")] = "A=0\n"

        def fail(message: str) -> bool:
            raise AssertionError(f"unexpected prompt: {message}")

        engine = SyncEngine(
            config_factory(".env"),
            memory_storage,
            tmp_path,
            mode=SyncMode(overwrite=True),
            prompt_callback=fail,
        )
        engine.update()

        assert memory_storage.items[remote_key(".env")] == "A=1\n"

    def test_empty_local_clears_remote(self, tmp_path: Path, memory_storage, config_factory):
        (tmp_path / ".env").write_text("# only comments\n")
        progress: list[str] = []

        engine = SyncEngine(
            config_factory(".env"), memory_storage, tmp_path, progress_callback=progress.append
        )
        engine.update()

        assert memory_storage.items[remote_key(".env")] == ""
        assert progress == ["Local file is empty: /.env. Remote will be cleared."]

    def test_write_error_continues(self, tmp_path: Path, memory_storage, config_factory):
        (tmp_path / ".env").write_text("A=1\n")
        (tmp_path / "api").mkdir()
        (tmp_path / "api" / ".env").write_text("B=2\n")
        memory_storage.fail_set_for.add(remote_key(".env"))

        result = SyncEngine(
            config_factory(".env", "api/.env"), memory_storage, tmp_path
        ).update()

        assert _actions(result) == [FileAction.ERROR, FileAction.UPDATED]
        assert memory_storage.items[remote_key("api/.env")] == "B=2\n"

    def test_undecodable_local_file_is_not_pushed(
        self, tmp_path: Path, memory_storage, config_factory
    ):
        (tmp_path / ".env").write_bytes(b"A=\xff\xfe\n")
        (tmp_path / "b").mkdir()
        (tmp_path / "b" / ".env").write_text("B=2\n")

        result = SyncEngine(
            config_factory(".env", "b/.env"), memory_storage, tmp_path
        ).update()

        assert _actions(result) == [FileAction.ERROR, FileAction.UPDATED]
        assert remote_key(".env") not in memory_storage.items
        assert memory_storage.items[remote_key("b/.env")] == "B=2\n"

    def test_update_then_sync_is_up_to_date(self, project_dir: Path, memory_storage, config_factory):
        config = config_factory(".env", "services/api/.env")
        engine = SyncEngine(config, memory_storage, project_dir)

        engine.update()
        result = engine.sync()

        assert _actions(result) == [FileAction.UP_TO_DATE, FileAction.UP_TO_DATE]
        assert (project_dir / ".env").read_text() == "APP_NAME=demo\nDEBUG=true\n"


class TestStatus:
    """Tests for comparing without writing."""

    def test_reports_each_state(self, tmp_path: Path, memory_storage, config_factory):
        (tmp_path / "same").mkdir()
        (tmp_path / "same" / ".env").write_text("A=1\n")
        (tmp_path / "stale").mkdir()
        (tmp_path / "stale" / ".env").write_text("A=1\n")
        memory_storage.items[remote_key("same/.env")] = "A=1\n"
        memory_storage.items[remote_key("stale/.env")] = "A=2\n"
        memory_storage.items[remote_key("gone/.env")] = "A=3\n"

        config = config_factory("same/.env", "stale/.env", "gone/.env", "new/.env")
        result = SyncEngine(config, memory_storage, tmp_path).status()

        assert _actions(result) == [
            FileAction.UP_TO_DATE,
            FileAction.OUT_OF_DATE,
            FileAction.MISSING_LOCAL,
            FileAction.MISSING_REMOTE,
        ]
        assert result.needs_sync
        diff = result.files[1].diff
        assert diff.changed_count == 1
        assert diff.differences[0].diff_type == DiffType.CHANGED

    def test_does_not_write(self, tmp_path: Path, memory_storage, config_factory):
        (tmp_path / ".env").write_text("A=1\n")
        memory_storage.items[remote_key(".env")] = "A=2\n"

        SyncEngine(config_factory(".env"), memory_storage, tmp_path).status()

        assert (tmp_path / ".env").read_text() == "A=1\n"
        assert memory_storage.set_calls == []

    def test_undecodable_local_file(self, tmp_path: Path, memory_storage, config_factory):
        (tmp_path / ".env").write_bytes(b"\xff")
        memory_storage.items[remote_key(".env")] = "A=1\n"

        result = SyncEngine(config_factory(".env"), memory_storage, tmp_path).status()

        assert _actions(result) == [FileAction.ERROR]
        assert not result.needs_sync

    def test_read_error_is_per_file(self, tmp_path: Path, memory_storage, config_factory):
        (tmp_path / ".env").write_text("A=1\n")
        original_has = memory_storage.has

        def flaky_has(key: str) -> bool:
            if key == remote_key("bad/.env"):
                raise StorageError("throttled")
            return original_has(key)

        memory_storage.has = flaky_has
        memory_storage.items[remote_key(".env")] = "A=1\n"

        result = SyncEngine(
            config_factory("bad/.env", ".env"), memory_storage, tmp_path
        ).status()

        assert _actions(result) == [FileAction.ERROR, FileAction.UP_TO_DATE]


class TestClear:
    """Tests for deleting remote entries."""

    def test_declined_keeps_remote(self, tmp_path: Path, memory_storage, config_factory):
        memory_storage.items[remote_key(".env")] = "A=1\n"

        result = SyncEngine(config_factory(".env"), memory_storage, tmp_path).clear()

        assert result.cancelled
        assert memory_storage.items == {remote_key(".env"): "A=1\n"}

    def test_confirmed_deletes_tracked_entries(
        self, tmp_path: Path, memory_storage, config_factory
    ):
        memory_storage.items[remote_key(".env")] = "A=1\n"
        memory_storage.items["envsync.json"] = "{}"

        engine = SyncEngine(
            config_factory(".env", "api/.env"),
            memory_storage,
            tmp_path,
            prompt_callback=lambda _: True,
        )
        result = engine.clear()

        assert _actions(result) == [FileAction.DELETED, FileAction.MISSING_REMOTE]
        assert memory_storage.items == {"envsync.json": "{}"}
