"""Tests for envsync.config - loading, validating and persisting config."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from envsync.config import (
    REMOTE_CONFIG_KEY,
    AzureAppConfigBackend,
    AzureKeyVaultBackend,
    ConfigError,
    ConfigNotFoundError,
    EnvsyncConfig,
    EnvsyncSettings,
    LocalBackend,
    create_envsync_config,
    deep_merge,
    find_config,
    load_config,
    load_remote_config,
    parse_config,
    update_envsync_config,
    verify_config,
)


class TestEnvsyncConfig:
    """Tests for the config schema."""

    def test_defaults(self):
        config = EnvsyncConfig()
        assert config.merge_env_files is True
        assert config.recursive is True
        assert config.include_suffixes is False
        assert config.exclude == [".git", "node_modules", "dist"]
        assert isinstance(config.backend, LocalBackend)
        assert config.backend.name == "unconfigured"
        assert config.files == []

    def test_camel_case_json(self):
        data = json.loads(EnvsyncConfig().to_json())
        assert "mergeEnvFiles" in data
        assert "includeSuffixes" in data
        assert data["backend"]["type"] == "local"

    def test_backend_discriminated_by_type(self):
        config = parse_config(
            {
                "backend": {
                    "type": "azure-key-vault",
                    "name": "vault",
                    "config": {"vaultName": "team-vault"},
                }
            }
        )
        assert isinstance(config.backend, AzureKeyVaultBackend)
        assert config.backend.config.vault_url == "https://team-vault.vault.azure.net"

    def test_app_config_endpoint_default(self):
        config = parse_config(
            {"backend": {"type": "azure-app-config", "config": {"appConfigName": "cfg"}}}
        )
        assert isinstance(config.backend, AzureAppConfigBackend)
        assert config.backend.config.url == "https://cfg.azconfig.io"

    def test_missing_required_backend_field(self):
        with pytest.raises(ConfigError):
            parse_config({"backend": {"type": "azure-storage", "config": {"accountName": "a"}}})

    def test_unknown_backend_type(self):
        with pytest.raises(ConfigError):
            parse_config({"backend": {"type": "s3", "config": {}}})

    def test_invalid_json(self):
        with pytest.raises(ConfigError):
            parse_config("{not json")


class TestFindAndLoad:
    """Tests for find_config, load_config and verify_config."""

    def test_find_default_name(self, tmp_path: Path):
        (tmp_path / "envsync.json").write_text("{}")
        assert find_config(tmp_path) == tmp_path / "envsync.json"

    def test_find_legacy_name(self, tmp_path: Path):
        (tmp_path / "envsync.config.json").write_text("{}")
        assert find_config(tmp_path) == tmp_path / "envsync.config.json"

    def test_find_explicit_file(self, tmp_path: Path):
        (tmp_path / "custom.json").write_text("{}")
        assert find_config(tmp_path, "custom.json") == tmp_path / "custom.json"
        assert find_config(tmp_path, "missing.json") is None

    def test_load_missing(self, tmp_path: Path):
        with pytest.raises(ConfigNotFoundError):
            load_config(tmp_path / "envsync.json")

    def test_verify_absent_is_not_fatal(self, tmp_path: Path):
        assert verify_config(tmp_path) == (None, False)

    def test_verify_invalid(self, tmp_path: Path):
        (tmp_path / "envsync.json").write_text("[1, 2]")
        assert verify_config(tmp_path) == (None, False)

    def test_verify_valid(self, tmp_path: Path):
        (tmp_path / "envsync.json").write_text(json.dumps({"recursive": False}))
        config, valid = verify_config(tmp_path)
        assert valid
        assert config.recursive is False


class TestCreateConfig:
    """Tests for create_envsync_config."""

    def test_writes_local_file_with_defaults(self, tmp_path: Path):
        create_envsync_config({"mergeEnvFiles": False}, tmp_path)
        data = json.loads((tmp_path / "envsync.json").read_text())
        assert data["mergeEnvFiles"] is False
        assert data["recursive"] is True
        assert data["exclude"] == [".git", "node_modules", "dist"]

    def test_writes_remote(self, tmp_path: Path, memory_storage):
        create_envsync_config(EnvsyncConfig(recursive=False), tmp_path, memory_storage, remote=True)
        assert not (tmp_path / "envsync.json").exists()
        assert json.loads(memory_storage.items[REMOTE_CONFIG_KEY])["recursive"] is False

    def test_remote_requires_storage(self, tmp_path: Path):
        with pytest.raises(ValueError):
            create_envsync_config(EnvsyncConfig(), tmp_path, remote=True)

    def test_load_remote_config(self, tmp_path: Path, memory_storage):
        create_envsync_config(EnvsyncConfig(recursive=False), tmp_path, memory_storage, remote=True)
        assert load_remote_config(memory_storage).recursive is False

    def test_load_remote_config_missing(self, memory_storage):
        with pytest.raises(ConfigNotFoundError):
            load_remote_config(memory_storage)


class TestUpdateConfig:
    """Tests for update_envsync_config."""

    def test_merges_patch_over_existing(self, tmp_path: Path):
        (tmp_path / "envsync.json").write_text(
            json.dumps({"recursive": False, "exclude": ["a", "b"]})
        )
        merged = update_envsync_config({"exclude": ["c"]}, root=tmp_path)
        assert merged.recursive is False
        assert merged.exclude == ["c"]
        assert json.loads((tmp_path / "envsync.json").read_text())["exclude"] == ["c"]

    def test_nested_backend_merge(self, tmp_path: Path):
        (tmp_path / "envsync.json").write_text(
            json.dumps(
                {
                    "backend": {
                        "type": "azure-app-config",
                        "name": "cfg",
                        "config": {"appConfigName": "cfg", "label": "dev"},
                    }
                }
            )
        )
        merged = update_envsync_config(
            {"backend": {"config": {"label": "prod"}}}, root=tmp_path
        )
        assert merged.backend.config.app_config_name == "cfg"
        assert merged.backend.config.label == "prod"

    def test_unparsable_existing_treated_as_empty(self, tmp_path: Path):
        (tmp_path / "envsync.json").write_text("{broken")
        merged = update_envsync_config({"recursive": False}, root=tmp_path)
        assert merged.recursive is False
        assert merged.files == []


def test_deep_merge_replaces_lists():
    assert deep_merge({"a": [3]}, {"a": [1, 2], "b": 1}) == {"a": [3], "b": 1}


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("ENVSYNC_HIDE_LOGO", "true")
    monkeypatch.setenv("ENVSYNC_CONFIG_FILE", "custom.json")
    settings = EnvsyncSettings()
    assert settings.hide_logo is True
    assert settings.config_file == Path("custom.json")


def test_settings_log_level_is_case_insensitive(monkeypatch):
    monkeypatch.setenv("ENVSYNC_LOG_LEVEL", "debug")
    assert EnvsyncSettings().log_level == "DEBUG"


def test_settings_reject_unknown_log_level(monkeypatch):
    monkeypatch.setenv("ENVSYNC_LOG_LEVEL", "verbose")
    with pytest.raises(ValidationError, match="log_level"):
        EnvsyncSettings()
