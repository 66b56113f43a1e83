"""Project configuration for envsync.

The configuration lives in ``envsync.json`` at the project root, or under the
``envsync.json`` key of the remote store when ``--remote-config`` is used.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from envsync.storage.base import Storage

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "envsync.json"
LEGACY_CONFIG_FILENAME = "envsync.config.json"
REMOTE_CONFIG_KEY = "envsync.json"

DEFAULT_EXCLUDE = [".git", "node_modules", "dist"]

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ConfigError(Exception):
    """Configuration could not be read or is invalid."""

    pass


class ConfigNotFoundError(ConfigError):
    """No configuration exists at the expected location."""

    pass


class _Model(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LocalOptions(_Model):
    base: str = ".envsync"


class AzureStorageOptions(_Model):
    account_name: str
    container_name: str


class AzureKeyVaultOptions(_Model):
    vault_name: str
    endpoint: str | None = None

    @property
    def vault_url(self) -> str:
        return self.endpoint or f"https://{self.vault_name}.vault.azure.net"


class AzureAppConfigOptions(_Model):
    app_config_name: str
    endpoint: str | None = None
    prefix: str | None = None
    label: str | None = None

    @property
    def url(self) -> str:
        return self.endpoint or f"https://{self.app_config_name}.azconfig.io"


class LocalBackend(_Model):
    type: Literal["local"] = "local"
    name: str = "local"
    config: LocalOptions = Field(default_factory=LocalOptions)


class AzureStorageBackend(_Model):
    type: Literal["azure-storage"] = "azure-storage"
    name: str = "azure-storage"
    config: AzureStorageOptions


class AzureKeyVaultBackend(_Model):
    type: Literal["azure-key-vault"] = "azure-key-vault"
    name: str = "azure-key-vault"
    config: AzureKeyVaultOptions


class AzureAppConfigBackend(_Model):
    type: Literal["azure-app-config"] = "azure-app-config"
    name: str = "azure-app-config"
    config: AzureAppConfigOptions


BackendConfig = Annotated[
    Union[LocalBackend, AzureStorageBackend, AzureKeyVaultBackend, AzureAppConfigBackend],
    Field(discriminator="type"),
]


class EnvFile(_Model):
    """A tracked .env file, ``path`` is POSIX and relative to the project root."""

    name: str
    path: str
    extension: str = ""


class EnvsyncConfig(_Model):
    """Top-level envsync configuration document."""

    merge_env_files: bool = True
    recursive: bool = True
    include_suffixes: bool = False
    exclude: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    backend: BackendConfig = Field(default_factory=lambda: LocalBackend(name="unconfigured"))
    files: list[EnvFile] = Field(default_factory=list)

    def to_json(self) -> str:
        """Serialize with camelCase keys and 2-space indentation."""
        return json.dumps(self.model_dump(by_alias=True, exclude_none=True), indent=2)


class EnvsyncSettings(BaseSettings):
    """Process-level settings read from ``ENVSYNC_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="ENVSYNC_", extra="ignore")

    hide_logo: bool = False
    log_level: LogLevel = "WARNING"
    config_file: Path | None = None

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


def find_config(root: Path | str, config_file: Path | str | None = None) -> Path | None:
    """Locate the config file for a project.

    An explicit ``config_file`` is resolved against ``root`` and returned
    when it exists. Otherwise ``envsync.json`` and then ``envsync.config.json``
    are looked up in ``root``.
    """
    root = Path(root)
    if config_file is not None:
        path = root / Path(config_file)
        return path if path.is_file() else None

    for name in (CONFIG_FILENAME, LEGACY_CONFIG_FILENAME):
        path = root / name
        if path.is_file():
            return path
    return None


def parse_config(content: str | bytes | dict[str, Any], source: str = "config") -> EnvsyncConfig:
    """Validate raw config content.

    Raises:
        ConfigError: If the content is not valid JSON or fails validation
    """
    try:
        if isinstance(content, dict):
            return EnvsyncConfig.model_validate(content)
        return EnvsyncConfig.model_validate_json(content)
    except ValidationError as e:
        raise ConfigError(f"Invalid {source}: {e}") from e


def load_config(path: Path | str) -> EnvsyncConfig:
    """Load and validate a config file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigError: If the file cannot be parsed
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigNotFoundError(f"Config file not found: {path}")
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Could not read {path}: {e}") from e
    return parse_config(content, source=str(path))


def verify_config(
    root: Path | str, config_file: Path | str | None = None
) -> tuple[EnvsyncConfig | None, bool]:
    """Return the project config and whether a valid one was found.

    A missing config is not an error here; callers decide whether they need
    one. An invalid file is logged and reported as not found.
    """
    path = find_config(root, config_file)
    if path is None:
        return None, False

    try:
        return load_config(path), True
    except ConfigError as e:
        logger.warning("Ignoring config at %s: %s", path, e)
        return None, False


def load_remote_config(storage: Storage) -> EnvsyncConfig:
    """Read the config stored under the remote ``envsync.json`` key.

    Raises:
        ConfigNotFoundError: If the remote holds no config
        ConfigError: If the stored config is invalid
    """
    if not storage.has(REMOTE_CONFIG_KEY):
        raise ConfigNotFoundError("No configuration found at remote")
    content = storage.get(REMOTE_CONFIG_KEY)
    if content is None:
        raise ConfigNotFoundError("No configuration found at remote")
    return parse_config(content, source="remote config")


def create_envsync_config(
    config: EnvsyncConfig | dict[str, Any],
    root: Path | str,
    storage: Storage | None = None,
    remote: bool = False,
    config_file: Path | str | None = None,
) -> EnvsyncConfig:
    """Persist a config, filling unset fields from the schema defaults.

    Writes ``<root>/envsync.json`` (or ``config_file`` under ``root``), or
    the remote ``envsync.json`` key when ``remote`` is set. Storage errors
    propagate to the caller.
    """
    if isinstance(config, EnvsyncConfig):
        config = config.model_dump(by_alias=True, exclude_none=True)
    full_config = parse_config(config)

    if remote:
        if storage is None:
            raise ValueError("Remote config requires a storage backend")
        storage.set(REMOTE_CONFIG_KEY, full_config.to_json())
        logger.debug("Wrote remote config key %s", REMOTE_CONFIG_KEY)
    else:
        path = Path(root) / (config_file or CONFIG_FILENAME)
        path.write_text(full_config.to_json() + "\n", encoding="utf-8")
        logger.debug("Wrote %s", path)

    return full_config


def deep_merge(patch: dict[str, Any], existing: dict[str, Any]) -> dict[str, Any]:
    """Merge ``patch`` over ``existing``; nested dicts merge, anything else is replaced."""
    merged = dict(existing)
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(value, merged[key])
        else:
            merged[key] = value
    return merged


def update_envsync_config(
    patch: dict[str, Any],
    root: Path | str | None = None,
    config_file: Path | str | None = None,
) -> EnvsyncConfig:
    """Merge a partial config onto the existing file and write it back.

    An unreadable or unparsable existing file is treated as empty. Lists in
    ``patch`` (``files``, ``exclude``) replace the stored ones.

    Returns:
        The merged config, validated against the schema
    """
    root = Path(root) if root is not None else Path.cwd()
    path = root / Path(config_file) if config_file is not None else root / CONFIG_FILENAME

    existing: dict[str, Any] = {}
    if path.is_file():
        try:
            loaded = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(loaded, dict):
                existing = loaded
        except (OSError, ValueError):
            existing = {}

    merged = parse_config(deep_merge(patch, existing))
    path.write_text(merged.to_json() + "\n", encoding="utf-8")
    return merged
