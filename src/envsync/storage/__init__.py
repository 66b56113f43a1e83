"""Remote key-value storage backends."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from envsync.storage.base import (
    AuthenticationError,
    Storage,
    StorageConnectionError,
    StorageError,
)

if TYPE_CHECKING:
    from envsync.config import BackendConfig


class StorageProvider(Enum):
    """Supported storage backends."""

    LOCAL = "local"
    AZURE_STORAGE = "azure-storage"
    AZURE_KEY_VAULT = "azure-key-vault"
    AZURE_APP_CONFIG = "azure-app-config"


def initialize_storage(backend: BackendConfig, root: Path | str | None = None) -> Storage:
    """Factory to create the storage client for a backend config.

    Args:
        backend: The configured backend
        root: Project root; relative local storage paths resolve against it

    Returns:
        Configured Storage instance

    Raises:
        ImportError: If the required optional dependencies are not installed
        ValueError: If the backend type is not supported
    """
    backend_type = getattr(backend, "type", None)
    try:
        provider = StorageProvider(backend_type)
    except ValueError:
        raise ValueError(f"Unsupported backend type: {backend_type}") from None

    if provider == StorageProvider.LOCAL:
        from envsync.storage.local import LocalStorage

        base = Path(backend.config.base)
        if root is not None and not base.is_absolute():
            base = Path(root) / base
        return LocalStorage(base)

    elif provider == StorageProvider.AZURE_STORAGE:
        from envsync.storage.azure_blob import AzureBlobStorage

        return AzureBlobStorage(
            account_name=backend.config.account_name,
            container_name=backend.config.container_name,
        )

    elif provider == StorageProvider.AZURE_KEY_VAULT:
        from envsync.storage.azure_keyvault import AzureKeyVaultStorage

        return AzureKeyVaultStorage(vault_url=backend.config.vault_url)

    elif provider == StorageProvider.AZURE_APP_CONFIG:
        from envsync.storage.azure_appconfig import AzureAppConfigStorage

        return AzureAppConfigStorage(
            endpoint=backend.config.url,
            prefix=backend.config.prefix,
            label=backend.config.label,
        )

    raise ValueError(f"Unsupported backend type: {backend_type}")


__all__ = [
    "AuthenticationError",
    "Storage",
    "StorageConnectionError",
    "StorageError",
    "StorageProvider",
    "initialize_storage",
]
