"""Shared CLI options and backend flag handling."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Annotated

import typer

from envsync.config import (
    AzureAppConfigBackend,
    AzureAppConfigOptions,
    AzureKeyVaultBackend,
    AzureKeyVaultOptions,
    AzureStorageBackend,
    AzureStorageOptions,
    BackendConfig,
    ConfigError,
    EnvsyncSettings,
    LocalBackend,
    LocalOptions,
)
from envsync.output.rich import print_banner
from envsync.storage import StorageProvider

HideLogoOption = Annotated[
    bool, typer.Option("--hide-logo", "-l", help="Suppress ASCII logo on startup")
]
DirectoryOption = Annotated[
    Path | None,
    typer.Option("--directory", "-d", help="Project directory (default: current directory)"),
]
BackendTypeOption = Annotated[
    str | None,
    typer.Option(
        "--backend-type",
        "-b",
        help="Backend type: local, azure-storage, azure-key-vault, azure-app-config",
    ),
]
ConfigFileOption = Annotated[
    Path | None,
    typer.Option("--config-file", "-c", help="Path to the envsync configuration file"),
]
OverwriteOption = Annotated[
    bool,
    typer.Option("--overwrite", "-o", help="Overwrite remote entries without asking"),
]
MergeOption = Annotated[
    bool,
    typer.Option("--merge", "-m", help="Merge remote values into existing local files"),
]
RemoteConfigOption = Annotated[
    bool,
    typer.Option("--remote-config", "-r", help="Use the configuration stored in the backend"),
]
IncludeSuffixesOption = Annotated[
    bool,
    typer.Option(
        "--include-suffixes",
        "-i",
        help="Include suffixed files like .env.local or .env.sample",
    ),
]
AzureStorageAccountOption = Annotated[
    str | None, typer.Option("--azure-storage-account-name", help="Azure Storage account name")
]
AzureStorageContainerOption = Annotated[
    str | None,
    typer.Option("--azure-storage-container-name", help="Azure Storage container name"),
]
AzureKeyVaultNameOption = Annotated[
    str | None, typer.Option("--azure-key-vault-name", help="Azure Key Vault name")
]
AzureKeyVaultEndpointOption = Annotated[
    str | None, typer.Option("--azure-key-vault-endpoint", help="Azure Key Vault URL")
]
AzureAppConfigNameOption = Annotated[
    str | None,
    typer.Option("--azure-app-config-name", help="Azure App Configuration store name"),
]
AzureAppConfigEndpointOption = Annotated[
    str | None,
    typer.Option("--azure-app-config-endpoint", help="Azure App Configuration endpoint"),
]
AzureAppConfigPrefixOption = Annotated[
    str | None,
    typer.Option("--azure-app-config-prefix", help="Azure App Configuration key prefix"),
]
AzureAppConfigLabelOption = Annotated[
    str | None,
    typer.Option("--azure-app-config-label", help="Azure App Configuration label"),
]
LocalBaseOption = Annotated[
    str | None,
    typer.Option("--local-base", help="Directory used by the local backend (default: .envsync)"),
]


def show_banner(ctx: typer.Context, hide_logo: bool = False) -> None:
    """Print the logo unless --hide-logo or ENVSYNC_HIDE_LOGO suppressed it."""
    if hide_logo or (ctx.obj or {}).get("hide_logo"):
        return
    print_banner()


def resolve_root(directory: Path | None) -> Path:
    """Return the absolute project root."""
    return (directory or Path.cwd()).resolve()


def resolve_config_file(config_file: Path | None) -> Path | None:
    """Fall back to ENVSYNC_CONFIG_FILE when --config-file is not given."""
    if config_file is not None:
        return config_file
    return EnvsyncSettings().config_file


@dataclass
class BackendFlags:
    """Backend connection parameters given on the command line."""

    backend_type: str | None = None
    azure_storage_account_name: str | None = None
    azure_storage_container_name: str | None = None
    azure_key_vault_name: str | None = None
    azure_key_vault_endpoint: str | None = None
    azure_app_config_name: str | None = None
    azure_app_config_endpoint: str | None = None
    azure_app_config_prefix: str | None = None
    azure_app_config_label: str | None = None
    local_base: str | None = None

    def __post_init__(self) -> None:
        for f in fields(self):
            if getattr(self, f.name) == "":
                setattr(self, f.name, None)

    def provider(self) -> StorageProvider:
        """Return the selected provider.

        Raises:
            ConfigError: If no type was given or the type is unknown
        """
        if not self.backend_type:
            raise ConfigError("Missing required argument for backend type (--backend-type)")
        try:
            return StorageProvider(self.backend_type)
        except ValueError:
            raise ConfigError(f"Unsupported backend type: {self.backend_type}") from None

    def to_backend(self) -> BackendConfig:
        """Build a backend config strictly from flags.

        Raises:
            ConfigError: If the type or a required parameter is missing
        """
        provider = self.provider()

        if provider == StorageProvider.LOCAL:
            options = LocalOptions(base=self.local_base) if self.local_base else LocalOptions()
            return LocalBackend(config=options)

        if provider == StorageProvider.AZURE_STORAGE:
            if not self.azure_storage_account_name or not self.azure_storage_container_name:
                raise ConfigError(
                    "Missing required arguments for Azure Storage backend "
                    "(--azure-storage-account-name, --azure-storage-container-name)"
                )
            return AzureStorageBackend(
                config=AzureStorageOptions(
                    account_name=self.azure_storage_account_name,
                    container_name=self.azure_storage_container_name,
                )
            )

        if provider == StorageProvider.AZURE_KEY_VAULT:
            if not self.azure_key_vault_name:
                raise ConfigError(
                    "Missing required arguments for Azure Key Vault backend (--azure-key-vault-name)"
                )
            return AzureKeyVaultBackend(
                config=AzureKeyVaultOptions(
                    vault_name=self.azure_key_vault_name,
                    endpoint=self.azure_key_vault_endpoint,
                )
            )

        if not self.azure_app_config_name:
            raise ConfigError(
                "Missing required arguments for Azure App Configuration backend "
                "(--azure-app-config-name)"
            )
        return AzureAppConfigBackend(
            config=AzureAppConfigOptions(
                app_config_name=self.azure_app_config_name,
                endpoint=self.azure_app_config_endpoint,
                prefix=self.azure_app_config_prefix,
                label=self.azure_app_config_label,
            )
        )
