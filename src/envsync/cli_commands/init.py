"""Init, rescan and config commands for envsync."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import typer

from envsync.cli_commands.options import (
    AzureAppConfigEndpointOption,
    AzureAppConfigLabelOption,
    AzureAppConfigNameOption,
    AzureAppConfigPrefixOption,
    AzureKeyVaultEndpointOption,
    AzureKeyVaultNameOption,
    AzureStorageAccountOption,
    AzureStorageContainerOption,
    BackendFlags,
    BackendTypeOption,
    ConfigFileOption,
    DirectoryOption,
    HideLogoOption,
    IncludeSuffixesOption,
    LocalBaseOption,
    RemoteConfigOption,
    resolve_config_file,
    resolve_root,
    show_banner,
)
from envsync.cli_commands.sync import connect_storage, load_config_and_storage
from envsync.config import (
    CONFIG_FILENAME,
    DEFAULT_EXCLUDE,
    REMOTE_CONFIG_KEY,
    BackendConfig,
    ConfigError,
    EnvFile,
    EnvsyncConfig,
    create_envsync_config,
    find_config,
    update_envsync_config,
    verify_config,
)
from envsync.core.discovery import find_env_files, to_env_file
from envsync.core.hashing import with_leading_slash
from envsync.output.rich import (
    ask,
    confirm,
    console,
    print_error,
    print_file_list,
    print_info,
    print_success,
    select_files,
)
from envsync.storage import StorageError, StorageProvider

logger = logging.getLogger(__name__)


def prompt_backend(flags: BackendFlags) -> BackendConfig:
    """Complete backend flags interactively and build the backend config.

    Only parameters not given on the command line are asked for.

    Raises:
        ConfigError: If the backend type is unknown or a required value is empty
    """
    if not flags.backend_type:
        flags = dataclasses.replace(
            flags,
            backend_type=ask(
                "Select backend type",
                choices=[provider.value for provider in StorageProvider],
                default=StorageProvider.LOCAL.value,
            ),
        )

    provider = flags.provider()
    updates: dict[str, str | None] = {}

    if provider == StorageProvider.LOCAL:
        updates["local_base"] = flags.local_base or ask("Local storage directory", default=".envsync")

    elif provider == StorageProvider.AZURE_STORAGE:
        updates["azure_storage_account_name"] = flags.azure_storage_account_name or ask(
            "Azure Storage Account Name"
        )
        updates["azure_storage_container_name"] = flags.azure_storage_container_name or ask(
            "Azure Storage Container Name"
        )

    elif provider == StorageProvider.AZURE_KEY_VAULT:
        updates["azure_key_vault_name"] = flags.azure_key_vault_name or ask("Azure Key Vault Name")
        updates["azure_key_vault_endpoint"] = flags.azure_key_vault_endpoint or ask(
            "Azure Key Vault Endpoint (optional)", default=""
        )

    elif provider == StorageProvider.AZURE_APP_CONFIG:
        updates["azure_app_config_name"] = flags.azure_app_config_name or ask(
            "Azure App Configuration Name"
        )
        updates["azure_app_config_endpoint"] = flags.azure_app_config_endpoint or ask(
            "Azure App Configuration Endpoint (optional)", default=""
        )
        updates["azure_app_config_prefix"] = flags.azure_app_config_prefix or ask(
            "Azure App Configuration Key Prefix (optional)", default=""
        )
        updates["azure_app_config_label"] = flags.azure_app_config_label or ask(
            "Azure App Configuration Label (optional)", default=""
        )

    return dataclasses.replace(flags, **updates).to_backend()


def _choose_files(found: list[Path], root: Path, cancel_message: str) -> list[EnvFile] | None:
    """Run the file selection prompt; None means the user backed out."""
    logger.debug("Found the following .env files:")
    for path in found:
        logger.debug("- %s", path)

    selected = select_files(found, root)
    if selected is None:
        print_info(cancel_message)
        return None
    if not selected:
        print_info(f"No files selected. {cancel_message}")
        return None

    return [to_env_file(path, root) for path in selected]


def init(
    ctx: typer.Context,
    directory: DirectoryOption = None,
    hide_logo: HideLogoOption = False,
    backend_type: BackendTypeOption = None,
    config_file: ConfigFileOption = None,
    remote_config: RemoteConfigOption = False,
    include_suffixes: IncludeSuffixesOption = False,
    azure_storage_account_name: AzureStorageAccountOption = None,
    azure_storage_container_name: AzureStorageContainerOption = None,
    azure_key_vault_name: AzureKeyVaultNameOption = None,
    azure_key_vault_endpoint: AzureKeyVaultEndpointOption = None,
    azure_app_config_name: AzureAppConfigNameOption = None,
    azure_app_config_endpoint: AzureAppConfigEndpointOption = None,
    azure_app_config_prefix: AzureAppConfigPrefixOption = None,
    azure_app_config_label: AzureAppConfigLabelOption = None,
    local_base: LocalBaseOption = None,
) -> None:
    """
    Create an envsync configuration for this project.

    Finds .env files, lets you pick which to track, asks for the backend and
    writes envsync.json (or the remote envsync.json with --remote-config).
    """
    show_banner(ctx, hide_logo)
    root = resolve_root(directory)
    config_file = resolve_config_file(config_file)
    flags = BackendFlags(
        backend_type=backend_type,
        azure_storage_account_name=azure_storage_account_name,
        azure_storage_container_name=azure_storage_container_name,
        azure_key_vault_name=azure_key_vault_name,
        azure_key_vault_endpoint=azure_key_vault_endpoint,
        azure_app_config_name=azure_app_config_name,
        azure_app_config_endpoint=azure_app_config_endpoint,
        azure_app_config_prefix=azure_app_config_prefix,
        azure_app_config_label=azure_app_config_label,
        local_base=local_base,
    )

    if not remote_config:
        _, exists = verify_config(root, config_file)
        if exists and not confirm(
            "A configuration file already exists. Do you want to overwrite it?", default=False
        ):
            print_info("Initialization cancelled.")
            return

    print_info("Searching for .env files...")
    logger.debug("Searching for .env files in %s", root)
    found = find_env_files(root, DEFAULT_EXCLUDE, recursive=True, include_suffixes=include_suffixes)
    if not found:
        print_info("No .env files found in the project.")
        return

    env_files = _choose_files(found, root, "Initialization cancelled.")
    if env_files is None:
        return
    print_success("File search complete.")

    try:
        backend = prompt_backend(flags)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None

    merge_env_files = confirm("Merge environment files?", default=True)
    recursive = confirm("Enable recursive search for .env files?", default=True)

    exclude: list[str] = []
    gitignore = root / ".gitignore"
    if gitignore.exists():
        # Discovery reads .gitignore directly, so no patterns are stored
        logger.debug("Found .gitignore file at %s", gitignore)
    else:
        patterns = ask(
            "Enter patterns to exclude (comma separated, e.g., node_modules,.git)",
            default=",".join(DEFAULT_EXCLUDE),
        )
        exclude = [p.strip() for p in patterns.split(",") if p.strip()]

    new_config = EnvsyncConfig(
        merge_env_files=merge_env_files,
        recursive=recursive,
        include_suffixes=include_suffixes,
        exclude=exclude,
        backend=backend,
        files=env_files,
    )

    if remote_config:
        storage = connect_storage(new_config, root)
        try:
            if storage.has(REMOTE_CONFIG_KEY) and not confirm(
                "A configuration already exists at remote. Do you want to overwrite it?",
                default=False,
            ):
                print_info("Initialization cancelled.")
                return
            create_envsync_config(new_config, root, storage=storage, remote=True)
        except StorageError as e:
            print_error(f"Failed to write {REMOTE_CONFIG_KEY}: {e}")
            raise typer.Exit(code=1) from None
        print_success(f"Updated remote: {REMOTE_CONFIG_KEY}")
    else:
        written = create_envsync_config(new_config, root, config_file=config_file)
        logger.debug("Config written with %d file(s)", len(written.files))
        print_success(f"Wrote {config_file or CONFIG_FILENAME}")

    print_file_list("Configured .env files", [with_leading_slash(f.path) for f in env_files])
    print_success("Initialization complete!")


def rescan(
    ctx: typer.Context,
    directory: DirectoryOption = None,
    hide_logo: HideLogoOption = False,
    config_file: ConfigFileOption = None,
    include_suffixes: IncludeSuffixesOption = False,
) -> None:
    """
    Search the project for .env files again and replace the tracked list.

    Uses the exclude patterns and recursion setting from the config.
    """
    show_banner(ctx, hide_logo)
    root = resolve_root(directory)
    config_file = resolve_config_file(config_file)

    config, valid = verify_config(root, config_file)
    config_path = find_config(root, config_file)
    if not valid or config is None or config_path is None:
        print_error("No valid envsync configuration found. Run `envsync init` first.")
        raise typer.Exit(code=1)

    print_info("Searching for .env files...")
    found = find_env_files(
        root,
        config.exclude,
        recursive=config.recursive,
        include_suffixes=include_suffixes or config.include_suffixes,
    )
    if not found:
        print_info("No .env files found in the project.")
        return

    env_files = _choose_files(found, root, "Rescan cancelled.")
    if env_files is None:
        return

    update_envsync_config(
        {"files": [f.model_dump(by_alias=True) for f in env_files]},
        root=config_path.parent,
        config_file=config_path.name,
    )

    print_file_list("Selected files", [with_leading_slash(f.path) for f in env_files])
    print_success("Rescan complete!")


def show_config(
    ctx: typer.Context,
    directory: DirectoryOption = None,
    hide_logo: HideLogoOption = False,
    backend_type: BackendTypeOption = None,
    config_file: ConfigFileOption = None,
    remote_config: RemoteConfigOption = False,
    azure_storage_account_name: AzureStorageAccountOption = None,
    azure_storage_container_name: AzureStorageContainerOption = None,
    azure_key_vault_name: AzureKeyVaultNameOption = None,
    azure_key_vault_endpoint: AzureKeyVaultEndpointOption = None,
    azure_app_config_name: AzureAppConfigNameOption = None,
    azure_app_config_endpoint: AzureAppConfigEndpointOption = None,
    azure_app_config_prefix: AzureAppConfigPrefixOption = None,
    azure_app_config_label: AzureAppConfigLabelOption = None,
    local_base: LocalBaseOption = None,
) -> None:
    """Print the current envsync configuration."""
    show_banner(ctx, hide_logo)
    root = resolve_root(directory)

    if remote_config:
        flags = BackendFlags(
            backend_type=backend_type,
            azure_storage_account_name=azure_storage_account_name,
            azure_storage_container_name=azure_storage_container_name,
            azure_key_vault_name=azure_key_vault_name,
            azure_key_vault_endpoint=azure_key_vault_endpoint,
            azure_app_config_name=azure_app_config_name,
            azure_app_config_endpoint=azure_app_config_endpoint,
            azure_app_config_prefix=azure_app_config_prefix,
            azure_app_config_label=azure_app_config_label,
            local_base=local_base,
        )
        config, _ = load_config_and_storage(root, config_file, remote_config, flags)
    else:
        config, valid = verify_config(root, resolve_config_file(config_file))
        if not valid or config is None:
            print_error("No valid envsync configuration found. Run `envsync init` first.")
            raise typer.Exit(code=1)

    print_info("Current configuration:")
    console.print_json(config.to_json())
