"""Sync, update, status and clear commands for envsync."""

from __future__ import annotations

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
    LocalBaseOption,
    MergeOption,
    OverwriteOption,
    RemoteConfigOption,
    resolve_config_file,
    resolve_root,
    show_banner,
)
from envsync.config import (
    ConfigError,
    ConfigNotFoundError,
    EnvsyncConfig,
    load_remote_config,
    verify_config,
)
from envsync.core.hashing import with_leading_slash
from envsync.output.rich import (
    confirm,
    console,
    print_error,
    print_file_list,
    print_info,
    print_success,
    print_sync_result,
)
from envsync.storage import Storage, StorageConnectionError, StorageError, initialize_storage
from envsync.sync.engine import SyncEngine, SyncMode


def connect_storage(config: EnvsyncConfig, root: Path) -> Storage:
    """Create and authenticate the storage client for ``config``.

    Raises:
        typer.Exit: If the client cannot be created or connected
    """
    try:
        storage = initialize_storage(config.backend, root)
        storage.ensure_authenticated()
    except (ImportError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None
    except StorageError as e:
        print_error(f"Failed to connect to remote storage: {e}")
        raise typer.Exit(code=1) from None
    return storage


def load_config_and_storage(
    root: Path,
    config_file: Path | None,
    remote_config: bool,
    flags: BackendFlags,
) -> tuple[EnvsyncConfig, Storage]:
    """Load the project config and a connected storage client.

    With ``remote_config`` the backend is built from CLI flags and the
    config is read from the remote ``envsync.json`` key. Otherwise a valid
    local config is required and selects the backend.

    Raises:
        typer.Exit: Exits with code 1 when no usable config or connection exists
    """
    if remote_config:
        try:
            backend = flags.to_backend()
        except ConfigError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from None

        storage = connect_storage(EnvsyncConfig(backend=backend), root)
        try:
            config = load_remote_config(storage)
        except ConfigNotFoundError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from None
        except ConfigError as e:
            print_error(f"Invalid remote configuration: {e}")
            raise typer.Exit(code=1) from None
        except StorageError as e:
            print_error(f"Failed to connect to remote storage: {e}")
            raise typer.Exit(code=1) from None
        return config, storage

    config, valid = verify_config(root, resolve_config_file(config_file))
    if not valid or config is None:
        print_error("No valid envsync configuration found. Run `envsync init` first.")
        raise typer.Exit(code=1)

    return config, connect_storage(config, root)


def _backend_label(config: EnvsyncConfig) -> str:
    return f"{config.backend.name} ({config.backend.type})"


def _progress(message: str) -> None:
    console.print(f"[dim]{message}[/dim]")


def _run_sync(engine: SyncEngine) -> None:
    try:
        result = engine.sync()
    except StorageConnectionError as e:
        print_error(f"Failed to connect to remote storage: {e}")
        raise typer.Exit(code=1) from None
    print_sync_result(result)


def sync(
    ctx: typer.Context,
    directory: DirectoryOption = None,
    hide_logo: HideLogoOption = False,
    backend_type: BackendTypeOption = None,
    config_file: ConfigFileOption = None,
    merge: MergeOption = False,
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
    """
    Pull .env files from the backend into the project.

    Files whose content matches the remote are left alone. With --merge (or
    mergeEnvFiles in the config) local-only keys are kept; remote values win
    on conflict.
    """
    show_banner(ctx, hide_logo)
    root = resolve_root(directory)
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

    print_info("Connecting to remote storage")
    config, storage = load_config_and_storage(root, config_file, remote_config, flags)
    print_info(f"Running sync with backend {_backend_label(config)}...")

    engine = SyncEngine(
        config=config,
        storage=storage,
        root=root,
        mode=SyncMode(merge=merge),
        progress_callback=_progress,
    )
    _run_sync(engine)


def update(
    ctx: typer.Context,
    directory: DirectoryOption = None,
    hide_logo: HideLogoOption = False,
    backend_type: BackendTypeOption = None,
    config_file: ConfigFileOption = None,
    overwrite: OverwriteOption = False,
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
    """
    Push the configured .env files from disk to the backend.

    Existing remote entries are only replaced after confirmation, or
    unconditionally with --overwrite.
    """
    show_banner(ctx, hide_logo)
    root = resolve_root(directory)
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

    config, storage = load_config_and_storage(root, config_file, remote_config, flags)
    print_info(f"Running update with backend {_backend_label(config)}...")

    engine = SyncEngine(
        config=config,
        storage=storage,
        root=root,
        mode=SyncMode(overwrite=overwrite),
        prompt_callback=lambda message: confirm(message, default=False),
        progress_callback=_progress,
    )

    try:
        result = engine.update()
    except StorageConnectionError as e:
        print_error(f"Failed to connect to remote storage: {e}")
        raise typer.Exit(code=1) from None

    print_sync_result(result)


def status(
    ctx: typer.Context,
    directory: DirectoryOption = None,
    hide_logo: HideLogoOption = False,
    backend_type: BackendTypeOption = None,
    config_file: ConfigFileOption = None,
    merge: MergeOption = False,
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
    """
    Show which configured .env files differ from the backend.

    Nothing is written. If any file is out of date you are offered a sync.
    """
    show_banner(ctx, hide_logo)
    root = resolve_root(directory)
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

    print_info("Connecting to remote storage")
    config, storage = load_config_and_storage(root, config_file, remote_config, flags)
    print_info(f"Running status with backend {_backend_label(config)}...")
    print_file_list("Configured files", [with_leading_slash(f.path) for f in config.files])

    engine = SyncEngine(
        config=config,
        storage=storage,
        root=root,
        mode=SyncMode(merge=merge),
        progress_callback=_progress,
    )

    try:
        result = engine.status()
    except StorageConnectionError as e:
        print_error(f"Failed to connect to remote storage: {e}")
        raise typer.Exit(code=1) from None

    print_sync_result(result)

    if result.needs_sync and confirm(
        "Some files seem to be outdated. Do you want to run a sync now?", default=False
    ):
        _run_sync(engine)


def clear(
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
    """
    Delete every configured .env file from the backend.

    Asks for confirmation first; local files are never touched.
    """
    show_banner(ctx, hide_logo)
    root = resolve_root(directory)
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

    config, storage = load_config_and_storage(root, config_file, remote_config, flags)
    print_info(f"Running clear with backend {_backend_label(config)}...")

    engine = SyncEngine(
        config=config,
        storage=storage,
        root=root,
        prompt_callback=lambda message: confirm(message, default=False),
    )

    try:
        result = engine.clear()
    except StorageConnectionError as e:
        print_error(f"Failed to connect to remote storage: {e}")
        raise typer.Exit(code=1) from None

    if result.cancelled:
        print_info("Clear operation cancelled.")
        return

    print_sync_result(result)
    print_success("All remote .env files deleted.")
