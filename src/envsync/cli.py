"""Command-line interface for envsync."""

from __future__ import annotations

import logging
from typing import Annotated

import typer
from pydantic import ValidationError

from envsync.cli_commands.init import init, rescan, show_config
from envsync.cli_commands.options import HideLogoOption
from envsync.cli_commands.sync import clear, status, sync, update
from envsync.config import EnvsyncSettings
from envsync.output.rich import console, print_error, setup_logging

app = typer.Typer(
    name="envsync",
    help="Share .env files through a remote key-value store.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        from envsync import __version__

        console.print(f"envsync [bold green]{__version__}[/bold green]")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    hide_logo: HideLogoOption = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show debug output")
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version", help="Show version and exit", callback=_version_callback, is_eager=True
        ),
    ] = False,
) -> None:
    """Share .env files through a remote key-value store."""
    try:
        settings = EnvsyncSettings()
    except ValidationError as e:
        for error in e.errors():
            name = "ENVSYNC_" + "_".join(str(part) for part in error["loc"]).upper()
            print_error(f"Invalid value for {name}: {error['msg']}")
        raise typer.Exit(code=1) from None

    setup_logging(logging.DEBUG if verbose else settings.log_level)
    ctx.ensure_object(dict)["hide_logo"] = hide_logo or settings.hide_logo


app.command("init", help="Initialize a new environment sync configuration")(init)
app.command("sync", help="Synchronize .env files from the backend")(sync)
app.command("update", help="Upload the configured .env files to the backend")(update)
app.command("status", help="Show which .env files differ from the backend")(status)
app.command("clear", help="Delete the configured .env files from the backend")(clear)
app.command("rescan", help="Rescan for .env files and update configuration")(rescan)
app.command("config", help="Show the current envsync configuration")(show_config)


if __name__ == "__main__":
    app()
