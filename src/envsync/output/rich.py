"""Rich console output and prompts for envsync."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from envsync.sync.engine import FileAction, FileSyncResult, SyncResult

console = Console()

LOGO = r"""
   ___          ___
  | __|_ ___ __/ __|_  _ _ _  __
 _| _|| ' \ V /\__ \ || | ' \/ _|
(_)___|_||_\_/ |___/\_, |_||_\__|
                   |__/
"""

CANCEL_CHOICES = ("q", "quit", "cancel")


def setup_logging(level: str | int = logging.WARNING) -> None:
    """Route log records through rich on the shared console."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def print_banner() -> None:
    console.print(f"[bold cyan]{LOGO}[/bold cyan]", highlight=False)


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def print_info(message: str) -> None:
    console.print(f"[blue]ℹ[/blue] {message}")


def print_warning(message: str) -> None:
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_error(message: str) -> None:
    console.print(f"[red]✗[/red] {message}")


def print_file_list(title: str, paths: list[str]) -> None:
    """Show a boxed list of project paths."""
    body = "\n".join(f"- {p}" for p in paths) or "[dim](none)[/dim]"
    console.print(Panel(body, title=title, expand=False))


def confirm(message: str, default: bool = False) -> bool:
    return Confirm.ask(message, default=default, console=console)


def ask(message: str, default: str | None = None, choices: list[str] | None = None) -> str:
    if default is None:
        return Prompt.ask(message, choices=choices, console=console)
    return Prompt.ask(message, default=default, choices=choices, console=console)


def select_files(paths: list[Path], root: Path) -> list[Path] | None:
    """Let the user pick files from ``paths``.

    Returns:
        The chosen paths (possibly empty), or None if the user cancelled
    """
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("File")
    for index, path in enumerate(paths, start=1):
        try:
            label = path.relative_to(root).as_posix()
        except ValueError:
            label = str(path)
        table.add_row(str(index), label)
    console.print(table)

    while True:
        answer = ask(
            "Select .env files to add to config (numbers separated by commas, 'all', or 'q' to cancel)",
            default="all",
        ).strip().lower()

        if answer in CANCEL_CHOICES:
            return None
        if answer == "all":
            return list(paths)
        if not answer:
            return []

        try:
            indexes = [int(part) for part in answer.replace(" ", "").split(",") if part]
        except ValueError:
            print_warning(f"Invalid selection: {answer}")
            continue
        if any(i < 1 or i > len(paths) for i in indexes):
            print_warning(f"Selection out of range: {answer}")
            continue
        return [paths[i - 1] for i in dict.fromkeys(indexes)]


def print_file_result(file_result: FileSyncResult) -> None:
    """Print the outcome for one tracked file."""
    path = file_result.path
    action = file_result.action

    if action == FileAction.UP_TO_DATE:
        print_success(f"Up-to-date: {path}")
    elif action == FileAction.UPDATED:
        print_success(f"Updated: {path}")
    elif action == FileAction.DELETED:
        print_success(f"Deleted remote: {path}")
    elif action == FileAction.OUT_OF_DATE:
        print_info(f"Out-of-date: {path}")
        diff = file_result.diff
        if diff is not None:
            if diff.has_drift:
                console.print(
                    f"    [dim]{diff.added_count} added, {diff.removed_count} removed, "
                    f"{diff.changed_count} changed on remote[/dim]"
                )
            else:
                console.print("    [dim]formatting differs only[/dim]")
    elif action == FileAction.MISSING_REMOTE:
        print_warning(f"Remote file not found for: {path}")
    elif action == FileAction.MISSING_LOCAL:
        print_info(f"Local file missing: {path}")
    elif action == FileAction.SKIPPED:
        print_info(f"Skipped: {path}")
    elif action == FileAction.ERROR:
        print_error(f"{file_result.message or 'Failed'}: {path}")


def print_sync_result(result: SyncResult) -> None:
    """Print per-file outcomes and a summary line."""
    for file_result in result.files:
        print_file_result(file_result)

    if not result.files:
        return

    parts = []
    for action in FileAction:
        count = result.count(action)
        if count:
            parts.append(f"{count} {action.value}")
    console.print(f"\n[dim]{', '.join(parts)}[/dim]")
