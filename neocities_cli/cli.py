from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError, version as package_version
from pathlib import Path
from typing import Callable

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from neocities_cli.api import NeocitiesClient, client_from_config
from neocities_cli.auth import resolve_password_credentials
from neocities_cli.config import load_config, save_config
from neocities_cli.errors import NeocitiesError
from neocities_cli.models import DiffItem, DiffNote
from neocities_cli.paths import normalize_path, validate_root
from neocities_cli.reconcile import summarize
from neocities_cli.sync_service import build_sync_plan, diff_with_remote


PACKAGE_NAME = "neocities-cli"

app = typer.Typer(help="Neocities CLI: manage and compare the files of your Neocities website.")
console = Console(highlight=False)

NOTE_STYLES = {
    DiffNote.LOCAL_MISSING: "yellow",
    DiffNote.REMOTE_MISSING: "yellow",
    DiffNote.LOCAL_AHEAD: "bold green",
    DiffNote.REMOTE_AHEAD: "bold green",
    DiffNote.LOCAL_BEHIND: "bold red",
    DiffNote.REMOTE_BEHIND: "bold red",
    DiffNote.CONFLICT: "bold magenta",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


def _run(action: Callable[[], int]) -> int:
    try:
        return action()
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted.[/yellow] No changes were made.")
        return 130
    except NeocitiesError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(exc.message)} [dim]({exc.kind.value})[/dim]")
        return 1


def remark(item: DiffItem) -> str:
    if item.note is DiffNote.LOCAL_MISSING:
        return "(missing) local not found"
    if item.note is DiffNote.REMOTE_MISSING:
        return "(missing) remote not found"
    if item.note is DiffNote.LOCAL_AHEAD:
        return f"(ahead) local ahead of remote - {item.modified_at}"
    if item.note is DiffNote.REMOTE_AHEAD:
        return f"(ahead) remote ahead of local - {item.modified_at}"
    if item.note is DiffNote.LOCAL_BEHIND:
        return f"(behind) local behind remote - {item.modified_at}"
    if item.note is DiffNote.REMOTE_BEHIND:
        return f"(behind) remote behind local - {item.modified_at}"
    return f"(conflict) {item.side.value} differs with the same timestamp - {item.modified_at}"


def _render_diff(items: list[DiffItem]) -> None:
    if not items:
        console.print("[green]Local and remote version are in sync[/green]")
        return
    for item in sorted(items, key=lambda i: (i.path, i.side.value)):
        style = NOTE_STYLES[item.note]
        console.print(
            f"[bold]{escape(item.path)}[/bold] <- [{style}]{escape(remark(item))}[/{style}]",
            soft_wrap=True,
        )
    counts = ", ".join(f"{note.value} {count}" for note, count in summarize(items).items())
    console.print(f"{len(items)} difference(s): {counts}", soft_wrap=True)


def _render_path_summary(title: str, paths: list[str], style: str) -> None:
    if not paths:
        return
    console.print(f"[{style}]{title} ({len(paths)}):[/{style}]")
    for path in paths:
        console.print(f"  {escape(path)}", soft_wrap=True)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
) -> None:
    _configure_logging(verbose)


def _diff(path: str) -> int:
    validate_root(path)
    client = client_from_config(load_config())
    _render_diff(diff_with_remote(path, client, console=console))
    return 0


@app.command()
def diff(
    path: str = typer.Argument(..., help="Local directory, relative to your site root (e.g. ./images)."),
) -> None:
    """Compare a local path with the corresponding path on your Neocities website."""
    raise typer.Exit(code=_run(lambda: _diff(path)))


def _sync(path: str) -> int:
    validate_root(path)
    client = client_from_config(load_config())
    plan = build_sync_plan(diff_with_remote(path, client, console=console))

    if plan.in_sync:
        console.print("[green]Nothing to sync.[/green]")
        return 0

    _render_path_summary("Would upload", plan.upload_paths, "green")
    _render_path_summary("Only on remote", plan.remote_only_paths, "yellow")
    _render_path_summary("Conflicts (same timestamp, different content)", plan.conflict_paths, "magenta")
    console.print("Sync stopped after planning; no files were changed.")
    return 0


@app.command()
def sync(
    path: str = typer.Argument(..., help="Local directory, relative to your site root (e.g. ./images)."),
) -> None:
    """Plan a sync between a local directory and your Neocities website."""
    raise typer.Exit(code=_run(lambda: _sync(path)))


def _list(path: str | None) -> int:
    client = client_from_config(load_config())
    records = sorted(client.list_files(normalize_path(path) if path else None), key=lambda r: r.path)

    if not records:
        console.print("[yellow]No files found.[/yellow]")
        return 0

    table = Table(title="Remote files")
    table.add_column("Path")
    table.add_column("Size", justify="right")
    table.add_column("Updated")
    table.add_column("SHA-1")
    for record in records:
        name = f"{record.path}/" if record.is_directory else record.path
        size = "" if record.size is None else str(record.size)
        table.add_row(escape(name), size, record.modified_at, record.content_hash or "")
    console.print(table)
    return 0


@app.command("list")
def list_files(
    path: str | None = typer.Argument(None, help="Remote directory to list. Defaults to the whole site."),
) -> None:
    """List files on your Neocities website."""
    raise typer.Exit(code=_run(lambda: _list(path)))


def _info(sitename: str | None) -> int:
    client = client_from_config(load_config(), authenticated=sitename is None)
    details = client.info(sitename)

    table = Table(title=f"Site info: {escape(str(details.get('sitename', sitename or '')))}")
    table.add_column("Field")
    table.add_column("Value")
    for key, value in details.items():
        table.add_row(escape(str(key)), escape("" if value is None else str(value)))
    console.print(table)
    return 0


@app.command()
def info(
    sitename: str | None = typer.Argument(None, help="Site to look up. Defaults to your own site."),
) -> None:
    """Show information about a Neocities website."""
    raise typer.Exit(code=_run(lambda: _info(sitename)))


def _key(save: bool) -> int:
    config = load_config()
    credentials = resolve_password_credentials(config)
    api_key = NeocitiesClient(config).fetch_api_key(credentials)
    console.print(f"API key: [bold]{escape(api_key)}[/bold]")

    if save:
        config.api_key = api_key
        saved_to = save_config(config)
        console.print(f"[green]Saved API key[/green] to {saved_to}")
    return 0


@app.command()
def key(
    save: bool = typer.Option(False, "--save", help="Store the key in .neocities.json in the current directory."),
) -> None:
    """Request an API key using NEOCITIES_USER and NEOCITIES_PASS."""
    raise typer.Exit(code=_run(lambda: _key(save)))


def _upload(files: list[Path]) -> int:
    client = client_from_config(load_config())
    mapping = {normalize_path(file): file for file in files}
    message = client.upload(mapping)

    _render_path_summary("Uploaded", sorted(mapping), "green")
    if message:
        console.print(escape(message))
    return 0


@app.command()
def upload(
    files: list[Path] = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="Files to upload; each keeps its relative path on the site.",
    ),
) -> None:
    """Upload files to your Neocities website."""
    raise typer.Exit(code=_run(lambda: _upload(files)))


def _delete(paths: list[str], assume_yes: bool) -> int:
    targets = sorted({key for key in map(normalize_path, paths) if key})
    if not targets:
        console.print("[red]No remote paths given.[/red]")
        return 1

    _render_path_summary("Will delete", targets, "yellow")
    if not assume_yes and not typer.confirm(f"Delete {len(targets)} path(s) from your website?"):
        console.print("Aborted. Nothing was deleted.")
        return 1

    client = client_from_config(load_config())
    message = client.delete(targets)
    if message:
        console.print(escape(message))
    return 0


@app.command()
def delete(
    paths: list[str] = typer.Argument(..., help="Remote paths to delete."),
    assume_yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete files from your Neocities website."""
    raise typer.Exit(code=_run(lambda: _delete(paths, assume_yes)))


@app.command()
def version() -> None:
    """Show the neocities client version."""
    try:
        installed = package_version(PACKAGE_NAME)
    except PackageNotFoundError:
        installed = "unknown"
    console.print(f"{PACKAGE_NAME} {installed}")
