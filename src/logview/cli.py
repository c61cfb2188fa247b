"""Command line interface for LogView."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from logview.config import AppConfig
from logview.errors import LogViewError, StorageError
from logview.models import FileTreeNode
from logview.remote import RemoteClient, RemoteLogService
from logview.service import LogFileService
from logview.storage import SQLiteLogStore
from logview.utils.ids import normalize_log_id

console = Console()
app = typer.Typer(help="LogView - fetch, unpack and browse remote diagnostic log bundles")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load_config(db: Optional[Path]) -> AppConfig:
    config = AppConfig.from_env()
    if db is not None:
        config.db_path = db
    config.ensure_directories()
    return config


def _log_id_or_exit(value: str) -> str:
    try:
        return normalize_log_id(value)
    except LogViewError as exc:
        raise typer.BadParameter(exc.message) from exc


def _add_branch(branch: Tree, node: FileTreeNode) -> None:
    for child in node.children or ():
        if child.is_dir:
            _add_branch(branch.add(f"[bold blue]{child.name}/[/bold blue]"), child)
        else:
            branch.add(f"{child.name} [dim]({child.size} bytes)[/dim]")


@app.command()
def download(
    log_id: str = typer.Argument(..., help="Identifier of the remote log bundle"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Download and extract a log bundle, then record it."""
    _setup_logging(verbose)
    log_id = _log_id_or_exit(log_id)
    config = _load_config(db)

    with RemoteClient.from_config(config) as client:
        files = LogFileService(config, client)
        console.print(f"Downloading [bold]{log_id}[/bold]...")
        outcome = files.download_and_extract(log_id)

        if not outcome.success:
            console.print(f"[red]Download failed: {outcome.error}[/red]")
            raise typer.Exit(code=1)

        try:
            with SQLiteLogStore(config.resolve_db_path()) as store:
                store.create_record(log_id, outcome.file_path, outcome.extract_path)
        except StorageError as exc:
            # No record means no extraction directory either.
            files.delete_files(log_id)
            console.print(f"[red]Unable to record log: {exc.message}[/red]")
            raise typer.Exit(code=1) from exc

    for entry in outcome.skipped:
        console.print(f"[yellow]Skipped unsafe entry: {entry}[/yellow]")
    console.print(f"Extracted into [bold]{outcome.extract_path}[/bold]")


@app.command(name="list")
def list_logs(
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """List downloaded log bundles."""
    config = _load_config(db)
    with SQLiteLogStore(config.resolve_db_path()) as store:
        records = store.list_records()

    if not records:
        console.print("[yellow]No logs downloaded yet.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Log ID")
    table.add_column("Downloaded")
    table.add_column("Tags")
    table.add_column("Notes")
    for record in records:
        table.add_row(record.log_id, record.download_time, record.tags, record.notes[:80])
    console.print(table)


@app.command()
def tree(
    log_id: str = typer.Argument(..., help="Identifier of a downloaded log"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Show the file tree of a downloaded log."""
    log_id = _log_id_or_exit(log_id)
    config = _load_config(db)
    with RemoteClient.from_config(config) as client:
        files = LogFileService(config, client)
        try:
            root = files.get_tree(log_id)
        except LogViewError as exc:
            console.print(f"[red]{exc.message}[/red]")
            raise typer.Exit(code=1) from exc

    branch = Tree(f"[bold]{log_id}[/bold]")
    _add_branch(branch, root)
    console.print(branch)


@app.command()
def show(
    log_id: str = typer.Argument(..., help="Identifier of a downloaded log"),
    path: str = typer.Argument(..., help="File path relative to the log root"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Print one file of a downloaded log."""
    log_id = _log_id_or_exit(log_id)
    config = _load_config(db)
    with RemoteClient.from_config(config) as client:
        files = LogFileService(config, client)
        try:
            content = files.read_file(log_id, path)
        except LogViewError as exc:
            console.print(f"[red]{exc.message}[/red]")
            raise typer.Exit(code=1) from exc

    if content.type == "error":
        console.print(f"[red]{content.content}[/red]")
        raise typer.Exit(code=1)
    console.print(content.content, markup=False, highlight=False)


@app.command()
def delete(
    log_id: str = typer.Argument(..., help="Identifier of a downloaded log"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Delete a log record and its extracted files."""
    log_id = _log_id_or_exit(log_id)
    config = _load_config(db)
    with SQLiteLogStore(config.resolve_db_path()) as store:
        removed = store.delete_record(log_id)
    if not removed:
        console.print(f"[yellow]Log {log_id} not found.[/yellow]")
        raise typer.Exit(code=1)

    with RemoteClient.from_config(config) as client:
        LogFileService(config, client).delete_files(log_id)
    console.print(f"Deleted log {log_id}.")


@app.command()
def remote(
    keyword: str = typer.Option("", "--keyword", "-k", help="Search keyword"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """List log bundles available on the remote service."""
    _setup_logging(verbose)
    config = AppConfig.from_env()
    with RemoteClient.from_config(config) as client:
        try:
            logs = RemoteLogService(client).list_remote_logs(keyword)
        except LogViewError as exc:
            console.print(f"[red]{exc.message}[/red]")
            raise typer.Exit(code=1) from exc

    if not logs:
        console.print("[yellow]No remote logs found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID")
    table.add_column("Box")
    table.add_column("Created")
    table.add_column("Description")
    for log in logs:
        table.add_row(log.id, log.boxname, log.createat, log.description[:120])
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option(None, help="Host interface"),
    port: int = typer.Option(None, help="Server port"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Start the web interface."""
    import uvicorn

    from logview.web.app import create_app

    config = _load_config(db)
    if host is not None:
        config.host = host
    if port is not None:
        config.port = port

    console.print(
        f"Starting LogView on http://{config.host}:{config.port} "
        f"(database: {config.resolve_db_path()})"
    )
    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        reload=False,
        log_level="debug" if config.debug else "info",
        timeout_keep_alive=config.server_timeout,
    )


if __name__ == "__main__":  # pragma: no cover
    app()
