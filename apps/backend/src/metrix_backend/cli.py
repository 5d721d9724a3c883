"""Command line entrypoint for the collector server."""

from __future__ import annotations
from typing import Annotated
import typer
import uvicorn
from rich.console import Console
from metrix.config import parse_address, resolve_settings
from metrix.logging_config import configure_logging
from metrix_backend.app import _create_repository, create_app


app = typer.Typer(help="Run the Metrix metrics collector.")


@app.command()
def serve(
    address: Annotated[
        str | None,
        typer.Option("--address", "-a", help="Listen address as host:port."),
    ] = None,
    store_interval: Annotated[
        int | None,
        typer.Option(
            "--store-interval",
            "-i",
            help="Seconds between snapshots; 0 saves on every update.",
        ),
    ] = None,
    file_storage_path: Annotated[
        str | None,
        typer.Option("--file-storage-path", "-f", help="Snapshot file location."),
    ] = None,
    restore: Annotated[
        bool | None,
        typer.Option("--restore/--no-restore", help="Load the snapshot on start."),
    ] = None,
    database_dsn: Annotated[
        str | None,
        typer.Option("--database-dsn", "-d", help="PostgreSQL connection string."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Logging level name."),
    ] = None,
) -> None:
    """Start the collector with the selected storage backend."""
    console = Console(stderr=True)
    try:
        settings = resolve_settings(
            address=address,
            store_interval=store_interval,
            file_storage_path=file_storage_path,
            restore=restore,
            database_dsn=database_dsn,
        )
        host, port = parse_address(settings.address)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    configure_logging(level=log_level)
    repository = _create_repository(settings)
    console.print(
        f"Serving on [cyan]{host}:{port}[/cyan] "
        f"with [bold]{settings.storage_backend}[/bold] storage"
    )
    uvicorn.run(create_app(repository), host=host, port=port, log_config=None)


def run() -> None:
    """Entry point used by console scripts."""
    app()


__all__ = ["app", "run", "serve"]
