"""Command line entrypoint for the agent."""

from __future__ import annotations
import asyncio
import contextlib
from typing import Annotated
import typer
from rich.console import Console
from metrix.config import resolve_settings
from metrix.logging_config import configure_logging
from metrix_agent.runner import run_agent


app = typer.Typer(help="Report process metrics to a Metrix collector.")


@app.command()
def start(
    address: Annotated[
        str | None,
        typer.Option("--address", "-a", help="Collector address as host:port."),
    ] = None,
    poll_interval: Annotated[
        int | None,
        typer.Option("--poll-interval", "-p", help="Seconds between polls."),
    ] = None,
    report_interval: Annotated[
        int | None,
        typer.Option("--report-interval", "-r", help="Seconds between reports."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Logging level name."),
    ] = None,
) -> None:
    """Poll and report until interrupted."""
    console = Console(stderr=True)
    try:
        settings = resolve_settings(
            address=address,
            poll_interval=poll_interval,
            report_interval=report_interval,
        )
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    configure_logging(level=log_level)
    console.print(f"Reporting to [cyan]{settings.address}[/cyan]")
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(run_agent(settings))


def run() -> None:
    """Entry point used by console scripts."""
    app()


__all__ = ["app", "run", "start"]
