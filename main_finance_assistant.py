"""Mini README: Entry point CLI for the Financial Assistant.

This script exposes a Typer CLI that starts the FastAPI sync server, prints
the dashboard of the signed-in local user, or syncs once or on a timer.
Settings come from ``FINASSIST_`` environment variables or a ``.env`` file.
"""

from __future__ import annotations

import json
import time
from datetime import date
from typing import Optional

import typer
import uvicorn

from finassist.configuration import get_settings
from finassist.logging_utils import configure_root_logger
from finassist.services import build_services

cli = typer.Typer(help="Run and inspect the Financial Assistant.")


@cli.command()
def run(
    host: str = typer.Option(None, help="Host interface to bind."),
    port: int = typer.Option(None, help="Port to listen on."),
    production: bool = typer.Option(
        False, help="Use production server settings (disable auto-reload)."
    ),
) -> None:
    """Start the sync server using uvicorn."""

    settings = get_settings()
    effective_host = host or settings.interface_host
    effective_port = port or settings.interface_port
    configure_root_logger(settings.log_level.upper())

    # Browsers cannot navigate to the 0.0.0.0 bind address.
    browser_host = "127.0.0.1" if effective_host in {"0.0.0.0", "::"} else effective_host
    typer.echo(
        f"Starting the sync server on {effective_host}:{effective_port}.\n"
        f"API root: http://{browser_host}:{effective_port}/api"
    )
    uvicorn.run(
        "finassist.interface.web_app:create_application",
        host=effective_host,
        port=effective_port,
        factory=True,
        reload=not production,
    )


@cli.command()
def dashboard(
    today: Optional[str] = typer.Option(None, help="Evaluate as of this date (YYYY-MM-DD)."),
) -> None:
    """Print the signed-in user's dashboard snapshot as JSON."""

    services = build_services()
    try:
        if services.auth.restore_session() is None:
            typer.echo("No active session; sign in first.", err=True)
            raise typer.Exit(code=1)
        as_of = date.fromisoformat(today) if today else None
        snapshot = services.data_manager.dashboard(as_of)
        typer.echo(json.dumps(snapshot.as_dict(), ensure_ascii=False, indent=2))
    finally:
        services.shutdown()


@cli.command()
def sync(
    watch: bool = typer.Option(
        False, help="Keep syncing every sync_interval_seconds until interrupted."
    ),
) -> None:
    """Reconcile the signed-in user's data with the server."""

    services = build_services()
    try:
        if services.auth.restore_session() is None:
            typer.echo("No active session; sign in first.", err=True)
            raise typer.Exit(code=1)
        merged = services.data_manager.sync_with_server()
        stats = services.data_manager.sync_stats()
        typer.echo(
            f"Merged: {merged}. Last sync: {stats['last_sync_time'] or 'never'}."
            f" Queued saves: {stats['queue_length']}."
        )
        if watch:
            services.background_sync.start()
            typer.echo(f"Syncing every {services.settings.sync_interval_seconds} seconds; press Ctrl+C to stop.")
            try:
                while services.background_sync.running:
                    time.sleep(1)
            except KeyboardInterrupt:
                typer.echo("Stopping background sync.")
    finally:
        services.shutdown()


if __name__ == "__main__":
    cli()
