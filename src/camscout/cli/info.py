from __future__ import annotations

import typer
from rich.console import Console

from .common import build_database, load_settings_or_exit, resolve_config_path_or_exit


def register(app: typer.Typer) -> None:
    @app.command()
    def info() -> None:
        """Show camscout data directory info and stats."""
        settings = load_settings_or_exit()
        db = build_database(settings)
        try:
            current_scan = db.load_current_scan()
        except ValueError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(1) from exc

        config_path, config_exists = resolve_config_path_or_exit(allow_missing=True)
        scanning = settings.scanning

        console = Console()

        console.print("[bold]camscout Info[/bold]\n")
        console.print(f"Data directory: {db.path}")
        console.print(f"Scan results: {db.current_scan_path}")
        console.print(f"Config file: {config_path if config_exists else 'defaults'}")

        console.print("\n[bold]Configuration[/bold]")
        console.print(f"Default network: {scanning.default_network or 'auto-detect'}")
        console.print(f"Phases: {', '.join(scanning.phases)}")
        console.print(f"Global timeout: {scanning.global_timeout}s")
        console.print(f"Pool size: {scanning.pool_size}")

        console.print("\n[bold]Statistics[/bold]")
        if current_scan:
            console.print(f"Last scan: {current_scan.scan_timestamp}")
            console.print(f"Cameras found: {len(current_scan.devices)}")
            console.print(f"Scan network: {current_scan.network}")
            if current_scan.timed_out:
                console.print("Last scan hit the global timeout")
        else:
            console.print("No scans recorded yet")
