from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from camscout.core import run_mock_camera


def register(app: typer.Typer) -> None:
    @app.command()
    def mock(
        host: str = typer.Option("127.0.0.1", "--host", help="Address to bind"),
        port: int = typer.Option(8080, "--port", "-p", help="Port to listen on"),
        server: str = typer.Option(
            "Hikvision-Webs", "--server", help="Server header to report"
        ),
        realm: str | None = typer.Option(
            None, "--realm", help="Answer 401 with this authentication realm"
        ),
        head: bool = typer.Option(
            True, "--head/--no-head", help="Answer HEAD requests instead of 405"
        ),
    ) -> None:
        """Run a mock IP camera web interface for development."""
        console = Console()
        console.print(f"Starting mock camera '{server}' on {host}:{port}...")
        console.print("Press Ctrl+C to stop.\n")

        try:
            asyncio.run(
                run_mock_camera(
                    host=host,
                    port=port,
                    server_header=server,
                    realm=realm,
                    allow_head=head,
                )
            )
        except KeyboardInterrupt:
            console.print("\n[green]Mock camera stopped.[/green]")
