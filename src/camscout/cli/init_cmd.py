from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from camscout.config import write_settings

from .common import build_database, load_settings_or_exit, resolve_config_path_or_exit


def register(app: typer.Typer) -> None:
    @app.command()
    def init(
        data_dir: Annotated[
            Path | None,
            typer.Option("--data-dir", "--path", help="Custom data directory"),
        ] = None,
        write_config: Annotated[
            bool,
            typer.Option(
                "--config/--no-config",
                help="Also write a default config file when none exists",
            ),
        ] = True,
    ) -> None:
        """Prepare the data directory for saved scans."""
        console = Console()

        settings = load_settings_or_exit()
        db = build_database(settings, data_dir=data_dir)
        db.init()
        console.print(f"[green]✓[/green] Scan results go to {db.scans_dir}")

        config_path, config_exists = resolve_config_path_or_exit(allow_missing=True)
        if config_exists:
            console.print(f"  Using config {config_path}")
            return
        if not write_config:
            console.print("  No config file; built-in defaults apply.")
            return

        if data_dir is not None:
            database = settings.database.model_copy(update={"path": str(db.path)})
            settings = settings.model_copy(update={"database": database})
        write_settings(settings, config_path)
        console.print(f"[green]✓[/green] Wrote default config to {config_path}")
