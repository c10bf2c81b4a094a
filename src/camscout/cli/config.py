from __future__ import annotations

from typing import Annotated

import typer

from camscout.config import (
    DEFAULT_PHASES,
    OPTIONAL_PHASES,
    Settings,
    render_settings_toml,
    write_settings,
)

from .common import load_settings_or_exit, resolve_config_path_or_exit

app = typer.Typer(no_args_is_help=True, help="Show or create the configuration")


@app.command("show")
def show_config() -> None:
    """Print the effective configuration as TOML."""
    settings = load_settings_or_exit()
    path, exists = resolve_config_path_or_exit(allow_missing=True)

    typer.echo(f"Config source: {path if exists else 'defaults'}")
    typer.echo(render_settings_toml(settings))


@app.command("phases")
def list_phases() -> None:
    """List scan phases; optional ones must be enabled in config or with --phase."""
    settings = load_settings_or_exit()
    enabled = set(settings.scanning.phases)
    for name in DEFAULT_PHASES + OPTIONAL_PHASES:
        marker = "*" if name in enabled else " "
        note = " (optional)" if name in OPTIONAL_PHASES else ""
        typer.echo(f"{marker} {name}{note}")


@app.command("init")
def init_config(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite existing config"),
    ] = False,
    with_optional: Annotated[
        bool,
        typer.Option("--all-phases", help="Enable the optional mDNS and local phases"),
    ] = False,
) -> None:
    """Write a config file populated with the defaults."""
    path, exists = resolve_config_path_or_exit(allow_missing=True)

    if exists and not force:
        typer.echo(f"Config already exists at {path}")
        raise typer.Exit(1)

    settings = Settings()
    if with_optional:
        scanning = settings.scanning.model_copy(
            update={"phases": list(DEFAULT_PHASES + OPTIONAL_PHASES)}
        )
        settings = settings.model_copy(update={"scanning": scanning})
    write_settings(settings, path)
    typer.echo(f"Wrote default config to {path}")
