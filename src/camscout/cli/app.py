from __future__ import annotations

from typing import Annotated

import typer

from camscout.utils.logging import setup_logging

from . import config as config_cmd
from .access import register as register_access
from .info import register as register_info
from .init_cmd import register as register_init
from .mock import register as register_mock
from .scan import register as register_scan

app = typer.Typer(
    help="camscout - discover cameras around you and check what they expose",
    no_args_is_help=True,
)

app.add_typer(config_cmd.app, name="config")

register_init(app)
register_scan(app)
register_access(app)
register_info(app)
register_mock(app)


@app.callback(invoke_without_command=True)
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", help="Show version and exit"),
    ] = False,
) -> None:
    """camscout CLI."""
    setup_logging()

    if version:
        from importlib.metadata import version as get_version

        typer.echo(f"camscout version {get_version('camscout')}")
        raise typer.Exit()
