from __future__ import annotations

import asyncio
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from camscout.config import ScanningConfig
from camscout.core import CameraDetector, CollectingListener, ScanSession
from camscout.models import DeviceRecord
from camscout.utils.redaction import Redactor

from .common import (
    access_label,
    address_column,
    build_database,
    load_settings_or_exit,
)

logger = logging.getLogger(__name__)


async def run_scan(
    config: ScanningConfig,
    listener: CollectingListener,
    phases: list[str] | None,
    timeout: float | None,
) -> ScanSession:
    async with CameraDetector(config) as detector:
        return await detector.scan(listener, phases, timeout)


def render_devices(devices: list[DeviceRecord], redactor: Redactor) -> Table:
    table = Table()
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Type")
    table.add_column("Address")
    table.add_column("Manufacturer")
    table.add_column("Access")

    for record in devices:
        table.add_row(
            escape(redactor.redact_id(record.id)),
            escape(redactor.redact_text(record.name)),
            record.kind.value,
            address_column(record, redactor),
            escape(record.manufacturer or ""),
            access_label(record),
        )
    return table


def register(app: typer.Typer) -> None:
    @app.command()
    def scan(
        phase: Annotated[
            list[str] | None,
            typer.Option(
                "--phase",
                "-p",
                help="Phase to run (repeatable). Uses config phases if omitted.",
            ),
        ] = None,
        timeout: Annotated[
            float | None,
            typer.Option("--timeout", "-t", help="Global scan deadline in seconds"),
        ] = None,
        save: bool = typer.Option(True, help="Save scan results to data directory"),
        redact: bool = typer.Option(
            False,
            "--redact",
            help="Redact sensitive values in output",
        ),
    ) -> None:
        """Scan for camera devices on every available transport."""
        console = Console()

        settings = load_settings_or_exit()
        db = build_database(settings)
        redactor = Redactor(enabled=redact)

        def show_progress(text: str) -> None:
            console.print(f"[dim]{escape(redactor.redact_text(text))}[/dim]")

        def show_device(record: DeviceRecord) -> None:
            console.print(
                f"[green]Found[/green] {escape(redactor.redact_text(record.name))}"
            )

        listener = CollectingListener(on_record=show_device, on_progress=show_progress)
        logger.info(
            "Scan settings: timeout=%.1fs, pool_size=%d",
            timeout if timeout is not None else settings.scanning.global_timeout,
            settings.scanning.pool_size,
        )
        try:
            session = asyncio.run(
                run_scan(settings.scanning, listener, phase or None, timeout)
            )
        except ValueError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(1) from exc

        devices = session.devices
        if session.timed_out:
            console.print(
                "[yellow]Scan deadline reached before all phases finished: "
                f"{', '.join(session.pending_phases)}[/yellow]"
            )

        if not devices:
            console.print("No camera devices found.")
        else:
            console.print(render_devices(devices, redactor))
            console.print(f"\n[green]Found {len(devices)} device(s)[/green]")

        if save:
            db.save_devices(
                devices,
                network=settings.scanning.default_network or "auto",
                phases=session.phases,
                timed_out=session.timed_out,
            )
            console.print(f"[green]✓[/green] Saved scan results to {db.path}")
