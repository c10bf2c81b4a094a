from __future__ import annotations

import asyncio
from typing import Annotated

import typer
from rich.console import Console

from camscout.config import ScanningConfig
from camscout.core import AccessTester, HttpProber
from camscout.models import DeviceRecord
from camscout.platform import BleakBluetoothAdapter
from camscout.utils.redaction import Redactor

from .common import build_database, load_settings_or_exit
from .scan import render_devices


async def test_records(
    config: ScanningConfig, devices: list[DeviceRecord]
) -> list[DeviceRecord]:
    prober = HttpProber(config.http_timeout)
    tester = AccessTester(prober, BleakBluetoothAdapter())
    try:
        return list(await asyncio.gather(*(tester.test(d) for d in devices)))
    finally:
        await prober.close()


def register(app: typer.Typer) -> None:
    @app.command()
    def access(
        device_id: Annotated[
            str | None,
            typer.Argument(help="Only re-test the device with this id"),
        ] = None,
        save: bool = typer.Option(True, help="Store refreshed access flags"),
        redact: bool = typer.Option(
            False,
            "--redact",
            help="Redact sensitive values in output",
        ),
    ) -> None:
        """Re-test read-only access to devices from the last scan."""
        console = Console()

        settings = load_settings_or_exit()
        db = build_database(settings)
        try:
            report = db.load_current_scan()
        except ValueError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(1) from exc

        if report is None:
            typer.echo("No scans recorded yet. Run 'camscout scan' first.", err=True)
            raise typer.Exit(1)

        targets = [d for d in report.devices if device_id in (None, d.id)]
        if not targets:
            typer.echo(f"No device with id {device_id} in the last scan", err=True)
            raise typer.Exit(1)

        tested = asyncio.run(test_records(settings.scanning, targets))
        console.print(render_devices(tested, Redactor(enabled=redact)))

        if save:
            refreshed = {d.id: d for d in tested}
            devices = [refreshed.get(d.id, d) for d in report.devices]
            db.save_scan(report.model_copy(update={"devices": devices}))
            console.print(f"[green]✓[/green] Updated {db.current_scan_path}")
