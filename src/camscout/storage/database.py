from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from camscout.models import DeviceRecord, ScanReport

SCANS_DIR = "scans"
CURRENT_SCAN_FILE = "current.json"


class Database:
    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir
        self._scans_dir = data_dir / SCANS_DIR
        self._current_scan_path = self._scans_dir / CURRENT_SCAN_FILE

    @property
    def path(self) -> Path:
        return self._data_dir

    @property
    def scans_dir(self) -> Path:
        return self._scans_dir

    @property
    def current_scan_path(self) -> Path:
        return self._current_scan_path

    def ensure_dirs(self) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._scans_dir.mkdir(parents=True, exist_ok=True)

    def save_scan(self, report: ScanReport) -> None:
        self.ensure_dirs()
        with self._current_scan_path.open("w") as handle:
            json.dump(report.model_dump(mode="json"), handle, indent=2)

    def save_devices(
        self,
        devices: list[DeviceRecord],
        network: str,
        phases: list[str] | None = None,
        timed_out: bool = False,
    ) -> ScanReport:
        report = ScanReport(
            scan_timestamp=datetime.now(timezone.utc),
            network=network,
            phases=phases or [],
            timed_out=timed_out,
            devices=devices,
        )
        self.save_scan(report)
        return report

    def load_current_scan(self) -> ScanReport | None:
        if not self._current_scan_path.exists():
            return None

        try:
            with self._current_scan_path.open("r") as handle:
                data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ValueError(
                f"Invalid scan file: {self._current_scan_path}\n{exc}"
            ) from exc

        try:
            return ScanReport.model_validate(data)
        except ValidationError as exc:
            raise ValueError(
                f"Invalid scan file: {self._current_scan_path}\n{exc}"
            ) from exc

    def init(self) -> None:
        self.ensure_dirs()
