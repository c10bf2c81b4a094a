from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Protocol

from camscout.models import DeviceRecord


class ScanListener(Protocol):
    """Receiver of scan events.

    ``on_camera_detected`` may be called from any phase and in any order
    across phases. ``on_scan_progress`` is advisory. ``on_scan_complete`` is
    called exactly once per session and nothing follows it.
    """

    def on_camera_detected(self, record: DeviceRecord) -> None: ...

    def on_scan_progress(self, text: str) -> None: ...

    def on_scan_complete(self) -> None: ...


class CollectingListener:
    """Keeps every event; optionally forwards to callbacks."""

    def __init__(
        self,
        on_record: Callable[[DeviceRecord], None] | None = None,
        on_progress: Callable[[str], None] | None = None,
        on_complete: Callable[[], None] | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._on_record = on_record
        self._on_progress = on_progress
        self._on_complete = on_complete
        self.records: list[DeviceRecord] = []
        self.progress: list[str] = []
        self.completions = 0
        # every event in arrival order, for ordering assertions
        self.events: list[tuple[str, object]] = []

    def on_camera_detected(self, record: DeviceRecord) -> None:
        with self._lock:
            self.records.append(record)
            self.events.append(("device", record))
        if self._on_record:
            self._on_record(record)

    def on_scan_progress(self, text: str) -> None:
        with self._lock:
            self.progress.append(text)
            self.events.append(("progress", text))
        if self._on_progress:
            self._on_progress(text)

    def on_scan_complete(self) -> None:
        with self._lock:
            self.completions += 1
            self.events.append(("complete", None))
        if self._on_complete:
            self._on_complete()
