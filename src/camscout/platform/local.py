from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from camscout.models import LocalCamera

logger = logging.getLogger(__name__)

V4L2_SYSFS = Path("/sys/class/video4linux")


class LocalCameraProvider(Protocol):
    async def list_cameras(self) -> list[LocalCamera]: ...


class V4L2CameraProvider:
    """Enumerate video capture nodes exposed by the kernel."""

    def __init__(self, sysfs: Path = V4L2_SYSFS, dev: Path = Path("/dev")) -> None:
        self._sysfs = sysfs
        self._dev = dev

    async def list_cameras(self) -> list[LocalCamera]:
        if not self._sysfs.is_dir():
            return []

        cameras: list[LocalCamera] = []
        for entry in sorted(self._sysfs.iterdir()):
            # metadata nodes share the name but report index > 0
            index_file = entry / "index"
            try:
                if index_file.exists() and index_file.read_text().strip() != "0":
                    continue
                name = (entry / "name").read_text().strip()
            except OSError as exc:
                logger.debug("Skipping %s: %s", entry, exc)
                continue
            cameras.append(
                LocalCamera(
                    device=str(self._dev / entry.name),
                    name=name or entry.name,
                    facing=_guess_facing(name),
                )
            )
        return cameras


def _guess_facing(name: str) -> str:
    lowered = name.lower()
    if "front" in lowered or "user" in lowered:
        return "front"
    if "rear" in lowered or "back" in lowered or "world" in lowered:
        return "back"
    return "external"
