from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from bleak import BleakScanner
from bleak.exc import BleakError

from camscout.models import BluetoothDeviceInfo

from .errors import BluetoothUnavailableError

logger = logging.getLogger(__name__)


class BluetoothAdapter(Protocol):
    async def is_available(self) -> bool:
        """Whether an adapter exists and is powered on."""
        ...

    async def bonded_devices(self) -> list[BluetoothDeviceInfo]:
        """Devices already paired with this host."""
        ...

    async def discover(self, timeout: float) -> list[BluetoothDeviceInfo]:
        """Devices advertising nearby within ``timeout`` seconds."""
        ...


def parse_bluetoothctl_devices(output: str) -> list[BluetoothDeviceInfo]:
    devices: list[BluetoothDeviceInfo] = []
    for line in output.splitlines():
        parts = line.strip().split(" ", 2)
        if len(parts) < 2 or parts[0] != "Device":
            continue
        name = parts[2].strip() if len(parts) == 3 else None
        devices.append(
            BluetoothDeviceInfo(address=parts[1].upper(), name=name or None, bonded=True)
        )
    return devices


class BleakBluetoothAdapter:
    """Discovery through bleak, bonded list through ``bluetoothctl``."""

    async def _bluetoothctl(self, *args: str) -> tuple[int, str]:
        proc = await asyncio.create_subprocess_exec(
            "bluetoothctl",
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=5.0)
        except (asyncio.TimeoutError, TimeoutError):
            proc.kill()
            await proc.wait()
            return 1, ""
        return proc.returncode or 0, stdout.decode("utf-8", errors="replace")

    async def is_available(self) -> bool:
        try:
            code, output = await self._bluetoothctl("show")
        except FileNotFoundError:
            # no BlueZ tooling; let bleak report the adapter state
            return True
        if code != 0 or "Controller" not in output:
            return False
        return "Powered: no" not in output

    async def bonded_devices(self) -> list[BluetoothDeviceInfo]:
        try:
            code, output = await self._bluetoothctl("devices", "Paired")
            if code != 0:
                code, output = await self._bluetoothctl("paired-devices")
        except FileNotFoundError:
            logger.debug("bluetoothctl not available; skipping bonded devices")
            return []
        if code != 0:
            return []
        return parse_bluetoothctl_devices(output)

    async def discover(self, timeout: float) -> list[BluetoothDeviceInfo]:
        try:
            found = await BleakScanner.discover(timeout=timeout, return_adv=True)
        except BleakError as exc:
            message = str(exc).lower()
            if "not authorized" in message or "permission" in message:
                raise PermissionError(str(exc)) from exc
            raise BluetoothUnavailableError(str(exc)) from exc
        except FileNotFoundError as exc:
            # no BlueZ on the system bus
            raise BluetoothUnavailableError(str(exc)) from exc

        devices: list[BluetoothDeviceInfo] = []
        for address, (device, adv) in found.items():
            devices.append(
                BluetoothDeviceInfo(
                    address=address.upper(),
                    name=adv.local_name or device.name,
                )
            )
        return devices
