"""WiFi scan-result providers.

The detector only needs the list of visible networks; how they are obtained
is platform specific:

- NmcliWifiProvider: NetworkManager (``nmcli``) on Linux
- StaticWifiProvider: fixed results for tests and offline runs
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from camscout.models import WifiNetwork

from .errors import WifiScanError, WifiUnavailableError

logger = logging.getLogger(__name__)

NMCLI_FIELDS = "SSID,BSSID,SIGNAL,FREQ"


class WifiScanProvider(Protocol):
    async def scan(self) -> list[WifiNetwork]:
        """Trigger a fresh scan and return visible networks."""
        ...

    async def cached(self) -> list[WifiNetwork]:
        """Return the last known results without scanning."""
        ...


def split_nmcli_line(line: str) -> list[str]:
    """Split an ``nmcli -t`` line on unescaped colons."""
    fields: list[str] = []
    current: list[str] = []
    escaped = False
    for char in line:
        if escaped:
            current.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == ":":
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
    fields.append("".join(current))
    return fields


def signal_percent_to_dbm(percent: int) -> int:
    # NetworkManager maps -100..-50 dBm linearly onto 0..100 %
    return max(-100, min(-50, percent // 2 - 100))


def parse_nmcli_output(output: str) -> list[WifiNetwork]:
    networks: list[WifiNetwork] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        parts = split_nmcli_line(line)
        if len(parts) < 4:
            continue
        ssid, bssid, signal, freq = parts[:4]
        if not ssid or not bssid:
            continue
        try:
            level = signal_percent_to_dbm(int(signal))
        except ValueError:
            level = -100
        try:
            frequency = int(freq.split()[0])
        except (ValueError, IndexError):
            frequency = 0
        networks.append(
            WifiNetwork(ssid=ssid, bssid=bssid.upper(), level=level, frequency=frequency)
        )
    return networks


class NmcliWifiProvider:
    def __init__(self, timeout: float = 10.0) -> None:
        self._timeout = timeout

    async def _run(self, rescan: str) -> str:
        try:
            proc = await asyncio.create_subprocess_exec(
                "nmcli", "-t", "-f", NMCLI_FIELDS, "dev", "wifi", "list",
                "--rescan", rescan,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )  # fmt: skip
        except FileNotFoundError as exc:
            raise WifiUnavailableError("nmcli not found; WiFi not available") from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self._timeout
            )
        except (asyncio.TimeoutError, TimeoutError) as exc:
            proc.kill()
            await proc.wait()
            raise WifiScanError("WiFi scan timed out") from exc

        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            if "not authorized" in message.lower() or "permission" in message.lower():
                raise PermissionError(message)
            if "no wi-fi device" in message.lower():
                raise WifiUnavailableError(message)
            raise WifiScanError(message or f"nmcli exited with {proc.returncode}")
        return stdout.decode("utf-8", errors="replace")

    async def scan(self) -> list[WifiNetwork]:
        return parse_nmcli_output(await self._run("yes"))

    async def cached(self) -> list[WifiNetwork]:
        try:
            return parse_nmcli_output(await self._run("no"))
        except (WifiScanError, PermissionError) as exc:
            logger.debug("No cached WiFi results: %s", exc)
            return []


class StaticWifiProvider:
    def __init__(self, networks: list[WifiNetwork] | None = None) -> None:
        self._networks = list(networks or [])

    async def scan(self) -> list[WifiNetwork]:
        return list(self._networks)

    async def cached(self) -> list[WifiNetwork]:
        return list(self._networks)
