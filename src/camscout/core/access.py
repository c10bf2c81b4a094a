from __future__ import annotations

import logging
import os

from camscout.models import DeviceKind, DeviceRecord, HttpOutcome
from camscout.platform import BluetoothAdapter, TransportUnavailableError

from .heuristics import normalize_mac
from .probes import HttpProber

logger = logging.getLogger(__name__)

DEFAULT_HTTP_PORT = 80


class AccessTester:
    """Read-only re-check of whether a recorded camera can be reached.

    Never sends credentials and never changes device state.
    """

    def __init__(
        self,
        http_prober: HttpProber,
        bluetooth: BluetoothAdapter | None = None,
    ) -> None:
        self._http = http_prober
        self._bluetooth = bluetooth

    async def test(self, record: DeviceRecord) -> DeviceRecord:
        if record.kind is DeviceKind.NETWORK:
            if not record.ip_address:
                # WiFi and hotspot sightings have no address to re-check
                logger.debug("Access test %s skipped: no IP address", record.id)
                return record
            accessible, permitted = await self._test_network(record.ip_address, record.port)
        elif record.kind is DeviceKind.BLUETOOTH:
            accessible, permitted = await self._test_bluetooth(record)
        else:
            accessible, permitted = self._test_local(record)
        logger.debug(
            "Access test %s: accessible=%s permission=%s",
            record.id,
            accessible,
            permitted,
        )
        return record.with_access(accessible, permitted)

    async def _test_network(self, ip: str, port: int) -> tuple[bool, bool]:
        evidence = await self._http.fingerprint(ip, port or DEFAULT_HTTP_PORT, "/", "GET")
        outcome = evidence.outcome
        if outcome is HttpOutcome.OK:
            return True, True
        if outcome is HttpOutcome.REQUIRES_AUTH:
            return True, False
        return False, False

    async def _test_bluetooth(self, record: DeviceRecord) -> tuple[bool, bool]:
        if self._bluetooth is None:
            return False, False
        try:
            bonded = await self._bluetooth.bonded_devices()
        except (PermissionError, TransportUnavailableError) as exc:
            logger.info("Cannot read bonded Bluetooth devices: %s", exc)
            return False, False
        wanted = normalize_mac(record.id)
        return any(normalize_mac(d.address) == wanted for d in bonded), False

    def _test_local(self, record: DeviceRecord) -> tuple[bool, bool]:
        node = record.id.removeprefix("local_")
        device = f"/dev/{node}"
        if not os.path.exists(device):
            return False, False
        return True, os.access(device, os.R_OK)
