from __future__ import annotations

import asyncio
import logging
import os
import threading
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar
from urllib.parse import urlsplit

from zeroconf import ServiceBrowser, ServiceListener, Zeroconf

from camscout.config import ALL_PHASES, ScanningConfig
from camscout.models import (
    DeviceRecord,
    HttpOutcome,
    PortState,
    SsdpReply,
    SsidClass,
    WifiNetwork,
)
from camscout.platform import (
    BleakBluetoothAdapter,
    BluetoothAdapter,
    BluetoothUnavailableError,
    LocalCameraProvider,
    NmcliWifiProvider,
    TransportUnavailableError,
    V4L2CameraProvider,
    WifiScanError,
    WifiScanProvider,
)

from . import records
from .heuristics import (
    classify_ssid,
    extract_xml_field,
    is_bluetooth_camera,
    is_camera_access_point,
    is_upnp_camera,
    verify_http_camera,
)
from .listener import ScanListener
from .network import (
    adjacent_networks,
    detect_local_network,
    plan_targets,
    priority_hosts,
    same_network,
)
from .probes import HttpProber, ssdp_probe, tcp_probe
from .session import ScanSession

logger = logging.getLogger(__name__)

T = TypeVar("T")

PHASE_LABELS = {
    "wifi": "WiFi",
    "network": "Network",
    "adjacent": "Adjacent subnet",
    "wide": "Wide-range",
    "bluetooth": "Bluetooth",
    "upnp": "UPnP",
    "hotspot": "Hotspot",
    "mdns": "mDNS",
    "local": "Local camera",
}

MDNS_SERVICE_TYPES = ("_rtsp._tcp.local.", "_axis-video._tcp.local.")

# Share of the deadline that silent connect probes may use
PROBE_BUDGET_SHARE = 0.75

# Extra time bleak gets past its own discovery timeout
DISCOVERY_GRACE = 5.0

PortProbe = Callable[[str, int, float], Awaitable[PortState]]
SsdpProbe = Callable[[float], Awaitable[list[SsdpReply]]]


class CameraServiceListener(ServiceListener):
    """Collects camera services announced over mDNS."""

    def __init__(self, info_timeout: float) -> None:
        self._info_timeout_ms = max(int(info_timeout * 1000), 1)
        self._lock = threading.Lock()
        self._found: dict[str, DeviceRecord] = {}

    def add_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        info = zc.get_service_info(type_, name, timeout=self._info_timeout_ms)
        if not info:
            return
        addresses = [a for a in info.parsed_addresses() if ":" not in a]
        if not addresses:
            return
        properties = {
            key.decode("utf-8", errors="replace").lower(): (
                value.decode("utf-8", errors="replace") if value else ""
            )
            for key, value in info.properties.items()
        }
        manufacturer = "Axis" if type_.startswith("_axis-video") else None
        record = records.mdns_record(
            name,
            type_,
            addresses[0],
            info.port or 0,
            manufacturer=properties.get("manufacturer") or manufacturer,
            model=properties.get("model") or None,
        )
        with self._lock:
            self._found[name] = record
        logger.debug("Discovered %s at %s via mDNS", name, addresses[0])

    def update_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        self.add_service(zc, type_, name)

    def remove_service(self, _zc: Zeroconf, _type_: str, name: str) -> None:
        with self._lock:
            self._found.pop(name, None)

    def records(self) -> list[DeviceRecord]:
        with self._lock:
            return list(self._found.values())


class CameraDetector:
    """Runs discovery phases concurrently over a bounded probe pool."""

    def __init__(
        self,
        config: ScanningConfig | None = None,
        *,
        wifi: WifiScanProvider | None = None,
        bluetooth: BluetoothAdapter | None = None,
        local_cameras: LocalCameraProvider | None = None,
        http_prober: HttpProber | None = None,
        port_probe: PortProbe = tcp_probe,
        ssdp: SsdpProbe = ssdp_probe,
        network_detector: Callable[[], str] = detect_local_network,
    ) -> None:
        self.config = config or ScanningConfig()
        self._wifi = wifi or NmcliWifiProvider(timeout=self.config.wifi_timeout)
        self._bluetooth = bluetooth or BleakBluetoothAdapter()
        self._local_cameras = local_cameras or V4L2CameraProvider()
        self._http = http_prober or HttpProber(
            self.config.http_timeout, self.config.http_method
        )
        self._port_probe = port_probe
        self._ssdp = ssdp
        self._network_detector = network_detector

        self._pool: asyncio.Semaphore | None = None
        self._pool_loop: asyncio.AbstractEventLoop | None = None
        self._sessions: list[ScanSession] = []
        self._phases: dict[str, Callable[[ScanSession], Awaitable[None]]] = {
            "wifi": self._phase_wifi,
            "network": self._phase_network,
            "adjacent": self._phase_adjacent,
            "wide": self._phase_wide,
            "bluetooth": self._phase_bluetooth,
            "upnp": self._phase_upnp,
            "hotspot": self._phase_hotspot,
            "mdns": self._phase_mdns,
            "local": self._phase_local,
        }

    async def __aenter__(self) -> CameraDetector:
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.destroy()

    # -- entry points -----------------------------------------------------

    def start_comprehensive_scan(
        self,
        listener: ScanListener,
        phases: Sequence[str] | None = None,
        timeout: float | None = None,
    ) -> ScanSession:
        """Launch every phase and return immediately; needs a running loop."""
        names = list(dict.fromkeys(phases if phases is not None else self.config.phases))
        unknown = [name for name in names if name not in ALL_PHASES]
        if unknown:
            raise ValueError(f"Unknown scan phases: {', '.join(unknown)}")

        if timeout is None:
            timeout = self.config.global_timeout
        session = ScanSession(listener, names, timeout)
        self._sessions.append(session)

        session.start()
        session.progress("Starting to scan for camera devices...")
        logger.info(
            "Scan started: phases=%s, timeout=%.1fs, pool=%d",
            ",".join(names),
            session.timeout,
            self.config.pool_size,
        )
        for name in names:
            task = asyncio.create_task(
                self._run_phase(session, name), name=f"camscout-{name}"
            )
            session.track(task)
        return session

    def scan_network_cameras(self, listener: ScanListener) -> ScanSession:
        return self.start_comprehensive_scan(listener, ["network"])

    def scan_bluetooth_cameras(self, listener: ScanListener) -> ScanSession:
        return self.start_comprehensive_scan(listener, ["bluetooth"])

    def scan_wifi_cameras(self, listener: ScanListener) -> ScanSession:
        return self.start_comprehensive_scan(listener, ["wifi"])

    def scan_upnp_cameras(self, listener: ScanListener) -> ScanSession:
        return self.start_comprehensive_scan(listener, ["upnp"])

    async def scan(
        self,
        listener: ScanListener,
        phases: Sequence[str] | None = None,
        timeout: float | None = None,
    ) -> ScanSession:
        session = self.start_comprehensive_scan(listener, phases, timeout)
        await session.wait()
        return session

    async def destroy(self) -> None:
        """Stop running sessions and release the probe pool."""
        for session in self._sessions:
            session.cancel()
        for session in self._sessions:
            await session.drain()
        self._sessions.clear()
        await self._http.close()

    # -- plumbing ---------------------------------------------------------

    def _slots(self) -> asyncio.Semaphore:
        loop = asyncio.get_running_loop()
        if self._pool is None or self._pool_loop is not loop:
            self._pool = asyncio.Semaphore(self.config.pool_size)
            self._pool_loop = loop
        return self._pool

    async def _pooled(self, func: Callable[..., Awaitable[T]], *args: Any) -> T:
        async with self._slots():
            return await func(*args)

    async def _run_phase(self, session: ScanSession, name: str) -> None:
        label = PHASE_LABELS[name]
        try:
            await self._phases[name](session)
        except TransportUnavailableError as exc:
            logger.info("%s scan skipped: %s", label, exc)
            session.progress(f"{label} not available: {exc}")
        except Exception as exc:
            logger.exception("%s scan failed", label)
            session.progress(f"{label} scan failed: {exc}")
        finally:
            session.phase_finished(name)

    # -- network phases ---------------------------------------------------

    async def _local_network(self, session: ScanSession) -> str | None:
        async def detect() -> str | None:
            if self.config.default_network:
                return self.config.default_network
            try:
                return await asyncio.to_thread(self._network_detector)
            except RuntimeError as exc:
                logger.info("%s", exc)
                return None

        return await session.memo("local_network", detect)

    def _adjacent_targets(self, network: str) -> list[str]:
        targets: list[str] = []
        for neighbour in adjacent_networks(network):
            targets.extend(priority_hosts(neighbour, self.config.priority_host_suffixes))
        return targets

    def _wide_targets(self, local: str | None) -> list[str]:
        covered = [local, *adjacent_networks(local)] if local else []

        def is_covered(network: str) -> bool:
            return any(same_network(network, known) for known in covered)

        targets: list[str] = []
        for host in self.config.vendor_default_hosts:
            if not is_covered(f"{host}/24"):
                targets.append(host)
        for network in self.config.wide_range_networks:
            if not is_covered(network):
                targets.extend(priority_hosts(network, self.config.priority_host_suffixes))
        return list(dict.fromkeys(targets))

    def _sweep_limit(self, session: ScanSession, network: str, priority: int) -> int:
        """Hosts the sweep may add so that silent targets still finish in time.

        Counts every host of the pooled phases in this session as if all of
        its primary ports time out, leaving part of the deadline for HTTP
        verification and secondary ports.
        """
        ports = len(dict.fromkeys(self.config.primary_ports)) or 1
        rounds = int(session.timeout * PROBE_BUDGET_SHARE / self.config.tcp_timeout)
        budget = rounds * self.config.pool_size // ports

        reserved = priority
        if "adjacent" in session.phases:
            reserved += len(self._adjacent_targets(network))
        if "wide" in session.phases:
            reserved += len(self._wide_targets(network))
        return max(budget - reserved, 0)

    async def _phase_network(self, session: ScanSession) -> None:
        network = await self._local_network(session)
        if network is None:
            raise TransportUnavailableError("not connected to a local network")
        suffixes = self.config.priority_host_suffixes
        priority = plan_targets(network, suffixes)
        sweep: list[str] = []
        if self.config.sweep_local_subnet:
            sweep = plan_targets(network, suffixes, sweep=True)[len(priority):]
            limit = self._sweep_limit(session, network, len(priority))
            if limit < len(sweep):
                logger.info(
                    "Sweep of %s limited to %d of %d hosts by the %.1fs deadline",
                    network,
                    limit,
                    len(sweep),
                    session.timeout,
                )
                session.progress(f"Network sweep limited to {limit} of {len(sweep)} hosts")
                sweep = sweep[:limit]

        session.progress(f"Scanning {network} for network cameras...")
        await self._scan_hosts(session, "Network", priority)
        # queued behind the priority hosts of the other phases
        if sweep:
            await self._scan_hosts(session, "Network sweep", sweep)

    async def _phase_adjacent(self, session: ScanSession) -> None:
        network = await self._local_network(session)
        if network is None:
            raise TransportUnavailableError("not connected to a local network")
        session.progress("Scanning adjacent subnets...")
        await self._scan_hosts(session, "Adjacent subnet", self._adjacent_targets(network))

    async def _phase_wide(self, session: ScanSession) -> None:
        targets = self._wide_targets(await self._local_network(session))
        session.progress(f"Wide-range scan of {len(targets)} common camera addresses...")
        await self._scan_hosts(session, "Wide-range", targets)

    async def _scan_hosts(
        self, session: ScanSession, label: str, hosts: list[str]
    ) -> None:
        total = len(hosts)
        scanned = 0
        interval = self.config.progress_interval

        async def scan_one(host: str) -> None:
            nonlocal scanned
            record = await self._scan_host(host)
            if record is not None:
                session.emit(record)
            scanned += 1
            if scanned % interval == 0 or scanned == total:
                session.progress(f"{label} scan progress: {scanned}/{total}")

        await asyncio.gather(*(scan_one(host) for host in hosts))
        session.progress(f"{label} scan completed")

    async def _scan_host(self, host: str) -> DeviceRecord | None:
        """Primary ports first, secondary only if the host answered at all."""
        primary = await self._probe_ports(host, self.config.primary_ports)
        record = await self._verify_open_ports(host, primary)
        if record is not None:
            return record
        if all(state is PortState.TIMEOUT for state in primary.values()):
            return None
        secondary_ports = [p for p in self.config.secondary_ports if p not in primary]
        secondary = await self._probe_ports(host, secondary_ports)
        return await self._verify_open_ports(host, secondary)

    async def _probe_ports(self, host: str, ports: Sequence[int]) -> dict[int, PortState]:
        ports = list(dict.fromkeys(ports))
        states = await asyncio.gather(
            *(
                self._pooled(self._port_probe, host, port, self.config.tcp_timeout)
                for port in ports
            )
        )
        return dict(zip(ports, states))

    async def _verify_open_ports(
        self, host: str, states: dict[int, PortState]
    ) -> DeviceRecord | None:
        for port, state in states.items():
            if state is not PortState.OPEN:
                continue
            record = await self._verify_http(host, port)
            if record is not None:
                return record
        return None

    async def _verify_http(self, host: str, port: int) -> DeviceRecord | None:
        for path in self.config.http_paths:
            evidence = await self._pooled(self._http.fingerprint, host, port, path)
            if evidence.transport_error:
                break
            verdict = verify_http_camera(evidence)
            if verdict is not None:
                logger.debug("Verified camera at %s:%d%s", host, port, path)
                return records.http_record(evidence, verdict)
        return None

    # -- WiFi phases ------------------------------------------------------

    async def _wifi_networks(self, session: ScanSession) -> list[WifiNetwork]:
        async def load() -> list[WifiNetwork]:
            try:
                return await self._wifi.scan()
            except PermissionError as exc:
                logger.info("WiFi scan not permitted: %s", exc)
                session.progress("Insufficient WiFi scan permissions, using cached results")
            except WifiScanError as exc:
                logger.info("WiFi scan failed: %s", exc)
                session.progress("WiFi scan restricted, using cached results")
            return await self._wifi.cached()

        return await session.memo("wifi", load)

    async def _phase_wifi(self, session: ScanSession) -> None:
        session.progress("Scanning for cameras in WiFi networks...")
        for network in await self._wifi_networks(session):
            if is_camera_access_point(network.ssid, network.bssid):
                continue
            if classify_ssid(network.ssid, network.bssid) is SsidClass.LIKELY_CAMERA:
                session.emit(records.wifi_record(network))

    async def _phase_hotspot(self, session: ScanSession) -> None:
        session.progress("Looking for camera hotspots...")
        for network in await self._wifi_networks(session):
            if is_camera_access_point(network.ssid, network.bssid):
                session.emit(records.hotspot_record(network))

    # -- other transports -------------------------------------------------

    async def _phase_bluetooth(self, session: ScanSession) -> None:
        session.progress("Scanning for Bluetooth cameras...")
        if not await self._bluetooth.is_available():
            raise BluetoothUnavailableError("adapter missing or powered off")
        try:
            bonded = await self._bluetooth.bonded_devices()
        except PermissionError as exc:
            logger.info("Bluetooth bonded list not permitted: %s", exc)
            session.progress("Missing Bluetooth permissions, cannot get paired devices")
            bonded = []
        for device in bonded:
            if is_bluetooth_camera(device.name):
                session.emit(records.bluetooth_record(device))

        timeout = self.config.bluetooth_timeout
        try:
            found = await asyncio.wait_for(
                self._bluetooth.discover(timeout), timeout=timeout + DISCOVERY_GRACE
            )
        except PermissionError as exc:
            logger.info("Bluetooth discovery not permitted: %s", exc)
            session.progress("Missing Bluetooth permissions, cannot scan for new devices")
            return
        except (asyncio.TimeoutError, TimeoutError):
            session.progress("Bluetooth discovery timed out")
            return

        for device in found:
            if is_bluetooth_camera(device.name):
                session.emit(records.bluetooth_record(device))
        session.progress("Bluetooth scan completed")

    async def _phase_upnp(self, session: ScanSession) -> None:
        session.progress("Scanning for UPnP camera devices...")
        replies = await self._ssdp(self.config.ssdp_timeout)
        first_by_host: dict[str, SsdpReply] = {}
        for reply in replies:
            first_by_host.setdefault(reply.address, reply)
        await asyncio.gather(
            *(self._inspect_upnp(session, reply) for reply in first_by_host.values())
        )
        session.progress(f"UPnP scan finished ({len(first_by_host)} devices answered)")

    async def _inspect_upnp(self, session: ScanSession, reply: SsdpReply) -> None:
        text = reply.text
        port = 0
        location = reply.location
        if location:
            try:
                port = urlsplit(location).port or 80
            except ValueError:
                location = None
        if location and self.config.fetch_upnp_descriptions:
            description = await self._pooled(self._http.fetch_text, location)
            if description:
                text = f"{text}\n{description}"
        if not is_upnp_camera(text):
            return

        has_permission = False
        if port:
            evidence = await self._pooled(self._http.fingerprint, reply.address, port, "/", "GET")
            has_permission = evidence.outcome is HttpOutcome.OK
        session.emit(
            records.upnp_record(
                reply.address,
                extract_xml_field(text, "friendlyName"),
                extract_xml_field(text, "manufacturer"),
                extract_xml_field(text, "modelName"),
                port=port,
                has_permission=has_permission,
            )
        )

    async def _phase_mdns(self, session: ScanSession) -> None:
        session.progress("Browsing mDNS for camera services...")
        timeout = self.config.mdns_timeout
        zeroconf = Zeroconf()
        listener = CameraServiceListener(timeout)
        for service in MDNS_SERVICE_TYPES:
            ServiceBrowser(zeroconf, service, listener)
        try:
            await asyncio.sleep(timeout)
        finally:
            await asyncio.to_thread(zeroconf.close)
        for record in listener.records():
            session.emit(record)

    async def _phase_local(self, session: ScanSession) -> None:
        session.progress("Enumerating local cameras...")
        for camera in await self._local_cameras.list_cameras():
            readable = os.access(camera.device, os.R_OK)
            session.emit(records.local_record(camera, readable))
