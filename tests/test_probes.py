"""Probes and the access tester against the mock camera on localhost."""

from __future__ import annotations

import asyncio

from camscout.core import AccessTester, HttpProber, MockCamera, tcp_probe
from camscout.core.heuristics import verify_http_camera
from camscout.core.probes import build_msearch, parse_ssdp_headers
from camscout.models import (
    BluetoothDeviceInfo,
    DeviceKind,
    DeviceRecord,
    HttpOutcome,
    PortState,
)


def test_tcp_probe_open_and_closed():
    async def run() -> tuple[PortState, PortState]:
        camera = MockCamera(port=0)
        await camera.start()
        port = camera.bound_port
        try:
            opened = await tcp_probe("127.0.0.1", port, 1.0)
        finally:
            await camera.stop()
        closed = await tcp_probe("127.0.0.1", port, 1.0)
        return opened, closed

    opened, closed = asyncio.run(run())
    assert opened is PortState.OPEN
    assert closed is PortState.CLOSED


def test_fingerprint_mock_camera():
    async def run():
        camera = MockCamera(port=0, server_header="Hikvision-Webs")
        await camera.start()
        prober = HttpProber(2.0)
        try:
            root = await prober.fingerprint("127.0.0.1", camera.bound_port, "/")
            snap = await prober.fingerprint(
                "127.0.0.1", camera.bound_port, "/snap.jpg", "GET"
            )
        finally:
            await prober.close()
            await camera.stop()
        return camera, root, snap

    camera, root, snap = asyncio.run(run())
    assert root.status == 200
    assert root.method == "HEAD"
    assert root.server == "Hikvision-Webs"
    assert snap.content_type == "image/jpeg"
    assert ("HEAD", "/") in camera.requests

    verdict = verify_http_camera(root)
    assert verdict is not None
    assert verdict.manufacturer == "Hikvision"


def test_fingerprint_auth_realm():
    async def run():
        camera = MockCamera(port=0, server_header=None, realm="DVR")
        await camera.start()
        prober = HttpProber(2.0)
        try:
            return await prober.fingerprint("127.0.0.1", camera.bound_port, "/")
        finally:
            await prober.close()
            await camera.stop()

    evidence = asyncio.run(run())
    assert evidence.outcome is HttpOutcome.REQUIRES_AUTH
    assert evidence.www_authenticate == 'Basic realm="DVR"'
    assert verify_http_camera(evidence) is not None


def test_fingerprint_retries_with_get_when_head_is_rejected():
    async def run():
        camera = MockCamera(port=0, server_header="Dahua Rtsp Server", allow_head=False)
        await camera.start()
        prober = HttpProber(2.0)
        try:
            evidence = await prober.fingerprint("127.0.0.1", camera.bound_port, "/")
        finally:
            await prober.close()
            await camera.stop()
        return camera, evidence

    camera, evidence = asyncio.run(run())
    assert camera.requests == [("HEAD", "/"), ("GET", "/")]
    assert evidence.method == "GET"
    assert evidence.status == 200
    assert evidence.outcome is HttpOutcome.OK


def test_fingerprint_connection_refused_is_transport_error():
    async def run():
        camera = MockCamera(port=0)
        await camera.start()
        port = camera.bound_port
        await camera.stop()
        prober = HttpProber(1.0)
        try:
            return await prober.fingerprint("127.0.0.1", port, "/")
        finally:
            await prober.close()

    evidence = asyncio.run(run())
    assert evidence.transport_error is True
    assert evidence.outcome is HttpOutcome.UNREACHABLE


def test_msearch_and_reply_headers():
    request = build_msearch().decode("ascii")
    assert request.startswith("M-SEARCH * HTTP/1.1\r\n")
    assert "ST: upnp:rootdevice\r\n" in request
    assert 'MAN: "ssdp:discover"' in request

    headers = parse_ssdp_headers(
        "HTTP/1.1 200 OK\r\nLOCATION: http://10.0.0.5:49152/desc.xml\r\nST: upnp:rootdevice\r\n"
    )
    assert headers["location"] == "http://10.0.0.5:49152/desc.xml"
    assert headers["st"] == "upnp:rootdevice"


class FakeBluetooth:
    async def is_available(self):
        return True

    async def bonded_devices(self):
        return [BluetoothDeviceInfo(address="00:12:16:00:00:01", name="Cam", bonded=True)]

    async def discover(self, timeout):
        return []


def _network_record(port: int, ip: str | None = "127.0.0.1") -> DeviceRecord:
    return DeviceRecord(
        id=f"{ip}:{port}",
        name="Network Camera",
        kind=DeviceKind.NETWORK,
        ip_address=ip,
        port=port,
        accessible=True,
        has_permission=True,
    )


def test_access_tester_network_records():
    async def run():
        open_camera = MockCamera(port=0)
        locked_camera = MockCamera(port=0, realm="IP Camera")
        await open_camera.start()
        await locked_camera.start()
        prober = HttpProber(2.0)
        tester = AccessTester(prober, FakeBluetooth())
        try:
            return (
                await tester.test(_network_record(open_camera.bound_port)),
                await tester.test(_network_record(locked_camera.bound_port)),
                await tester.test(hotspot),
                open_camera.requests,
            )
        finally:
            await prober.close()
            await open_camera.stop()
            await locked_camera.stop()

    hotspot = DeviceRecord(
        id="hotspot_AA:BB:CC:00:11:22",
        name="Camera Hotspot: HDWiFiCam-1234",
        kind=DeviceKind.NETWORK,
        accessible=True,
    )

    opened, locked, tested_hotspot, requests = asyncio.run(run())
    assert (opened.accessible, opened.has_permission) == (True, True)
    assert (locked.accessible, locked.has_permission) == (True, False)
    # nothing to re-check without an address; the sighting stays as found
    assert tested_hotspot == hotspot
    # read-only: a single GET of the root page
    assert requests == [("GET", "/")]


def test_access_tester_bluetooth_and_local():
    bonded = DeviceRecord(id="00:12:16:00:00:01", name="Cam", kind=DeviceKind.BLUETOOTH)
    stranger = DeviceRecord(id="01:02:03:04:05:06", name="Cam", kind=DeviceKind.BLUETOOTH)
    local = DeviceRecord(id="local_video-missing", name="Webcam", kind=DeviceKind.LOCAL)

    async def run():
        prober = HttpProber(1.0)
        tester = AccessTester(prober, FakeBluetooth())
        try:
            return [await tester.test(r) for r in (bonded, stranger, local)]
        finally:
            await prober.close()

    tested_bonded, tested_stranger, tested_local = asyncio.run(run())
    assert tested_bonded.accessible is True
    assert tested_bonded.has_permission is False
    assert tested_stranger.accessible is False
    assert tested_local.accessible is False
    # input records are untouched
    assert bonded.accessible is False
