from __future__ import annotations

import asyncio

from camscout.platform import V4L2CameraProvider
from camscout.platform.bluetooth import parse_bluetoothctl_devices
from camscout.platform.wifi import (
    parse_nmcli_output,
    signal_percent_to_dbm,
    split_nmcli_line,
)


def test_split_nmcli_line_keeps_escaped_colons():
    line = r"HDWiFiCam-1234:AA\:BB\:CC\:00\:11\:22:70:2437 MHz"
    assert split_nmcli_line(line) == ["HDWiFiCam-1234", "AA:BB:CC:00:11:22", "70", "2437 MHz"]


def test_parse_nmcli_output():
    output = "\n".join(
        [
            r"IPC0001:00\:12\:16\:aa\:bb\:cc:80:2412 MHz",
            r":11\:22\:33\:44\:55\:66:40:5180 MHz",
            r"Home:12\:34\:56\:78\:9a\:bc:n/a:",
            "",
        ]
    )
    networks = parse_nmcli_output(output)

    assert [n.ssid for n in networks] == ["IPC0001", "Home"]
    assert networks[0].bssid == "00:12:16:AA:BB:CC"
    assert networks[0].level == -60
    assert networks[0].frequency == 2412
    assert networks[1].level == -100
    assert networks[1].frequency == 0


def test_signal_percent_to_dbm_is_clamped():
    assert signal_percent_to_dbm(100) == -50
    assert signal_percent_to_dbm(0) == -100
    assert signal_percent_to_dbm(250) == -50


def test_parse_bluetoothctl_devices():
    output = (
        "Device 00:12:16:00:00:01 Doorbell Cam\n"
        "Device 01:02:03:04:05:06\n"
        "[CHG] Controller 11:22:33:44:55:66 Discovering: yes\n"
    )
    devices = parse_bluetoothctl_devices(output)

    assert [d.address for d in devices] == ["00:12:16:00:00:01", "01:02:03:04:05:06"]
    assert devices[0].name == "Doorbell Cam"
    assert devices[1].name is None
    assert all(d.bonded for d in devices)


def test_v4l2_provider_skips_metadata_nodes(tmp_path):
    sysfs = tmp_path / "video4linux"
    for node, name, index in (
        ("video0", "Integrated Camera: Front", "0"),
        ("video1", "Integrated Camera: Front", "1"),
        ("video2", "USB Webcam", "0"),
    ):
        (sysfs / node).mkdir(parents=True)
        (sysfs / node / "name").write_text(f"{name}\n")
        (sysfs / node / "index").write_text(f"{index}\n")

    provider = V4L2CameraProvider(sysfs=sysfs, dev=tmp_path / "dev")
    cameras = asyncio.run(provider.list_cameras())

    assert [c.device for c in cameras] == [
        str(tmp_path / "dev" / "video0"),
        str(tmp_path / "dev" / "video2"),
    ]
    assert cameras[0].facing == "front"
    assert cameras[1].facing == "external"


def test_v4l2_provider_without_sysfs(tmp_path):
    provider = V4L2CameraProvider(sysfs=tmp_path / "missing")
    assert asyncio.run(provider.list_cameras()) == []
