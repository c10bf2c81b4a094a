from __future__ import annotations

from .access import AccessTester
from .detector import CameraDetector
from .heuristics import (
    classify_ssid,
    is_bluetooth_camera,
    is_camera_access_point,
    lookup_manufacturer,
    verify_http_camera,
)
from .listener import CollectingListener, ScanListener
from .mock_camera import MockCamera, run_mock_camera
from .network import detect_local_network
from .probes import HttpProber, ssdp_probe, tcp_probe
from .session import ScanSession, SessionState

__all__ = [
    "AccessTester",
    "CameraDetector",
    "CollectingListener",
    "HttpProber",
    "MockCamera",
    "ScanListener",
    "ScanSession",
    "SessionState",
    "classify_ssid",
    "detect_local_network",
    "is_bluetooth_camera",
    "is_camera_access_point",
    "lookup_manufacturer",
    "run_mock_camera",
    "ssdp_probe",
    "tcp_probe",
    "verify_http_camera",
]
