"""camscout - find cameras on the network, over WiFi and Bluetooth, and check what is reachable."""

from __future__ import annotations

from importlib.metadata import version

from .config import DatabaseConfig, ScanningConfig, Settings, get_settings
from .core import AccessTester, CameraDetector, CollectingListener, ScanListener
from .models import DeviceKind, DeviceRecord, ScanReport
from .storage import Database

__all__ = [
    "AccessTester",
    "CameraDetector",
    "CollectingListener",
    "Database",
    "DatabaseConfig",
    "DeviceKind",
    "DeviceRecord",
    "ScanListener",
    "ScanReport",
    "ScanningConfig",
    "Settings",
    "__version__",
    "get_settings",
]

__version__ = version("camscout")
