"""Host collaborators consumed by the detector: WiFi, Bluetooth, local cameras."""

from __future__ import annotations

from .bluetooth import BleakBluetoothAdapter, BluetoothAdapter
from .errors import (
    BluetoothUnavailableError,
    TransportUnavailableError,
    WifiScanError,
    WifiUnavailableError,
)
from .local import LocalCameraProvider, V4L2CameraProvider
from .wifi import NmcliWifiProvider, StaticWifiProvider, WifiScanProvider

__all__ = [
    "BleakBluetoothAdapter",
    "BluetoothAdapter",
    "BluetoothUnavailableError",
    "LocalCameraProvider",
    "NmcliWifiProvider",
    "StaticWifiProvider",
    "TransportUnavailableError",
    "V4L2CameraProvider",
    "WifiScanError",
    "WifiScanProvider",
    "WifiUnavailableError",
]
