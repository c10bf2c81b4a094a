"""Data models for camscout."""

from camscout.models.device import DeviceKind, DeviceRecord, ScanReport
from camscout.models.evidence import (
    BluetoothDeviceInfo,
    CameraVerdict,
    HttpEvidence,
    HttpOutcome,
    LocalCamera,
    PortState,
    SsdpReply,
    SsidClass,
    WifiNetwork,
)

__all__ = [
    "BluetoothDeviceInfo",
    "CameraVerdict",
    "DeviceKind",
    "DeviceRecord",
    "HttpEvidence",
    "HttpOutcome",
    "LocalCamera",
    "PortState",
    "ScanReport",
    "SsdpReply",
    "SsidClass",
    "WifiNetwork",
]
