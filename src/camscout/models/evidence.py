"""Evidence produced by individual probes and collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class PortState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    TIMEOUT = "timeout"


class HttpOutcome(str, Enum):
    OK = "ok"
    REQUIRES_AUTH = "requires_auth"
    UNREACHABLE = "unreachable"

    @classmethod
    def classify(cls, status: int | None) -> HttpOutcome:
        if status == 200:
            return cls.OK
        if status in (401, 403):
            return cls.REQUIRES_AUTH
        return cls.UNREACHABLE


class SsidClass(str, Enum):
    LIKELY_CAMERA = "likely_camera"
    LIKELY_ROUTER = "likely_router"
    UNKNOWN = "unknown"


@dataclass
class HttpEvidence:
    host: str
    port: int
    path: str
    method: str
    status: int | None = None
    server: str | None = None
    content_type: str | None = None
    www_authenticate: str | None = None
    transport_error: bool = False

    @property
    def outcome(self) -> HttpOutcome:
        return HttpOutcome.classify(self.status)


@dataclass
class CameraVerdict:
    """Why an HTTP response was accepted as a camera."""

    has_permission: bool
    manufacturer: str | None = None
    reasons: list[str] = field(default_factory=list)


@dataclass
class SsdpReply:
    address: str
    text: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def location(self) -> str | None:
        return self.headers.get("location")


@dataclass
class WifiNetwork:
    ssid: str
    bssid: str
    level: int
    frequency: int


@dataclass
class BluetoothDeviceInfo:
    address: str
    name: str | None
    bonded: bool = False
    device_class: int | None = None


@dataclass
class LocalCamera:
    device: str
    name: str
    facing: str = "external"
