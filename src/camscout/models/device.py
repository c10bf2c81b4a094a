from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class DeviceKind(str, Enum):
    LOCAL = "local"
    NETWORK = "network"
    BLUETOOTH = "bluetooth"


class DeviceRecord(BaseModel):
    """A discovered camera, whatever technique found it."""

    model_config = {"frozen": True, "extra": "forbid"}

    id: str
    name: str
    kind: DeviceKind
    ip_address: str | None = None
    port: int = Field(default=0, ge=0, le=65535)
    manufacturer: str | None = None
    model: str | None = None
    accessible: bool = False
    has_permission: bool = False
    description: str = ""

    @model_validator(mode="before")
    @classmethod
    def _permission_requires_access(cls, data: Any) -> Any:
        # permission is meaningless without access
        if isinstance(data, dict) and not data.get("accessible", False):
            data = {**data, "has_permission": False}
        return data

    def with_access(self, accessible: bool, has_permission: bool) -> DeviceRecord:
        """Return a validated copy with refreshed access flags."""
        data = self.model_dump()
        data.update(accessible=accessible, has_permission=has_permission)
        return DeviceRecord.model_validate(data)

    @property
    def address(self) -> str:
        if self.ip_address and self.port:
            return f"{self.ip_address}:{self.port}"
        return self.ip_address or ""


class ScanReport(BaseModel):
    model_config = {"extra": "forbid"}

    scan_timestamp: datetime
    network: str
    phases: list[str] = Field(default_factory=list)
    timed_out: bool = False
    devices: list[DeviceRecord]
