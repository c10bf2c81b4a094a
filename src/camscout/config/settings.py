from __future__ import annotations

import json
import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .paths import default_config_path, default_data_dir, expand_path

CONFIG_ENV_VAR = "CAMSCOUT_CONFIG"

DEFAULT_PHASES = (
    "wifi",
    "network",
    "adjacent",
    "wide",
    "bluetooth",
    "upnp",
    "hotspot",
)
OPTIONAL_PHASES = ("mdns", "local")
ALL_PHASES = DEFAULT_PHASES + OPTIONAL_PHASES


class DatabaseConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    path: str = Field(default_factory=lambda: str(default_data_dir()))


class ScanningConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    pool_size: int = Field(default=20, ge=1, le=256)
    global_timeout: float = Field(default=60.0, gt=0)
    tcp_timeout: float = Field(default=1.5, gt=0)
    http_timeout: float = Field(default=2.0, gt=0)
    ssdp_timeout: float = Field(default=8.0, gt=0)
    wifi_timeout: float = Field(default=10.0, gt=0)
    bluetooth_timeout: float = Field(default=10.0, gt=0)
    mdns_timeout: float = Field(default=5.0, gt=0)

    primary_ports: list[int] = Field(default_factory=lambda: [80, 8080, 8000, 81, 88])
    secondary_ports: list[int] = Field(
        default_factory=lambda: [
            554, 1935, 8888, 9000, 8081, 8082, 8083, 82, 83, 84, 85,
            8001, 8002, 8003, 8004, 8005, 1024, 1025, 1026, 1027, 1028,
            1029, 1030, 1031, 1032,
        ]
    )  # fmt: skip
    http_paths: list[str] = Field(
        default_factory=lambda: [
            "/",
            "/index.html",
            "/onvif/device_service",
            "/cgi-bin/snapshot.cgi",
            "/snap.jpg",
            "/mjpg/video.mjpg",
            "/axis-cgi/jpg/image.cgi",
            "/videostream.cgi",
        ]
    )
    http_method: Literal["HEAD", "GET"] = "HEAD"

    priority_host_suffixes: list[int] = Field(
        default_factory=lambda: [1, 10, 20, 64, 100, 101, 254]
    )
    sweep_local_subnet: bool = True
    default_network: str | None = None
    wide_range_networks: list[str] = Field(
        default_factory=lambda: [
            "192.168.0.0/24",
            "192.168.1.0/24",
            "192.168.2.0/24",
            "192.168.100.0/24",
            "10.0.0.0/24",
            "10.1.1.0/24",
            "172.16.0.0/24",
        ]
    )
    vendor_default_hosts: list[str] = Field(
        default_factory=lambda: ["192.168.1.64", "192.168.1.108", "192.168.0.90"]
    )
    fetch_upnp_descriptions: bool = True
    phases: list[str] = Field(default_factory=lambda: list(DEFAULT_PHASES))
    progress_interval: int = Field(default=25, ge=1)

    @field_validator("primary_ports", "secondary_ports")
    @classmethod
    def _check_ports(cls, ports: list[int]) -> list[int]:
        for port in ports:
            if not 1 <= port <= 65535:
                raise ValueError(f"port out of range: {port}")
        return ports

    @field_validator("phases")
    @classmethod
    def _check_phases(cls, phases: list[str]) -> list[str]:
        unknown = [name for name in phases if name not in ALL_PHASES]
        if unknown:
            raise ValueError(f"unknown scan phases: {', '.join(unknown)}")
        return phases

    @model_validator(mode="after")
    def _check_probe_timeouts(self) -> ScanningConfig:
        # a single probe must never outlast the whole scan
        for name in ("tcp_timeout", "http_timeout"):
            if getattr(self, name) >= self.global_timeout:
                raise ValueError(f"{name} must be shorter than global_timeout")
        return self


class Settings(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    scanning: ScanningConfig = Field(default_factory=ScanningConfig)


def resolve_config_path(allow_missing: bool = False) -> tuple[Path, bool]:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = expand_path(env_path)
        if not allow_missing and not path.exists():
            raise FileNotFoundError(f"{CONFIG_ENV_VAR} points to missing file: {path}")
        return path, path.exists()

    path = default_config_path()
    return path, path.exists()


def load_settings(path: Path) -> Settings:
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in config file: {path}\n{exc}") from exc

    try:
        return Settings.model_validate(data or {})
    except ValidationError as exc:
        raise ValueError(f"Invalid config file: {path}\n{exc}") from exc


@lru_cache
def get_settings() -> Settings:
    path, exists = resolve_config_path(allow_missing=False)
    if exists:
        return load_settings(path)
    return Settings()


def data_dir_from_settings(settings: Settings) -> Path:
    return expand_path(settings.database.path)


def _toml_value(value: object) -> str:
    # JSON scalars and flat arrays are valid TOML
    if isinstance(value, bool):
        return "true" if value else "false"
    return json.dumps(value)


def render_settings_toml(settings: Settings) -> str:
    lines = [
        "# camscout configuration",
        "",
        "[database]",
        f"path = {_toml_value(settings.database.path)}",
        "",
        "[scanning]",
    ]
    for key, value in settings.scanning.model_dump().items():
        if value is None:
            lines.append(f"# {key} is auto-detected when unset")
            continue
        lines.append(f"{key} = {_toml_value(value)}")
    lines.append("")
    return "\n".join(lines)


def write_settings(settings: Settings, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_settings_toml(settings))
