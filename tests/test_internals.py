"""Tests for internal modules."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from camscout.config import (
    DATA_DIR_ENV_VAR,
    ScanningConfig,
    Settings,
    default_config_path,
    default_data_dir,
    load_settings,
    write_settings,
)
from camscout.core.network import (
    adjacent_networks,
    plan_targets,
    priority_hosts,
    same_network,
)
from camscout.models import DeviceKind, DeviceRecord
from camscout.storage import Database
from camscout.utils.logging import resolve_level
from camscout.utils.redaction import Redactor


def _record(**kwargs) -> DeviceRecord:
    base = {
        "id": "192.168.1.64:80",
        "name": "Hikvision Camera (192.168.1.64)",
        "kind": DeviceKind.NETWORK,
        "ip_address": "192.168.1.64",
        "port": 80,
        "manufacturer": "Hikvision",
        "accessible": True,
        "has_permission": True,
    }
    base.update(kwargs)
    return DeviceRecord(**base)


def test_config_roundtrip(tmp_path):
    path = tmp_path / "config.toml"
    settings = Settings(
        scanning=ScanningConfig(
            default_network="10.0.0.0/24",
            phases=["network", "mdns"],
            http_method="GET",
        )
    )
    write_settings(settings, path)

    loaded = load_settings(path)
    assert loaded == settings


def test_config_roundtrip_keeps_auto_detect(tmp_path):
    path = tmp_path / "config.toml"
    write_settings(Settings(), path)

    loaded = load_settings(path)
    assert loaded.scanning.default_network is None
    assert loaded.scanning.global_timeout == 60.0


def test_config_rejects_unknown_phase(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[scanning]\nphases = ["network", "teleport"]\n')

    with pytest.raises(ValueError, match="teleport"):
        load_settings(path)


def test_config_rejects_invalid_toml(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[scanning\n")

    with pytest.raises(ValueError, match="Invalid TOML"):
        load_settings(path)


def test_config_rejects_bad_port():
    with pytest.raises(ValidationError):
        ScanningConfig(primary_ports=[80, 70000])


def test_config_rejects_probe_timeout_beyond_deadline():
    with pytest.raises(ValidationError, match="tcp_timeout must be shorter"):
        ScanningConfig(global_timeout=1.0, tcp_timeout=1.5, http_timeout=0.5)
    with pytest.raises(ValidationError, match="http_timeout must be shorter"):
        ScanningConfig(global_timeout=2.0, tcp_timeout=0.5)


def test_permission_requires_access():
    record = _record(accessible=False, has_permission=True)
    assert record.has_permission is False

    refreshed = _record().with_access(False, True)
    assert (refreshed.accessible, refreshed.has_permission) == (False, False)


def test_record_is_immutable():
    record = _record()
    with pytest.raises(ValidationError):
        record.name = "other"  # type: ignore[misc]


def test_scan_roundtrip(tmp_path):
    db = Database(tmp_path)

    db.save_devices([_record()], network="192.168.1.0/24", phases=["network"])

    result = db.load_current_scan()
    assert result is not None
    assert db.current_scan_path == tmp_path / "scans" / "current.json"
    assert len(result.devices) == 1
    assert result.devices[0] == _record()
    assert result.network == "192.168.1.0/24"
    assert result.phases == ["network"]


def test_load_scan_without_file(tmp_path):
    assert Database(tmp_path).load_current_scan() is None


def test_priority_hosts_order():
    hosts = priority_hosts("192.168.1.0/24", [1, 10, 20, 64, 100, 101, 254])
    assert hosts == [
        "192.168.1.1",
        "192.168.1.10",
        "192.168.1.20",
        "192.168.1.64",
        "192.168.1.100",
        "192.168.1.101",
        "192.168.1.254",
    ]


def test_plan_targets_sweeps_without_duplicates():
    targets = plan_targets("10.0.0.0/24", [1, 254], sweep=True)
    assert targets[:2] == ["10.0.0.1", "10.0.0.254"]
    assert len(targets) == 254
    assert len(set(targets)) == 254


def test_adjacent_networks():
    assert adjacent_networks("192.168.1.0/24") == ["192.168.0.0/24", "192.168.2.0/24"]
    assert adjacent_networks("10.0.0.0/24") == ["10.0.1.0/24"]
    assert same_network("192.168.1.7/24", "192.168.1.0/24")


def test_redactor_masks_ids():
    redactor = Redactor()
    assert redactor.redact_ip("192.168.1.64") == "x.x.x.64"
    assert redactor.redact_id("upnp_192.168.1.64") == "upnp_x.x.x.64"
    assert redactor.redact_id("hotspot_aa:bb:cc:00:11:22") == "hotspot_AA:BB:CC:xx:xx:01"
    assert redactor.redact_id("192.168.1.64:80") == "x.x.x.64:80"
    assert Redactor(enabled=False).redact_id("upnp_10.0.0.1") == "upnp_10.0.0.1"


def test_data_dir_override(tmp_path, monkeypatch):
    monkeypatch.setenv(DATA_DIR_ENV_VAR, str(tmp_path / "scans-here"))
    assert default_data_dir() == tmp_path / "scans-here"
    assert Settings().database.path == str(tmp_path / "scans-here")


def test_relative_xdg_home_is_ignored(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", "relative/dir")
    monkeypatch.setenv("HOME", str(tmp_path))
    assert default_config_path() == tmp_path / ".config" / "camscout" / "config.toml"

    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    assert default_config_path() == tmp_path / "xdg" / "camscout" / "config.toml"


def test_log_level_resolution(monkeypatch):
    monkeypatch.delenv("LOGLEVEL", raising=False)
    assert resolve_level() == "INFO"
    assert resolve_level("debug") == "DEBUG"
    monkeypatch.setenv("LOGLEVEL", "warning")
    assert resolve_level() == "WARNING"
    monkeypatch.setenv("LOGLEVEL", "chatty")
    assert resolve_level() == "INFO"
