from __future__ import annotations

from typer.testing import CliRunner

import camscout.cli.access as access_cmd
import camscout.cli.scan as scan_cmd
from camscout.cli.app import app
from camscout.config import (
    CONFIG_ENV_VAR,
    DatabaseConfig,
    ScanningConfig,
    Settings,
    get_settings,
    write_settings,
)
from camscout.core import ScanSession
from camscout.models import DeviceKind, DeviceRecord
from camscout.storage import Database

CAMERA = DeviceRecord(
    id="192.168.1.64:80",
    name="Hikvision Camera (192.168.1.64)",
    kind=DeviceKind.NETWORK,
    ip_address="192.168.1.64",
    port=80,
    manufacturer="Hikvision",
    accessible=True,
    has_permission=False,
)


def _configure(tmp_path, monkeypatch):
    data_dir = tmp_path / "data"
    config_path = tmp_path / "config.toml"
    write_settings(
        Settings(
            database=DatabaseConfig(path=str(data_dir)),
            scanning=ScanningConfig(default_network="192.168.1.0/24"),
        ),
        config_path,
    )
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_path))
    get_settings.cache_clear()
    return data_dir


def _fake_scan(calls: list):
    async def fake_run_scan(config, listener, phases, timeout):
        calls.append((phases, timeout))
        session = ScanSession(listener, phases or ["network"], timeout or 5.0)
        session.start()
        session.progress("Scanning 192.168.1.0/24 for network cameras...")
        session.emit(CAMERA)
        for name in session.phases:
            session.phase_finished(name)
        return session

    return fake_run_scan


def test_version():
    result = CliRunner().invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.stdout.startswith("camscout version ")


def test_scan_prints_and_saves_devices(tmp_path, monkeypatch):
    data_dir = _configure(tmp_path, monkeypatch)
    calls: list = []
    monkeypatch.setattr(scan_cmd, "run_scan", _fake_scan(calls))

    result = CliRunner().invoke(
        app, ["scan", "--phase", "network", "--phase", "upnp", "--timeout", "12"]
    )

    assert result.exit_code == 0
    assert calls == [(["network", "upnp"], 12.0)]
    assert "Found Hikvision Camera (192.168.1.64)" in result.stdout
    assert "Found 1 device(s)" in result.stdout

    report = Database(data_dir).load_current_scan()
    assert report is not None
    assert report.devices == [CAMERA]
    assert report.phases == ["network", "upnp"]
    assert report.network == "192.168.1.0/24"


def test_scan_redacts_addresses(tmp_path, monkeypatch):
    _configure(tmp_path, monkeypatch)
    monkeypatch.setattr(scan_cmd, "run_scan", _fake_scan([]))

    result = CliRunner().invoke(app, ["scan", "--redact", "--no-save"])

    assert result.exit_code == 0
    assert "192.168.1.64" not in result.stdout
    assert "x.x.x.64" in result.stdout


def test_scan_with_invalid_config_exits(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text('[scanning]\nphases = ["teleport"]\n')
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_path))

    result = CliRunner().invoke(app, ["scan"])
    assert result.exit_code == 1


def test_access_without_scan_exits(tmp_path, monkeypatch):
    _configure(tmp_path, monkeypatch)

    result = CliRunner().invoke(app, ["access"])
    assert result.exit_code == 1


def test_access_updates_saved_scan(tmp_path, monkeypatch):
    data_dir = _configure(tmp_path, monkeypatch)
    Database(data_dir).save_devices([CAMERA], network="192.168.1.0/24")

    async def fake_test_records(config, devices):
        return [d.with_access(True, True) for d in devices]

    monkeypatch.setattr(access_cmd, "test_records", fake_test_records)

    result = CliRunner().invoke(app, ["access", "192.168.1.64:80"])

    assert result.exit_code == 0
    report = Database(data_dir).load_current_scan()
    assert report is not None
    assert report.devices[0].has_permission is True


def test_init_and_info(tmp_path, monkeypatch):
    data_dir = _configure(tmp_path, monkeypatch)

    result = CliRunner().invoke(app, ["init"])
    assert result.exit_code == 0
    assert (data_dir / "scans").is_dir()

    result = CliRunner().invoke(app, ["info"])
    assert result.exit_code == 0
    assert "No scans recorded yet" in result.stdout


def test_config_init_and_show(tmp_path, monkeypatch):
    config_path = tmp_path / "camscout.toml"
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_path))

    result = CliRunner().invoke(app, ["config", "init"])
    assert result.exit_code == 0
    assert config_path.exists()

    get_settings.cache_clear()
    result = CliRunner().invoke(app, ["config", "show"])
    assert result.exit_code == 0
    assert f"Config source: {config_path}" in result.stdout
    assert "global_timeout = 60.0" in result.stdout


def test_config_init_refuses_to_overwrite(tmp_path, monkeypatch):
    config_path = tmp_path / "camscout.toml"
    config_path.write_text("[scanning]\n")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_path))

    result = CliRunner().invoke(app, ["config", "init"])
    assert result.exit_code == 1
    assert config_path.read_text() == "[scanning]\n"


def test_config_phases_marks_enabled(tmp_path, monkeypatch):
    config_path = tmp_path / "camscout.toml"
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_path))
    CliRunner().invoke(app, ["config", "init", "--all-phases"])
    get_settings.cache_clear()

    result = CliRunner().invoke(app, ["config", "phases"])
    assert result.exit_code == 0
    assert "* mdns (optional)" in result.stdout
    assert "* network" in result.stdout


def test_init_writes_config_pointing_at_data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    config_path = tmp_path / "xdg" / "camscout" / "config.toml"
    data_dir = tmp_path / "elsewhere"

    result = CliRunner().invoke(app, ["init", "--data-dir", str(data_dir)])

    assert result.exit_code == 0
    assert config_path.exists()
    assert (data_dir / "scans").is_dir()
    get_settings.cache_clear()
    assert get_settings().database.path == str(data_dir)
