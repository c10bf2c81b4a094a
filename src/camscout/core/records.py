"""Builders turning evidence into device records, one per discovery technique."""

from __future__ import annotations

from camscout.models import (
    BluetoothDeviceInfo,
    CameraVerdict,
    DeviceKind,
    DeviceRecord,
    HttpEvidence,
    LocalCamera,
    WifiNetwork,
)

from .heuristics import UNKNOWN_MANUFACTURER, lookup_manufacturer, normalize_mac


def _known(manufacturer: str | None) -> str | None:
    if not manufacturer or manufacturer == UNKNOWN_MANUFACTURER:
        return None
    return manufacturer


def http_record(evidence: HttpEvidence, verdict: CameraVerdict) -> DeviceRecord:
    host, port = evidence.host, evidence.port
    manufacturer = verdict.manufacturer
    if manufacturer:
        name = f"{manufacturer} Camera ({host})"
    else:
        name = f"Network Camera ({host}:{port})"

    lines = [
        f"Verified via HTTP {evidence.method} {evidence.path} "
        f"({evidence.status}): {', '.join(verdict.reasons)}"
    ]
    if evidence.server:
        lines.append(f"Server: {evidence.server}")
    if evidence.www_authenticate:
        lines.append(f"Requires authentication: {evidence.www_authenticate}")

    return DeviceRecord(
        id=f"{host}:{port}",
        name=name,
        kind=DeviceKind.NETWORK,
        ip_address=host,
        port=port,
        manufacturer=manufacturer,
        accessible=True,
        has_permission=verdict.has_permission,
        description="\n".join(lines),
    )


def _signal(network: WifiNetwork) -> str:
    return f"Signal strength: {network.level}dBm, Frequency: {network.frequency}MHz"


def wifi_record(network: WifiNetwork) -> DeviceRecord:
    return DeviceRecord(
        id=normalize_mac(network.bssid),
        name=f"WiFi Camera: {network.ssid}",
        kind=DeviceKind.NETWORK,
        manufacturer=_known(lookup_manufacturer(network.bssid)),
        accessible=True,
        has_permission=False,
        description=_signal(network),
    )


def hotspot_record(network: WifiNetwork) -> DeviceRecord:
    return DeviceRecord(
        id=f"hotspot_{normalize_mac(network.bssid)}",
        name=f"Camera Hotspot: {network.ssid}",
        kind=DeviceKind.NETWORK,
        manufacturer=_known(lookup_manufacturer(network.bssid)),
        accessible=True,
        has_permission=False,
        description=f"Camera broadcasting its own access point. {_signal(network)}",
    )


def bluetooth_record(device: BluetoothDeviceInfo) -> DeviceRecord:
    address = normalize_mac(device.address)
    pairing = "Paired" if device.bonded else "Not paired"
    description = f"MAC: {address}, Pairing status: {pairing}"
    if device.device_class is not None:
        description += f", Device class: {device.device_class}"
    return DeviceRecord(
        id=address,
        name=device.name or "Unknown Bluetooth Camera",
        kind=DeviceKind.BLUETOOTH,
        manufacturer=_known(lookup_manufacturer(address)),
        accessible=device.bonded,
        has_permission=False,
        description=description,
    )


def upnp_record(
    address: str,
    friendly_name: str | None,
    manufacturer: str | None,
    model: str | None,
    port: int = 0,
    has_permission: bool = False,
) -> DeviceRecord:
    return DeviceRecord(
        id=f"upnp_{address}",
        name=friendly_name or "UPnP Camera Device",
        kind=DeviceKind.NETWORK,
        ip_address=address,
        port=port,
        manufacturer=manufacturer,
        model=model,
        accessible=True,
        has_permission=has_permission,
        description="Camera device discovered via UPnP protocol",
    )


def mdns_record(
    service_name: str,
    service_type: str,
    address: str,
    port: int,
    manufacturer: str | None = None,
    model: str | None = None,
) -> DeviceRecord:
    label = service_name.removesuffix(f".{service_type}").rstrip(".")
    return DeviceRecord(
        id=f"mdns_{service_name.rstrip('.')}",
        name=label or f"mDNS Camera ({address})",
        kind=DeviceKind.NETWORK,
        ip_address=address,
        port=port,
        manufacturer=manufacturer,
        model=model,
        accessible=True,
        has_permission=False,
        description=f"Advertised via mDNS as {service_type.rstrip('.')}",
    )


def local_record(camera: LocalCamera, readable: bool) -> DeviceRecord:
    node = camera.device.rsplit("/", 1)[-1]
    return DeviceRecord(
        id=f"local_{node}",
        name=f"{camera.facing.capitalize()} camera: {camera.name}",
        kind=DeviceKind.LOCAL,
        accessible=True,
        has_permission=readable,
        description=f"Video device {camera.device}",
    )
