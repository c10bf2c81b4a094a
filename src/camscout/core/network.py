from __future__ import annotations

import ipaddress
import logging
import socket
from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)


def detect_local_network() -> str:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("8.8.8.8", 80))
            local_ip = sock.getsockname()[0]
        network = ipaddress.ip_network(f"{local_ip}/24", strict=False)
        logger.debug("Detected local network: %s", network)
        return str(network)
    except OSError as exc:
        raise RuntimeError("Could not detect local network") from exc


def _as_network(network: str) -> ipaddress.IPv4Network:
    parsed = ipaddress.ip_network(network, strict=False)
    if not isinstance(parsed, ipaddress.IPv4Network):
        raise ValueError(f"Only IPv4 networks can be scanned: {network}")
    return parsed


def priority_hosts(network: str, suffixes: Sequence[int]) -> list[str]:
    """Conventional camera/gateway addresses of ``network`` in the given order."""
    net = _as_network(network)
    base = int(net.network_address)
    hosts: list[str] = []
    for suffix in suffixes:
        candidate = ipaddress.IPv4Address(base + suffix)
        if candidate in net and candidate not in (net.network_address, net.broadcast_address):
            hosts.append(str(candidate))
    return hosts


def sweep_hosts(network: str, exclude: Iterable[str] = ()) -> list[str]:
    skip = set(exclude)
    return [str(ip) for ip in _as_network(network).hosts() if str(ip) not in skip]


def adjacent_networks(network: str) -> list[str]:
    """The /24 networks either side of ``network`` (third octet +/- 1)."""
    net = _as_network(network)
    octets = str(net.network_address).split(".")
    third = int(octets[2])
    neighbours: list[str] = []
    for candidate in (third - 1, third + 1):
        if 0 <= candidate <= 255:
            neighbours.append(f"{octets[0]}.{octets[1]}.{candidate}.0/24")
    return neighbours


def plan_targets(
    network: str, suffixes: Sequence[int], sweep: bool = False
) -> list[str]:
    """Priority hosts first, then (optionally) every remaining host."""
    ordered = priority_hosts(network, suffixes)
    if sweep:
        ordered.extend(sweep_hosts(network, exclude=ordered))
    return ordered


def same_network(a: str, b: str) -> bool:
    return _as_network(a) == _as_network(b)
