from __future__ import annotations

import re
from dataclasses import dataclass, field

_MAC_RE = re.compile(r"([0-9A-Fa-f]{2}(?::[0-9A-Fa-f]{2}){5})")
_IPV4_RE = re.compile(r"(?<![\d.])(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})(?!\d)")


@dataclass
class Redactor:
    enabled: bool = True
    _mac_map: dict[str, int] = field(default_factory=dict)
    _mac_counter: int = 0

    def redact_ip(self, ip: str | None) -> str:
        if ip is None:
            return ""
        if not self.enabled:
            return ip
        parts = ip.split(".")
        if len(parts) == 4 and all(part.isdigit() for part in parts):
            return f"x.x.x.{parts[3]}"
        return ip

    def redact_mac(self, mac: str) -> str:
        if not self.enabled:
            return mac
        parts = mac.split(":")
        if len(parts) != 6:
            return mac
        key = mac.upper()
        prefix = ":".join(parts[:3]).upper()
        counter = self._mac_map.get(key)
        if counter is None:
            self._mac_counter += 1
            counter = self._mac_counter
            self._mac_map[key] = counter
        return f"{prefix}:xx:xx:{counter:02d}"

    def redact_id(self, device_id: str) -> str:
        """Mask addresses embedded in ids like ``upnp_<ip>`` or ``hotspot_<bssid>``."""
        if not self.enabled:
            return device_id
        masked = _MAC_RE.sub(lambda m: self.redact_mac(m.group(1)), device_id)
        return _IPV4_RE.sub(lambda m: f"x.x.x.{m.group(4)}", masked)

    def redact_text(self, text: str) -> str:
        return self.redact_id(text)
