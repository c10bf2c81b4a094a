"""Pure classification rules: OUI lookup, SSID and Bluetooth name
heuristics, HTTP response verification and UPnP text extraction.

Nothing here performs I/O; every function is deterministic for a given input.
"""

from __future__ import annotations

import re
import string

from camscout.models import CameraVerdict, HttpEvidence, HttpOutcome, SsidClass

UNKNOWN_MANUFACTURER = "Unknown"

# (OUI prefix, manufacturer)
CAMERA_OUI_TABLE: tuple[tuple[str, str], ...] = (
    ("00:12:16", "Hikvision"),
    ("C0:56:E3", "Hikvision"),
    ("BC:AD:28", "Hikvision"),
    ("A4:14:37", "Hikvision"),
    ("54:C4:15", "Hikvision"),
    ("28:57:BE", "Hikvision"),
    ("4C:BD:8F", "Hikvision"),
    ("44:19:B6", "Dahua"),
    ("4C:11:BF", "Dahua"),
    ("90:02:A9", "Dahua"),
    ("E0:50:8B", "Dahua"),
    ("3C:EF:8C", "Dahua"),
    ("00:0F:7C", "Axis"),
    ("00:40:8C", "Axis"),
    ("AC:CC:8E", "Axis"),
    ("B8:A4:4F", "Axis"),
    ("00:80:F0", "Panasonic"),
    ("00:02:D1", "Vivotek"),
    ("00:03:C5", "Mobotix"),
)

_OUI_BY_LENGTH = sorted(CAMERA_OUI_TABLE, key=lambda entry: len(entry[0]), reverse=True)

SSID_CAMERA_PATTERNS = tuple(
    re.compile(pattern)
    for pattern in (
        r"ipc\d{3,6}",
        r"cam\d{2,4}",
        r"camera[_-]?\d+",
        r"^ip-?cam",
        r"^dvr-?\d+",
        r"^nvr-?\d+",
        r"^(hikvision|hik|dahua|ezviz|imou|reolink|foscam|wyze|yoosee|hdwificam|jxlcam|vstarcam)[-_ ]",
        r"^yi[-_ ]?cam",
    )
)

SSID_STRICT_KEYWORDS = (
    "ipcam",
    "ip-cam",
    "surveillance",
    "cctv",
    "webcam",
    "摄像头",
    "监控",
    "安防",
    "录像",
)
SSID_WEAK_KEYWORDS = ("camera", "cam", "dvr", "nvr", "ipc")

SSID_ROUTER_PATTERNS = tuple(
    re.compile(pattern)
    for pattern in (
        r"tp-?link",
        r"netgear",
        r"linksys",
        r"\basus",
        r"d-?link",
        r"huawei",
        r"xiaomi",
        r"tenda",
        r"mercury",
        r"\bzte",
        r"fritz",
        r"livebox",
        r"xfinity",
        r"vodafone",
        r"cmcc",
        r"chinanet",
        r"guest",
        r"hotspot",
        r"androidap",
        r"iphone",
        r"^direct-",
        r"(^|[-_ ])(2\.4|5)\s?g(hz)?($|[-_ ])",
        r"[-_][0-9a-f]{4,6}$",
    )
)

CAMERA_AP_PATTERNS = tuple(
    re.compile(pattern)
    for pattern in (
        r"^hdwificam",
        r"^ipcam-?ap",
        r"^ipc-?ap",
        r"^yoosee",
        r"^cloudcam",
        r"^mv\+",
        r"^jxlcam",
        r"^camera-?ap",
        r"^dvr-?ap",
    )
)

BLUETOOTH_CAMERA_KEYWORDS = (
    "camera",
    "cam",
    "webcam",
    "摄像头",
    "监控",
    "security",
    "surveillance",
    "ipcam",
    "dvr",
    "nvr",
    "hikvision",
    "dahua",
)

# Server header fragment -> manufacturer (None for vendor-neutral camera firmware)
SERVER_SIGNATURES: tuple[tuple[str, str | None], ...] = (
    ("hikvision", "Hikvision"),
    ("app-webs", "Hikvision"),
    ("dnvrs-webs", "Hikvision"),
    ("dahua", "Dahua"),
    ("axis", "Axis"),
    ("vivotek", "Vivotek"),
    ("mobotix", "Mobotix"),
    ("panasonic", "Panasonic"),
    ("foscam", "Foscam"),
    ("reolink", "Reolink"),
    ("uniview", "Uniview"),
    ("amcrest", "Amcrest"),
    ("hanwha", "Hanwha"),
    ("ipcam", None),
    ("netcam", None),
    ("webcam", None),
    ("camera", None),
    ("dvr", None),
    ("nvr", None),
)

CAMERA_CONTENT_TYPES = (
    "multipart/x-mixed-replace",
    "image/",
    "video/",
    "application/soap+xml",
)

REALM_VOCABULARY: tuple[tuple[str, str | None], ...] = (
    ("hikvision", "Hikvision"),
    ("dahua", "Dahua"),
    ("axis", "Axis"),
    ("onvif", None),
    ("camera", None),
    ("ipcam", None),
    ("webcam", None),
    ("dvr", None),
    ("nvr", None),
    ("surveillance", None),
    ("network video", None),
)

ONVIF_PATH_PREFIX = "/onvif/"

UPNP_CAMERA_VOCABULARY = (
    "camera",
    "webcam",
    "ipcam",
    "surveillance",
    "security",
    "video",
    "onvif",
    "rtsp",
    "streaming",
    "hikvision",
    "dahua",
    "axis",
)


def normalize_mac(value: str | None) -> str:
    if not value:
        return ""
    cleaned = value.replace(":", "").replace("-", "").replace(".", "")
    if len(cleaned) == 12 and all(ch in string.hexdigits for ch in cleaned):
        pairs = [cleaned[i : i + 2] for i in range(0, 12, 2)]
        return ":".join(pair.upper() for pair in pairs)
    return value.upper()


def lookup_manufacturer(mac: str | None) -> str:
    normalized = normalize_mac(mac)
    if not normalized:
        return UNKNOWN_MANUFACTURER
    for prefix, manufacturer in _OUI_BY_LENGTH:
        if normalized.startswith(prefix):
            return manufacturer
    return UNKNOWN_MANUFACTURER


def is_camera_vendor_mac(mac: str | None) -> bool:
    return lookup_manufacturer(mac) != UNKNOWN_MANUFACTURER


def _matches_any(patterns: tuple[re.Pattern[str], ...], text: str) -> bool:
    return any(pattern.search(text) for pattern in patterns)


def classify_ssid(ssid: str | None, bssid: str | None = None) -> SsidClass:
    """Camera vs. router/hotspot decision for a visible network.

    Regex and OUI matches are strong evidence. A keyword alone is weak and
    loses against any router/hotspot naming pattern.
    """
    if not ssid:
        return SsidClass.UNKNOWN
    lowered = ssid.strip().lower()

    if _matches_any(SSID_CAMERA_PATTERNS, lowered) or is_camera_vendor_mac(bssid):
        return SsidClass.LIKELY_CAMERA
    if _matches_any(SSID_ROUTER_PATTERNS, lowered):
        return SsidClass.LIKELY_ROUTER
    if any(k in lowered for k in SSID_STRICT_KEYWORDS + SSID_WEAK_KEYWORDS):
        return SsidClass.LIKELY_CAMERA
    return SsidClass.UNKNOWN


def is_camera_access_point(ssid: str | None, bssid: str | None = None) -> bool:
    """True for a camera running its own access point (setup/hotspot mode)."""
    if not ssid:
        return False
    lowered = ssid.strip().lower()
    if _matches_any(CAMERA_AP_PATTERNS, lowered):
        return True
    # router-looking SSID broadcast by camera hardware
    return (
        _matches_any(SSID_ROUTER_PATTERNS, lowered)
        and not _matches_any(SSID_CAMERA_PATTERNS, lowered)
        and is_camera_vendor_mac(bssid)
    )


def is_bluetooth_camera(name: str | None) -> bool:
    if not name:
        return False
    lowered = name.lower()
    return any(keyword in lowered for keyword in BLUETOOTH_CAMERA_KEYWORDS)


def _first_signature(
    text: str | None, table: tuple[tuple[str, str | None], ...]
) -> tuple[str, str | None] | None:
    if not text:
        return None
    lowered = text.lower()
    for needle, manufacturer in table:
        if needle in lowered:
            return needle, manufacturer
    return None


def verify_http_camera(evidence: HttpEvidence) -> CameraVerdict | None:
    """Accept a response as a camera only with a camera-specific signature.

    A bare 200/401/403 is not enough.
    """
    outcome = evidence.outcome
    if outcome is HttpOutcome.UNREACHABLE:
        return None

    reasons: list[str] = []
    manufacturer: str | None = None

    server_match = _first_signature(evidence.server, SERVER_SIGNATURES)
    if server_match:
        reasons.append(f"server signature '{server_match[0]}'")
        manufacturer = server_match[1]

    content_type = (evidence.content_type or "").lower()
    if any(content_type.startswith(kind) for kind in CAMERA_CONTENT_TYPES):
        reasons.append(f"content type '{content_type.split(';')[0]}'")

    realm_match = _first_signature(evidence.www_authenticate, REALM_VOCABULARY)
    if realm_match:
        reasons.append(f"auth realm mentions '{realm_match[0]}'")
        manufacturer = manufacturer or realm_match[1]

    if evidence.path.lower().startswith(ONVIF_PATH_PREFIX):
        reasons.append("ONVIF endpoint")

    if not reasons:
        return None
    return CameraVerdict(
        has_permission=outcome is HttpOutcome.OK,
        manufacturer=manufacturer,
        reasons=reasons,
    )


def extract_xml_field(text: str | None, tag: str) -> str | None:
    """Substring extraction of ``<tag>value</tag>``; not an XML parser."""
    if not text:
        return None
    opening = f"<{tag}>"
    start = text.find(opening)
    if start < 0:
        return None
    start += len(opening)
    end = text.find(f"</{tag}>", start)
    if end <= start:
        return None
    value = text[start:end].strip()
    return value or None


def is_upnp_camera(text: str | None) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(word in lowered for word in UPNP_CAMERA_VOCABULARY)
