from __future__ import annotations

import asyncio
import logging
import socket

import aiohttp

from camscout.models import HttpEvidence, PortState, SsdpReply

logger = logging.getLogger(__name__)

SSDP_ADDRESS = "239.255.255.250"
SSDP_PORT = 1900
SSDP_SEARCH_TARGET = "upnp:rootdevice"
SSDP_MX = 3

MAX_DESCRIPTION_BYTES = 64 * 1024


async def tcp_probe(host: str, port: int, timeout: float) -> PortState:
    """Connect-only reachability check."""
    writer: asyncio.StreamWriter | None = None
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=timeout
        )
        return PortState.OPEN
    except (asyncio.TimeoutError, TimeoutError):
        return PortState.TIMEOUT
    except OSError as exc:
        logger.debug("Connect to %s:%d failed: %s", host, port, exc)
        return PortState.CLOSED
    finally:
        if writer is not None:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass


class HttpProber:
    """Single-request HTTP fingerprinting over a shared client session."""

    def __init__(self, timeout: float, method: str = "HEAD") -> None:
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._method = method
        self._session: aiohttp.ClientSession | None = None

    def _client(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                connector=aiohttp.TCPConnector(ssl=False, force_close=True),
            )
        return self._session

    async def fingerprint(
        self, host: str, port: int, path: str, method: str | None = None
    ) -> HttpEvidence:
        method = method or self._method
        evidence = await self._request(host, port, path, method)
        if evidence.status == 405 and method == "HEAD":
            evidence = await self._request(host, port, path, "GET")
        return evidence

    async def _request(
        self, host: str, port: int, path: str, method: str
    ) -> HttpEvidence:
        evidence = HttpEvidence(host=host, port=port, path=path, method=method)
        url = f"http://{host}:{port}{path}"
        try:
            async with self._client().request(
                method, url, allow_redirects=False
            ) as resp:
                evidence.status = resp.status
                evidence.server = resp.headers.get("Server")
                evidence.content_type = resp.headers.get("Content-Type")
                evidence.www_authenticate = resp.headers.get("WWW-Authenticate")
        except (asyncio.TimeoutError, TimeoutError):
            logger.debug("HTTP %s %s timed out", method, url)
            evidence.transport_error = True
        except (aiohttp.ClientError, OSError, ValueError) as exc:
            logger.debug("HTTP %s %s failed: %s", method, url, exc)
            evidence.transport_error = True
        return evidence

    async def fetch_text(self, url: str) -> str | None:
        try:
            async with self._client().get(url, allow_redirects=False) as resp:
                if resp.status != 200:
                    return None
                payload = await resp.content.read(MAX_DESCRIPTION_BYTES)
                return payload.decode("utf-8", errors="replace")
        except (asyncio.TimeoutError, TimeoutError):
            logger.debug("Fetching %s timed out", url)
            return None
        except (aiohttp.ClientError, OSError, ValueError) as exc:
            logger.debug("Fetching %s failed: %s", url, exc)
            return None

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


def build_msearch(search_target: str = SSDP_SEARCH_TARGET, mx: int = SSDP_MX) -> bytes:
    return (
        "M-SEARCH * HTTP/1.1\r\n"
        f"HOST: {SSDP_ADDRESS}:{SSDP_PORT}\r\n"
        'MAN: "ssdp:discover"\r\n'
        f"ST: {search_target}\r\n"
        f"MX: {mx}\r\n"
        "\r\n"
    ).encode("ascii")


def parse_ssdp_headers(text: str) -> dict[str, str]:
    headers: dict[str, str] = {}
    for line in text.splitlines()[1:]:
        key, sep, value = line.partition(":")
        if not sep:
            continue
        headers[key.strip().lower()] = value.strip()
    return headers


class _SsdpCollector(asyncio.DatagramProtocol):
    def __init__(self) -> None:
        self.replies: list[SsdpReply] = []

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:  # type: ignore[override]
        text = data.decode("utf-8", errors="replace")
        self.replies.append(
            SsdpReply(address=addr[0], text=text, headers=parse_ssdp_headers(text))
        )

    def error_received(self, exc: Exception) -> None:
        logger.debug("SSDP socket error: %s", exc)


async def ssdp_probe(
    timeout: float,
    search_target: str = SSDP_SEARCH_TARGET,
    mx: int = SSDP_MX,
) -> list[SsdpReply]:
    """Send one M-SEARCH and collect unicast replies until ``timeout``.

    Raises ``OSError`` only when no UDP socket can be opened at all.
    """
    loop = asyncio.get_running_loop()
    transport, protocol = await loop.create_datagram_endpoint(
        _SsdpCollector, local_addr=("0.0.0.0", 0), family=socket.AF_INET
    )
    try:
        transport.sendto(build_msearch(search_target, mx), (SSDP_ADDRESS, SSDP_PORT))
        await asyncio.sleep(timeout)
    finally:
        transport.close()

    logger.debug("SSDP collected %d replies", len(protocol.replies))
    return list(protocol.replies)
