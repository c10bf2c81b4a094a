"""Mock IP camera HTTP server for development and testing."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from asyncio import StreamReader, StreamWriter

logger = logging.getLogger(__name__)

SNAPSHOT_SUFFIXES = (".jpg", ".jpeg", ".cgi", ".mjpg")

# Smallest well-formed JPEG marker pair, enough for content sniffers
JPEG_STUB = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"

REASONS = {
    200: "OK",
    401: "Unauthorized",
    404: "Not Found",
    405: "Method Not Allowed",
    400: "Bad Request",
}


def parse_request_line(line: bytes) -> tuple[str, str] | None:
    """Return (method, path) from an HTTP request line."""
    parts = line.decode("latin-1").strip().split()
    if len(parts) != 3 or not parts[2].startswith("HTTP/"):
        return None
    method, target, _ = parts
    path = target.split("?", 1)[0]
    return method.upper(), path


def render_response(status: int, headers: dict[str, str], body: bytes) -> bytes:
    lines = [f"HTTP/1.1 {status} {REASONS.get(status, 'Unknown')}"]
    lines.extend(f"{key}: {value}" for key, value in headers.items())
    lines.append(f"Content-Length: {len(body)}")
    lines.append("Connection: close")
    head = "\r\n".join(lines) + "\r\n\r\n"
    return head.encode("latin-1") + body


@dataclass
class MockCamera:
    """Mock camera web interface answering every path with one profile."""

    host: str = "127.0.0.1"
    port: int = 8080
    server_header: str | None = "Hikvision-Webs"
    realm: str | None = None
    title: str = "Network Camera"
    allow_head: bool = True

    requests: list[tuple[str, str]] = field(default_factory=list, repr=False)
    _server: asyncio.Server | None = field(default=None, repr=False)

    @property
    def bound_port(self) -> int:
        """Actual port, useful when started with ``port=0``."""
        if self._server and self._server.sockets:
            return self._server.sockets[0].getsockname()[1]
        return self.port

    async def start(self) -> None:
        """Start the mock camera server."""
        self._server = await asyncio.start_server(
            self._handle_client, self.host, self.port
        )
        logger.info("Mock camera listening on %s:%d", self.host, self.bound_port)

    async def stop(self) -> None:
        """Stop the mock camera server."""
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            logger.info("Mock camera stopped")

    async def run_forever(self) -> None:
        """Run the server until interrupted."""
        await self.start()
        if self._server:
            await self._server.serve_forever()

    async def _handle_client(
        self, reader: "StreamReader", writer: "StreamWriter"
    ) -> None:
        addr = writer.get_extra_info("peername")
        try:
            request_line = await reader.readline()
            # drain headers; the body of a HEAD/GET is ignored
            while True:
                line = await reader.readline()
                if not line or line in (b"\r\n", b"\n"):
                    break
            parsed = parse_request_line(request_line)
            if parsed is None:
                writer.write(render_response(400, {}, b""))
            else:
                method, path = parsed
                self.requests.append((method, path))
                logger.debug("%s %s from %s", method, path, addr)
                writer.write(self._respond(method, path))
            await writer.drain()
        except (ConnectionResetError, BrokenPipeError):
            logger.debug("Client disconnected: %s", addr)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionResetError, BrokenPipeError):
                pass

    def _respond(self, method: str, path: str) -> bytes:
        headers: dict[str, str] = {}
        if self.server_header:
            headers["Server"] = self.server_header

        allowed = ("GET", "HEAD") if self.allow_head else ("GET",)
        if method not in allowed:
            headers["Allow"] = ", ".join(allowed)
            return render_response(405, headers, b"")

        if self.realm:
            headers["WWW-Authenticate"] = f'Basic realm="{self.realm}"'
            headers["Content-Type"] = "text/html"
            body = b"<html><body>401 Unauthorized</body></html>"
            return render_response(401, headers, b"" if method == "HEAD" else body)

        if path.lower().endswith(SNAPSHOT_SUFFIXES):
            headers["Content-Type"] = "image/jpeg"
            body = JPEG_STUB
        else:
            headers["Content-Type"] = "text/html"
            body = f"<html><head><title>{self.title}</title></head></html>".encode()
        return render_response(200, headers, b"" if method == "HEAD" else body)


async def run_mock_camera(
    host: str = "0.0.0.0",
    port: int = 8080,
    server_header: str | None = "Hikvision-Webs",
    realm: str | None = None,
    allow_head: bool = True,
) -> None:
    """Run a mock camera server."""
    camera = MockCamera(
        host=host,
        port=port,
        server_header=server_header,
        realm=realm,
        allow_head=allow_head,
    )
    await camera.run_forever()
