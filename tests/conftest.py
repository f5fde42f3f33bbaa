"""
pytest configuration and fixtures.
"""

import socket
import threading
from dataclasses import dataclass, field
from typing import Dict, Generator, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ajcwebdev_docker import HTTPServer, ServerConfig, create_app


@pytest.fixture
def sample_get_request() -> bytes:
    """What curl sends for `curl localhost:49160/`."""
    return (
        b"GET /?page=1&limit=10 HTTP/1.1\r\n"
        b"Host: localhost:49160\r\n"
        b"User-Agent: curl/8.5.0\r\n"
        b"Accept: */*\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """A form POST to the root path."""
    body = b"name=ajcwebdev"
    head = (
        b"POST / HTTP/1.1\r\n"
        b"Host: localhost:49160\r\n"
        b"Content-Type: application/x-www-form-urlencoded\r\n"
        b"Content-Length: " + str(len(body)).encode() + b"\r\n"
        b"Connection: close\r\n"
        b"\r\n"
    )
    return head + body


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        log_level="WARNING",
    )


# =============================================================================
# RAW HTTP CLIENT
# =============================================================================


@dataclass
class RawResponse:
    """A response as it came off the wire."""

    status: int
    reason: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    raw: bytes = b""

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())


def read_response(sock: socket.socket) -> RawResponse:
    """Read exactly one response (status line, headers, Content-Length body)."""
    reader = sock.makefile("rb")
    try:
        status_line = reader.readline()
        raw = status_line
        _, status, reason = status_line.decode("latin-1").rstrip("\r\n").split(" ", 2)

        headers: Dict[str, str] = {}
        while True:
            line = reader.readline()
            raw += line
            if line in (b"\r\n", b""):
                break
            name, value = line.decode("latin-1").split(":", 1)
            headers[name.strip().lower()] = value.strip()

        body = reader.read(int(headers.get("content-length", "0")))
        raw += body
    finally:
        reader.close()

    return RawResponse(int(status), reason, headers, body, raw)


def send_raw(port: int, data: bytes, host: str = "127.0.0.1") -> RawResponse:
    """Open a connection, send bytes, read one response, close."""
    with socket.create_connection((host, port), timeout=5.0) as sock:
        sock.sendall(data)
        return read_response(sock)


def http_request(port: int, method: str = "GET", path: str = "/", body: bytes = b"") -> RawResponse:
    """A one-shot HTTP/1.1 request with Connection: close."""
    head = (
        f"{method} {path} HTTP/1.1\r\n"
        f"Host: 127.0.0.1:{port}\r\n"
        f"Content-Length: {len(body)}\r\n"
        f"Connection: close\r\n"
        f"\r\n"
    ).encode()
    return send_raw(port, head + body)


# =============================================================================
# LIVE SERVER
# =============================================================================


class LiveServer:
    """Runs an HTTPServer in a background thread."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None
        self.error: Optional[BaseException] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def _run(self):
        try:
            self.server.run()
        except BaseException as e:  # surfaced to the test through self.error
            self.error = e
            self.server.ready.set()

    def start(self) -> "LiveServer":
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

        if not self.server.ready.wait(timeout=5.0):
            raise RuntimeError("Server failed to start")
        if self.error is not None:
            raise self.error
        return self

    def stop(self):
        self.server.stop()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def live_server(config: ServerConfig) -> Generator[LiveServer, None, None]:
    """The responder, listening on a free port on 127.0.0.1."""
    srv = LiveServer(create_app(config)).start()

    yield srv

    srv.stop()
