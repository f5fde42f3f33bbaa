"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted client socket.

=============================================================================
TCP IS A STREAM, NOT A MESSAGE QUEUE
=============================================================================

recv() returns whatever bytes have arrived, not "one request". A single
`GET /` can show up as:

    recv() → b"GET / HT"
    recv() → b"TP/1.1\r\nHost: localhost:49160\r\n\r\n"

and two pipelined requests can arrive in one chunk. Connection keeps a
buffer, reads until it has a full header block (\r\n\r\n) plus
Content-Length bytes of body, hands exactly one request up, and keeps the
rest for the next call.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► KEEP_ALIVE ──┐
     │         │                          │             │        │
     │         │                          │             └────────┤
     │         ▼                          ▼                      │
     └──────► CLOSING ◄───────────────────┴──────────────────────┘
                 │
                 ▼
               CLOSED

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Where a connection is in its request/response cycle."""

    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    A client connection.

    Attributes:
        sock: The accepted client socket.
        address: Client's (ip, port).
        id: Short random id used as a log prefix.
        state: Current ConnectionState.
        requests_handled: Requests read so far on this connection.
    """

    sock: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.sock.setblocking(True)
        if self.timeout:
            self.sock.settimeout(self.timeout)

    @property
    def age(self) -> float:
        """Seconds since accept()."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read exactly one HTTP request from the socket.

        ┌─────────────────────────────────────────────────────────────────┐
        │   1. Keep-alive? use the shorter idle timeout                    │
        │   2. recv() until the buffer holds \\r\\n\\r\\n                      │
        │   3. Read Content-Length from the header block                   │
        │   4. recv() until the body is complete                           │
        │   5. Slice one request off the buffer, keep the rest             │
        └─────────────────────────────────────────────────────────────────┘

        Returns:
            Complete request bytes, or None if the client closed the
            connection (or went idle on a keep-alive connection).

        Raises:
            TimeoutError: The first request never arrived in time.
            ValueError: The request exceeds max_request_size.
        """
        self.state = ConnectionState.READING
        self.last_activity = time.time()

        if self.requests_handled > 0:
            self.sock.settimeout(self.keep_alive_timeout)

        try:
            while b"\r\n\r\n" not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    return None
                self._buffer += chunk
                self._check_size()

            header_end = self._buffer.find(b"\r\n\r\n")
            body_start = header_end + 4
            content_length = self._parse_content_length(self._buffer[:header_end])

            while len(self._buffer) - body_start < content_length:
                chunk = self._recv()
                if not chunk:
                    break  # client hung up mid-body; the parser reports it
                self._buffer += chunk
                self._check_size()

            request_end = body_start + content_length
            request_data = self._buffer[:request_end]
            self._buffer = self._buffer[request_end:]

            self.requests_handled += 1
            self.last_activity = time.time()
            return request_data

        except socket.timeout:
            if self.requests_handled > 0:
                logger.debug(f"[{self.id}] Keep-alive timeout")
                return None
            raise TimeoutError("Request read timeout")

        finally:
            self.sock.settimeout(self.timeout)

    def _check_size(self):
        if len(self._buffer) > self.max_request_size:
            raise ValueError(f"Request too large: {len(self._buffer)} bytes")

    def _recv(self) -> bytes:
        """recv() that maps an abrupt disconnect to b"" (orderly EOF)."""
        try:
            data = self.sock.recv(self.buffer_size)
            self.last_activity = time.time()
            return data
        except (ConnectionResetError, BrokenPipeError):
            return b""

    @staticmethod
    def _parse_content_length(headers: bytes) -> int:
        """
        Pull Content-Length out of the raw header block.

        Needed before the request can be parsed, so this is a plain
        line scan. Invalid values count as 0 and are rejected later by
        RequestParser.
        """
        header_str = headers.decode("latin-1").lower()
        for line in header_str.split("\r\n"):
            if line.startswith("content-length:"):
                try:
                    return max(0, int(line.split(":", 1)[1].strip()))
                except ValueError:
                    return 0
        return 0

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send response bytes with sendall().

        Returns:
            True if sent, False if the client is gone.
        """
        self.state = ConnectionState.WRITING
        try:
            self.sock.sendall(data)
            self.last_activity = time.time()
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def set_keep_alive(self):
        """Response sent; wait for the next request."""
        self.state = ConnectionState.KEEP_ALIVE

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self, drain_timeout: float = 0.5):
        """
        Close gracefully: shutdown(SHUT_WR) to send FIN, drain what the
        client still sends, then close the descriptor.

        Args:
            drain_timeout: Seconds to wait for the client to finish
                sending. 0 only reads what has already arrived, which
                never blocks.

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.sock.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # peer already gone

        try:
            # settimeout(0) makes recv() non-blocking
            self.sock.settimeout(drain_timeout)
            while self.sock.recv(1024):
                pass
        except OSError:
            pass  # includes socket.timeout

        try:
            self.sock.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.requests_handled} requests, {self.age:.2f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
