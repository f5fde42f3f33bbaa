"""
=============================================================================
TCP SOCKET SERVER
=============================================================================

Owns the one listening socket of the process.

=============================================================================
THE SOCKET LIFECYCLE
=============================================================================

    socket()   Create a TCP endpoint
       │
    bind()     Claim HOST:PORT            ← 0.0.0.0:8080 in the container
       │                                    fails if the port is taken
    listen()   Let the kernel queue clients
       │
    accept()   One new socket per client  ← loops until shutdown
       │
    close()    Give the port back

=============================================================================
WHY BIND IS A SEPARATE STEP
=============================================================================

bind() is the only step that can fail for reasons outside the program
(another process on 8080, a port below 1024 without root). Splitting
bind() from serve() lets HTTPServer announce "Running on ..." only after
the port is really ours, and lets a bind error surface to the CLI before
any thread has started.

=============================================================================
DOCKER AND SIGNALS
=============================================================================

`docker stop` sends SIGTERM to PID 1 and waits 10 seconds before SIGKILL.
With `CMD ["python", "-m", "ajcwebdev_docker"]` (exec form) Python is PID 1,
so SIGTERM reaches us and we can stop the accept loop cleanly. Signal
handlers can only be installed from the main thread; when the server runs
in a background thread (tests) they are skipped.

=============================================================================
"""

import socket
import signal
import threading
import logging
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Listening socket plus accept loop.

    Usage:
        server = SocketServer(config)
        host, port = server.bind()      # raises OSError if the port is taken
        server.serve(handle_connection) # blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False
        self._original_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port).

        After bind() this reports the real port, which differs from the
        configured one when port 0 was requested.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return (self.config.host, port)
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """
        Create and configure the listening socket.

        SO_REUSEADDR lets a restarted container rebind while old
        connections sit in TIME_WAIT. It does NOT let two live listeners
        share a port, so a second server on 8080 still fails to bind.
        SO_REUSEPORT is left off for exactly that reason.
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # accept() wakes up every second to check self._running
        sock.settimeout(1.0)
        return sock

    def bind(self) -> Tuple[str, int]:
        """
        Bind and listen.

        Returns:
            The bound (host, port).

        Raises:
            RuntimeError: If this server is already bound.
            OSError: If the address is unavailable (EADDRINUSE, EACCES, ...).
        """
        if self._socket is not None:
            raise RuntimeError("Socket server is already bound")

        sock = self._create_socket()
        try:
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError as e:
            sock.close()
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            raise

        self._socket = sock
        # Running from here on, so a shutdown() that races serve() is not lost
        self._running = True
        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        return host, port

    def serve(self, connection_handler: Callable[[Connection], None]):
        """
        Run the accept loop until shutdown() is called.

        Each accepted client is wrapped in a Connection and passed to
        connection_handler, which is expected to return quickly (the HTTP
        server hands it to the thread pool).
        """
        if self._socket is None:
            raise RuntimeError("bind() must be called before serve()")

        self._setup_signals()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                sock=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                keep_alive_timeout=self.config.keep_alive_timeout,
                max_request_size=self.config.max_request_size,
            )
            connection_handler(conn)

    def _setup_signals(self):
        """Stop on SIGTERM (docker stop) and SIGINT (Ctrl+C)."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not in main thread, skipping signal handlers")
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self.shutdown()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def shutdown(self):
        """Ask the accept loop to stop. Idempotent, callable from any thread."""
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._running = False
        logger.info("Socket server stopped")
