"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer ──accept──► ThreadPool ──worker──► Connection         │
    │                                                      │               │
    │                                 bytes ◄──────────────┤               │
    │                                   │                  │               │
    │                          RequestParser               │               │
    │                                   │                  │               │
    │                                Router ──► responder.index            │
    │                                   │                  │               │
    │                             HTTPResponse ──bytes────►┘               │
    │                                   │                                  │
    │                             AccessLogger                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
LIFECYCLE
=============================================================================

    STOPPED ──run(): bind() succeeds──► LISTENING ──► (process exit)
       │
       └──run(): bind() fails──► OSError raised, still STOPPED

The transition happens once per instance. "Running on http://HOST:PORT"
is printed to stdout right after the transition, so the line in
`docker logs` means the port really is open.

=============================================================================
"""

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional, Tuple

from .access_log import AccessLogger
from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState, ThreadPool
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, HTTPStatus,
    Router, error_response, internal_error,
)
from . import responder


logger = logging.getLogger(__name__)


class ServerState(Enum):
    STOPPED = "stopped"
    LISTENING = "listening"


class HTTPServer:
    """
    A small threaded HTTP/1.1 server.

        server = HTTPServer(ServerConfig(port=8080))

        @server.get("/")
        def index(request):
            return ResponseBuilder().html("<h2>hello</h2>").build()

        server.run()   # blocks until SIGINT/SIGTERM or stop()

    Use create_app() for the responder with its one route already mounted.
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._router = Router()
        self._access_log = AccessLogger(log_format=self.config.log_format)

        self._state = ServerState.STOPPED
        self._state_lock = threading.Lock()
        self._has_run = False
        self._running = False

        # Set once the socket is bound; lets other threads wait for it
        self.ready = threading.Event()

    # =========================================================================
    # ROUTES
    # =========================================================================

    @property
    def router(self) -> Router:
        return self._router

    def get(self, path: str) -> Callable:
        """Register a GET handler (decorator)."""
        return self._router.get(path)

    def route(self, path: str, method: str = "GET") -> Callable:
        return self._router.route(path, method)

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once LISTENING."""
        return self._socket_server.address

    @property
    def url(self) -> str:
        host, port = self.address
        return f"http://{host}:{port}"

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self):
        """
        Bind, announce, and serve until stopped (blocking).

        Raises:
            RuntimeError: If this instance has already been run.
            OSError: If the port cannot be bound.
        """
        with self._state_lock:
            if self._has_run:
                raise RuntimeError("HTTPServer.run() can only be called once per instance")
            self._has_run = True

        self._setup_logging()

        # Fails here, before any worker thread exists, if the port is taken
        self._socket_server.bind()

        self._state = ServerState.LISTENING
        self._running = True
        # Announce before waking waiters, so "Running on" is already out
        self._announce()
        self.ready.set()

        self._thread_pool.start()

        try:
            self._socket_server.serve(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def stop(self):
        """Stop accepting connections; run() returns shortly after."""
        self._socket_server.shutdown()

    def _announce(self):
        print(f"Running on {self.url}", flush=True)
        logger.debug(f"Routes: {', '.join(f'{r.method} {r.path}' for r in self._router.routes())}")

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("ajcwebdev_docker").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=30.0)
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Called from the accept loop; hands the connection to a worker."""
        submitted = self._thread_pool.submit(
            self._process_connection,
            args=(conn,),
            timeout=self.config.timeout,
            on_expire=self._reject_stale,
        )

        if not submitted:
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
            # Still on the accept thread: do not wait for the client
            conn.close(drain_timeout=0)

    def _reject_stale(self, conn: Connection):
        """Runs in a worker when conn waited in the queue past the timeout."""
        logger.warning(f"[{conn.id}] Waited too long for a worker, rejecting connection")
        self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
        conn.close()

    def _process_connection(self, conn: Connection):
        """
        Keep-alive loop for one connection (runs in a worker thread).

            read → parse → dispatch → send → (keep-alive ? repeat : close)
        """
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break
                except ValueError as e:
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
                    break

                if raw_request is None:
                    break

                try:
                    request = self._parser.parse(raw_request, conn.address)
                except HTTPParseError as e:
                    logger.info(f"[{conn.id}] Rejected request: {e}")
                    self._send_error(conn, e.status_code, str(e))
                    break

                response = self._dispatch(request, conn)
                keep_alive = request.is_keep_alive and self.config.keep_alive

                if keep_alive:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault(
                        "Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}"
                    )
                else:
                    response.headers["Connection"] = "close"

                if not conn.send_response(response.to_bytes(self.config.server_name)):
                    break

                if not keep_alive:
                    break

                conn.set_keep_alive()

    def _dispatch(self, request: HTTPRequest, conn: Connection) -> HTTPResponse:
        conn.state = ConnectionState.PROCESSING
        started = time.perf_counter()

        try:
            response = self._router.handle(request)
        except Exception as e:
            logger.exception(f"[{conn.id}] Handler error: {e}")
            response = internal_error()

        self._access_log.log(request, response, started, connection_id=conn.id)
        return response

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str):
        """Error for failures before a request could be dispatched."""
        response = error_response(status, message)
        response.headers["Connection"] = "close"
        conn.send_response(response.to_bytes(self.config.server_name))


def create_app(config: Optional[ServerConfig] = None) -> HTTPServer:
    """
    The responder: an HTTPServer with GET / mounted.

        create_app(ServerConfig.from_env()).run()
    """
    server = HTTPServer(config)
    responder.register(server.router)
    return server
