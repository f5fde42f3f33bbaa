"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The plumbing under the responder:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  SocketServer   bind 0.0.0.0:8080, accept() in the main thread      │
    └─────────────────────────────────────────────────────────────────────┘
                                    │ new client
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  ThreadPool     hand each client to a worker thread                 │
    └─────────────────────────────────────────────────────────────────────┘
                                    │ worker
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  Connection     buffered reads, sendall(), graceful close           │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
]
