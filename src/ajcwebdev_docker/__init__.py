"""
=============================================================================
AJCWEBDEV-DOCKER - A Minimal Web Server, Containerized
=============================================================================

The smallest useful thing to put in a container: an HTTP server that
answers GET / with one line of HTML.

    $ docker compose up -d
    $ curl -i localhost:49160
    HTTP/1.1 200 OK
    Content-Type: text/html; charset=utf-8
    Content-Length: 25
    ...

    <h2>ajcwebdev-docker</h2>

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    ajcwebdev_docker/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m ajcwebdev_docker)
    ├── server.py            # HTTPServer, create_app()
    ├── responder.py         # The one route and its fixed body
    ├── config.py            # ServerConfig dataclass
    ├── access_log.py        # Per-request log lines
    ├── core/                # Sockets and threads
    │   ├── socket_server.py
    │   ├── connection.py
    │   └── thread_pool.py
    └── http/                # The protocol
        ├── request.py
        ├── response.py
        ├── router.py
        └── status_codes.py

=============================================================================
QUICK START
=============================================================================

    from ajcwebdev_docker import create_app, ServerConfig

    create_app(ServerConfig(host="127.0.0.1", port=8080)).run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .responder import BODY
from .server import HTTPServer, ServerState, create_app

__all__ = ["HTTPServer", "ServerConfig", "ServerState", "create_app", "BODY", "__version__"]
