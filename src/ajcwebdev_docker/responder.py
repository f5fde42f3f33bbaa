"""
=============================================================================
THE RESPONDER
=============================================================================

The whole application: one path, one fixed HTML fragment.

    GET /          → 200  <h2>ajcwebdev-docker</h2>
    POST / (etc.)  → 405  Allow: GET
    GET /anything  → 404

Everything else in this package exists to get these bytes out of a
container and onto `curl localhost:49160`.

=============================================================================
"""

from .http import HTTPRequest, HTTPResponse, ResponseBuilder, Router


INDEX_PATH = "/"

BODY = "<h2>ajcwebdev-docker</h2>"


def index(request: HTTPRequest) -> HTTPResponse:
    """Handler for GET /."""
    # Pure: every GET / gets the same status, headers and bytes
    return ResponseBuilder().html(BODY).build()


def register(router: Router) -> Router:
    """Mount the responder on a router."""
    router.add_route(INDEX_PATH, index, method="GET")
    return router
