"""
=============================================================================
REQUEST DISPATCH
=============================================================================

A dispatch table keyed by (method, path). There are no path parameters,
wildcards or prefixes: the responder serves one literal path, and anything
else falls through to a 404 or a 405.

    ┌──────────────────┐      ┌────────────────────────────────────────┐
    │ GET /            │ ───► │ handler registered for ("GET", "/")    │
    ├──────────────────┤      ├────────────────────────────────────────┤
    │ POST /           │ ───► │ path known, method not → 405 + Allow   │
    ├──────────────────┤      ├────────────────────────────────────────┤
    │ GET /nonexistent │ ───► │ path unknown → 404                     │
    └──────────────────┘      └────────────────────────────────────────┘

=============================================================================
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .request import HTTPRequest
from .response import HTTPResponse, not_found, method_not_allowed


Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass(frozen=True)
class Route:
    """A literal path bound to a handler for one method."""

    path: str
    method: str
    handler: Handler


class Router:
    """
    Exact-match router.

        router = Router()

        @router.get("/")
        def index(request):
            return ResponseBuilder().html("<h2>hi</h2>").build()

        response = router.handle(request)
    """

    def __init__(self):
        self._routes: Dict[tuple[str, str], Route] = {}

    def add_route(self, path: str, handler: Handler, method: str = "GET") -> Route:
        """
        Register a handler.

        Raises:
            ValueError: If path is not absolute, or (method, path) is
                already registered.
        """
        if not path.startswith("/"):
            raise ValueError(f"Route path must start with /: {path!r}")

        # Paths are literal: "/status" and "/status/" are different routes
        route = Route(path=path, method=method.upper(), handler=handler)
        key = (route.method, route.path)

        if key in self._routes:
            raise ValueError(f"Route already registered: {route.method} {route.path}")

        self._routes[key] = route
        return route

    def route(self, path: str, method: str = "GET") -> Callable[[Handler], Handler]:
        """Decorator form of add_route(); returns the handler unchanged."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method)
            return handler
        return decorator

    def get(self, path: str) -> Callable[[Handler], Handler]:
        return self.route(path, "GET")

    def match(self, method: str, path: str) -> Optional[Route]:
        return self._routes.get((method.upper(), path))

    def get_allowed_methods(self, path: str) -> List[str]:
        """Methods registered for path, sorted, for the Allow header."""
        return sorted(method for method, route_path in self._routes if route_path == path)

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request.

        1. (method, path) registered   → call the handler
        2. path registered, method not → 405 with Allow
        3. otherwise                   → 404
        """
        route = self.match(request.method, request.path)
        if route:
            return route.handler(request)

        allowed = self.get_allowed_methods(request.path)
        if allowed:
            return method_not_allowed(allowed)

        return not_found(f"No route matches {request.path}")

    def routes(self) -> List[Route]:
        return list(self._routes.values())

    def __len__(self) -> int:
        return len(self._routes)
