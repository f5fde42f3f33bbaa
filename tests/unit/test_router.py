"""
Unit tests for the router.
"""

import json

import pytest

from ajcwebdev_docker.http.router import Router, Route
from ajcwebdev_docker.http.request import HTTPRequest
from ajcwebdev_docker.http.response import HTTPResponse, ResponseBuilder
from ajcwebdev_docker.http.status_codes import HTTPStatus


def make_request(method: str, path: str) -> HTTPRequest:
    """Helper to create a request for testing."""
    return HTTPRequest(method=method, path=path)


def dummy_handler(request: HTTPRequest) -> HTTPResponse:
    """Dummy handler for testing."""
    return ResponseBuilder().html(request.path).build()


class TestRouter:
    """Tests for Router class."""

    def test_add_route(self):
        """Test adding routes."""
        router = Router()
        route = router.add_route("/", dummy_handler, method="GET")

        assert len(router) == 1
        assert route == Route(path="/", method="GET", handler=dummy_handler)

    def test_method_is_upper_cased(self):
        router = Router()
        router.add_route("/", dummy_handler, method="get")

        assert router.match("GET", "/") is not None
        assert router.match("get", "/") is not None

    def test_duplicate_route_rejected(self):
        router = Router()
        router.add_route("/", dummy_handler)

        with pytest.raises(ValueError, match="already registered"):
            router.add_route("/", dummy_handler)

    def test_match_exact_path(self):
        """Paths match exactly; there are no patterns."""
        router = Router()
        router.add_route("/", dummy_handler)

        assert router.match("GET", "/").path == "/"
        assert router.match("GET", "/index.html") is None

    def test_paths_are_literal(self):
        router = Router()
        router.add_route("/status/", dummy_handler)

        assert router.match("GET", "/status/") is not None
        assert router.match("GET", "/status") is None

    @pytest.mark.parametrize("path", ["//", "///", "//nonexistent", ""])
    def test_root_matches_only_itself(self, path: str):
        router = Router()
        router.add_route("/", dummy_handler)

        assert router.match("GET", path) is None
        assert router.handle(make_request("GET", path)).status == HTTPStatus.NOT_FOUND

    def test_relative_path_rejected(self):
        with pytest.raises(ValueError, match="must start with /"):
            Router().add_route("status", dummy_handler)

    def test_match_with_method(self):
        """Test method-based routing."""
        router = Router()
        router.add_route("/", dummy_handler, method="GET")

        assert router.match("GET", "/") is not None
        assert router.match("POST", "/") is None

    def test_get_allowed_methods(self):
        router = Router()
        router.add_route("/", dummy_handler, method="POST")
        router.add_route("/", dummy_handler, method="GET")

        assert router.get_allowed_methods("/") == ["GET", "POST"]
        assert router.get_allowed_methods("/missing") == []

    def test_decorators(self):
        router = Router()

        @router.get("/")
        def index(request):
            return ResponseBuilder().html("<h2>hi</h2>").build()

        @router.route("/", method="DELETE")
        def remove(request):
            return ResponseBuilder().build()

        assert router.match("GET", "/").handler is index
        assert router.match("DELETE", "/").handler is remove
        assert [r.method for r in router.routes()] == ["GET", "DELETE"]


class TestRouterHandle:
    """Tests for Router.handle()."""

    def test_calls_handler(self):
        router = Router()
        router.add_route("/", dummy_handler)

        response = router.handle(make_request("GET", "/"))

        assert response.status == HTTPStatus.OK
        assert response.body == b"/"

    def test_known_path_wrong_method_is_405(self):
        router = Router()
        router.add_route("/", dummy_handler)

        response = router.handle(make_request("POST", "/"))

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.headers["Allow"] == "GET"

    def test_unknown_path_is_404(self):
        router = Router()
        router.add_route("/", dummy_handler)

        response = router.handle(make_request("GET", "/nope"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert json.loads(response.body) == {"error": "No route matches /nope"}

    def test_unknown_path_is_404_for_any_method(self):
        router = Router()
        router.add_route("/", dummy_handler)

        assert router.handle(make_request("POST", "/nope")).status == HTTPStatus.NOT_FOUND

    def test_empty_router(self):
        assert Router().handle(make_request("GET", "/")).status == HTTPStatus.NOT_FOUND
