"""
=============================================================================
HTTP PROTOCOL COMPONENTS
=============================================================================

    request.py       bytes ──► HTTPRequest
    router.py        HTTPRequest ──► handler (or 404 / 405)
    response.py      HTTPResponse ──► bytes
    status_codes.py  HTTPStatus enum

The core/ package moves bytes; this package gives them meaning.

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError
from .response import (
    HTTPResponse,
    ResponseBuilder,
    error_response,
    not_found,           # 404 Not Found
    method_not_allowed,  # 405 Method Not Allowed
    internal_error,      # 500 Internal Server Error
)
from .router import Router, Route
from .status_codes import HTTPStatus

__all__ = [
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "HTTPResponse",
    "ResponseBuilder",
    "error_response",
    "not_found",
    "method_not_allowed",
    "internal_error",
    "Router",
    "Route",
    "HTTPStatus",
]
