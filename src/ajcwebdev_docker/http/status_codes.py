"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes the responder can actually produce, with their reason
phrases. The full registry lives at
https://www.iana.org/assignments/http-status-codes/

    HTTP/1.1 200 OK
             ─── ──
              │   └── Reason phrase (for humans)
              └────── Status code (for machines)

    1xx  Informational   (never sent here)
    2xx  Success         200 for GET /
    3xx  Redirection     (never sent here)
    4xx  Client error    404 unknown path, 405 wrong method, ...
    5xx  Server error    500 handler crash, 503 overloaded, ...

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.OK.phrase
        'OK'
    """

    OK = 200

    BAD_REQUEST = 400                   # Malformed request syntax
    NOT_FOUND = 404                     # Only "/" exists
    METHOD_NOT_ALLOWED = 405            # "/" only answers GET
    REQUEST_TIMEOUT = 408               # Client connected but never sent a request
    PAYLOAD_TOO_LARGE = 413             # Request exceeds max_request_size

    INTERNAL_SERVER_ERROR = 500         # Handler raised
    SERVICE_UNAVAILABLE = 503           # Worker queue full or backlog too old
    HTTP_VERSION_NOT_SUPPORTED = 505    # Anything but HTTP/1.0 or HTTP/1.1

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line."""
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
