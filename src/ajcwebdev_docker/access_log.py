"""
=============================================================================
ACCESS LOG
=============================================================================

One line per request on the "ajcwebdev_docker.access" logger, which is what
`docker logs <container>` and `docker compose logs` show.

Text (default):

    172.17.0.1 - - [18/Oct/2026:12:00:00 +0000] "GET / HTTP/1.1" 200 25 0.41ms

JSON (HTTP_LOG_FORMAT=json), for log shippers:

    {"method": "GET", "path": "/", "status_code": 200, ...}

The logger is namespaced so it can be tuned on its own:

    logging.getLogger("ajcwebdev_docker.access").setLevel(logging.WARNING)

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Optional

from .http.request import HTTPRequest
from .http.response import HTTPResponse


logger = logging.getLogger("ajcwebdev_docker.access")


@dataclass
class RequestLog:
    """One access-log record."""

    method: str
    path: str
    version: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str
    connection_id: str = ""

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        """Apache common log format plus the duration."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path} {self.version}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class AccessLogger:
    """
    Formats and emits access-log records.

        access = AccessLogger(log_format="json")
        started = time.perf_counter()
        response = handler(request)
        access.log(request, response, started)
    """

    def __init__(self, log_format: str = "text", level: int = logging.INFO):
        if log_format not in ("text", "json"):
            raise ValueError(f"Unknown log format: {log_format!r}")
        self.log_format = log_format
        self.level = level

    def build(
        self,
        request: HTTPRequest,
        response: HTTPResponse,
        started: float,
        connection_id: str = "",
        now: Optional[datetime] = None,
    ) -> RequestLog:
        now = now or datetime.now(timezone.utc)
        return RequestLog(
            method=request.method,
            path=request.path,
            version=request.version,
            client_ip=request.client_address[0] or "-",
            user_agent=request.user_agent,
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=(time.perf_counter() - started) * 1000,
            timestamp=now.strftime("%d/%b/%Y:%H:%M:%S %z"),
            connection_id=connection_id,
        )

    def format(self, entry: RequestLog) -> str:
        if self.log_format == "json":
            return json.dumps(entry.to_dict())
        return entry.to_text()

    def log(
        self,
        request: HTTPRequest,
        response: HTTPResponse,
        started: float,
        connection_id: str = "",
    ) -> RequestLog:
        """Build, format and emit one record; returns it for callers/tests."""
        entry = self.build(request, response, started, connection_id)

        # Server errors are worth a louder level than routine traffic
        level = logging.ERROR if entry.status_code >= 500 else self.level
        logger.log(level, self.format(entry))
        return entry
