"""
=============================================================================
ACCESS LOG MIDDLEWARE
=============================================================================

One line per request, written AFTER the wrapped handler has returned, so
the elapsed time covers everything inside the chain:

    ┌──────────────────────────────────────────────────────────────────┐
    │  LoggingMiddleware                                               │
    │     start = time.monotonic()                                     │
    │     response = next(request)   ← header middleware + handler     │
    │     elapsed = time.monotonic() - start                           │
    │     logger.info("GET /users/7 0.412ms")                          │
    └──────────────────────────────────────────────────────────────────┘

=============================================================================
LOG FORMATS
=============================================================================

    text (default):
        GET /username/7?includedetails=true 0.183ms

    json:
        {"method": "GET", "uri": "/username/7?includedetails=true",
         "status": 200, "duration_ms": 0.18, "client_ip": "127.0.0.1",
         "timestamp": "19/Oct/2026:10:55:36 +0000"}

The URI is the request-target exactly as received, query string included.

=============================================================================
"""

import time
import json
import logging
from dataclasses import dataclass

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


# Namespaced so access lines can be routed or silenced on their own:
#   logging.getLogger("crudserver.access").setLevel(logging.WARNING)
logger = logging.getLogger("crudserver.access")


@dataclass
class RequestLog:
    """Structured access log entry."""

    method: str
    uri: str
    status: int
    duration_ms: float
    client_ip: str
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "method": self.method,
            "uri": self.uri,
            "status": self.status,
            "duration_ms": round(self.duration_ms, 3),
            "client_ip": self.client_ip,
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        return f"{self.method} {self.uri} {self.duration_ms:.3f}ms"


class LoggingMiddleware(Middleware):
    """
    Request timing and access logging.

    Put it FIRST in a pipeline so the timing includes every other
    middleware:

        MiddlewarePipeline().use(LoggingMiddleware(), HeaderMiddleware())

    If the wrapped handler raises, the failure is logged at ERROR level and
    the exception is re-raised for the server to turn into a 500.
    """

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        """
        Args:
            log_format: "text" (one readable line) or "json".
            log_level: Level the access lines are emitted at.
        """
        if log_format not in ("text", "json"):
            raise ValueError(f"Unknown log format: {log_format}")

        self.log_format = log_format
        self.log_level = log_level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        start = time.monotonic()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.monotonic() - start) * 1000
            logger.error(
                f"Request failed: {request.method} {request.uri} "
                f"- {type(e).__name__}: {e} ({duration_ms:.3f}ms)"
            )
            raise

        duration_ms = (time.monotonic() - start) * 1000

        entry = RequestLog(
            method=request.method,
            uri=request.uri,
            status=int(response.status),
            duration_ms=duration_ms,
            client_ip=request.client_address[0] or "-",
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict()))
        else:
            logger.log(self.log_level, entry.to_text())

        return response
