"""
=============================================================================
MIDDLEWARE
=============================================================================

Code that runs around routing for a path, composed per path:

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Route               Chain (outer → inner)                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │   /about/*,           LoggingMiddleware → HeaderMiddleware → handler │
    │   /username/*, /*                                                    │
    │   /users, /users/:id  LoggingMiddleware → handler                    │
    │   /api                handler                                        │
    └─────────────────────────────────────────────────────────────────────┘

LoggingMiddleware:
    Times the wrapped call and writes one access line per request.

HeaderMiddleware:
    Adds a fixed header (X-Custom-Header by default) to every response.

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .header import HeaderMiddleware
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    # Base classes
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",

    # Built-in middleware
    "HeaderMiddleware",
    "LoggingMiddleware",
    "RequestLog",
]
