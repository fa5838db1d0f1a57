"""
Fixed response header middleware.

Stamps one header on every response that passes through it:

    X-Custom-Header: Pav bhaji ka kya bhav paaji

The header is applied whatever the status, so 404s from a wrapped handler
carry it too. If the wrapped handler already set the same header itself,
the handler's value is kept.
"""

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


DEFAULT_HEADER_NAME = "X-Custom-Header"
DEFAULT_HEADER_VALUE = "Pav bhaji ka kya bhav paaji"


class HeaderMiddleware(Middleware):
    """Sets a fixed header on every response."""

    def __init__(self, name: str = DEFAULT_HEADER_NAME, value: str = DEFAULT_HEADER_VALUE):
        self.header_name = name
        self.header_value = value

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        response = next(request)
        response.headers.setdefault(self.header_name, self.header_value)
        return response
