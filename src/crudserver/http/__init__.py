"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything between raw bytes and handler functions:

    request.py       bytes → HTTPRequest          (RequestParser)
    router.py        HTTPRequest → handler         (Router, typed path params)
    response.py      HTTPResponse → bytes          (ResponseBuilder, shortcuts)
    status_codes.py  HTTPStatus enum with reason phrases

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,
    created,
    no_content,
    error,
    bad_request,
    not_found,
    method_not_allowed,
    internal_error,
)
from .router import Router, Route, RouteMatch, PathParamError
from .status_codes import HTTPStatus

__all__ = [
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "created",
    "no_content",
    "error",
    "bad_request",
    "not_found",
    "method_not_allowed",
    "internal_error",
    "Router",
    "Route",
    "RouteMatch",
    "PathParamError",
    "HTTPStatus",
]
