"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Handlers return HTTPResponse objects; the server serializes them with
to_bytes() and writes the result to the socket.

=============================================================================
THREE WAYS TO BUILD A RESPONSE
=============================================================================

    1. Shortcut functions for the common cases:

           return ok([u.to_dict() for u in users])       # 200 + JSON
           return created(user.to_dict(), location=...)  # 201 + JSON
           return no_content()                           # 204
           return not_found("User Not Found")            # 404 + text

    2. The fluent builder when something extra is needed:

           return (ResponseBuilder()
               .status(HTTPStatus.OK)
               .header("X-Custom-Header", "value")
               .text("home sweet home Guest")
               .build())

    3. Mutating a response on its way out (what middleware does):

           response = next(request)
           response.headers.setdefault("X-Custom-Header", "value")

=============================================================================
ERROR BODIES ARE PLAIN TEXT
=============================================================================

Every error shortcut (bad_request, not_found, method_not_allowed, ...)
answers the same way:

    HTTP/1.1 404 Not Found
    Content-Type: text/plain; charset=utf-8
    X-Content-Type-Options: nosniff

    User Not Found\n

Success bodies are JSON for the users resource and plain text for the demo
routes.

=============================================================================
"""

from dataclasses import dataclass, field
from email.utils import formatdate
from typing import Optional, Dict, Any, Union
import json

from .status_codes import HTTPStatus


TEXT_PLAIN = "text/plain; charset=utf-8"
APPLICATION_JSON = "application/json; charset=utf-8"


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be serialized.

        HTTPResponse(status=HTTPStatus.OK,
                     headers={"Content-Type": "text/plain"},
                     body=b"Hello World")

    becomes, via to_bytes():

        HTTP/1.1 200 OK\r\n
        Content-Type: text/plain\r\n
        Content-Length: 11\r\n
        Date: Mon, 19 Oct 2026 10:00:00 GMT\r\n
        Server: CrudServer/1.0\r\n
        \r\n
        Hello World
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def text(self) -> str:
        """Body decoded as UTF-8. Convenient in tests."""
        return self.body.decode("utf-8")

    def json(self) -> Any:
        """Body parsed as JSON. Convenient in tests."""
        return json.loads(self.body.decode("utf-8"))

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a header, returning self for chaining."""
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = "CrudServer/1.0") -> bytes:
        """
        Serialize for socket.sendall().

        Content-Length, Date and Server are added unless the handler set
        them. A 204 is sent without body or Content-Length.
        """
        response_headers = dict(self.headers)
        body = self.body if self.status.allows_body else b""

        if self.status.allows_body:
            response_headers.setdefault("Content-Length", str(len(body)))
        else:
            response_headers.pop("Content-Length", None)

        response_headers.setdefault("Date", formatdate(usegmt=True))
        response_headers.setdefault("Server", server_name)

        lines = [self.status_line]
        lines.extend(f"{name}: {value}" for name, value in response_headers.items())
        lines.append("")

        return "\r\n".join(lines).encode("utf-8") + b"\r\n" + body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

    Every setter returns the builder; build() produces the response.
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Raw body; strings are encoded as UTF-8."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str) -> "ResponseBuilder":
        """Plain-text body with a UTF-8 Content-Type."""
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = TEXT_PLAIN
        return self

    def json(self, data: Any) -> "ResponseBuilder":
        """
        JSON body.

        ensure_ascii=False keeps non-ASCII names readable instead of
        escaping them to \\uXXXX.
        """
        self._body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self._headers["Content-Type"] = APPLICATION_JSON
        return self

    def close_connection(self) -> "ResponseBuilder":
        """Tell the client this is the last response on the connection."""
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
        )


# =============================================================================
# SHORTCUTS
# =============================================================================

def ok(body: Union[str, dict, list] = "") -> HTTPResponse:
    """
    200 OK.

    dict/list bodies become JSON, strings become plain text.
    """
    builder = ResponseBuilder().status(HTTPStatus.OK)

    if isinstance(body, (dict, list)):
        builder.json(body)
    else:
        builder.text(body)

    return builder.build()


def created(body: Union[dict, list], location: Optional[str] = None) -> HTTPResponse:
    """201 Created with a JSON body and, optionally, a Location header."""
    builder = ResponseBuilder().status(HTTPStatus.CREATED).json(body)

    if location:
        builder.header("Location", location)

    return builder.build()


def no_content() -> HTTPResponse:
    """204 No Content."""
    return ResponseBuilder().status(HTTPStatus.NO_CONTENT).build()


def error(status: HTTPStatus, message: Optional[str] = None) -> HTTPResponse:
    """
    Plain-text error response.

    The body is the message plus a trailing newline; the message defaults
    to the status phrase.
    """
    text = message if message is not None else status.phrase
    return (ResponseBuilder()
        .status(status)
        .header("X-Content-Type-Options", "nosniff")
        .text(text + "\n")
        .build())


def bad_request(message: str = "Bad Request") -> HTTPResponse:
    return error(HTTPStatus.BAD_REQUEST, message)


def not_found(message: str = "Not Found") -> HTTPResponse:
    return error(HTTPStatus.NOT_FOUND, message)


def method_not_allowed(allowed_methods: list[str]) -> HTTPResponse:
    """
    405 Method Not Allowed.

    RFC 7231 requires the Allow header listing what the resource accepts.
    """
    response = error(HTTPStatus.METHOD_NOT_ALLOWED, "Method Not Allowed")
    return response.set_header("Allow", ", ".join(allowed_methods))


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    return error(HTTPStatus.INTERNAL_SERVER_ERROR, message)
