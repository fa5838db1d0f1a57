"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes Connection.read_request() hands us into an HTTPRequest.

=============================================================================
WHAT ARRIVES ON THE WIRE
=============================================================================

    POST /users?notify=false HTTP/1.1\r\n        ← request line
    Host: localhost:8080\r\n                     ← headers
    Content-Type: application/json\r\n
    Content-Length: 36\r\n
    \r\n                                         ← blank line
    {"name":"A","email":"a@x.com"}               ← body (Content-Length bytes)

and what comes out:

    HTTPRequest(
        method="POST",
        path="/users",
        uri="/users?notify=false",
        query_params={"notify": ["false"]},
        headers={"host": "localhost:8080", "content-type": ..., ...},
        body=b'{"name":"A","email":"a@x.com"}',
    )

`path` is what the router matches on. `uri` is the request-target exactly
as the client sent it; the access log prints that one.

=============================================================================
FAILURES
=============================================================================

Every parse failure raises HTTPParseError carrying the status the server
should answer with:

    400  no blank line, garbled request line, path with a ".." segment, short body
    405  method token outside the RFC 7231 set
    413  request larger than max_request_size
    505  anything other than HTTP/1.0 or HTTP/1.1

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional, Dict
from urllib.parse import parse_qs, urlparse, unquote
import re

from .status_codes import HTTPStatus


class HTTPParseError(Exception):
    """
    Raised when a request cannot be parsed.

    Carries the HTTP status to send back, so the server loop can answer
    without knowing which check failed.
    """

    def __init__(self, message: str, status_code: HTTPStatus = HTTPStatus.BAD_REQUEST):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Attributes:
        method:         GET, POST, PUT, DELETE, ...
        path:           URL-decoded path without the query string
        uri:            request-target as received ("/username/7?includedetails=true")
        version:        "HTTP/1.1" or "HTTP/1.0"
        headers:        header name (lowercase) → value
        query_params:   "?a=1&a=2" → {"a": ["1", "2"]}
        body:           raw body bytes
        path_params:    filled in by the router, {"id": 42} for /users/42
        client_address: (ip, port) of the peer
    """

    method: str
    path: str
    uri: str = ""
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""

    # Router-injected; values are already converted (":id:int" gives an int)
    path_params: Dict[str, object] = field(default_factory=dict)

    client_address: tuple[str, int] = ("", 0)

    def __post_init__(self):
        # Requests built by hand in tests often skip the uri
        if not self.uri:
            self.uri = self.path

    @property
    def is_keep_alive(self) -> bool:
        """
        Should the connection stay open after this request?

        HTTP/1.1 keeps it open unless the client sends "Connection: close";
        HTTP/1.0 closes it unless the client sends "Connection: keep-alive".
        """
        connection = self.headers.get("connection", "").lower()

        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup (names are stored lowercase)."""
        return self.headers.get(name.lower(), default)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        First value of a query parameter.

        A parameter given without a value ("?name=") yields "", not the
        default; callers that treat empty as missing must check for it.
        """
        values = self.query_params.get(name, [])
        return values[0] if values else default


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    One parser is shared by all worker threads; it holds no per-request
    state, only the size limit.

        parser = RequestParser(max_request_size=1024 * 1024)
        request = parser.parse(raw_bytes, ("127.0.0.1", 51234))
    """

    VALID_METHODS = {
        "GET", "POST", "PUT", "DELETE", "PATCH",
        "HEAD", "OPTIONS", "TRACE", "CONNECT",
    }

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse one complete request.

        Args:
            data: Request bytes (headers, blank line, body).
            client_address: Peer (ip, port), kept for logging.

        Returns:
            The parsed HTTPRequest.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=HTTPStatus.PAYLOAD_TOO_LARGE,
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("utf-8", errors="replace")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, uri, path, query_params, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        # ─────────────────────────────────────────────────────────────────
        # BODY: exactly Content-Length bytes
        # ─────────────────────────────────────────────────────────────────
        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError("Invalid Content-Length header")

        if content_length < 0:
            raise HTTPParseError("Invalid Content-Length header")

        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return HTTPRequest(
            method=method,
            path=path,
            uri=uri,
            version=version,
            headers=headers,
            query_params=query_params,
            body=body[:content_length],
            client_address=client_address,
        )

    def _parse_request_line(
        self,
        line: str
    ) -> tuple[str, str, str, Dict[str, list[str]], str]:
        """
        Split "METHOD SP REQUEST-TARGET SP VERSION".

        Returns:
            (method, uri, path, query_params, version)
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, uri, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(
                f"Invalid method: {method}",
                status_code=HTTPStatus.METHOD_NOT_ALLOWED,
            )

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=HTTPStatus.HTTP_VERSION_NOT_SUPPORTED,
            )

        parsed = urlparse(uri)
        path = unquote(parsed.path) or "/"
        query_params = parse_qs(parsed.query, keep_blank_values=True)

        # "GET /../../etc/passwd" never reaches a handler; "/about/a..b" does
        if ".." in path.split("/"):
            raise HTTPParseError("Invalid path: contains a .. segment")

        return method, uri, path, query_params, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse "Name: value" lines into a dict with lowercase names.

        Repeated headers are folded into one comma-separated value, and
        lines starting with whitespace continue the previous header.
        Lines that do not look like headers are skipped.
        """
        headers: Dict[str, str] = {}
        current_name = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers
