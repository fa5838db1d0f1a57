"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The subset of RFC 7231 status codes this server can produce, each with
its reason phrase for the status line:

    HTTP/1.1 404 Not Found
             ─── ─────────
              │      └── reason phrase (HTTPStatus.phrase)
              └───────── status code   (int(HTTPStatus.NOT_FOUND))

Where each one comes from:

    200 OK                    GET /users, GET/PUT /users/:id, demo routes
    201 Created               POST /users
    204 No Content            DELETE /users/:id
    400 Bad Request           malformed JSON body, non-integer :id, bad request line
    404 Not Found             unknown path, unknown user id
    405 Method Not Allowed    path exists but method is not registered
    408 Request Timeout       client did not finish sending in time
    413 Payload Too Large     request above max_request_size
    500 Internal Server Error handler raised
    503 Service Unavailable   thread pool queue is full
    505 HTTP Version Not Supported

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes with reason phrases.

    Being an IntEnum, members compare equal to plain ints:

        >>> HTTPStatus.CREATED == 201
        True
        >>> HTTPStatus.CREATED.phrase
        'Created'
    """

    # 2xx SUCCESS
    OK = 200
    CREATED = 201
    NO_CONTENT = 204

    # 4xx CLIENT ERROR
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413

    # 5xx SERVER ERROR
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line."""
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_error(self) -> bool:
        """True for 4xx and 5xx."""
        return self >= 400

    @property
    def allows_body(self) -> bool:
        """204 responses must not carry a body (RFC 7230 section 3.3.3)."""
        return self != HTTPStatus.NO_CONTENT


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
