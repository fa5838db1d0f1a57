"""
=============================================================================
CONNECTION
=============================================================================

Wraps one accepted client socket and turns the TCP byte stream into
complete HTTP requests.

=============================================================================
FRAMING A REQUEST
=============================================================================

recv() returns whatever bytes happen to have arrived, so one request can
come in pieces and two pipelined requests can come in one piece. The
connection keeps a buffer and cuts exactly one request out of it:

    _buffer:  POST /users HTTP/1.1\r\n ... Content-Length: 30\r\n\r\n{...30 bytes...}GET /us
              └──────────── headers ────────────────────────────┘└── body ──┘└─ next ─┘
                                                                             stays in
                                                                             _buffer

    1. recv() until "\r\n\r\n" is in the buffer   (end of headers)
    2. read Content-Length from the raw headers
    3. recv() until the body is complete
    4. slice off headers + body; leftovers wait for the next read_request()

=============================================================================
TIMEOUTS
=============================================================================

    first request on the connection   config.timeout            → 408
    later (keep-alive) requests       config.keep_alive_timeout → quiet close

=============================================================================
"""

import socket
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional


logger = logging.getLogger(__name__)


class RequestTooLargeError(ValueError):
    """The buffered request grew past max_request_size."""


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    One client connection.

    Attributes:
        socket: The accepted client socket.
        address: Client (ip, port).
        id: Short random id used to tag debug log lines.
        state: Where in the request cycle the connection is.
        requests_handled: Requests read so far on this connection.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete request (headers and body).

        Returns:
            The request bytes, or None if the client closed the connection
            or a keep-alive connection stayed idle past keep_alive_timeout.

        Raises:
            TimeoutError: If the FIRST request does not arrive in time.
            RequestTooLargeError: If the request exceeds max_request_size.
        """
        self.state = ConnectionState.READING

        if self.requests_handled > 0:
            self.socket.settimeout(self.keep_alive_timeout)

        try:
            while b"\r\n\r\n" not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    return None
                self._append(chunk)

            header_end = self._buffer.find(b"\r\n\r\n")
            body_start = header_end + 4
            content_length = self._parse_content_length(self._buffer[:header_end])

            while len(self._buffer) - body_start < content_length:
                chunk = self._recv()
                if not chunk:
                    # Client gave up mid-body; the parser reports the short body
                    break
                self._append(chunk)

            request_end = body_start + content_length
            request_data = self._buffer[:request_end]
            self._buffer = self._buffer[request_end:]

            self.requests_handled += 1
            return request_data

        except socket.timeout:
            if self.requests_handled > 0:
                logger.debug(f"[{self.id}] Keep-alive timeout")
                return None
            raise TimeoutError("Request read timeout")

        finally:
            self.socket.settimeout(self.timeout)

    def _append(self, chunk: bytes):
        self._buffer += chunk
        if len(self._buffer) > self.max_request_size:
            raise RequestTooLargeError(f"Request too large: {len(self._buffer)} bytes")

    def _recv(self) -> bytes:
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    @staticmethod
    def _parse_content_length(headers: bytes) -> int:
        """
        Content-Length from the raw header block, 0 if absent or unreadable.

        Only used to know how many body bytes to wait for; RequestParser
        validates the header properly afterwards.
        """
        for line in headers.decode("latin-1").lower().split("\r\n"):
            if line.startswith("content-length:"):
                try:
                    return max(int(line.split(":", 1)[1].strip()), 0)
                except ValueError:
                    return 0
        return 0

    def send_response(self, data: bytes) -> bool:
        """
        Send a full response with sendall().

        Returns:
            False if the client has gone away.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def set_keep_alive(self):
        self.state = ConnectionState.KEEP_ALIVE

    def close(self):
        """
        Close politely: send FIN, drain what the client still sends, close.

        Draining before close() keeps the kernel from answering unread
        bytes with a RST that could destroy the response in flight.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.requests_handled} requests")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
