"""
pytest configuration and fixtures.
"""

import http.client
import socket
import threading
from typing import Generator, Optional

import pytest

from crudserver import AppContext, HTTPServer, ServerConfig, create_app
from crudserver.store import UserStore


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /username/7?includedetails=true HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/plain\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with JSON body."""
    body = b'{"name": "A", "email": "a@x.com"}'
    return (
        b"POST /users HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"Connection: close\r\n"
        b"\r\n"
    ) + body


@pytest.fixture
def config() -> ServerConfig:
    """Test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        min_workers=2,
        max_workers=8,
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def store() -> UserStore:
    return UserStore()


@pytest.fixture
def context(store: UserStore) -> AppContext:
    return AppContext(store=store)


@pytest.fixture
def app(config: ServerConfig, context: AppContext) -> HTTPServer:
    """Fully wired application, not listening. Use app.handle() directly."""
    return create_app(config, context)


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # not a test class, despite the name

    def __init__(self, server: HTTPServer, port: int):
        self.server = server
        self.port = port
        self._thread: Optional[threading.Thread] = None

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"port": self.port},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.stop()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def connection(self) -> http.client.HTTPConnection:
        return http.client.HTTPConnection("127.0.0.1", self.port, timeout=5.0)

    def request(self, method: str, path: str, body: Optional[bytes] = None, headers: Optional[dict] = None):
        """
        One request on a fresh connection.

        Returns:
            (status, headers as a case-insensitive message, body bytes)
        """
        conn = self.connection()
        try:
            conn.request(method, path, body=body, headers=headers or {})
            response = conn.getresponse()
            return response.status, response.headers, response.read()
        finally:
            conn.close()


@pytest.fixture
def test_server(free_port: int, context: AppContext) -> Generator[TestServer, None, None]:
    """The users application listening on a free port."""
    server = create_app(
        ServerConfig(
            host="127.0.0.1",
            port=free_port,
            min_workers=2,
            max_workers=8,
            log_level="WARNING",
        ),
        context,
    )

    test_srv = TestServer(server, free_port)
    test_srv.start()

    yield test_srv

    test_srv.stop()
