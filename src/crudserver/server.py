"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                            HTTPServer                               │
    │                                                                     │
    │   SocketServer ── accept ──► Connection                             │
    │                                   │  submit                         │
    │                                   ▼                                 │
    │                              ThreadPool worker                      │
    │                                   │                                 │
    │          read_request() ──► RequestParser ──► handle(request)       │
    │                                                   │                 │
    │                                                Router               │
    │                                                   │                 │
    │                          per-route middleware chain + handler       │
    │                                                   │                 │
    │          send_response() ◄── to_bytes() ◄── HTTPResponse            │
    │                                                                     │
    │   keep-alive: loop back to read_request() on the same Connection    │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PER-ROUTE MIDDLEWARE
=============================================================================

Middleware is attached when a route is registered, so different routes
can have different chains:

    server.add_route("/", home, middleware=[LoggingMiddleware(), HeaderMiddleware()])
    server.add_route("/api", api_greeting, method="GET")      # no middleware

The chain is composed once, at registration time.

=============================================================================
ERRORS
=============================================================================

    malformed request          → status from HTTPParseError, connection closed
    request over the size cap  → 413, connection closed
    first request too slow     → 408, connection closed
    handler raised             → 500, logged with traceback
    thread pool queue full     → 503, connection closed

=============================================================================
"""

import logging
from typing import Dict, Optional, Sequence, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool, RequestTooLargeError
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, HTTPStatus, Router,
    error, internal_error,
)
from .http.router import Handler
from .middleware import Middleware, MiddlewarePipeline


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Threaded HTTP/1.1 server with per-route middleware.

        server = HTTPServer(ServerConfig(port=8080))

        @server.get("/api")
        def api_greeting(request):
            return ok("Hello World")

        @server.get("/users", middleware=[LoggingMiddleware()])
        def list_users(request):
            ...

        server.run()       # blocks; server.stop() from another thread ends it
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            on_discard=self._discard_task,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._router = Router()

        # Route pattern → middleware wrapped around router.handle
        self._chains: Dict[str, Handler] = {}

        self._running = False

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    @property
    def router(self) -> Router:
        return self._router

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None,
        name: Optional[str] = None,
        middleware: Sequence[Middleware] = (),
    ) -> "HTTPServer":
        """
        Register handler for path and method.

        The middleware chain (first = outermost) belongs to the path, not to
        one method: it runs around routing itself, so the 405 and 400
        answers the router gives for this path pass through it too. The
        first registration of a path that names a chain sets it.

        Args:
            path: Route pattern, e.g. "/users/:id:int".
            handler: Callable taking an HTTPRequest, returning an HTTPResponse.
            method: HTTP method, or None to accept any method.
            name: Name for reverse routing with router.url_for().
            middleware: Chain for every request this path owns.
        """
        self._router.add_route(path, handler, method=method, name=name)

        if middleware and path not in self._chains:
            self._chains[path] = MiddlewarePipeline().use(*middleware).wrap(self._router.handle)

        return self

    def route(self, path: str, method: Optional[str] = None, **kwargs):
        """Decorator form of add_route()."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method=method, **kwargs)
            return handler
        return decorator

    def get(self, path: str, **kwargs):
        return self.route(path, "GET", **kwargs)

    def post(self, path: str, **kwargs):
        return self.route(path, "POST", **kwargs)

    def put(self, path: str, **kwargs):
        return self.route(path, "PUT", **kwargs)

    def delete(self, path: str, **kwargs):
        return self.route(path, "DELETE", **kwargs)

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch one parsed request and return its response.

        Never raises: an exception escaping the handler (or its middleware)
        is logged and answered with 500. Unit tests call this directly, no
        sockets involved.
        """
        owner = self._router.find_route(request.path)
        dispatch = self._chains.get(owner.path, self._router.handle) if owner else self._router.handle

        try:
            return dispatch(request)
        except Exception as e:
            logger.exception(f"Handler error on {request.method} {request.path}: {e}")
            return internal_error()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once listening with port=0."""
        return self._socket_server.address

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start serving. Blocks until stop() is called or Ctrl+C.

        Args:
            host: Override config.host.
            port: Override config.port.

        Raises:
            OSError: If the address cannot be bound.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._setup_logging()

        self._running = True
        self._thread_pool.start()

        logger.info(f"Starting {self.config.server_name} on {self.config.host}:{self.config.port}")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server is accepting connections."""
        return self._socket_server.wait_until_ready(timeout)

    def stop(self):
        """
        Stop accepting connections. Returns immediately; run() returns
        within about a second. Requests in flight are not waited for.
        """
        self._running = False
        self._socket_server.shutdown()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("crudserver").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=False)
        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Hand the connection to a worker; 503 if the queue is full."""
        submitted = self._thread_pool.submit(self._process_connection, args=(conn,), block=False)

        if not submitted:
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
            conn.close()

    def _discard_task(self, task):
        """Close the connection of a task the pool dropped at shutdown."""
        for arg in task.args:
            if isinstance(arg, Connection):
                logger.debug(f"[{arg.id}] Dropped at shutdown, closing")
                arg.close()

    def _process_connection(self, conn: Connection):
        """
        Keep-alive loop for one connection (runs on a worker thread).

        read → parse → handle → send, repeated while the client keeps the
        connection open.
        """
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request Timeout")
                    break
                except RequestTooLargeError as e:
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
                    break

                if raw_request is None:
                    break

                try:
                    request = self._parser.parse(raw_request, conn.address)
                except HTTPParseError as e:
                    logger.debug(f"[{conn.id}] Bad request: {e}")
                    self._send_error(conn, e.status_code, str(e))
                    break

                response = self.handle(request)

                keep_alive = self.config.keep_alive and request.is_keep_alive
                if keep_alive:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault(
                        "Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}"
                    )
                else:
                    response.headers["Connection"] = "close"

                if not conn.send_response(response.to_bytes(self.config.server_name)):
                    break

                if not keep_alive or response.headers.get("Connection") == "close":
                    break

                conn.set_keep_alive()

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str):
        """Answer a request that never reached a handler, then let the caller close."""
        response = error(status, message).set_header("Connection", "close")
        conn.send_response(response.to_bytes(self.config.server_name))
