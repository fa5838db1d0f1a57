"""
=============================================================================
TCP SOCKET SERVER
=============================================================================

Owns the listening socket and the accept loop. Everything HTTP-shaped
happens elsewhere: each accepted client socket is wrapped in a Connection
and handed to a callback (HTTPServer._handle_connection).

    socket() → setsockopt() → bind() → listen() → accept() ... accept()
                                                      │
                                                      └──► callback(Connection)

=============================================================================
SOCKET OPTIONS
=============================================================================

SO_REUSEADDR   restart immediately without "Address already in use" while
               the old socket sits in TIME_WAIT.
TCP_NODELAY    send small responses right away instead of letting Nagle's
               algorithm batch them.

=============================================================================
STOPPING
=============================================================================

accept() is given a 1 second timeout. Each timeout returns to the top of
the loop, where the _running flag is checked, so shutdown() called from
any thread takes effect within a second. Connections already handed to
the pool are not waited for.

=============================================================================
"""

import socket
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


ACCEPT_POLL_INTERVAL = 1.0


class SocketServer:
    """
    Listening socket plus accept loop.

        def on_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(on_connection)   # blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        # The socket is created in start(), not here
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        # Set once the listening socket is bound (tests wait on it)
        self._ready_event = threading.Event()

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port).

        With port=0 in the config this is the port the OS actually picked,
        once start() has bound the socket.
        """
        if self._socket is not None:
            try:
                return self._socket.getsockname()[:2]
            except OSError:
                pass
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # accept() returns at least once a second so _running is re-checked
        sock.settimeout(ACCEPT_POLL_INTERVAL)

        return sock

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and accept until shutdown() is called.

        Args:
            connection_handler: Called with each accepted Connection, on the
                                accepting thread. It must not block.

        Raises:
            OSError: If the address cannot be bound (port in use, no
                     permission). The error is logged before it propagates.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)

        self._running = True
        self._ready_event.set()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                # The listening socket went away; expected during shutdown
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                keep_alive_timeout=self.config.keep_alive_timeout,
                max_request_size=self.config.max_request_size,
            )

            connection_handler(conn)

    def shutdown(self):
        """
        Stop the accept loop. Safe to call from any thread, more than once.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._running = False
        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. Returns False on timeout."""
        return self._ready_event.wait(timeout)
