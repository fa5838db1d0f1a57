"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunable settings for the server live in one dataclass, ServerConfig.
There is no config file and no environment lookup: the defaults are the
configuration, and the command line (python -m crudserver) may override a
handful of them for local experiments.

=============================================================================
SETTINGS AT A GLANCE
=============================================================================

    ┌──────────────────────┬──────────────────────┬─────────────────────────┐
    │ Group                │ Fields               │ Used by                 │
    ├──────────────────────┼──────────────────────┼─────────────────────────┤
    │ Network              │ host, port, backlog, │ SocketServer,           │
    │                      │ buffer_size, timeout │ Connection              │
    │ HTTP                 │ keep_alive,          │ HTTPServer, Connection  │
    │                      │ keep_alive_timeout,  │                         │
    │                      │ max_request_size     │                         │
    │ Threading            │ min_workers,         │ ThreadPool              │
    │                      │ max_workers          │                         │
    │ Logging              │ log_level,           │ HTTPServer,             │
    │                      │ log_format           │ LoggingMiddleware       │
    │ Identity             │ server_name,         │ HTTPResponse,           │
    │                      │ custom_header_*      │ HeaderMiddleware        │
    └──────────────────────┴──────────────────────┴─────────────────────────┘

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional

from .middleware.header import DEFAULT_HEADER_NAME, DEFAULT_HEADER_VALUE


DEFAULT_PORT = 8080

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the users server.

    Development defaults: bound to localhost on port 8080 with a small
    thread pool. Every field can be passed as a keyword:

        ServerConfig(port=0, min_workers=2, log_level="WARNING")

    port=0 asks the OS for any free port (handy in tests).
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Address to bind. Use "0.0.0.0" to listen on every interface."""

    port: int = DEFAULT_PORT
    """TCP port. 0 lets the OS pick a free one."""

    backlog: int = 128
    """How many pending connections the kernel queues before refusing."""

    buffer_size: int = 8192
    """Bytes read from the socket per recv() call."""

    timeout: Optional[float] = 30.0
    """Seconds to wait for the first request on a new connection."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True
    """Serve several requests over one TCP connection when the client asks."""

    keep_alive_timeout: float = 5.0
    """Idle seconds before a kept-alive connection is closed."""

    max_request_size: int = 1024 * 1024  # 1 MB
    """Upper bound on headers + body. Larger requests get 413."""

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    max_workers: int = 16

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"
    """Access log format: "text" (one readable line) or "json"."""

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "CrudServer/1.0"
    """Value of the Server response header."""

    custom_header_name: str = DEFAULT_HEADER_NAME
    custom_header_value: str = DEFAULT_HEADER_VALUE
    """Header stamped on every demo-route response by HeaderMiddleware."""

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once by HTTPServer.__init__ so a bad value fails at startup
        instead of on the first request.

        Raises:
            ValueError: describing the first invalid field.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log_level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")

        if not self.custom_header_name:
            raise ValueError("custom_header_name must not be empty")
