"""
Networking core: listening socket, per-client connection, worker pool.

    SocketServer ──accept()──► Connection ──submit()──► ThreadPool
"""

from .connection import Connection, ConnectionState, RequestTooLargeError
from .socket_server import SocketServer
from .thread_pool import ThreadPool, Worker, WorkerState

__all__ = [
    "Connection",
    "ConnectionState",
    "RequestTooLargeError",
    "SocketServer",
    "ThreadPool",
    "Worker",
    "WorkerState",
]
