"""
=============================================================================
CRUDSERVER
=============================================================================

A threaded HTTP/1.1 server written directly on sockets, serving an
in-memory users resource plus a handful of demo routes.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  crudserver/                                                        │
    │    app.py          route table, AppContext, create_app()            │
    │    server.py       HTTPServer: accept → pool → parse → route → send │
    │    config.py       ServerConfig                                     │
    │    models.py       User record and JSON decoding                    │
    │    store.py        UserStore (dict + RLock + id sequence)           │
    │    core/           SocketServer, Connection, ThreadPool             │
    │    http/           RequestParser, HTTPResponse, Router, HTTPStatus  │
    │    middleware/     pipeline, HeaderMiddleware, LoggingMiddleware    │
    │    handlers/       UsersHandler, demo handlers                      │
    └─────────────────────────────────────────────────────────────────────┘

Quick start:

    from crudserver import create_app, ServerConfig

    server = create_app(ServerConfig(port=8080))
    server.run()

    $ curl -X POST localhost:8080/users -d '{"name":"A","email":"a@x.com"}'
    {"id": 1, "name": "A", "email": "a@x.com"}

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import HTTPServer
from .app import AppContext, create_app

__all__ = ["AppContext", "HTTPServer", "ServerConfig", "create_app", "__version__"]
