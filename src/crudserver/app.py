"""
=============================================================================
APPLICATION ASSEMBLY
=============================================================================

create_app() builds an HTTPServer with the full route table:

    ┌────────────────────┬──────────────────┬──────────────────────────────┐
    │ Path               │ Methods          │ Chain (outer → inner)        │
    ├────────────────────┼──────────────────┼──────────────────────────────┤
    │ /about/*rest       │ any              │ log → header → about         │
    │ /username/*rest    │ any              │ log → header → username      │
    │ /users             │ GET, POST        │ log → users handler          │
    │ /users/:id:int     │ GET, PUT, DELETE │ log → users handler          │
    │ /api               │ GET              │ api_greeting                 │
    │ /*rest             │ any              │ log → header → home          │
    └────────────────────┴──────────────────┴──────────────────────────────┘

The chain wraps routing for its path, so a 405 on /users or a 400 on
/users/abc is access-logged like any other answer. "/*rest" is registered
last and owns every path nothing above claims, so there is no 404 page.

Application state (the user store) lives in an AppContext that is passed
in, not in a module-level global, so every test can start from an empty
store:

    context = AppContext()
    server = create_app(ServerConfig(port=0), context)
    ...
    assert len(context.store) == 1

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .config import ServerConfig
from .handlers import UsersHandler, home, about, username, api_greeting
from .middleware import HeaderMiddleware, LoggingMiddleware
from .server import HTTPServer
from .store import UserStore


logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """State shared by the handlers of one application instance."""

    store: UserStore = field(default_factory=UserStore)


def create_app(config: Optional[ServerConfig] = None, context: Optional[AppContext] = None) -> HTTPServer:
    """
    Build the users server.

    Args:
        config: Server configuration; defaults to ServerConfig().
        context: Application state; a fresh AppContext (empty store) if omitted.

    Returns:
        A configured HTTPServer, not yet running.
    """
    config = config or ServerConfig()
    context = context or AppContext()

    server = HTTPServer(config)

    log = LoggingMiddleware(
        log_format=config.log_format,
    )
    header = HeaderMiddleware(config.custom_header_name, config.custom_header_value)

    demo_chain = [log, header]
    users_chain = [log]

    # ─────────────────────────────────────────────────────────────────────
    # DEMO ROUTES
    # ─────────────────────────────────────────────────────────────────────
    server.add_route("/about/*rest", about, name="about", middleware=demo_chain)
    server.add_route("/username/*rest", username, name="username", middleware=demo_chain)

    # ─────────────────────────────────────────────────────────────────────
    # USERS RESOURCE
    # ─────────────────────────────────────────────────────────────────────
    users = UsersHandler(context.store)

    server.add_route("/users", users.list_users, method="GET", name="users", middleware=users_chain)
    server.add_route("/users", users.create_user, method="POST", middleware=users_chain)

    server.add_route("/users/:id:int", users.get_user, method="GET", name="user", middleware=users_chain)
    server.add_route("/users/:id:int", users.update_user, method="PUT", middleware=users_chain)
    server.add_route("/users/:id:int", users.delete_user, method="DELETE", middleware=users_chain)

    # ─────────────────────────────────────────────────────────────────────
    # API GREETING (no middleware)
    # ─────────────────────────────────────────────────────────────────────
    server.add_route("/api", api_greeting, method="GET", name="api")

    # Catch-all: every path no route above owns is the home page
    server.add_route("/*rest", home, name="home", middleware=demo_chain)

    logger.debug(f"Registered {len(server.router.routes())} routes")
    return server
