"""
=============================================================================
HANDLERS
=============================================================================

A handler takes an HTTPRequest and returns an HTTPResponse.

    ┌───────────────────┬──────────────────────────────────────────────────┐
    │ Type              │ Here                                             │
    ├───────────────────┼──────────────────────────────────────────────────┤
    │ Function handler  │ demo.home, demo.about, demo.username,            │
    │                   │ demo.api_greeting (stateless)                    │
    │ Class handler     │ UsersHandler, bound to a UserStore               │
    └───────────────────┴──────────────────────────────────────────────────┘

Path parameters arrive already converted in request.path_params;
":id:int" in the route pattern means handlers receive an int.

=============================================================================
"""

from .demo import home, about, username, api_greeting
from .users import UsersHandler

__all__ = [
    "home",
    "about",
    "username",
    "api_greeting",
    "UsersHandler",
]
