"""
=============================================================================
USERS RESOURCE
=============================================================================

CRUD over the in-memory UserStore.

    ┌──────────┬───────────────┬──────────────────────────────────────────┐
    │ Method   │ Path          │ Result                                   │
    ├──────────┼───────────────┼──────────────────────────────────────────┤
    │ GET      │ /users        │ 200 [user, ...]                          │
    │ POST     │ /users        │ 201 user + Location   │ 400 Invalid JSON │
    │ GET      │ /users/:id    │ 200 user              │ 404              │
    │ PUT      │ /users/:id    │ 200 user  │ 404 │ 400 Invalid JSON       │
    │ DELETE   │ /users/:id    │ 204 (whether or not the user existed)    │
    └──────────┴───────────────┴──────────────────────────────────────────┘

A non-integer id ("/users/abc") is rejected with 400 by the router before
any handler here runs. Methods not in the table get 405 from the router.

=============================================================================
LOCKING
=============================================================================

Item requests hold store.lock for the whole request, so "check the user
exists, then replace it" cannot interleave with a concurrent DELETE:

    PUT /users/7                            DELETE /users/7
    ────────────────────────────            ─────────────────────
    with store.lock:
        get(7)       → found                (waits for the lock)
        from_json(body)
        replace(7, user)
                                            with store.lock:
                                                delete(7)

The collection GET copies the users under the lock and encodes the JSON
after releasing it.

=============================================================================
"""

import logging

from ..http import HTTPRequest, HTTPResponse, ok, created, no_content, bad_request, not_found
from ..models import User, UserDecodeError
from ..store import UserStore


logger = logging.getLogger(__name__)


INVALID_JSON = "Invalid JSON"
USER_NOT_FOUND = "User Not Found"


class UsersHandler:
    """
    Request handlers for /users and /users/:id.

        users = UsersHandler(context.store)

        server.add_route("/users", users.list_users, method="GET")
        server.add_route("/users", users.create_user, method="POST")
        server.add_route("/users/:id:int", users.get_user, method="GET")
        ...
    """

    def __init__(self, store: UserStore):
        self.store = store

    # =========================================================================
    # COLLECTION: /users
    # =========================================================================

    def list_users(self, request: HTTPRequest) -> HTTPResponse:
        users = self.store.list()
        return ok([user.to_dict() for user in users])

    def create_user(self, request: HTTPRequest) -> HTTPResponse:
        try:
            user = User.from_json(request.body)
        except UserDecodeError as e:
            logger.debug(f"Rejected POST /users body: {e}")
            return bad_request(INVALID_JSON)

        stored = self.store.create(user)
        return created(stored.to_dict(), location=f"/users/{stored.id}")

    # =========================================================================
    # ITEM: /users/:id
    # =========================================================================

    def get_user(self, request: HTTPRequest) -> HTTPResponse:
        user_id = request.path_params["id"]

        with self.store.lock:
            user = self.store.get(user_id)
            if user is None:
                return not_found(USER_NOT_FOUND)
            return ok(user.to_dict())

    def update_user(self, request: HTTPRequest) -> HTTPResponse:
        """
        Replace a user entirely. The id always comes from the path.

        Existence is checked before the body is decoded, so a bad body for
        an unknown id is a 404, not a 400. PUT never creates.
        """
        user_id = request.path_params["id"]

        with self.store.lock:
            if self.store.get(user_id) is None:
                return not_found(USER_NOT_FOUND)

            try:
                user = User.from_json(request.body)
            except UserDecodeError as e:
                logger.debug(f"Rejected PUT /users/{user_id} body: {e}")
                return bad_request(INVALID_JSON)

            stored = self.store.replace(user_id, user)

        return ok(stored.to_dict())

    def delete_user(self, request: HTTPRequest) -> HTTPResponse:
        # Deleting an unknown id is a successful no-op
        with self.store.lock:
            self.store.delete(request.path_params["id"])
        return no_content()
