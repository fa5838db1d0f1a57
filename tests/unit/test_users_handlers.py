"""
Unit tests for the users resource, dispatched through the full app
(router + middleware) without sockets.
"""

import json

import pytest

from crudserver import HTTPServer
from crudserver.handlers import UsersHandler
from crudserver.http.request import HTTPRequest
from crudserver.http.status_codes import HTTPStatus
from crudserver.models import User
from crudserver.store import UserStore


def make_request(method: str, path: str, body=None) -> HTTPRequest:
    if isinstance(body, (dict, list)):
        body = json.dumps(body).encode()
    return HTTPRequest(method=method, path=path, body=body or b"")


class TestUsersCollection:
    """Tests for /users."""

    def test_list_empty(self, app: HTTPServer):
        response = app.handle(make_request("GET", "/users"))

        assert response.status == HTTPStatus.OK
        assert response.json() == []

    def test_list_returns_all(self, app: HTTPServer, store: UserStore):
        store.create(User(name="A", email="a@x.com"))
        store.create(User(name="B", email="b@x.com"))

        response = app.handle(make_request("GET", "/users"))

        assert sorted(u["id"] for u in response.json()) == [1, 2]

    def test_create(self, app: HTTPServer, store: UserStore):
        response = app.handle(make_request("POST", "/users", {"name": "A", "email": "a@x.com"}))

        assert response.status == HTTPStatus.CREATED
        assert response.json() == {"id": 1, "name": "A", "email": "a@x.com"}
        assert response.headers["Location"] == "/users/1"
        assert store.get(1) == User(id=1, name="A", email="a@x.com")

    def test_create_ignores_body_id(self, app: HTTPServer):
        response = app.handle(make_request("POST", "/users", {"id": 42, "name": "A"}))

        assert response.json()["id"] == 1

    @pytest.mark.parametrize("body", [b"", b"{", b"[]", b'{"name": 1}'])
    def test_create_invalid_json(self, app: HTTPServer, store: UserStore, body: bytes):
        response = app.handle(make_request("POST", "/users", body))

        assert response.status == HTTPStatus.BAD_REQUEST
        assert response.text == "Invalid JSON\n"
        assert len(store) == 0

    def test_trailing_slash(self, app: HTTPServer):
        assert app.handle(make_request("GET", "/users/")).status == HTTPStatus.OK

    @pytest.mark.parametrize("method", ["PUT", "DELETE", "PATCH"])
    def test_other_methods_not_allowed(self, app: HTTPServer, method: str):
        response = app.handle(make_request(method, "/users"))

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.headers["Allow"] == "GET, POST"


class TestUsersItem:
    """Tests for /users/:id."""

    def test_get(self, app: HTTPServer, store: UserStore):
        store.create(User(name="A", email="a@x.com"))

        response = app.handle(make_request("GET", "/users/1"))

        assert response.status == HTTPStatus.OK
        assert response.json() == {"id": 1, "name": "A", "email": "a@x.com"}

    def test_get_missing(self, app: HTTPServer):
        response = app.handle(make_request("GET", "/users/9"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.text == "User Not Found\n"

    def test_get_negative_id_is_not_found(self, app: HTTPServer):
        assert app.handle(make_request("GET", "/users/-1")).status == HTTPStatus.NOT_FOUND

    @pytest.mark.parametrize("raw", ["abc", "1.0", "1e3"])
    def test_non_integer_id(self, app: HTTPServer, raw: str):
        response = app.handle(make_request("GET", f"/users/{raw}"))

        assert response.status == HTTPStatus.BAD_REQUEST

    def test_update(self, app: HTTPServer, store: UserStore):
        store.create(User(name="A", email="a@x.com"))

        response = app.handle(make_request("PUT", "/users/1", {"id": 77, "name": "B"}))

        assert response.status == HTTPStatus.OK
        assert response.json() == {"id": 1, "name": "B", "email": ""}
        assert store.get(1) == User(id=1, name="B", email="")
        assert 77 not in store

    def test_update_missing_creates_nothing(self, app: HTTPServer, store: UserStore):
        response = app.handle(make_request("PUT", "/users/5", {"name": "B"}))

        assert response.status == HTTPStatus.NOT_FOUND
        assert len(store) == 0

    def test_update_missing_with_bad_body_is_not_found(self, app: HTTPServer):
        """Existence is checked before the body is decoded."""
        response = app.handle(make_request("PUT", "/users/5", b"{"))

        assert response.status == HTTPStatus.NOT_FOUND

    def test_update_invalid_json(self, app: HTTPServer, store: UserStore):
        original = store.create(User(name="A"))

        response = app.handle(make_request("PUT", "/users/1", b"not json"))

        assert response.status == HTTPStatus.BAD_REQUEST
        assert response.text == "Invalid JSON\n"
        assert store.get(1) == original

    def test_delete(self, app: HTTPServer, store: UserStore):
        store.create(User(name="A"))

        response = app.handle(make_request("DELETE", "/users/1"))

        assert response.status == HTTPStatus.NO_CONTENT
        assert response.body == b""
        assert len(store) == 0

    def test_delete_missing_is_no_content(self, app: HTTPServer):
        response = app.handle(make_request("DELETE", "/users/9"))

        assert response.status == HTTPStatus.NO_CONTENT

    def test_post_not_allowed(self, app: HTTPServer):
        response = app.handle(make_request("POST", "/users/1"))

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.headers["Allow"] == "DELETE, GET, PUT"

    def test_users_routes_have_no_custom_header(self, app: HTTPServer, store: UserStore):
        store.create(User(name="A"))

        for request in (make_request("GET", "/users"), make_request("GET", "/users/1")):
            assert "X-Custom-Header" not in app.handle(request).headers


class TestUsersHandlerDirect:
    """UsersHandler methods called without a router."""

    def test_round_trip(self):
        store = UserStore()
        users = UsersHandler(store)

        created = users.create_user(make_request("POST", "/users", {"name": "A", "email": "a@x.com"}))

        request = make_request("GET", "/users/1")
        request.path_params = {"id": created.json()["id"]}
        fetched = users.get_user(request)

        assert fetched.json() == {"id": 1, "name": "A", "email": "a@x.com"}

    def test_post_then_get_uses_next_id(self):
        """The new id is previous max + 1."""
        store = UserStore()
        users = UsersHandler(store)
        for name in ("A", "B", "C"):
            store.create(User(name=name))
        previous_max = max(u.id for u in store.list())

        created = users.create_user(make_request("POST", "/users", {"name": "D", "email": "d@x.com"}))

        assert created.json()["id"] == previous_max + 1
