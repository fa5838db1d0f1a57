"""
Unit tests for the in-memory user store.
"""

import threading

from crudserver.models import User
from crudserver.store import UserStore


class TestUserStore:
    """Tests for UserStore operations."""

    def test_starts_empty(self, store: UserStore):
        assert len(store) == 0
        assert store.list() == []

    def test_create_assigns_sequential_ids(self, store: UserStore):
        first = store.create(User(name="A"))
        second = store.create(User(name="B"))

        assert (first.id, second.id) == (1, 2)
        assert 1 in store and 2 in store

    def test_create_ignores_incoming_id(self, store: UserStore):
        assert store.create(User(id=50, name="A")).id == 1

    def test_ids_are_not_reused(self, store: UserStore):
        store.create(User(name="A"))
        second = store.create(User(name="B"))
        store.delete(second.id)

        assert store.create(User(name="C")).id == 3

    def test_key_matches_record_id(self, store: UserStore):
        for name in "ABC":
            store.create(User(name=name))

        for user in store.list():
            assert store.get(user.id) == user

    def test_get_missing(self, store: UserStore):
        assert store.get(1) is None

    def test_list_is_a_copy(self, store: UserStore):
        store.create(User(name="A"))
        users = store.list()
        users.clear()

        assert len(store) == 1

    def test_replace_forces_id(self, store: UserStore):
        created = store.create(User(name="A", email="a@x.com"))

        replaced = store.replace(created.id, User(id=99, name="B"))

        assert replaced == User(id=created.id, name="B", email="")
        assert store.get(created.id) == replaced
        assert 99 not in store

    def test_replace_missing_creates_nothing(self, store: UserStore):
        assert store.replace(7, User(name="A")) is None
        assert len(store) == 0

    def test_delete(self, store: UserStore):
        created = store.create(User(name="A"))

        assert store.delete(created.id) is True
        assert store.get(created.id) is None

    def test_delete_missing_is_not_an_error(self, store: UserStore):
        assert store.delete(7) is False

    def test_lock_is_reentrant(self, store: UserStore):
        created = store.create(User(name="A"))

        with store.lock:
            assert store.get(created.id) is not None
            store.replace(created.id, User(name="B"))

        assert store.get(created.id).name == "B"


class TestUserStoreConcurrency:
    """Tests for concurrent access."""

    def test_concurrent_creates_get_unique_ids(self, store: UserStore):
        threads_count = 16
        per_thread = 50
        results = []
        results_lock = threading.Lock()
        start = threading.Barrier(threads_count)

        def worker():
            start.wait()
            ids = [store.create(User(name="x")).id for _ in range(per_thread)]
            with results_lock:
                results.extend(ids)

        threads = [threading.Thread(target=worker) for _ in range(threads_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        total = threads_count * per_thread
        assert len(results) == total
        assert sorted(results) == list(range(1, total + 1))
        assert len(store) == total
