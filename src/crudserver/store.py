"""
=============================================================================
IN-MEMORY USER STORE
=============================================================================

A dict of id → User guarded by one lock, plus the id sequence.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                            UserStore                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   _lock      RLock   every read and write happens while held        │
    │   _users     {1: User(1, ...), 3: User(3, ...)}                     │
    │   _next_id   4       never decremented; deleted ids are not reused  │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Invariant: for every entry, key == value.id.

=============================================================================
WHY AN RLOCK
=============================================================================

Each method locks on its own, so a single call is always atomic. The item
handler also needs several calls to happen as ONE critical section
("does 7 exist? then decode and replace it"), so it holds store.lock
around them:

    with store.lock:
        if store.get(7) is None:
            return not_found(...)
        store.replace(7, user)

The nested acquisitions inside get()/replace() are by the same thread,
which an RLock allows and a plain Lock would deadlock on.

=============================================================================
"""

import logging
import threading
from typing import Dict, List, Optional

from .models import User


logger = logging.getLogger(__name__)


class UserStore:
    """
    Thread-safe in-memory user storage.

    Created empty; lives as long as the AppContext that owns it.
    Nothing is ever written to disk.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._users: Dict[int, User] = {}
        self._next_id = 1

    @property
    def lock(self) -> threading.RLock:
        """The store's lock, for handlers that need a multi-step critical section."""
        return self._lock

    def list(self) -> List[User]:
        """
        Snapshot of all users.

        The copy is taken under the lock; callers serialize it after the
        lock is released. Order is insertion order, which callers must not
        rely on.
        """
        with self._lock:
            return list(self._users.values())

    def create(self, user: User) -> User:
        """Assign the next id to user, store it and return the stored record."""
        with self._lock:
            stored = user.with_id(self._next_id)
            self._next_id += 1
            self._users[stored.id] = stored

        logger.debug(f"Created user {stored.id}")
        return stored

    def get(self, user_id: int) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def replace(self, user_id: int, user: User) -> Optional[User]:
        """
        Overwrite an existing user entirely, keeping user_id.

        Returns:
            The stored record, or None if user_id is unknown (nothing is created).
        """
        with self._lock:
            if user_id not in self._users:
                return None
            stored = user.with_id(user_id)
            self._users[user_id] = stored
            return stored

    def delete(self, user_id: int) -> bool:
        """
        Remove a user if present.

        Returns:
            True if something was removed. Deleting an unknown id is not an error.
        """
        with self._lock:
            removed = self._users.pop(user_id, None) is not None

        if removed:
            logger.debug(f"Deleted user {user_id}")
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)

    def __contains__(self, user_id: int) -> bool:
        with self._lock:
            return user_id in self._users
