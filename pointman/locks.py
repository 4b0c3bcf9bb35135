"""Per-user mutual exclusion for in-process callers."""

import threading
from contextlib import contextmanager


class UserLocks:
    """
    Registry of one lock per user id.

    A user's lock exists only while some thread holds it or waits on it,
    so the registry does not grow with the number of users ever seen.
    Different users never contend.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, list] = {}  # user_id -> [lock, refcount]

    @contextmanager
    def hold(self, user_id: str):
        with self._guard:
            slot = self._locks.get(user_id)
            if slot is None:
                slot = self._locks[user_id] = [threading.Lock(), 0]
            slot[1] += 1

        lock = slot[0]
        try:
            with lock:
                yield
        finally:
            with self._guard:
                slot[1] -= 1
                if slot[1] == 0:
                    del self._locks[user_id]

    def __len__(self):
        with self._guard:
            return len(self._locks)
