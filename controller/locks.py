"""Per-identity locks shared by the event and refresh paths."""

import threading
from contextlib import contextmanager
from typing import Hashable, Iterator


class KeyedLock:
    """
    One re-entrant lock per key, created on demand and dropped when unused.

    Callers holding different keys never block each other.

    Usage:
        locks = KeyedLock()
        with locks.hold(("default", "certificate")):
            ...
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._entries: dict[Hashable, list] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._entries.setdefault(key, [threading.RLock(), 0])
            entry[1] += 1
        lock = entry[0]

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._entries[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
