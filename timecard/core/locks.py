"""
Keyed in-process locks - one re-entrant lock per (user_id, day)
"""
import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterable, Iterator, List


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.holders = 0


class KeyedLock:
    """
    Serializes work per key. Different keys never wait on each other.

    Entries are reference counted and dropped once nobody holds or waits
    on them, so the registry does not grow with every user-day ever seen.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: Dict[Hashable, _Entry] = {}

    def _checkout(self, key: Hashable) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.holders += 1
            return entry

    def _release(self, key: Hashable, entry: _Entry) -> None:
        with self._guard:
            entry.holders -= 1
            if entry.holders == 0:
                self._entries.pop(key, None)

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        entry = self._checkout(key)
        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            self._release(key, entry)

    @contextmanager
    def hold_many(self, keys: Iterable[Hashable]) -> Iterator[None]:
        """Acquire several keys in sorted order"""
        ordered: List[Hashable] = sorted(set(keys))
        acquired: List[tuple] = []
        try:
            for key in ordered:
                entry = self._checkout(key)
                entry.lock.acquire()
                acquired.append((key, entry))
            yield
        finally:
            for key, entry in reversed(acquired):
                entry.lock.release()
                self._release(key, entry)

    def active_keys(self) -> int:
        with self._guard:
            return len(self._entries)


day_locks = KeyedLock()
