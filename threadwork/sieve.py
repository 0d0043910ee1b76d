"""Thread-safe SIEVE cache keyed by strings."""

from __future__ import annotations

import threading
from typing import Any

from .hashmap import HashMap


class _Entry:
    __slots__ = ("key", "value", "visited", "prev", "next")

    def __init__(self, key: str, value: Any) -> None:
        self.key = key
        self.value = value
        self.visited = False
        self.prev: _Entry | None = None
        self.next: _Entry | None = None


class SieveCache:
    """Fixed-capacity cache that evicts with the SIEVE algorithm.

    Entries are kept from oldest (tail) to newest (head). A hit marks an
    entry visited; eviction walks the hand from old to new, clearing visited
    marks, and removes the first entry that was not visited.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._map = HashMap()
        self._head: _Entry | None = None
        self._tail: _Entry | None = None
        self._hand: _Entry | None = None
        self._len = 0
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return self._len

    def keys(self) -> list[str]:
        """Return the cached keys from oldest to newest."""
        with self._lock:
            found = []
            entry = self._tail
            while entry is not None:
                found.append(entry.key)
                entry = entry.next
            return found

    def lookup(self, key: str) -> Any:
        """Return the value for ``key`` and mark it visited, or None."""
        with self._lock:
            entry = self._map.get(key)
            if entry is None:
                return None
            entry.visited = True
            return entry.value

    def insert(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, evicting one entry if full.

        An existing entry for ``key`` has its value replaced.
        """
        with self._lock:
            self._store(key, value)

    def lookup_or_insert(self, key: str, value: Any) -> Any:
        """Return the cached value for ``key``; if absent, store ``value`` and return None."""
        with self._lock:
            entry = self._map.get(key)
            if entry is not None:
                entry.visited = True
                return entry.value
            self._store(key, value)
            return None

    def _store(self, key: str, value: Any) -> None:
        entry = self._map.get(key)
        if entry is not None:
            entry.value = value
            return
        if self._len == self._capacity:
            self._evict()
        self._append(key, value)

    def _append(self, key: str, value: Any) -> None:
        entry = _Entry(key, value)
        if self._head is None:
            self._head = self._tail = self._hand = entry
        else:
            entry.prev = self._head
            self._head.next = entry
            self._head = entry
        self._map.insert(key, entry)
        self._len += 1

    def _evict(self) -> None:
        curr = self._hand if self._hand is not None else self._tail
        while curr.visited:
            curr.visited = False
            curr = curr.next if curr.next is not None else self._tail

        prev, nxt = curr.prev, curr.next
        if prev is not None:
            prev.next = nxt
        else:
            self._tail = nxt
        if nxt is not None:
            nxt.prev = prev
        else:
            self._head = prev

        self._hand = nxt if nxt is not None else self._tail
        self._map.remove(curr.key)
        self._len -= 1