"""Open-addressing hash map with linear probing keyed by strings."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from .hashing import hash64


class HashMap:
    """String-keyed map with linear probing.

    ``insert`` does not look for an existing entry with the same key: callers
    check with ``get`` first. ``get`` returns the earliest reachable entry.
    """

    def __init__(self) -> None:
        self._entries: list[tuple[str, Any] | None] = []
        self._len = 0

    def __len__(self) -> int:
        return self._len

    def _probe(self, key: str) -> Iterator[int]:
        capacity = len(self._entries)
        start = hash64(key) % capacity
        for step in range(capacity):
            yield (start + step) % capacity

    def _place(self, key: str, value: Any) -> None:
        for idx in self._probe(key):
            if self._entries[idx] is None:
                self._entries[idx] = (key, value)
                self._len += 1
                return
        raise RuntimeError("hash map has no free slot")

    def _grow(self) -> None:
        old = self._entries
        self._entries = [None] * (len(old) * 2 or 2)
        self._len = 0
        for entry in old:
            if entry is not None:
                self._place(*entry)

    def _find(self, key: str) -> int | None:
        if self._len == 0:
            return None
        for idx in self._probe(key):
            entry = self._entries[idx]
            if entry is None:
                return None
            if entry[0] == key:
                return idx
        return None

    def insert(self, key: str, value: Any) -> None:
        """Add ``key`` with ``value``, growing so the table stays under half full."""
        if self._len >= len(self._entries) // 2:
            self._grow()
        self._place(key, value)

    def get(self, key: str) -> Any:
        """Return the value stored for ``key`` or None."""
        idx = self._find(key)
        if idx is None:
            return None
        return self._entries[idx][1]

    def remove(self, key: str) -> Any:
        """Remove ``key`` and return its value, or None when it is absent."""
        idx = self._find(key)
        if idx is None:
            return None

        _, value = self._entries[idx]
        self._entries[idx] = None
        self._len -= 1

        capacity = len(self._entries)
        follower = (idx + 1) % capacity
        while self._entries[follower] is not None:
            moved = self._entries[follower]
            self._entries[follower] = None
            self._len -= 1
            self._place(*moved)
            follower = (follower + 1) % capacity

        return value