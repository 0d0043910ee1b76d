"""Bounded FIFO queues of integers, each guarded by a different primitive.

Every queue keeps the same statistics: how often adding and getting were
attempted and how often they succeeded. The variants differ only in how the
two sides are synchronised:

* ``MutexQueue`` and ``SpinQueue`` never block: ``add`` on a full queue
  returns False and ``get`` on an empty queue returns None.
* ``CondQueue`` and ``SemaphoreQueue`` block: ``add`` waits for room and
  ``get`` waits for a value.
"""

from __future__ import annotations

import abc
import threading
import time
from collections import deque
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass

_COLUMNS = (
    "count",
    "add att.",
    "get att.",
    "diff",
    "add cnt.",
    "get cnt.",
    "diff",
)


def _row(cells: tuple[object, ...]) -> str:
    return " ".join(f"{cell:>9}" for cell in cells)


@dataclass(frozen=True)
class QueueStats:
    """A snapshot of a queue's size and counters."""

    count: int
    add_attempts: int
    get_attempts: int
    add_count: int
    get_count: int

    @property
    def attempts_diff(self) -> int:
        return self.add_attempts - self.get_attempts

    @property
    def count_diff(self) -> int:
        return self.add_count - self.get_count

    def format(self) -> str:
        """Return a header line and a value line, in aligned columns."""
        values = (
            self.count,
            self.add_attempts,
            self.get_attempts,
            self.attempts_diff,
            self.add_count,
            self.get_count,
            self.count_diff,
        )
        return _row(_COLUMNS) + "\n" + _row(values)


class BoundedQueue(abc.ABC):
    """FIFO queue holding at most ``max_count`` values."""

    def __init__(self, max_count: int) -> None:
        if max_count < 1:
            raise ValueError("max_count must be positive")
        self.max_count = max_count
        self._items: deque[int] = deque()
        self._add_attempts = 0
        self._get_attempts = 0
        self._add_count = 0
        self._get_count = 0

    @abc.abstractmethod
    def _adding(self) -> AbstractContextManager[object]:
        """Guard held while a value is added."""

    @abc.abstractmethod
    def _getting(self) -> AbstractContextManager[object]:
        """Guard held while a value is taken."""

    def __len__(self) -> int:
        return len(self._items)

    def add(self, value: int) -> bool:
        """Append ``value``; return False if the queue was full."""
        with self._adding():
            self._add_attempts += 1
            if len(self._items) >= self.max_count:
                return False
            self._items.append(value)
            self._add_count += 1
            return True

    def get(self) -> int | None:
        """Remove and return the oldest value, or None if the queue was empty."""
        with self._getting():
            self._get_attempts += 1
            if not self._items:
                return None
            value = self._items.popleft()
            self._get_count += 1
            return value

    def stats(self) -> QueueStats:
        return QueueStats(
            count=len(self._items),
            add_attempts=self._add_attempts,
            get_attempts=self._get_attempts,
            add_count=self._add_count,
            get_count=self._get_count,
        )

    def format_stats(self) -> str:
        return self.stats().format()


class MutexQueue(BoundedQueue):
    """Both sides share one mutex."""

    def __init__(self, max_count: int) -> None:
        super().__init__(max_count)
        self._lock = threading.Lock()

    def _adding(self) -> AbstractContextManager[object]:
        return self._lock

    def _getting(self) -> AbstractContextManager[object]:
        return self._lock


class _SpinLock:
    def __init__(self) -> None:
        self._flag = threading.Lock()

    def __enter__(self) -> None:
        while not self._flag.acquire(blocking=False):
            time.sleep(0)

    def __exit__(self, *args: object) -> None:
        self._flag.release()


class SpinQueue(BoundedQueue):
    """Both sides share one busy-waiting lock."""

    def __init__(self, max_count: int) -> None:
        super().__init__(max_count)
        self._spin = _SpinLock()

    def _adding(self) -> AbstractContextManager[object]:
        return self._spin

    def _getting(self) -> AbstractContextManager[object]:
        return self._spin


class CondQueue(BoundedQueue):
    """A mutex and condition variable; adders wait for room, getters for data."""

    def __init__(self, max_count: int) -> None:
        super().__init__(max_count)
        self._cond = threading.Condition()

    @contextmanager
    def _adding(self) -> Iterator[None]:
        with self._cond:
            self._cond.wait_for(lambda: len(self._items) < self.max_count)
            yield
            if len(self._items) == 1:
                self._cond.notify_all()

    @contextmanager
    def _getting(self) -> Iterator[None]:
        with self._cond:
            self._cond.wait_for(lambda: len(self._items) > 0)
            yield
            if len(self._items) == self.max_count - 1:
                self._cond.notify_all()


class SemaphoreQueue(BoundedQueue):
    """Counting semaphores for free and used slots plus a binary lock."""

    def __init__(self, max_count: int) -> None:
        super().__init__(max_count)
        self._empty = threading.Semaphore(max_count)
        self._full = threading.Semaphore(0)
        self._lock = threading.Semaphore(1)

    @contextmanager
    def _adding(self) -> Iterator[None]:
        self._empty.acquire()
        self._lock.acquire()
        try:
            yield
        finally:
            self._lock.release()
            self._full.release()

    @contextmanager
    def _getting(self) -> Iterator[None]:
        self._full.acquire()
        self._lock.acquire()
        try:
            yield
        finally:
            self._lock.release()
            self._empty.release()