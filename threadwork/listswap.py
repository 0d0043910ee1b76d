"""A linked list of random strings walked and permuted by many threads.

Every node carries its own lock. Comparing threads walk the list hand over
hand with read locks; permuting threads hold three write locks at a time and
swap the last two of them at random.
"""

from __future__ import annotations

import argparse
import dataclasses
import enum
import random
import re
import sys
import threading
import time
from collections.abc import Callable

from .locks import SpinLock

VALUE_SIZE = 100
SWAP_INV_FREQUENCY = 2
DEFAULT_SIZE = 100

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class LockKind(enum.Enum):
    MUTEX = "mutex"
    SPINLOCK = "spin"
    RWLOCK = "rwlock"


class _ExclusiveLock:
    def __init__(self, lock: threading.Lock | SpinLock) -> None:
        self._lock = lock

    def acquire_read(self) -> None:
        self._lock.acquire()

    def acquire_write(self) -> None:
        self._lock.acquire()

    def release(self) -> None:
        self._lock.release()


class _RWLock:
    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._readers = 0
        self._writer = False

    def acquire_read(self) -> None:
        with self._cond:
            self._cond.wait_for(lambda: not self._writer)
            self._readers += 1

    def acquire_write(self) -> None:
        with self._cond:
            self._cond.wait_for(lambda: not self._writer and self._readers == 0)
            self._writer = True

    def release(self) -> None:
        with self._cond:
            if self._writer:
                self._writer = False
            elif self._readers:
                self._readers -= 1
            else:
                raise RuntimeError("release of an unlocked lock")
            self._cond.notify_all()


def _make_lock(kind: LockKind) -> _ExclusiveLock | _RWLock:
    if kind is LockKind.MUTEX:
        return _ExclusiveLock(threading.Lock())
    if kind is LockKind.SPINLOCK:
        return _ExclusiveLock(SpinLock())
    return _RWLock()


def random_value(rng: random.Random) -> str:
    """Return a string of fewer than 100 letters from ``a`` to ``y``."""
    letters = [chr(ord("a") + rng.randrange(ord("z") - ord("a"))) for _ in range(VALUE_SIZE)]
    return "".join(letters[: rng.randrange(VALUE_SIZE)])


def increasing(a: str, b: str) -> bool:
    return len(a) < len(b)


def decreasing(a: str, b: str) -> bool:
    return len(a) > len(b)


def equal(a: str, b: str) -> bool:
    return len(a) == len(b)


class Node:
    """One list element with its own lock."""

    __slots__ = ("value", "next", "lock")

    def __init__(self, value: str, lock_kind: LockKind = LockKind.MUTEX) -> None:
        self.value = value
        self.next: Node | None = None
        self.lock = _make_lock(lock_kind)


class LockedList:
    """Singly linked list of ``size`` random strings with per-node locks."""

    def __init__(
        self,
        size: int,
        lock_kind: LockKind = LockKind.MUTEX,
        rng: random.Random | None = None,
    ) -> None:
        if size < 0:
            raise ValueError("size must not be negative")
        source = rng if rng is not None else random.Random()
        self.lock_kind = LockKind(lock_kind)
        self.head: Node | None = None
        self._size = size
        for _ in range(size):
            node = Node(random_value(source), self.lock_kind)
            node.next = self.head
            self.head = node

    def values(self) -> list[str]:
        """Return the values from head to tail, read hand over hand."""
        current = self.head
        if current is None:
            return []
        found = []
        current.lock.acquire_read()
        while True:
            found.append(current.value)
            following = current.next
            if following is None:
                current.lock.release()
                return found
            following.lock.acquire_read()
            current.lock.release()
            current = following

    def traverse_compare(self, order: Callable[[str, str], bool]) -> int:
        """Apply ``order`` to every adjacent pair; return how many satisfied it."""
        current = self.head
        if current is None:
            return 0
        matched = 0
        current.lock.acquire_read()
        following = current.next
        while following is not None:
            following.lock.acquire_read()
            if order(current.value, following.value):
                matched += 1
            after = following.next
            current.lock.release()
            current, following = following, after
        current.lock.release()
        return matched

    def traverse_permute(self, rng: random.Random | None = None) -> int:
        """Walk the list swapping each pair after the head with probability 1/2.

        The head never moves. Returns the number of swaps made.
        """
        if self._size < 2 or self.head is None:
            raise ValueError("the list needs at least two nodes")
        source = rng if rng is not None else random

        first = self.head
        first.lock.acquire_write()
        second = first.next
        second.lock.acquire_write()
        third = second.next

        swaps = 0
        while third is not None:
            third.lock.acquire_write()
            if source.random() < 1 / SWAP_INV_FREQUENCY:
                first.next = third
                second.next = third.next
                third.next = second
                second, third = third, second
                swaps += 1
            fourth = third.next
            first.lock.release()
            first, second, third = second, third, fourth

        first.lock.release()
        second.lock.release()
        return swaps


@dataclasses.dataclass
class Counters:
    """How many full traversals each kind of thread has made."""

    increasing: int = 0
    decreasing: int = 0
    equal: int = 0
    swapped: int = 0

    @property
    def compared(self) -> int:
        return self.increasing + self.decreasing + self.equal

    @property
    def ratio(self) -> float:
        return (self.compared + 1) / (self.swapped + 1)


def format_counters(elapsed: int, counters: Counters) -> str:
    """Return one row of counters, preceded by a header when ``elapsed`` is 0."""
    row = (
        f"{elapsed:2d} {counters.increasing:9d} {counters.decreasing:9d} "
        f"{counters.equal:9d} {counters.compared:9d} {counters.swapped:9d} "
        f"{counters.ratio:9f}"
    )
    if elapsed != 0:
        return row
    header = " ".join(
        [f"{'':>2}"]
        + [f"{name:>9}" for name in ("incr.", "decr.", "eq.", "total", "swap", "cmp./swap")]
    )
    return header + "\n" + row


def _parse_size(text: str) -> int:
    match = _LEADING_INT.match(text)
    if match is None:
        return DEFAULT_SIZE
    return int(match.group(1)) or DEFAULT_SIZE


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    parser = argparse.ArgumentParser(
        prog="listswap", description="Compare and permute a shared list from many threads."
    )
    parser.add_argument("size", nargs="?", default=str(DEFAULT_SIZE))
    parser.add_argument(
        "--sync", choices=[kind.value for kind in LockKind], default=LockKind.MUTEX.value
    )
    parser.add_argument("--seconds", type=int, default=None)
    options = parser.parse_args(args)

    size = _parse_size(options.size)
    if size < 2:
        parser.error("the list needs at least two nodes")

    items = LockedList(size, LockKind(options.sync))
    counters = Counters()
    counters_lock = threading.Lock()
    stop = threading.Event()

    def compare_loop(order: Callable[[str, str], bool], name: str) -> None:
        while not stop.is_set():
            items.traverse_compare(order)
            with counters_lock:
                setattr(counters, name, getattr(counters, name) + 1)

    def permute_loop() -> None:
        rng = random.Random()
        while not stop.is_set():
            items.traverse_permute(rng)
            with counters_lock:
                counters.swapped += 1

    threads = [
        threading.Thread(target=compare_loop, args=(increasing, "increasing"), daemon=True),
        threading.Thread(target=compare_loop, args=(decreasing, "decreasing"), daemon=True),
        threading.Thread(target=compare_loop, args=(equal, "equal"), daemon=True),
    ] + [threading.Thread(target=permute_loop, daemon=True) for _ in range(3)]

    for thread in threads:
        thread.start()

    try:
        elapsed = 0
        while options.seconds is None or elapsed < options.seconds:
            with counters_lock:
                snapshot = dataclasses.replace(counters)
            print(format_counters(elapsed, snapshot), flush=True)
            time.sleep(1)
            elapsed += 1
    except KeyboardInterrupt:
        pass
    finally:
        stop.set()
        for thread in threads:
            thread.join()
    return 0


if __name__ == "__main__":
    sys.exit(main())