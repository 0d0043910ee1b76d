"""A busy-waiting spin lock and a mutex that spins before it sleeps."""

from __future__ import annotations

import threading
import time

SPINS = 100


class SpinLock:
    """Lock that waits by repeatedly trying to take the flag."""

    def __init__(self) -> None:
        self._flag = threading.Lock()

    def acquire(self) -> bool:
        while not self._flag.acquire(blocking=False):
            time.sleep(0)
        return True

    def release(self) -> None:
        """Release the lock; RuntimeError if it was not held."""
        self._flag.release()

    def locked(self) -> bool:
        return self._flag.locked()

    def __enter__(self) -> SpinLock:
        self.acquire()
        return self

    def __exit__(self, *args: object) -> None:
        self.release()


class Mutex:
    """Lock that tries a bounded number of times, then sleeps until woken."""

    def __init__(self) -> None:
        self._flag = threading.Lock()
        self._wakeup = threading.Condition(threading.Lock())

    def acquire(self) -> bool:
        while True:
            for _ in range(SPINS):
                if self._flag.acquire(blocking=False):
                    return True
            with self._wakeup:
                if self._flag.locked():
                    self._wakeup.wait()

    def release(self) -> None:
        """Release the lock and wake one sleeping waiter."""
        self._flag.release()
        with self._wakeup:
            self._wakeup.notify()

    def locked(self) -> bool:
        return self._flag.locked()

    def __enter__(self) -> Mutex:
        self.acquire()
        return self

    def __exit__(self, *args: object) -> None:
        self.release()