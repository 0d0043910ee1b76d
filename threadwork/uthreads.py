"""Cooperative user-level threads run one at a time by a scheduler.

Each uthread runs on its own interpreter thread, but only the one holding
the scheduler's turn runs; the others wait until they are handed the turn.
Control changes hands only in ``spawn``, ``yield_now``, ``sleep``, ``usleep``
and ``join``, always in round-robin order, skipping uthreads that are
joining another one or still sleeping.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any


class UThreadError(Exception):
    """A uthread operation could not be carried out."""


class UThread:
    """One cooperatively scheduled thread of control."""

    def __init__(self) -> None:
        self.retval: Any = None
        self.wait_until = 0.0
        self.waiting_on: UThread | None = None
        self._exited = False
        self._detached = False
        self._joined = False
        self._error: Exception | None = None
        self._turn = threading.Event()
        self._ident: int | None = None

    @property
    def exited(self) -> bool:
        return self._exited

    @property
    def detached(self) -> bool:
        return self._detached


class Scheduler:
    """Round-robin scheduler; the thread that creates it becomes the main uthread."""

    def __init__(self) -> None:
        main = UThread()
        main._ident = threading.get_ident()
        self._queue: list[UThread] = [main]
        self._current = main

    @property
    def current(self) -> UThread:
        return self._current

    def _check_caller(self) -> UThread:
        current = self._current
        if threading.get_ident() != current._ident:
            raise UThreadError("called from a thread that does not hold the turn")
        return current

    def spawn(self, start: Callable[[Any], Any], arg: Any = None) -> UThread:
        """Create a uthread running ``start(arg)`` and yield to the scheduler."""
        self._check_caller()
        uthread = UThread()
        thread = threading.Thread(
            target=self._entry, args=(uthread, start, arg), daemon=True
        )
        try:
            thread.start()
        except RuntimeError as exc:
            raise UThreadError(f"cannot start uthread: {exc}") from exc
        uthread._ident = thread.ident
        self._queue.append(uthread)
        self.yield_now()
        return uthread

    def _entry(self, uthread: UThread, start: Callable[[Any], Any], arg: Any) -> None:
        uthread._turn.wait()
        uthread._turn.clear()
        try:
            uthread.retval = start(arg)
        except Exception as exc:
            uthread._error = exc
        self._finish(uthread)

    def _finish(self, uthread: UThread) -> None:
        uthread._exited = True
        idx = self._queue.index(uthread)
        del self._queue[idx]
        for other in self._queue:
            if other.waiting_on is uthread:
                other.waiting_on = None
        self._hand_over(uthread, self._queue[idx:] + self._queue[:idx])

    def _rotation(self, current: UThread) -> list[UThread]:
        idx = self._queue.index(current)
        return self._queue[idx + 1:] + self._queue[: idx + 1]

    def _pick(self, candidates: list[UThread]) -> tuple[UThread | None, float | None]:
        now = time.monotonic()
        earliest: float | None = None
        for candidate in candidates:
            if candidate.waiting_on is not None:
                continue
            if candidate.wait_until <= now:
                return candidate, None
            if earliest is None or candidate.wait_until < earliest:
                earliest = candidate.wait_until
        return None, earliest

    def _hand_over(self, current: UThread, candidates: list[UThread]) -> None:
        while True:
            chosen, earliest = self._pick(candidates)
            if chosen is not None:
                break
            if earliest is None:
                raise UThreadError("no uthread can run")
            time.sleep(max(0.0, earliest - time.monotonic()))

        if chosen is current:
            return
        self._current = chosen
        chosen._turn.set()
        if not current._exited:
            current._turn.wait()
            current._turn.clear()

    def yield_now(self) -> None:
        """Let the next ready uthread run."""
        current = self._check_caller()
        self._hand_over(current, self._rotation(current))

    def sleep(self, seconds: float) -> None:
        self.usleep(seconds * 1_000_000)

    def usleep(self, microseconds: float) -> None:
        """Suspend the calling uthread for at least ``microseconds``."""
        current = self._check_caller()
        current.wait_until = time.monotonic() + microseconds / 1_000_000
        self._hand_over(current, self._rotation(current))

    def join(self, uthread: UThread) -> Any:
        """Wait for ``uthread`` to end and return its result."""
        current = self._check_caller()
        if uthread is current:
            raise UThreadError("a uthread cannot join itself")
        if uthread._detached:
            raise UThreadError("cannot join a detached uthread")
        if uthread._joined:
            raise UThreadError("uthread was already joined")

        if not uthread._exited:
            current.waiting_on = uthread
            try:
                self._hand_over(current, self._rotation(current))
            except UThreadError:
                current.waiting_on = None
                raise

        uthread._joined = True
        if uthread._error is not None:
            raise UThreadError(f"uthread failed: {uthread._error}") from uthread._error
        return uthread.retval

    def detach(self) -> None:
        """Detach the calling uthread; it can no longer be joined."""
        self._check_caller()._detached = True