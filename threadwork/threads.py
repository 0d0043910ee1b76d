"""Joinable threads with cooperative cancellation and early exit.

A thread started with ``create_thread`` can detach itself, leave early with
``exit_thread`` from any depth of calls, and be cancelled by another thread.
Cancellation takes effect when the target calls ``testcancel``; a cancelled
thread's result is ``THREAD_CANCELED`` whatever it returned.
"""

from __future__ import annotations

import enum
import threading
from collections.abc import Callable
from typing import Any


class ThreadError(Exception):
    """A thread operation could not be carried out."""


class _Sentinel(enum.Enum):
    CANCELED = "canceled"

    def __repr__(self) -> str:
        return "THREAD_CANCELED"


THREAD_CANCELED = _Sentinel.CANCELED


class _Exit(BaseException):
    def __init__(self, retval: Any) -> None:
        super().__init__(retval)
        self.retval = retval


class _Cancel(BaseException):
    pass


_local = threading.local()


class Thread:
    """Handle of a thread started by ``create_thread``."""

    def __init__(self, start: Callable[[Any], Any], arg: Any = None) -> None:
        self._start = start
        self._arg = arg
        self._retval: Any = None
        self._error: Exception | None = None
        self._canceled = False
        self._detached = False
        self._joined = False
        self._thread = threading.Thread(target=self._entry, daemon=True)

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()

    @property
    def detached(self) -> bool:
        return self._detached

    @property
    def canceled(self) -> bool:
        return self._canceled

    def _entry(self) -> None:
        _local.current = self
        try:
            self._retval = self._start(self._arg)
        except _Exit as exc:
            self._retval = exc.retval
        except _Cancel:
            pass
        except Exception as exc:
            self._error = exc
        if self._canceled:
            self._retval = THREAD_CANCELED

    def join(self) -> Any:
        """Wait for the thread to end and return its result.

        Raises ThreadError if the thread detached itself, was already joined,
        or ended with an exception.
        """
        if self._thread is threading.current_thread():
            raise ThreadError("a thread cannot join itself")
        self._thread.join()
        if self._detached:
            raise ThreadError("cannot join a detached thread")
        if self._joined:
            raise ThreadError("thread was already joined")
        self._joined = True
        if self._error is not None:
            raise ThreadError(f"thread failed: {self._error}") from self._error
        return self._retval

    def cancel(self) -> None:
        """Ask the thread to stop at its next ``testcancel``."""
        self._canceled = True


def _self() -> Thread:
    current = getattr(_local, "current", None)
    if current is None:
        raise ThreadError("not called from a thread started by create_thread")
    return current


def create_thread(start: Callable[[Any], Any], arg: Any = None) -> Thread:
    """Start ``start(arg)`` on a new thread and return its handle."""
    thread = Thread(start, arg)
    try:
        thread._thread.start()
    except RuntimeError as exc:
        raise ThreadError(f"cannot start thread: {exc}") from exc
    return thread


def detach() -> None:
    """Detach the calling thread; it can no longer be joined."""
    _self()._detached = True


def testcancel() -> None:
    """End the calling thread here if it has been cancelled."""
    if _self()._canceled:
        raise _Cancel()


def exit_thread(retval: Any) -> None:
    """End the calling thread now with ``retval`` as its result."""
    _self()
    raise _Exit(retval)