"""A growing byte stream written by one producer and read by many consumers."""

from __future__ import annotations

import threading
from collections.abc import Iterator


class StreamError(Exception):
    """The producer of a stream failed, or the stream was misused."""


class Stream:
    """Append-only buffer whose readers block until more data arrives."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._data = bytearray()
        self._complete = False
        self._erred = False
        self._cond = threading.Condition()

    @property
    def capacity(self) -> int:
        """Size of the current buffer; doubles whenever it fills up."""
        with self._cond:
            return self._capacity

    @property
    def complete(self) -> bool:
        with self._cond:
            return self._complete

    @property
    def erred(self) -> bool:
        with self._cond:
            return self._erred

    def __len__(self) -> int:
        with self._cond:
            return len(self._data)

    def feed(self, data: bytes) -> None:
        """Append ``data`` and wake every waiting reader."""
        with self._cond:
            if self._complete or self._erred:
                raise StreamError("stream is already closed")
            self._data += data
            while len(self._data) > self._capacity:
                self._capacity *= 2
            self._cond.notify_all()

    def finish(self) -> None:
        """Mark the stream complete; readers drain what is left and stop."""
        with self._cond:
            self._complete = True
            self._cond.notify_all()

    def signal_error(self) -> None:
        """Mark the stream failed; every reader gets a StreamError."""
        with self._cond:
            self._erred = True
            self._cond.notify_all()

    def read_from(self, offset: int) -> bytes:
        """Block until data past ``offset`` exists and return all of it.

        Returns ``b""`` once the stream is complete and fully read.
        """
        if offset < 0:
            raise ValueError("offset must not be negative")
        with self._cond:
            self._cond.wait_for(
                lambda: offset < len(self._data) or self._complete or self._erred
            )
            if self._erred:
                raise StreamError("stream producer failed")
            return bytes(self._data[offset:])

    def chunks(self) -> Iterator[bytes]:
        """Yield the stream's content from the start until it is complete."""
        offset = 0
        while True:
            chunk = self.read_from(offset)
            if not chunk:
                return
            offset += len(chunk)
            yield chunk