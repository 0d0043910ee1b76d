"""Bounded integer queue whose statistics a background thread reports."""

from __future__ import annotations

import os
import sys
import threading
import time
from collections import deque
from typing import TextIO

DEFAULT_INTERVAL = 1.0
EXAMPLE_SIZE = 1000


def _ids() -> str:
    return f"[{os.getpid()} {os.getppid()} {threading.get_native_id()}]"


def _pin_to_cpu(cpu: int) -> None:
    setaffinity = getattr(os, "sched_setaffinity", None)
    if setaffinity is None:
        return
    try:
        setaffinity(0, {cpu})
    except OSError:
        pass


class MonitoredQueue:
    """FIFO queue of at most ``max_count`` integers.

    The queue takes no locks: it is meant for one reader and one writer.
    A monitor thread writes the statistics every ``monitor_interval``
    seconds until the queue is closed; ``None`` turns the monitor off.
    """

    def __init__(
        self,
        max_count: int,
        monitor_interval: float | None = DEFAULT_INTERVAL,
        out: TextIO | None = None,
    ) -> None:
        if max_count < 0:
            raise ValueError("max_count must not be negative")
        if monitor_interval is not None and monitor_interval <= 0:
            raise ValueError("monitor_interval must be positive")

        self.max_count = max_count
        self.add_attempts = 0
        self.get_attempts = 0
        self.add_count = 0
        self.get_count = 0
        self._items: deque[int] = deque()
        self._out = out
        self._closed = False
        self._stop = threading.Event()
        self._monitor: threading.Thread | None = None

        if monitor_interval is not None:
            self._monitor = threading.Thread(
                target=self._run_monitor,
                args=(monitor_interval,),
                name="qmonitor",
                daemon=True,
            )
            self._monitor.start()

    def _write(self, line: str) -> None:
        stream = sys.stdout if self._out is None else self._out
        stream.write(line + "\n")

    def _run_monitor(self, interval: float) -> None:
        self._write(f"qmonitor: {_ids()}")
        while True:
            self._write(self.format_stats())
            if self._stop.wait(interval):
                return

    def __len__(self) -> int:
        return len(self._items)

    def __enter__(self) -> MonitoredQueue:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def add(self, value: int) -> bool:
        """Append ``value``; return False if the queue was full."""
        if self._closed:
            raise ValueError("queue is closed")
        self.add_attempts += 1
        if len(self._items) >= self.max_count:
            return False
        self._items.append(value)
        self.add_count += 1
        return True

    def get(self) -> int | None:
        """Remove and return the oldest value, or None if the queue was empty."""
        if self._closed:
            raise ValueError("queue is closed")
        self.get_attempts += 1
        if not self._items:
            return None
        value = self._items.popleft()
        self.get_count += 1
        return value

    def format_stats(self) -> str:
        return (
            f"queue stats: current size {len(self._items)}; "
            f"attempts: ({self.add_attempts} {self.get_attempts} "
            f"{self.add_attempts - self.get_attempts}); "
            f"counts ({self.add_count} {self.get_count} "
            f"{self.add_count - self.get_count})"
        )

    def close(self) -> None:
        """Stop the monitor and drop every queued value."""
        self._stop.set()
        if self._monitor is not None:
            self._monitor.join()
            self._monitor = None
        self._items.clear()
        self._closed = True


def run_example(out: TextIO | None = None) -> None:
    """Add ten values to a queue and try to take twelve, reporting each step."""
    stream = sys.stdout if out is None else out

    def emit(line: str) -> None:
        stream.write(line + "\n")

    emit(f"main: {_ids()}")
    with MonitoredQueue(EXAMPLE_SIZE, DEFAULT_INTERVAL, out) as queue:
        for value in range(10):
            ok = queue.add(value)
            emit(f"ok {int(ok)}: add value {value}")
            emit(queue.format_stats())

        for _ in range(12):
            got = queue.get()
            ok = got is not None
            emit(f"ok: {int(ok)}: get value {got if ok else -1}")
            emit(queue.format_stats())


def run_race(queue: MonitoredQueue, seconds: float) -> list[tuple[int, int]]:
    """Run a writer of 0, 1, 2, ... and a checking reader for ``seconds``.

    Returns the (expected, actual) pairs the reader found out of order.
    """
    if seconds < 0:
        raise ValueError("seconds must not be negative")

    stop = threading.Event()
    errors: list[tuple[int, int]] = []

    def reader() -> None:
        _pin_to_cpu(1)
        expected = 0
        while not stop.is_set():
            value = queue.get()
            if value is None:
                continue
            if value != expected:
                errors.append((expected, value))
            expected = value + 1

    def writer() -> None:
        _pin_to_cpu(0)
        value = 0
        while not stop.is_set():
            if queue.add(value):
                value += 1

    threads = [
        threading.Thread(target=reader, name="reader", daemon=True),
        threading.Thread(target=writer, name="writer", daemon=True),
    ]
    for thread in threads:
        thread.start()
    time.sleep(seconds)
    stop.set()
    for thread in threads:
        thread.join()
    return errors