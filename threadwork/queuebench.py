"""Reader/writer benchmark for the bounded queues."""

from __future__ import annotations

import argparse
import os
import re
import sys
import threading
import time
from dataclasses import dataclass, field

from .boundedqueue import (
    BoundedQueue,
    CondQueue,
    MutexQueue,
    QueueStats,
    SemaphoreQueue,
    SpinQueue,
)

try:
    import resource
except ImportError:  # not available on every platform
    resource = None

QUEUE_SIZE = 1000
DEFAULT_SECONDS = 5

VARIANTS: dict[str, type[BoundedQueue]] = {
    "mutex": MutexQueue,
    "spin": SpinQueue,
    "cond": CondQueue,
    "sem": SemaphoreQueue,
}

_JOIN_POLL = 0.05
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

Usage = tuple[float, float]


@dataclass(frozen=True)
class BenchResult:
    """Outcome of one benchmark run.

    ``inconsistencies`` holds (expected, actual) pairs for every value the
    reader got out of order. A usage is (user ms, system ms) for a thread, or
    None where the platform cannot report it.
    """

    stats: QueueStats
    inconsistencies: tuple[tuple[int, int], ...]
    reader_usage: Usage | None
    writer_usage: Usage | None


@dataclass
class _State:
    stop: threading.Event = field(default_factory=threading.Event)
    next_value: int = 0
    inconsistencies: list[tuple[int, int]] = field(default_factory=list)
    reader_usage: Usage | None = None
    writer_usage: Usage | None = None


def _thread_usage() -> Usage | None:
    who = getattr(resource, "RUSAGE_THREAD", None)
    if who is None:
        return None
    try:
        usage = resource.getrusage(who)
    except OSError:
        return None
    return usage.ru_utime * 1e3, usage.ru_stime * 1e3


def _reader(queue: BoundedQueue, state: _State) -> None:
    try:
        expected = 0
        while not state.stop.is_set():
            value = queue.get()
            if value is None:
                continue
            if value != expected:
                state.inconsistencies.append((expected, value))
            expected = value + 1
    finally:
        state.reader_usage = _thread_usage()


def _writer(queue: BoundedQueue, state: _State, sleep: bool) -> None:
    try:
        value = 0
        while not state.stop.is_set():
            if not queue.add(value):
                continue
            value += 1
            state.next_value = value
            if sleep:
                time.sleep(1e-6)
    finally:
        state.writer_usage = _thread_usage()


def run(queue: BoundedQueue, seconds: float, sleep: bool = False) -> BenchResult:
    """Run one writer and one reader on ``queue`` for ``seconds``.

    The writer adds 0, 1, 2, ... and the reader checks it gets them in that
    order. A thread left blocked on a full or empty queue when the other one
    has stopped is released by taking or adding one value.
    """
    if seconds < 0:
        raise ValueError("seconds must not be negative")

    state = _State()
    writer = threading.Thread(
        target=_writer, args=(queue, state, sleep), name="writer", daemon=True
    )
    reader = threading.Thread(
        target=_reader, args=(queue, state), name="reader", daemon=True
    )
    writer.start()
    reader.start()

    time.sleep(seconds)
    state.stop.set()

    while writer.is_alive() or reader.is_alive():
        writer.join(_JOIN_POLL)
        reader.join(_JOIN_POLL)
        if (
            writer.is_alive()
            and not reader.is_alive()
            and len(queue) == queue.max_count
        ):
            queue.get()
        elif reader.is_alive() and not writer.is_alive() and len(queue) == 0:
            queue.add(state.next_value)

    return BenchResult(
        stats=queue.stats(),
        inconsistencies=tuple(state.inconsistencies),
        reader_usage=state.reader_usage,
        writer_usage=state.writer_usage,
    )


def _format_usage(name: str, usage: Usage | None) -> str:
    if usage is None:
        return "error getting resource usage"
    user_ms, system_ms = usage
    total = user_ms + system_ms
    ratio = system_ms / total * 100.0 if total else float("nan")
    return (
        f"{name}: user: {user_ms:.0f}ms;  system: {system_ms:.0f}ms;  "
        f"system/total: {ratio:.2f}%"
    )


def _parse_seconds(text: str) -> int:
    match = _LEADING_INT.match(text)
    if match is None:
        return DEFAULT_SECONDS
    value = int(match.group(1))
    return value if value > 0 else DEFAULT_SECONDS


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    parser = argparse.ArgumentParser(
        prog="queuebench", description="Benchmark a bounded queue."
    )
    parser.add_argument("seconds", nargs="?", default=str(DEFAULT_SECONDS))
    parser.add_argument("--sync", choices=sorted(VARIANTS), default="mutex")
    options = parser.parse_args(args)

    seconds = _parse_seconds(options.seconds)
    sleep = os.environ.get("SLEEP") is not None
    queue = VARIANTS[options.sync](QUEUE_SIZE)

    result = run(queue, seconds, sleep)

    for expected, actual in result.inconsistencies:
        print(f"ERROR: expected {expected}, got {actual}")
    print(_format_usage("writer", result.writer_usage))
    print(_format_usage("reader", result.reader_usage))
    print(result.stats.format())
    return 0


if __name__ == "__main__":
    sys.exit(main())