import threading

import pytest

from threadwork.boundedqueue import (
    CondQueue,
    MutexQueue,
    QueueStats,
    SemaphoreQueue,
    SpinQueue,
)

ALL = ["mutex", "spin", "cond", "semaphore"]
NON_BLOCKING = ["mutex", "spin"]
BLOCKING = ["cond", "semaphore"]


def _make(kind, max_count):
    if kind == "mutex":
        return MutexQueue(max_count)
    if kind == "spin":
        return SpinQueue(max_count)
    if kind == "cond":
        return CondQueue(max_count)
    return SemaphoreQueue(max_count)


@pytest.mark.parametrize("kind", ALL)
def test_fifo_order(kind):
    queue = _make(kind, 10)
    for value in range(5):
        assert queue.add(value) is True
    assert [queue.get() for _ in range(5)] == list(range(5))
    assert len(queue) == 0


def test_rejects_non_positive_capacity():
    with pytest.raises(ValueError):
        MutexQueue(0)
    with pytest.raises(ValueError):
        SpinQueue(0)
    with pytest.raises(ValueError):
        CondQueue(0)
    with pytest.raises(ValueError):
        SemaphoreQueue(0)


@pytest.mark.parametrize("kind", NON_BLOCKING)
def test_add_to_full_queue_fails(kind):
    queue = _make(kind, 3)
    results = [queue.add(value) for value in range(5)]
    assert results == [True, True, True, False, False]
    assert len(queue) == 3
    stats = queue.stats()
    assert stats.add_attempts == 5
    assert stats.add_count == 3


@pytest.mark.parametrize("kind", NON_BLOCKING)
def test_get_from_empty_queue_returns_none(kind):
    queue = _make(kind, 3)
    assert queue.get() is None
    queue.add(7)
    assert queue.get() == 7
    assert queue.get() is None
    stats = queue.stats()
    assert stats.get_attempts == 3
    assert stats.get_count == 1


@pytest.mark.parametrize("kind", BLOCKING)
def test_add_blocks_until_room(kind):
    queue = _make(kind, 1)
    assert queue.add(1)
    adder = threading.Thread(target=queue.add, args=(2,), daemon=True)
    adder.start()
    adder.join(0.2)
    assert adder.is_alive()
    assert queue.get() == 1
    adder.join(5)
    assert not adder.is_alive()
    assert queue.get() == 2


@pytest.mark.parametrize("kind", BLOCKING)
def test_get_blocks_until_value(kind):
    queue = _make(kind, 4)
    received = []
    getter = threading.Thread(
        target=lambda: received.append(queue.get()), daemon=True
    )
    getter.start()
    getter.join(0.2)
    assert getter.is_alive()
    assert queue.add(42) is True
    getter.join(5)
    assert received == [42]
    assert queue.stats().get_count == 1


@pytest.mark.parametrize("kind", ALL)
def test_concurrent_producer_consumer_preserves_order(kind):
    queue = _make(kind, 16)
    total = 2000
    received = []

    def writer():
        value = 0
        while value < total:
            if queue.add(value):
                value += 1

    def reader():
        while len(received) < total:
            value = queue.get()
            if value is not None:
                received.append(value)

    threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(30)

    assert received == list(range(total))
    stats = queue.stats()
    assert stats.add_count == total
    assert stats.get_count == total
    assert stats.count == 0


@pytest.mark.parametrize("kind", ALL)
def test_stats_invariants(kind):
    queue = _make(kind, 8)
    for value in range(6):
        queue.add(value)
    queue.get()
    queue.get()
    stats = queue.stats()
    assert stats.count == len(queue)
    assert stats.count_diff == stats.count
    assert stats.attempts_diff == stats.add_attempts - stats.get_attempts


def test_format_stats_header():
    queue = MutexQueue(4)
    header, _ = queue.format_stats().split("\n")
    assert header == (
        "    count  add att.  get att.      diff  add cnt.  get cnt.      diff"
    )


def test_format_values_row_matches_stats():
    queue = MutexQueue(2)
    for value in range(3):
        queue.add(value)
    queue.get()
    stats = queue.stats()
    _, row = stats.format().split("\n")
    assert row.split() == [
        str(stats.count),
        str(stats.add_attempts),
        str(stats.get_attempts),
        str(stats.attempts_diff),
        str(stats.add_count),
        str(stats.get_count),
        str(stats.count_diff),
    ]
    assert all(len(cell) == 9 for cell in row.split(" ") if cell.strip()) or (
        len(row) == 7 * 9 + 6
    )


def test_queue_stats_format_widths():
    stats = QueueStats(
        count=1, add_attempts=2, get_attempts=3, add_count=4, get_count=5
    )
    header, row = stats.format().split("\n")
    assert len(header) == len(row) == 7 * 9 + 6
    assert row.split()[3] == str(2 - 3)