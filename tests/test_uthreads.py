import threading
import time

import pytest

from threadwork.uthreads import Scheduler, UThreadError


def test_join_many():
    sched = Scheduler()
    counter = [0]

    def body(arg):
        arg[0] += 1
        return arg[0]

    handles = [sched.spawn(body, counter) for _ in range(5)]
    results = [sched.join(handle) for handle in handles]
    assert counter[0] == 5
    assert sorted(results) == [1, 2, 3, 4, 5]
    assert all(handle.exited for handle in handles)


def test_sleep_interleaves():
    sched = Scheduler()
    events = []

    def body(_):
        for _ in range(10):
            events.append("thread")
            sched.usleep(10 * 1000)

    handle = sched.spawn(body)
    for _ in range(4):
        events.append("main")
        sched.usleep(50 * 1000)
    result = sched.join(handle)

    assert result is None
    assert handle.exited is True
    assert events[0] == "thread"
    assert events.count("thread") == 10
    assert events.count("main") == 4
    assert events.index("main") < len(events) - 1


def test_single_sleep_waits():
    sched = Scheduler()
    main = sched.current
    started = time.monotonic()
    for _ in range(5):
        sched.sleep(0.01)
    assert time.monotonic() - started >= 0.05
    assert sched.current is main


def test_join_waits_for_sleeping_thread():
    sched = Scheduler()

    def body(_):
        sched.sleep(0.02)
        return "late"

    handle = sched.spawn(body)
    assert handle.exited is False
    assert sched.join(handle) == "late"
    assert handle.exited is True


def test_join_detached_fails():
    sched = Scheduler()

    def body(_):
        sched.detach()
        sched.yield_now()

    handle = sched.spawn(body)
    with pytest.raises(UThreadError):
        sched.join(handle)


def test_second_join_fails():
    sched = Scheduler()
    handle = sched.spawn(lambda _: 7)
    assert sched.join(handle) == 7
    with pytest.raises(UThreadError):
        sched.join(handle)


def test_exception_reported_on_join():
    sched = Scheduler()

    def body(_):
        raise KeyError("boom")

    handle = sched.spawn(body)
    with pytest.raises(UThreadError) as info:
        sched.join(handle)
    assert isinstance(info.value.__cause__, KeyError)


def test_join_self_fails():
    sched = Scheduler()
    with pytest.raises(UThreadError):
        sched.join(sched.current)
    assert sched.current.waiting_on is None


def test_call_from_other_thread_fails():
    sched = Scheduler()
    main = sched.current
    errors = []

    def outsider():
        try:
            sched.yield_now()
        except UThreadError as exc:
            errors.append(exc)

    thread = threading.Thread(target=outsider)
    thread.start()
    thread.join()
    assert len(errors) == 1
    assert isinstance(errors[0], UThreadError)
    sched.yield_now()
    assert sched.current is main


def test_yield_alone_returns_to_caller():
    sched = Scheduler()
    main = sched.current
    sched.yield_now()
    assert sched.current is main