# threadwork

This package holds the parts of a caching HTTP/1.0 forward proxy. It also
has small thread and synchronisation building blocks, with two benchmark
commands that exercise them.

## Installation

```
pip install .
```

To run the test suite, install the `test` extra and run `pytest`:

```
pip install ".[test]"
pytest
```

## Proxy parts

| Module                 | What it offers                                                          |
|------------------------|-------------------------------------------------------------------------|
| `threadwork.proxy`     | `handle_client`, `handle_server`, `receive_request`, `send_from_stream` |
| `threadwork.sieve`     | `SieveCache`, a thread-safe fixed-capacity cache with SIEVE eviction    |
| `threadwork.stream`    | `Stream`, a growing byte buffer that many readers can follow            |
| `threadwork.http`      | `HttpRequest`, `HttpResponse`, `host_from_url` for incremental parsing  |
| `threadwork.hashmap`   | `HashMap`, an open-addressing map keyed by strings                      |
| `threadwork.hashing`   | `hash64`, a 64-bit MurmurHash64A-style hash of bytes or strings         |
| `threadwork.log`       | coloured, levelled logging to standard error                            |
| `threadwork.net`       | `connect_remote` and `listen` socket helpers                            |

`handle_client(client, cache)` serves one request from a connected socket.
It accepts only `GET` in HTTP/1.0 with an absolute `http://` URL and raises
`ProxyError` for anything else. Responses go into the `SieveCache` under the
request URL. A second client that asks for a URL already being fetched reads
the same `Stream` while the response arrives, so no second connection to the
origin is opened. The client socket is closed when the call returns.

`threadwork.log.init_logger()` sets the log level from the `PROXY_LOG`
environment variable. The values are `ERROR`, `WARN`, `INFO` (the default),
`DEBUG`, `TRACE` and `OFF`, and case does not matter.

### What is not included

The package has no command or ready-made server loop that runs the proxy. To
run one, write the accept loop yourself, for example:

```python
import threading

from threadwork.log import init_logger
from threadwork.net import listen
from threadwork.proxy import ProxyError, handle_client
from threadwork.sieve import SieveCache

init_logger()
cache = SieveCache(1024)
server = listen(1080, 10)


def serve_one(conn):
    try:
        handle_client(conn, cache)
    except ProxyError:
        pass


while True:
    conn, _ = server.accept()
    threading.Thread(target=serve_one, args=(conn,), daemon=True).start()
```

Other parts can also be used on their own:

```python
from threadwork.sieve import SieveCache

cache = SieveCache(2)
cache.insert("http://example.com/", b"cached body")
print(cache.lookup("http://example.com/"))
```

```python
from threadwork.http import host_from_url

print(host_from_url("http://example.com/index.html"))  # example.com
```

## Queues and locks

`threadwork.boundedqueue` has one bounded FIFO of integers with four ways to
lock it. `MutexQueue` and `SpinQueue` never block: `add` on a full queue
returns `False` and `get` on an empty one returns `None`. `CondQueue` and
`SemaphoreQueue` block until there is room or a value. Every queue counts its
add and get attempts and its successes.

```python
from threadwork.boundedqueue import MutexQueue

queue = MutexQueue(10)
queue.add(1)
queue.get()
print(queue.format_stats())
```

```
threadwork-queuebench [SECONDS] [--sync {cond,mutex,sem,spin}]
```

This runs one writer and one reader against a queue of 1000 values for the
given number of seconds (5 by default). It prints any values that came out of
order, the CPU time each thread used where the platform reports it, and the
queue statistics. If the `SLEEP` environment variable is set, the writer
pauses briefly after each value.

`threadwork.monitoredqueue.MonitoredQueue` is a queue with no locking. A
background monitor writes its statistics at a fixed interval until the queue
is closed. `run_example` and `run_race` demonstrate it.

```
threadwork-listswap [SIZE] [--sync {mutex,spin,rwlock}] [--seconds N]
```

This builds a linked list of random strings (100 nodes by default), each
node with its own lock. Three threads compare neighbouring nodes while three
others swap them at random. Once a second it prints how many passes each kind
of thread has finished. It runs for `--seconds` or until interrupted.

`threadwork.locks` provides `SpinLock` and `Mutex`. Both work as context
managers:

```python
from threadwork.locks import SpinLock

lock = SpinLock()
with lock:
    ...
```

## Threads and user-level threads

`threadwork.threads` provides joinable, detachable and cancellable threads.
You start one with `create_thread(start, arg)`, and `Thread.join` returns its
result. Inside the thread you can call `detach`, `exit_thread` and
`testcancel`. When `Thread.cancel` has been called, the thread stops at its
next `testcancel` and its result is `THREAD_CANCELED`.

`threadwork.uthreads.Scheduler` runs cooperative user-level threads one at a
time in round-robin order. You start them with `spawn`, wait for one with
`join`, and hand over control with `yield_now`, `sleep` or `usleep`.