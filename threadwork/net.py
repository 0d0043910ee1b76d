"""TCP helpers: connecting to a remote service and listening for clients."""

from __future__ import annotations

import socket

from .log import log_warn


def connect_remote(name: str, service: str | int | None = None) -> socket.socket:
    """Connect over IPv4 TCP to ``name`` at ``service`` (default ``http``).

    Every resolved address is tried in turn; the last error is raised if
    none accepts the connection.
    """
    if service is None:
        service = "http"

    infos = socket.getaddrinfo(
        name, service, socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP
    )

    last_error: OSError | None = None
    for family, sock_type, proto, _, address in infos:
        try:
            sock = socket.socket(family, sock_type, proto)
        except OSError as exc:
            last_error = exc
            continue
        try:
            sock.connect(address)
        except OSError as exc:
            sock.close()
            last_error = exc
            continue
        return sock

    raise last_error or OSError(f"no usable address for {name}")


def listen(port: int, backlog: int = 10) -> socket.socket:
    """Return an IPv4 TCP socket listening on every interface at ``port``."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    except OSError:
        log_warn("setsockopt")

    try:
        sock.bind(("", port))
        sock.listen(backlog)
    except OSError:
        sock.close()
        raise
    return sock