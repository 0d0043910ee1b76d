"""Caching HTTP/1.0 forward proxy: per-client and per-origin handlers."""

from __future__ import annotations

import socket
import threading

from .http import HttpParseError, HttpRequest, HttpResponse, host_from_url
from .log import log_debug, log_error, log_info, log_warn
from .net import connect_remote
from .sieve import SieveCache
from .stream import Stream, StreamError

REQUEST_BUFSIZE = 32 * 1024
RESPONSE_BUFSIZE = 128 * 1024


class ProxyError(Exception):
    """A client or origin exchange could not be completed."""


def is_allowed_request(request: HttpRequest) -> bool:
    """Only GET over HTTP/1.0 is proxied."""
    return request.method == "GET" and request.version == (1, 0)


def receive_request(client: socket.socket) -> tuple[HttpRequest, bytes]:
    """Read one full request from ``client``; return it with its raw bytes."""
    request = HttpRequest()
    raw = bytearray()
    while not request.finished:
        try:
            data = client.recv(REQUEST_BUFSIZE)
        except OSError as exc:
            raise ProxyError(f"error reading request: {exc}") from exc
        if not data:
            raise ProxyError("client closed the connection before a full request")
        try:
            request.feed(data)
        except HttpParseError as exc:
            log_error("error parsing request")
            raise ProxyError("malformed request") from exc
        raw += data
    return request, bytes(raw)


def send_from_stream(client: socket.socket, stream: Stream) -> None:
    """Copy ``stream`` to ``client`` as it grows, until it is complete."""
    try:
        for chunk in stream.chunks():
            client.sendall(chunk)
    except StreamError as exc:
        raise ProxyError("origin response failed") from exc
    except OSError as exc:
        raise ProxyError(f"error writing to client: {exc}") from exc


def handle_server(remote: socket.socket, stream: Stream) -> None:
    """Read the origin's response from ``remote`` into ``stream``.

    The stream is finished once the response is complete, or marked failed
    when the origin errs; ``remote`` is closed either way.
    """
    response = HttpResponse()
    try:
        while not response.finished:
            try:
                data = remote.recv(RESPONSE_BUFSIZE)
            except OSError as exc:
                raise ProxyError(f"error reading response: {exc}") from exc

            if not data:
                try:
                    response.feed_eof()
                except HttpParseError:
                    pass
                if not response.finished:
                    raise ProxyError("origin closed before the response completed")
                break

            stream.feed(data)
            try:
                response.feed(data)
            except HttpParseError as exc:
                log_error("error parsing response")
                raise ProxyError("malformed response") from exc
    except ProxyError:
        stream.signal_error()
        raise
    finally:
        remote.close()

    stream.finish()
    major, minor = response.version or (0, 0)
    log_info(f"response: HTTP/{major}.{minor} {response.status} {response.reason}")


def _forward_response(remote: socket.socket, stream: Stream) -> None:
    try:
        handle_server(remote, stream)
    except ProxyError as exc:
        log_debug(f"origin: {exc}")


def _connect_from_url(url: str | None) -> socket.socket:
    host = host_from_url(url)
    if host is None:
        raise ProxyError(f"no host in url {url!r}")
    name, sep, port = host.rpartition(":")
    if sep and port.isdigit():
        service = port
    else:
        name, service = host, "http"
    try:
        return connect_remote(name, service)
    except OSError as exc:
        raise ProxyError(f"cannot connect to {host}: {exc}") from exc


def handle_client(client: socket.socket, cache: SieveCache) -> None:
    """Serve one client request, from the cache or from the origin.

    ``client`` is closed when the exchange ends.
    """
    try:
        request, raw = receive_request(client)
        major, minor = request.version or (0, 0)
        log_info(f"request: {request.method} {request.url} HTTP/{major}.{minor}")

        if not is_allowed_request(request):
            log_warn("rejected request with wrong version or method")
            raise ProxyError("only GET over HTTP/1.0 is proxied")

        fresh = Stream(RESPONSE_BUFSIZE)
        cached = cache.lookup_or_insert(request.url, fresh)
        if cached is not None:
            send_from_stream(client, cached)
            return

        try:
            remote = _connect_from_url(request.url)
        except ProxyError:
            fresh.signal_error()
            raise

        try:
            remote.sendall(raw)
        except OSError as exc:
            fresh.signal_error()
            remote.close()
            raise ProxyError(f"error forwarding request: {exc}") from exc

        try:
            threading.Thread(
                target=_forward_response, args=(remote, fresh), daemon=True
            ).start()
        except RuntimeError as exc:
            log_error(f"error creating thread: {exc}")
            fresh.signal_error()
            remote.close()
            raise ProxyError("cannot start origin reader") from exc

        send_from_stream(client, fresh)
    finally:
        client.close()