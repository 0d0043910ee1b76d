import socket
import threading

import pytest

from threadwork.http import HttpRequest
from threadwork.proxy import (
    ProxyError,
    handle_client,
    handle_server,
    is_allowed_request,
    receive_request,
    send_from_stream,
)
from threadwork.sieve import SieveCache
from threadwork.stream import Stream


def _pair():
    a, b = socket.socketpair()
    a.settimeout(5)
    b.settimeout(5)
    return a, b


def _read_all(sock):
    data = b""
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            return data
        data += chunk


def _parsed(raw):
    request = HttpRequest()
    request.feed(raw)
    return request


def _closed_port():
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    return port


def _origin(response):
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.bind(("127.0.0.1", 0))
    srv.listen(1)
    srv.settimeout(5)
    port = srv.getsockname()[1]
    received = []

    def run():
        try:
            conn, _ = srv.accept()
            with conn:
                data = b""
                while b"\r\n\r\n" not in data:
                    chunk = conn.recv(4096)
                    if not chunk:
                        break
                    data += chunk
                received.append(data)
                conn.sendall(response)
        finally:
            srv.close()

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return port, received, thread


def test_get_http10_is_allowed():
    assert is_allowed_request(_parsed(b"GET http://a/ HTTP/1.0\r\n\r\n")) is True


def test_http11_is_rejected():
    request = _parsed(b"GET http://a/ HTTP/1.1\r\nHost: a\r\n\r\n")
    assert is_allowed_request(request) is False


def test_post_is_rejected():
    request = _parsed(b"POST http://a/ HTTP/1.0\r\nContent-Length: 0\r\n\r\n")
    assert is_allowed_request(request) is False


def test_receive_request_in_parts():
    server_side, peer = _pair()
    with server_side, peer:
        parts = [b"GE", b"T http://goo", b"gle.com HTT", b"P/1.0\r\n\r\n"]

        def sender():
            for part in parts:
                peer.sendall(part)

        t = threading.Thread(target=sender)
        t.start()
        request, raw = receive_request(server_side)
        t.join()
        assert request.url == "http://google.com"
        assert raw == b"".join(parts)


def test_receive_request_eof_raises():
    server_side, peer = _pair()
    with server_side:
        peer.sendall(b"GET http://a/")
        peer.close()
        with pytest.raises(ProxyError):
            receive_request(server_side)


def test_receive_request_garbage_raises():
    server_side, peer = _pair()
    with server_side, peer:
        peer.sendall(b"\x00\x01 not http\r\n\r\n")
        with pytest.raises(ProxyError):
            receive_request(server_side)


def test_send_from_stream_copies_everything():
    stream = Stream(4)
    client, peer = _pair()
    with peer:

        def producer():
            stream.feed(b"hello ")
            stream.feed(b"world")
            stream.finish()

        t = threading.Thread(target=producer)
        t.start()
        send_from_stream(client, stream)
        t.join()
        client.close()
        assert _read_all(peer) == b"hello world"
    assert stream.complete is True
    assert len(stream) == len(b"hello world")
    assert b"".join(stream.chunks()) == b"hello world"


def test_send_from_failed_stream_raises():
    stream = Stream(4)
    stream.feed(b"partial")
    stream.signal_error()
    client, peer = _pair()
    with client, peer:
        with pytest.raises(ProxyError):
            send_from_stream(client, stream)


def test_handle_server_with_content_length():
    response = b"HTTP/1.0 200 OK\r\nContent-Length: 1\r\n\r\na"
    remote, peer = _pair()
    with peer:
        peer.sendall(response)
        stream = Stream(8)
        handle_server(remote, stream)
    assert stream.complete is True
    assert b"".join(stream.chunks()) == response


def test_handle_server_close_delimited_body():
    response = b"HTTP/1.0 200 OK\r\n\r\nhello"
    remote, peer = _pair()
    peer.sendall(response)
    peer.close()
    stream = Stream(8)
    handle_server(remote, stream)
    assert stream.complete is True
    assert b"".join(stream.chunks()) == response


def test_handle_server_truncated_response_marks_error():
    remote, peer = _pair()
    peer.sendall(b"HTTP/1.0 200 OK\r\nContent-Length: 10\r\n\r\nabc")
    peer.close()
    stream = Stream(8)
    with pytest.raises(ProxyError):
        handle_server(remote, stream)
    assert stream.erred is True


def test_handle_client_serves_from_cache():
    cache = SieveCache(4)
    cached = Stream(16)
    cached.feed(b"cached body")
    cached.finish()
    cache.insert("http://example.com/", cached)

    client, peer = _pair()
    with peer:
        peer.sendall(b"GET http://example.com/ HTTP/1.0\r\n\r\n")
        handle_client(client, cache)
        assert _read_all(peer) == b"cached body"
    assert len(cache) == 1


def test_handle_client_rejects_post():
    cache = SieveCache(4)
    client, peer = _pair()
    with peer:
        peer.sendall(b"POST http://example.com/ HTTP/1.0\r\nContent-Length: 0\r\n\r\n")
        with pytest.raises(ProxyError):
            handle_client(client, cache)
        assert _read_all(peer) == b""
    assert len(cache) == 0


def test_handle_client_connect_failure_marks_cached_stream():
    cache = SieveCache(4)
    url = f"http://127.0.0.1:{_closed_port()}/"
    client, peer = _pair()
    with peer:
        peer.sendall(f"GET {url} HTTP/1.0\r\n\r\n".encode())
        with pytest.raises(ProxyError):
            handle_client(client, cache)
    assert cache.lookup(url).erred is True


def test_handle_client_fetches_then_caches():
    response = b"HTTP/1.0 200 OK\r\nContent-Length: 5\r\n\r\nhello"
    port, received, origin = _origin(response)
    url = f"http://127.0.0.1:{port}/page"
    request = f"GET {url} HTTP/1.0\r\n\r\n".encode()

    cache = SieveCache(4)
    client, peer = _pair()
    with peer:
        peer.sendall(request)
        handle_client(client, cache)
        assert _read_all(peer) == response
    origin.join(5)
    assert received == [request]
    assert cache.keys() == [url]

    client, peer = _pair()
    with peer:
        peer.sendall(request)
        handle_client(client, cache)
        assert _read_all(peer) == response
    assert len(received) == 1