"""Incremental HTTP request and response head parsing."""

from __future__ import annotations

import h11

_MAX_INCOMPLETE = 1 << 20


class HttpParseError(ValueError):
    """Raised when the bytes fed to a parser are not valid HTTP."""


def _version(raw: bytes) -> tuple[int, int]:
    major, _, minor = raw.decode("ascii").partition(".")
    return int(major), int(minor)


class HttpRequest:
    """Parses a request fed in arbitrary pieces."""

    def __init__(self) -> None:
        self.method: str | None = None
        self.url: str | None = None
        self.version: tuple[int, int] | None = None
        self.finished = False
        self._conn = h11.Connection(
            h11.SERVER, max_incomplete_event_size=_MAX_INCOMPLETE
        )

    def feed(self, data: bytes) -> None:
        """Parse the next piece of the request."""
        if not data:
            return
        try:
            self._conn.receive_data(bytes(data))
            self._drain()
        except (h11.RemoteProtocolError, RuntimeError) as exc:
            raise HttpParseError(str(exc)) from exc

    def _drain(self) -> None:
        while not self.finished:
            event = self._conn.next_event()
            if event is h11.NEED_DATA or event is h11.PAUSED:
                return
            if isinstance(event, h11.Request):
                self.method = event.method.decode("ascii")
                self.url = event.target.decode("ascii")
                self.version = _version(event.http_version)
            elif isinstance(event, h11.EndOfMessage):
                self.finished = True
            elif isinstance(event, h11.ConnectionClosed):
                raise HttpParseError("connection closed before request completed")


class HttpResponse:
    """Parses the response to a GET request fed in arbitrary pieces."""

    def __init__(self) -> None:
        self.version: tuple[int, int] | None = None
        self.status: int | None = None
        self.reason: str | None = None
        self.finished = False
        self._conn = h11.Connection(
            h11.CLIENT, max_incomplete_event_size=_MAX_INCOMPLETE
        )
        self._conn.send(
            h11.Request(method="GET", target="/", headers=[("Host", "localhost")])
        )
        self._conn.send(h11.EndOfMessage())

    def feed(self, data: bytes) -> None:
        """Parse the next piece of the response."""
        if not data:
            return
        self._receive(bytes(data))

    def feed_eof(self) -> None:
        """Tell the parser the peer closed; ends bodies delimited by close."""
        self._receive(b"")

    def _receive(self, data: bytes) -> None:
        try:
            self._conn.receive_data(data)
            self._drain()
        except (h11.RemoteProtocolError, RuntimeError) as exc:
            raise HttpParseError(str(exc)) from exc

    def _drain(self) -> None:
        while not self.finished:
            event = self._conn.next_event()
            if event is h11.NEED_DATA or event is h11.PAUSED:
                return
            if isinstance(event, h11.Response):
                self.status = event.status_code
                self.reason = event.reason.decode("latin-1")
                self.version = _version(event.http_version)
            elif isinstance(event, h11.EndOfMessage):
                self.finished = True
            elif isinstance(event, h11.ConnectionClosed):
                raise HttpParseError("connection closed before response completed")


def host_from_url(url: str | None) -> str | None:
    """Return the authority of an ``http://`` URL, or None if there is none."""
    if url is None or not url.startswith("http://"):
        return None
    host = url[len("http://"):].split("/", 1)[0]
    return host or None