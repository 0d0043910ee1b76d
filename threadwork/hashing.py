"""64-bit string hashing used by the proxy's hash map."""

from __future__ import annotations

import struct

_SEED = 0x485F9EF2B97FD52D
_M = 0xC6A4A7935BD1E995
_R = 47
_MASK = (1 << 64) - 1


def _mul(a: int, b: int) -> int:
    return (a * b) & _MASK


def hash64(data: bytes | bytearray | memoryview | str) -> int:
    """Return an unsigned 64-bit MurmurHash64A-style digest of ``data``.

    Strings are hashed as their UTF-8 encoding.
    """
    if isinstance(data, str):
        raw = data.encode("utf-8")
    else:
        raw = bytes(memoryview(data))

    length = len(raw)
    h = _SEED ^ _mul(length, _M)

    whole = length - length % 8
    for (k,) in struct.iter_unpack("<Q", raw[:whole]):
        k = _mul(k, _M)
        k ^= k >> _R
        k = _mul(k, _M)
        h ^= k
        h = _mul(h, _M)

    tail = raw[whole:]
    if tail:
        h ^= int.from_bytes(tail, "little")

    h = _mul(h, _M)
    h ^= h >> _R
    h = _mul(h, _M)
    h ^= h >> _R
    return h