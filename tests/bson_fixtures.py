"""Byte-level builders for test documents.

The package is decode-only, so tests assemble wire bytes by hand.  These
helpers only concatenate; they never validate, which lets tests build
deliberately broken input just as easily as valid input.
"""

from __future__ import annotations

import struct
from typing import Tuple


def i32(n: int) -> bytes:
    return struct.pack("<i", n)


def cstr(raw: bytes) -> bytes:
    return raw + b"\x00"


def string(raw: bytes) -> bytes:
    """int32 length (terminator included) + bytes + terminator."""
    return i32(len(raw) + 1) + raw + b"\x00"


def element(tag: int, name: bytes, payload: bytes = b"") -> bytes:
    return struct.pack("<b", tag) + cstr(name) + payload


def document(*elements: bytes) -> bytes:
    body = b"".join(elements)
    return i32(len(body) + 5) + body + b"\x00"


def array(*items: Tuple[int, bytes]) -> bytes:
    """Array document from (tag, payload) pairs, keyed "0", "1", ..."""
    return document(*(element(tag, str(i).encode(), payload)
                      for i, (tag, payload) in enumerate(items)))


def code_with_scope(code: bytes, scope: bytes, total: int = -1) -> bytes:
    body = string(code) + scope
    if total < 0:
        total = len(body) + 4
    return i32(total) + body


def nested(levels: int) -> bytes:
    """A document with `levels` embedded documents below the top level."""
    doc = document()
    for _ in range(levels):
        doc = document(element(3, b"d", doc))
    return doc


HELLO_WORLD = (
    b"\x16\x00\x00\x00\x02hello\x00\x06\x00\x00\x00world\x00\x00"
)

BSON_AWESOME = (
    b"\x31\x00\x00\x00\x04BSON\x00\x26\x00\x00\x00\x02\x30\x00\x08\x00\x00\x00"
    b"awesome\x00\x01\x31\x00\x33\x33\x33\x33\x33\x33\x14\x40\x10\x32\x00"
    b"\xc2\x07\x00\x00\x00\x00"
)
