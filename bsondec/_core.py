"""bsondec core — recursive-descent decoding of a document buffer.

Wire layout of a document:

    int32le  total size (header and terminator included)
    element* tag byte, field name cstring, payload
    0x00     terminator

One routine parses the top-level document and every nested one (embedded
document, array, code-with-scope scope).  Each nested document is parsed
over exactly the region its own header declares, and every element read
is bounded by the end of the current element stream, so a document's
elements must fill its declared size exactly.  Nothing is ever read past
the region a size field vouched for.

Readers follow one convention: take (buf, off, stop), return
(value, new_off), and raise BsonError on any overrun.
"""

from __future__ import annotations

import struct
import sys
from typing import List, Tuple

from ._constants import (
    DECIMAL128_SIZE,
    DEFAULT_MAX_DEPTH,
    MIN_DOCUMENT_SIZE,
    OBJECT_ID_SIZE,
)
from ._errors import (
    ERR_ARRAY_INDEX,
    ERR_BINARY_SIZE,
    ERR_BOOLEAN_VALUE,
    ERR_DOCUMENT_SIZE,
    ERR_LIMIT_DEPTH,
    ERR_OUT_OF_MEMORY,
    ERR_STRING_SIZE,
    BsonError,
)
from ._types import (
    Binary,
    BinarySubtype,
    CodeWithScope,
    DBPointer,
    Document,
    Element,
    ElementType,
    Regex,
)

_I32 = struct.Struct("<i")

# Failures that must release partially built documents on the way out.
_UNWIND = (BsonError, MemoryError, RecursionError)

# Fixed-width numeric kinds: (struct format, width).
_FIXED = {
    ElementType.DOUBLE: struct.Struct("<d"),
    ElementType.UTC_DATETIME: struct.Struct("<q"),
    ElementType.INT32: struct.Struct("<i"),
    ElementType.TIMESTAMP: struct.Struct("<Q"),
    ElementType.INT64: struct.Struct("<q"),
}


# ── Primitive readers ─────────────────────────────────────────

def _read_i32(buf: bytes, off: int, stop: int, code: str) -> Tuple[int, int]:
    if off + 4 > stop:
        raise BsonError(code, "truncated length prefix", off)
    return _I32.unpack_from(buf, off)[0], off + 4


def _take(buf: bytes, off: int, stop: int, n: int, what: str) -> Tuple[bytes, int]:
    if off + n > stop:
        raise BsonError(ERR_DOCUMENT_SIZE, "truncated {}".format(what), off)
    return buf[off:off + n], off + n


def _read_cstring(buf: bytes, off: int, stop: int, what: str) -> Tuple[bytes, int]:
    """Read a zero-terminated byte string; the terminator is consumed, not returned."""
    end = buf.find(b"\x00", off, stop)
    if end < 0:
        raise BsonError(ERR_DOCUMENT_SIZE, "unterminated {}".format(what), off)
    return buf[off:end], end + 1


def _read_string(buf: bytes, off: int, stop: int) -> Tuple[bytes, int]:
    """Read an int32-length-prefixed string.  The length counts the terminator."""
    n, off = _read_i32(buf, off, stop, ERR_STRING_SIZE)
    if n < 1 or n > stop - off:
        raise BsonError(ERR_STRING_SIZE, "string length {} out of range".format(n), off - 4)
    if buf[off + n - 1] != 0:
        raise BsonError(ERR_STRING_SIZE, "string is not zero-terminated", off + n - 1)
    return buf[off:off + n - 1], off + n


# ── Documents ─────────────────────────────────────────────────

def _release_all(elements: List[Element]) -> None:
    for e in elements:
        nested = e.owned_document()
        if nested is not None and not nested.released:
            nested.release()


def _parse_document(buf: bytes, start: int, end: int, depth: int,
                    max_depth: int) -> Document:
    """Parse the document occupying exactly buf[start:end]."""
    size = end - start
    if size < MIN_DOCUMENT_SIZE or buf[end - 1] != 0:
        raise BsonError(ERR_DOCUMENT_SIZE, "bad document envelope", start)
    declared = _I32.unpack_from(buf, start)[0]
    if declared < 0 or declared != size:
        raise BsonError(ERR_DOCUMENT_SIZE,
                        "declared size {} != actual size {}".format(declared, size),
                        start)

    elements: List[Element] = []
    off = start + 4
    stop = end - 1
    try:
        while off < stop:
            element, off = _decode_element(buf, off, stop, depth, max_depth)
            elements.append(element)
    except _UNWIND:
        # Nothing built so far may outlive a failed parse.
        _release_all(elements)
        raise
    return Document(declared, elements)


def _parse_nested(buf: bytes, off: int, stop: int, depth: int,
                  max_depth: int) -> Tuple[Document, int]:
    if depth + 1 > max_depth:
        raise BsonError(ERR_LIMIT_DEPTH, "nesting exceeds max depth {}".format(max_depth), off)
    size, _ = _read_i32(buf, off, stop, ERR_DOCUMENT_SIZE)
    if size < 0 or size > stop - off:
        raise BsonError(ERR_DOCUMENT_SIZE,
                        "nested size {} exceeds available {}".format(size, stop - off),
                        off)
    doc = _parse_document(buf, off, off + size, depth + 1, max_depth)
    return doc, off + size


def _check_array_indices(doc: Document) -> None:
    for i, e in enumerate(doc.elements):
        # bytes.isdigit() is ASCII-only, so int() cannot see signs or spaces.
        if not e.name.isdigit() or int(e.name) != i:
            raise BsonError(ERR_ARRAY_INDEX,
                            "array key {!r} at position {}".format(e.name, i))


# ── Elements ──────────────────────────────────────────────────

def _decode_element(buf: bytes, off: int, stop: int, depth: int,
                    max_depth: int) -> Tuple[Element, int]:
    kind = ElementType.from_byte(buf[off])
    off += 1
    name, off = _read_cstring(buf, off, stop, "field name")

    fixed = _FIXED.get(kind)
    if fixed is not None:
        if off + fixed.size > stop:
            raise BsonError(ERR_DOCUMENT_SIZE, "truncated {}".format(kind.name.lower()), off)
        return Element(kind, name, fixed.unpack_from(buf, off)[0]), off + fixed.size

    if kind in (ElementType.STRING, ElementType.JS_CODE, ElementType.SYMBOL):
        value, off = _read_string(buf, off, stop)
        return Element(kind, name, value), off

    if kind == ElementType.DOCUMENT:
        doc, off = _parse_nested(buf, off, stop, depth, max_depth)
        return Element(kind, name, doc), off

    if kind == ElementType.ARRAY:
        doc, off = _parse_nested(buf, off, stop, depth, max_depth)
        try:
            _check_array_indices(doc)
        except _UNWIND:
            doc.release()
            raise
        return Element(kind, name, doc), off

    if kind == ElementType.BINARY:
        n, off = _read_i32(buf, off, stop, ERR_BINARY_SIZE)
        # One subtype byte sits between the length and the data.
        if n < 0 or n > stop - off - 1:
            raise BsonError(ERR_BINARY_SIZE, "binary length {} out of range".format(n), off - 4)
        subtype = BinarySubtype.from_byte(buf[off])
        off += 1
        return Element(kind, name, Binary(subtype, buf[off:off + n])), off + n

    if kind.is_void:
        return Element(kind, name), off

    if kind == ElementType.OBJECT_ID:
        oid, off = _take(buf, off, stop, OBJECT_ID_SIZE, "object id")
        return Element(kind, name, oid), off

    if kind == ElementType.BOOLEAN:
        if off >= stop:
            raise BsonError(ERR_DOCUMENT_SIZE, "truncated boolean", off)
        payload = buf[off]
        if payload not in (0x00, 0x01):
            raise BsonError(ERR_BOOLEAN_VALUE,
                            "invalid boolean payload 0x{:02x}".format(payload), off)
        return Element(kind, name, payload == 0x01), off + 1

    if kind == ElementType.REGEX:
        pattern, off = _read_cstring(buf, off, stop, "regex pattern")
        options, off = _read_cstring(buf, off, stop, "regex options")
        return Element(kind, name, Regex(pattern, options)), off

    if kind == ElementType.DB_POINTER:
        ns, off = _read_string(buf, off, stop)
        oid, off = _take(buf, off, stop, OBJECT_ID_SIZE, "db pointer id")
        return Element(kind, name, DBPointer(ns, oid)), off

    if kind == ElementType.JS_CODE_WITH_SCOPE:
        field_start = off
        total, off = _read_i32(buf, off, stop, ERR_DOCUMENT_SIZE)
        # The declared total counts its own 4 bytes.
        if total < 0 or total > stop - field_start:
            raise BsonError(ERR_DOCUMENT_SIZE,
                            "code-with-scope length {} out of range".format(total),
                            field_start)
        code, off = _read_string(buf, off, stop)
        scope, off = _parse_nested(buf, off, stop, depth, max_depth)
        if off - field_start != total:
            scope.release()
            raise BsonError(ERR_DOCUMENT_SIZE,
                            "code-with-scope declares {} bytes, holds {}".format(
                                total, off - field_start),
                            field_start)
        return Element(kind, name, CodeWithScope(total, code, scope)), off

    # DECIMAL128 is the only kind left.
    raw, off = _take(buf, off, stop, DECIMAL128_SIZE, "decimal128")
    return Element(kind, name, int.from_bytes(raw, "little")), off


# ── Public entry point ────────────────────────────────────────

def parse_document(buffer, max_depth: int = DEFAULT_MAX_DEPTH) -> Document:
    """Decode one complete top-level document from a bytes-like buffer.

    The whole buffer must be exactly one document: its header size must
    equal len(buffer).  Either a fully built Document is returned or a
    BsonError is raised; there are no partial results.
    """
    if isinstance(buffer, (str, int)):
        raise TypeError("expected a bytes-like object, got {}".format(type(buffer).__name__))
    if max_depth < 0:
        raise ValueError("max_depth must be non-negative")
    buf = buffer if isinstance(buffer, bytes) else memoryview(buffer).tobytes()
    try:
        return _parse_document(buf, 0, len(buf), 0, max_depth)
    except MemoryError:
        raise BsonError(ERR_OUT_OF_MEMORY, "out of memory while decoding")
    except RecursionError:
        # max_depth was set above what the interpreter stack can hold.
        raise BsonError(ERR_LIMIT_DEPTH,
                        "nesting exceeds the interpreter recursion limit ({})".format(
                            sys.getrecursionlimit()))
