"""bsondec data model — element kinds, binary subtypes, documents.

The kind set is closed: twenty tags, each with one fixed payload shape.
An Element is therefore a plain (kind, name, value) triple and callers
dispatch on `kind`; there is no per-kind subclass hierarchy.

Payload shapes by kind:

    DOUBLE                          float
    STRING / JS_CODE / SYMBOL       bytes (terminator stripped)
    DOCUMENT / ARRAY                Document
    BINARY                          Binary
    OBJECT_ID                       bytes (exactly 12)
    BOOLEAN                         bool
    UTC_DATETIME / INT32 / INT64    int (signed)
    TIMESTAMP                       int (opaque unsigned 64-bit)
    DECIMAL128                      int (opaque unsigned 128-bit)
    REGEX                           Regex
    DB_POINTER                      DBPointer
    JS_CODE_WITH_SCOPE              CodeWithScope
    UNDEFINED / NULL / MIN_KEY / MAX_KEY   None

All byte payloads are copied out of the input buffer at parse time, so a
tree stays valid after the caller reuses or frees that buffer.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Union

from ._constants import (
    SUBTYPE_BINARY_OLD,
    SUBTYPE_COMPRESSED_COLUMN,
    SUBTYPE_ENCRYPTED,
    SUBTYPE_FUNCTION,
    SUBTYPE_GENERIC,
    SUBTYPE_MD5,
    SUBTYPE_SENSITIVE,
    SUBTYPE_USER_DEFINED_MIN,
    SUBTYPE_UUID,
    SUBTYPE_UUID_OLD,
    TAG_ARRAY,
    TAG_BINARY,
    TAG_BOOLEAN,
    TAG_DB_POINTER,
    TAG_DECIMAL128,
    TAG_DOCUMENT,
    TAG_DOUBLE,
    TAG_INT32,
    TAG_INT64,
    TAG_JS_CODE,
    TAG_JS_CODE_WITH_SCOPE,
    TAG_MAX_KEY,
    TAG_MIN_KEY,
    TAG_NULL,
    TAG_OBJECT_ID,
    TAG_REGEX,
    TAG_STRING,
    TAG_SYMBOL,
    TAG_TIMESTAMP,
    TAG_UNDEFINED,
    TAG_UTC_DATETIME,
)
from ._errors import ERR_ELEMENT_TYPE, ERR_RELEASED, ERR_SUBTYPE, BsonError


# ── Element-type classifier ──────────────────────────────────

class ElementType(enum.IntEnum):
    DOUBLE = TAG_DOUBLE
    STRING = TAG_STRING
    DOCUMENT = TAG_DOCUMENT
    ARRAY = TAG_ARRAY
    BINARY = TAG_BINARY
    UNDEFINED = TAG_UNDEFINED
    OBJECT_ID = TAG_OBJECT_ID
    BOOLEAN = TAG_BOOLEAN
    UTC_DATETIME = TAG_UTC_DATETIME
    NULL = TAG_NULL
    REGEX = TAG_REGEX
    DB_POINTER = TAG_DB_POINTER
    JS_CODE = TAG_JS_CODE
    SYMBOL = TAG_SYMBOL
    JS_CODE_WITH_SCOPE = TAG_JS_CODE_WITH_SCOPE
    INT32 = TAG_INT32
    TIMESTAMP = TAG_TIMESTAMP
    INT64 = TAG_INT64
    DECIMAL128 = TAG_DECIMAL128
    MIN_KEY = TAG_MIN_KEY
    MAX_KEY = TAG_MAX_KEY

    @classmethod
    def from_byte(cls, byte: int) -> "ElementType":
        """Classify a raw tag byte (0..255), read as a signed 8-bit value."""
        signed = byte - 0x100 if byte >= 0x80 else byte
        if signed == TAG_MIN_KEY or signed == TAG_MAX_KEY or 1 <= signed <= 19:
            return cls(signed)
        raise BsonError(ERR_ELEMENT_TYPE,
                        "invalid element type 0x{:02x}".format(byte & 0xFF))

    @property
    def is_void(self) -> bool:
        return self in _VOID_KINDS

    @property
    def is_deprecated(self) -> bool:
        return self in _DEPRECATED_KINDS


_VOID_KINDS = frozenset([
    ElementType.UNDEFINED,
    ElementType.NULL,
    ElementType.MIN_KEY,
    ElementType.MAX_KEY,
])

_DEPRECATED_KINDS = frozenset([
    ElementType.UNDEFINED,
    ElementType.DB_POINTER,
    ElementType.SYMBOL,
    ElementType.JS_CODE_WITH_SCOPE,
])


# ── Binary subtype ───────────────────────────────────────────

@dataclass(frozen=True)
class BinarySubtype:
    """A validated binary subtype byte.

    Build one with `from_byte`, or use the named well-known values
    (BinarySubtype.UUID etc.) which are attached below the class.
    """

    value: int

    GENERIC = None  # type: BinarySubtype
    FUNCTION = None  # type: BinarySubtype
    BINARY_OLD = None  # type: BinarySubtype
    UUID_OLD = None  # type: BinarySubtype
    UUID = None  # type: BinarySubtype
    MD5 = None  # type: BinarySubtype
    ENCRYPTED = None  # type: BinarySubtype
    COMPRESSED_COLUMN = None  # type: BinarySubtype
    SENSITIVE = None  # type: BinarySubtype

    @classmethod
    def from_byte(cls, byte: int) -> "BinarySubtype":
        if SUBTYPE_GENERIC <= byte <= SUBTYPE_SENSITIVE:
            return cls(byte)
        if SUBTYPE_USER_DEFINED_MIN <= byte <= 0xFF:
            return cls(byte)
        raise BsonError(ERR_SUBTYPE, "invalid binary subtype 0x{:02x}".format(byte & 0xFF))

    @property
    def is_user_defined(self) -> bool:
        return self.value >= SUBTYPE_USER_DEFINED_MIN


BinarySubtype.GENERIC = BinarySubtype(SUBTYPE_GENERIC)
BinarySubtype.FUNCTION = BinarySubtype(SUBTYPE_FUNCTION)
BinarySubtype.BINARY_OLD = BinarySubtype(SUBTYPE_BINARY_OLD)
BinarySubtype.UUID_OLD = BinarySubtype(SUBTYPE_UUID_OLD)
BinarySubtype.UUID = BinarySubtype(SUBTYPE_UUID)
BinarySubtype.MD5 = BinarySubtype(SUBTYPE_MD5)
BinarySubtype.ENCRYPTED = BinarySubtype(SUBTYPE_ENCRYPTED)
BinarySubtype.COMPRESSED_COLUMN = BinarySubtype(SUBTYPE_COMPRESSED_COLUMN)
BinarySubtype.SENSITIVE = BinarySubtype(SUBTYPE_SENSITIVE)


# ── Composite payloads ───────────────────────────────────────

@dataclass(frozen=True)
class Binary:
    subtype: BinarySubtype
    data: bytes


@dataclass(frozen=True)
class Regex:
    pattern: bytes
    options: bytes


@dataclass(frozen=True)
class DBPointer:
    ns: bytes
    oid: bytes


@dataclass(frozen=True)
class CodeWithScope:
    # Total length as declared on the wire, length field included.
    declared_length: int
    code: bytes
    scope: "Document"


# ── Elements and documents ───────────────────────────────────

Value = Union[None, bool, int, float, bytes, Binary, Regex, DBPointer,
              CodeWithScope, "Document"]


@dataclass
class Element:
    kind: ElementType
    name: bytes
    value: Value = None

    def owned_document(self) -> Optional["Document"]:
        """Return the nested Document this element owns, if any."""
        if self.kind in (ElementType.DOCUMENT, ElementType.ARRAY):
            return self.value  # type: ignore[return-value]
        if self.kind == ElementType.JS_CODE_WITH_SCOPE:
            return self.value.scope  # type: ignore[union-attr]
        return None


@dataclass
class Document:
    """An ordered sequence of elements plus the size its header declared.

    `declared_size` always equals the length of the region the document was
    parsed from, header and terminator included.  Field names may repeat,
    so lookups by name return the first match.
    """

    declared_size: int
    elements: List[Element] = field(default_factory=list)
    _released: bool = field(default=False, init=False, repr=False, compare=False)

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self) -> Iterator[Element]:
        return iter(self.elements)

    def __enter__(self) -> "Document":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if not self._released:
            self.release()

    @property
    def released(self) -> bool:
        return self._released

    def names(self) -> List[bytes]:
        return [e.name for e in self.elements]

    def get(self, name: Union[str, bytes]) -> Optional[Element]:
        if isinstance(name, str):
            name = name.encode("utf-8")
        for e in self.elements:
            if e.name == name:
                return e
        return None

    def release(self) -> None:
        """Drop this document's element sequence and every nested one.

        Walks the tree with an explicit stack, parents before children, so
        release depth is not bounded by the interpreter's recursion limit.
        Releasing the same document twice raises DocumentReleased.
        """
        if self._released:
            raise BsonError(ERR_RELEASED, "document already released")
        pending = [self]
        while pending:
            doc = pending.pop()
            if doc._released:
                continue
            doc._released = True
            elements, doc.elements = doc.elements, []
            for e in elements:
                nested = e.owned_document()
                if nested is not None:
                    pending.append(nested)
