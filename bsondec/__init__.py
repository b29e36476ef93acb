"""bsondec — a decoder for length-prefixed binary documents (BSON layout).

Turn one complete, in-memory document into a tree of typed elements.

Quick start:
    >>> from bsondec import parse
    >>> doc = parse(b"\\x16\\x00\\x00\\x00\\x02hello\\x00\\x06\\x00\\x00\\x00world\\x00\\x00")
    >>> doc.declared_size
    22
    >>> doc.get("hello").value
    b'world'

Trees own nested documents outright and copy their payloads, so they stay
valid after the input buffer is gone.  `release()` tears a tree down
explicitly; a `with parse(buf) as doc:` block does it on exit.
"""

from __future__ import annotations

from ._constants import DEFAULT_MAX_DEPTH
from ._core import parse_document
from ._errors import (
    ERR_ARRAY_INDEX,
    ERR_BINARY_SIZE,
    ERR_BOOLEAN_VALUE,
    ERR_DOCUMENT_SIZE,
    ERR_ELEMENT_TYPE,
    ERR_LIMIT_DEPTH,
    ERR_OUT_OF_MEMORY,
    ERR_RELEASED,
    ERR_STRING_SIZE,
    ERR_SUBTYPE,
    ERROR_CODES,
    BsonError,
)
from ._json_view import to_json_value
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

__version__ = "0.3.0"

__all__ = [
    # Public API functions
    "parse",
    "release",
    "classify",
    "to_json_value",
    # Data model
    "Document",
    "Element",
    "ElementType",
    "BinarySubtype",
    "Binary",
    "Regex",
    "DBPointer",
    "CodeWithScope",
    "DEFAULT_MAX_DEPTH",
    # Exception
    "BsonError",
    # Error codes
    "ERROR_CODES",
    "ERR_DOCUMENT_SIZE",
    "ERR_STRING_SIZE",
    "ERR_BINARY_SIZE",
    "ERR_ARRAY_INDEX",
    "ERR_BOOLEAN_VALUE",
    "ERR_ELEMENT_TYPE",
    "ERR_SUBTYPE",
    "ERR_LIMIT_DEPTH",
    "ERR_OUT_OF_MEMORY",
    "ERR_RELEASED",
]


# ── Core API ──────────────────────────────────────────────────

def parse(buffer, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Document:
    """Decode a bytes-like buffer holding exactly one document.

    Nesting deeper than `max_depth` levels below the top-level document
    is rejected with NestingTooDeep.
    """
    return parse_document(buffer, max_depth)


def release(document: Document) -> None:
    """Release `document` and every document nested beneath it.

    Releasing twice raises BsonError(DocumentReleased).
    """
    document.release()


def classify(byte: int) -> ElementType:
    """Map a raw tag byte (0..255) to its ElementType."""
    if not 0 <= byte <= 0xFF:
        raise ValueError("tag byte out of range: {}".format(byte))
    return ElementType.from_byte(byte)
