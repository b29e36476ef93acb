"""bsondec constants — element tags, binary subtypes, fixed widths and limits.

Every element on the wire starts with a one-byte tag.  The tag is read as a
*signed* byte, which is how MIN_KEY ends up as -1 (0xFF on the wire) while
MAX_KEY stays at 127 (0x7F).
"""

from __future__ import annotations

# ── Element tags (signed 8-bit) ──────────────────────────────
TAG_DOUBLE: int = 1
TAG_STRING: int = 2
TAG_DOCUMENT: int = 3
TAG_ARRAY: int = 4
TAG_BINARY: int = 5
TAG_UNDEFINED: int = 6            # deprecated
TAG_OBJECT_ID: int = 7
TAG_BOOLEAN: int = 8
TAG_UTC_DATETIME: int = 9
TAG_NULL: int = 10
TAG_REGEX: int = 11
TAG_DB_POINTER: int = 12          # deprecated
TAG_JS_CODE: int = 13
TAG_SYMBOL: int = 14              # deprecated
TAG_JS_CODE_WITH_SCOPE: int = 15  # deprecated
TAG_INT32: int = 16
TAG_TIMESTAMP: int = 17
TAG_INT64: int = 18
TAG_DECIMAL128: int = 19
TAG_MIN_KEY: int = -1
TAG_MAX_KEY: int = 127

# ── Binary subtypes ──────────────────────────────────────────
# 0..8 are well-known, 128..255 belong to applications.  Anything in
# between is reserved and rejected.
SUBTYPE_GENERIC: int = 0x00
SUBTYPE_FUNCTION: int = 0x01
SUBTYPE_BINARY_OLD: int = 0x02
SUBTYPE_UUID_OLD: int = 0x03
SUBTYPE_UUID: int = 0x04
SUBTYPE_MD5: int = 0x05
SUBTYPE_ENCRYPTED: int = 0x06
SUBTYPE_COMPRESSED_COLUMN: int = 0x07
SUBTYPE_SENSITIVE: int = 0x08
SUBTYPE_USER_DEFINED_MIN: int = 0x80

# ── Fixed widths ─────────────────────────────────────────────
# 4-byte length header + 1-byte terminator: the empty document.
MIN_DOCUMENT_SIZE: int = 5
OBJECT_ID_SIZE: int = 12
DECIMAL128_SIZE: int = 16

# ── Safety limits ────────────────────────────────────────────
# Nesting is bounded so hostile input cannot exhaust the interpreter stack.
# Each level costs three Python frames, which keeps 100 well under the
# default recursion limit.
DEFAULT_MAX_DEPTH: int = 100
