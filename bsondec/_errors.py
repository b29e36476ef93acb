"""bsondec error codes and exception class.

Every structural violation maps to exactly one code.  Detection is
fail-fast: the first violation aborts the parse and is reported as-is,
so there is no precedence logic to apply.
"""

from __future__ import annotations

from typing import List

# ── Error codes ───────────────────────────────────────────────
# Grep-friendly names, compared by the conformance vectors.

ERR_DOCUMENT_SIZE: str = "InvalidDocumentSize"  # envelope, nested size, overrun
ERR_STRING_SIZE: str = "InvalidStringSize"      # length-prefixed string
ERR_BINARY_SIZE: str = "InvalidBinarySize"      # binary length
ERR_ARRAY_INDEX: str = "InvalidArrayIndex"      # array keys not 0, 1, 2, ...
ERR_BOOLEAN_VALUE: str = "InvalidBooleanValue"  # boolean byte not 0/1
ERR_ELEMENT_TYPE: str = "InvalidElementType"    # unknown tag byte
ERR_SUBTYPE: str = "InvalidSubtype"             # reserved binary subtype
ERR_LIMIT_DEPTH: str = "NestingTooDeep"         # exceeds max_depth
ERR_OUT_OF_MEMORY: str = "OutOfMemory"          # allocation failed
ERR_RELEASED: str = "DocumentReleased"          # document already released

ERROR_CODES: List[str] = [
    ERR_DOCUMENT_SIZE,
    ERR_STRING_SIZE,
    ERR_BINARY_SIZE,
    ERR_ARRAY_INDEX,
    ERR_BOOLEAN_VALUE,
    ERR_ELEMENT_TYPE,
    ERR_SUBTYPE,
    ERR_LIMIT_DEPTH,
    ERR_OUT_OF_MEMORY,
    ERR_RELEASED,
]


class BsonError(Exception):
    """Exception for every decode and lifecycle failure.

    The `.code` attribute is one of the ERR_* strings above and is what
    callers and the conformance vectors compare against.  The optional
    `.offset` is the absolute buffer position where the problem was found.
    """

    def __init__(self, code: str, msg: str = "", offset: int = -1) -> None:
        super().__init__(msg or code)
        self.code = code
        self.offset = offset
