"""bsondec JSON view — render a parsed tree as JSON-compatible values.

The view is for inspection, not round-tripping.  A document renders as a
list of {"name", "type", "value"} objects rather than a dict, because
field names may repeat and order is significant.

Rendering by kind:
    byte-string kinds      → text, decoded with U+FFFD replacement
    binary / object id     → lowercase hex
    decimal128             → 32 hex digits of the opaque value
    document / array       → nested list
    code-with-scope        → {"code", "scope"}
    void kinds             → null
"""

from __future__ import annotations

import math
from typing import Any, Dict, List

from ._errors import ERR_RELEASED, BsonError
from ._types import Document, Element, ElementType


def _text(raw: bytes) -> str:
    # No UTF-8 validation happens during decode; the view must not fail.
    return raw.decode("utf-8", errors="replace")


def _render_value(e: Element) -> Any:
    kind = e.kind
    val = e.value

    if kind.is_void:
        return None
    if kind in (ElementType.DOCUMENT, ElementType.ARRAY):
        return to_json_value(val)
    if kind in (ElementType.STRING, ElementType.JS_CODE, ElementType.SYMBOL):
        return _text(val)
    if kind == ElementType.BINARY:
        return {"subtype": val.subtype.value, "data": val.data.hex()}
    if kind == ElementType.OBJECT_ID:
        return val.hex()
    if kind == ElementType.REGEX:
        return {"pattern": _text(val.pattern), "options": _text(val.options)}
    if kind == ElementType.DB_POINTER:
        return {"ns": _text(val.ns), "oid": val.oid.hex()}
    if kind == ElementType.JS_CODE_WITH_SCOPE:
        return {"code": _text(val.code), "scope": to_json_value(val.scope)}
    if kind == ElementType.DECIMAL128:
        return "{:032x}".format(val)
    if kind == ElementType.DOUBLE and not math.isfinite(val):
        # JSON has no literal for these.
        if math.isnan(val):
            return "NaN"
        return "Infinity" if val > 0 else "-Infinity"
    # double, boolean, utc_datetime, int32, timestamp, int64
    return val


def to_json_value(doc: Document) -> List[Dict[str, Any]]:
    """Render `doc` (recursively) as a list of name/type/value objects."""
    if doc.released:
        raise BsonError(ERR_RELEASED, "cannot render a released document")
    return [
        {"name": _text(e.name), "type": e.kind.name.lower(), "value": _render_value(e)}
        for e in doc.elements
    ]
