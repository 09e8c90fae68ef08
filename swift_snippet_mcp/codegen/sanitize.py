"""Escaping of request data embedded in generated Swift string literals."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

SINGLE_LINE_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\0": "\\0",
}

MULTILINE_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\r": "\\r",
    "\0": "\\0",
}

# Same unreserved set as JavaScript's encodeURIComponent.
URLENCODE_SAFE = "-_.!~*'()"


def sanitize(value: Any, mode: Any = None, trim: bool = False) -> str:
    """Escape ``value`` so it can be placed verbatim inside a Swift literal.

    ``mode`` selects the literal context:

    * ``"raw"``, ``"formdata"``, ``"header"``: a single-line ``"..."`` literal.
    * ``"multiline"``: the body of a triple-quoted literal, newlines and tabs kept.
    * ``"urlencoded"``: percent-encoded, as ``encodeURIComponent`` does.

    Anything else falls back to single-line escaping. Non-string values
    sanitize to an empty string.
    """
    if not isinstance(value, str):
        return ""
    if trim:
        value = value.strip()
    if mode == "urlencoded":
        return quote(value, safe=URLENCODE_SAFE)
    if mode == "multiline":
        return _escape(value, MULTILINE_ESCAPES, keep="\n\t")
    return _escape(value, SINGLE_LINE_ESCAPES)


def _escape(value: str, table: dict[str, str], keep: str = "") -> str:
    parts: list[str] = []
    for char in value:
        replacement = table.get(char)
        if replacement is not None:
            parts.append(replacement)
        elif char not in keep and _is_control(char):
            parts.append("\\u{%X}" % ord(char))
        else:
            parts.append(char)
    return "".join(parts)


def _is_control(char: str) -> bool:
    code = ord(char)
    return code < 0x20 or code == 0x7F or code in (0x2028, 0x2029)
