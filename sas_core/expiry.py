"""
Extraction of the signature-expiry field from an assembled SAS token.

A token looks like ``SharedAccessSignature sr=...&sig=...&se=1700003600``.
The scan is a single pass with a match counter against ``&se=``; the
marker's first byte never reappears inside it, so on a mismatch the
counter only needs to restart at 0 or 1.
"""

from __future__ import annotations

from .buffers import BufferView, BytesLike, as_bytes
from .errors import ExpiryParseError

MARKER = b"&se="
FIELD_END = ord("&")
MAX_EXPIRY = 0xFFFFFFFF
MAX_DIGITS = len(str(MAX_EXPIRY))

_DIGITS = frozenset(b"0123456789")


def find_marker(token: bytes) -> int:
    """Index just past the first ``&se=``, or -1."""
    matched = 0
    for i, ch in enumerate(token):
        if ch == MARKER[matched]:
            matched += 1
            if matched == len(MARKER):
                return i + 1
        else:
            matched = 1 if ch == MARKER[0] else 0
    return -1


def parse_expiry(token: BufferView | BytesLike | str) -> int:
    """
    Return the Unix expiry time carried in ``token``'s ``se`` field.

    Raises:
        ExpiryParseError: no ``&se=`` marker, empty or non-decimal field,
            or a value above 2**32 - 1.
    """
    raw = as_bytes(token)
    start = find_marker(raw)
    if start < 0:
        raise ExpiryParseError("`se` field not found in SAS token")

    end = start
    while end < len(raw) and raw[end] != FIELD_END:
        end += 1
    field = raw[start:end]

    if not field or any(ch not in _DIGITS for ch in field):
        raise ExpiryParseError(f"`se` field is not an unsigned decimal: {field[:16]!r}")
    significant = field.lstrip(b"0")
    if len(significant) > MAX_DIGITS:
        raise ExpiryParseError(f"`se` value has {len(significant)} digits, does not fit in 32 bits")
    value = int(significant or b"0")
    if value > MAX_EXPIRY:
        raise ExpiryParseError(f"`se` value {value} does not fit in 32 bits")
    return value


__all__ = ["MARKER", "MAX_EXPIRY", "find_marker", "parse_expiry"]
