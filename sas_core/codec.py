"""
Base64 conversion over fixed-capacity buffers.

The device key arrives as base64 text and the HMAC digest leaves as base64
text; both directions write into caller-owned ``FixedBuffer`` regions.
"""

from __future__ import annotations

import base64
import binascii

from .buffers import BufferView, BytesLike, FixedBuffer, as_bytes
from .errors import BufferCapacityError, EncodingError


def encoded_length(n: int) -> int:
    """Length of the padded base64 text for ``n`` input bytes."""
    return 4 * ((n + 2) // 3)


def max_decoded_length(n: int) -> int:
    """Upper bound of decoded bytes for ``n`` characters of base64 text."""
    return (3 * n) // 4


def base64_encode(data: BufferView | BytesLike, out: FixedBuffer) -> BufferView:
    """
    Encode ``data`` into ``out``.

    Raises:
        EncodingError: ``out`` is smaller than ``encoded_length(len(data))``.
            Nothing is written in that case.
    """
    raw = as_bytes(data)
    needed = encoded_length(len(raw))
    if needed > out.capacity:
        raise BufferCapacityError(f"base64 encode into {out.name}", needed, out.capacity)
    return out.write(base64.b64encode(raw))


def base64_decode(text: BufferView | BytesLike | str, out: FixedBuffer) -> BufferView:
    """
    Decode base64 ``text`` into ``out``.

    ``out`` is zero-filled first, so bytes past the decoded length never
    carry anything from a previous use. Capacity is checked against the
    actual decoded length: a 44-character key decodes to 32 bytes.

    Raises:
        EncodingError: invalid alphabet/padding, or decoded data larger than ``out``.
    """
    out.fill(0)
    try:
        raw = as_bytes(text)
    except UnicodeEncodeError as exc:
        raise EncodingError("base64 text contains non-ASCII characters") from exc
    try:
        decoded = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise EncodingError(f"malformed base64 text: {exc}") from exc
    if len(decoded) > out.capacity:
        raise BufferCapacityError(f"base64 decode into {out.name}", len(decoded), out.capacity)
    return out.write(decoded)


__all__ = ["encoded_length", "max_decoded_length", "base64_encode", "base64_decode"]
