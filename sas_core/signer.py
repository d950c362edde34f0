"""HMAC-SHA256 signing of the canonical SAS string."""

from __future__ import annotations

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import hmac as _hmac

from .buffers import BufferView, BytesLike, FixedBuffer, as_bytes

DIGEST_SIZE = 32


def hmac_sha256(key: BufferView | BytesLike, message: BufferView | BytesLike, out: FixedBuffer) -> BufferView:
    """
    Sign ``message`` with ``key`` and write the digest to the start of ``out``.

    Deterministic; returns a view of exactly ``DIGEST_SIZE`` bytes even when
    ``out`` is larger. ``out`` must hold at least ``DIGEST_SIZE`` bytes.
    """
    out.require(DIGEST_SIZE, f"HMAC-SHA256 digest into {out.name}")
    h = _hmac.HMAC(as_bytes(key), hashes.SHA256())
    h.update(as_bytes(message))
    return out.write(h.finalize()).slice(0, DIGEST_SIZE)


__all__ = ["DIGEST_SIZE", "hmac_sha256"]
