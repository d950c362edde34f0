"""
SAS token issuer.

``SasToken`` owns the lifecycle of one device credential:

    generate(minutes) -> True/False   new token in the token buffer
    get()                             view of the last good token (may be stale)
    is_expired()                      wall clock vs. the token's own `se` field

The canonical string to sign and the final token text come from external
collaborators (see ``SigningStringProvider`` / ``TokenAssembler``); this
class only decodes the key, signs, encodes the signature and checks what
the assembler produced.
"""

from __future__ import annotations

import logging
from typing import Protocol

from .buffers import EMPTY, BufferView, FixedBuffer
from .clock import Clock, SystemClock, expiration_from_minutes
from .codec import base64_decode, base64_encode
from .config import KEY_BUFFER_SIZE, SIGNATURE_B64_BUFFER_SIZE
from .errors import ClockError, ExpiryParseError, ProviderError, SasTokenError
from .expiry import parse_expiry
from .logger import DiagnosticSink
from .signer import DIGEST_SIZE, hmac_sha256


class SigningStringProvider(Protocol):
    def signing_string(self, expiry: int, buffer: FixedBuffer) -> BufferView:
        """Write the canonical string for ``expiry`` into ``buffer``."""
        ...


class TokenAssembler(Protocol):
    def assemble(self, expiry: int, signature: BufferView, buffer: FixedBuffer) -> int:
        """Write the final token into ``buffer``; return the length written."""
        ...


class SasToken:
    """
    Issues and tracks time-bound SAS tokens for one device.

    Args:
        provider: builds the canonical signing string for an expiry.
        assembler: builds the final token text from the encoded signature.
        device_key: base64 device key, kept as given and never mutated.
        signing_buffer: working storage for the signing string.
        token_buffer: receives the token text; ``get()`` is a view into it.
        clock: wall-clock source, ``SystemClock`` by default.
        sink: diagnostic sink; a sink over the ``sas_core.sas_token`` logger by default.

    Not thread-safe: one owner per instance.
    """

    def __init__(
        self,
        provider: SigningStringProvider,
        assembler: TokenAssembler,
        device_key: str | bytes,
        signing_buffer: FixedBuffer,
        token_buffer: FixedBuffer,
        *,
        clock: Clock | None = None,
        sink: DiagnosticSink | None = None,
    ) -> None:
        if not device_key:
            raise ValueError("device_key must not be empty")
        if signing_buffer is token_buffer:
            raise ValueError("signing_buffer and token_buffer must be distinct")
        self._provider = provider
        self._assembler = assembler
        self._device_key = device_key.encode("ascii") if isinstance(device_key, str) else bytes(device_key)
        self._signing_buffer = signing_buffer
        self._token_buffer = token_buffer
        self._clock = clock or SystemClock()
        self._sink = sink or DiagnosticSink(logging.getLogger(__name__))
        self._token: BufferView = EMPTY
        self._expiry = 0

    @property
    def expiry(self) -> int:
        """Unix expiry of the current token; 0 when there is none."""
        return self._expiry

    def get(self) -> BufferView:
        """Last successfully generated token; no freshness check."""
        return self._token

    def is_expired(self) -> bool:
        """True once the wall clock reaches the token's expiry, or when time is unknown."""
        try:
            now = self._clock.now()
        except ClockError as exc:
            self._sink.error("Failed to read the system time: %s", exc)
            return True
        return now >= self._expiry

    def generate(self, expiry_minutes: int) -> bool:
        """
        Build a token valid for ``expiry_minutes`` from now.

        On failure the current token becomes empty and the expiry 0;
        the cause is reported to the sink.
        """
        self._token = EMPTY
        self._expiry = 0
        try:
            token, expiry = self._generate(expiry_minutes)
        except SasTokenError as exc:
            self._sink.error("Failed generating SAS token: %s", exc)
            return False
        self._token = token
        self._expiry = expiry
        self._sink.info("SAS token generated, expires at %d", expiry)
        return True

    def _generate(self, expiry_minutes: int) -> tuple[BufferView, int]:
        if expiry_minutes < 0:
            raise SasTokenError(f"token lifetime must be >= 0 minutes, got {expiry_minutes}")
        requested = expiration_from_minutes(self._clock, expiry_minutes)

        try:
            signing_string = self._provider.signing_string(requested, self._signing_buffer)
        except SasTokenError:
            raise
        except Exception as exc:
            raise ProviderError(f"could not get the signature for the SAS key: {exc}") from exc
        self._sink.debug("signing string ready (%d bytes)", len(signing_string))

        signature = self._sign(signing_string)

        try:
            written = self._assembler.assemble(requested, signature, self._token_buffer)
        except SasTokenError:
            raise
        except Exception as exc:
            raise ProviderError(f"could not assemble the SAS token: {exc}") from exc
        if not isinstance(written, int) or written < 0:
            raise ProviderError(f"assembler returned an invalid length: {written!r}")
        token = self._token_buffer.view(written)

        expiry = parse_expiry(token)
        if expiry == 0:
            raise ExpiryParseError("SAS token carries a zero expiry")
        if expiry != requested:
            self._sink.info("SAS token expiry %d differs from requested %d; using the token's", expiry, requested)
        return token, expiry

    def _sign(self, signing_string: BufferView) -> BufferView:
        """Decode the key, HMAC the signing string and base64 the digest."""
        key_buffer = FixedBuffer(KEY_BUFFER_SIZE, name="decoded key")
        digest_buffer = FixedBuffer(DIGEST_SIZE, name="digest")
        encoded_buffer = FixedBuffer(SIGNATURE_B64_BUFFER_SIZE, name="encoded signature")
        try:
            key = base64_decode(self._device_key, key_buffer)
            digest = hmac_sha256(key, signing_string, digest_buffer)
            return base64_encode(digest.slice(0, DIGEST_SIZE), encoded_buffer)
        finally:
            key_buffer.wipe()
            digest_buffer.wipe()


__all__ = ["SasToken", "SigningStringProvider", "TokenAssembler"]
