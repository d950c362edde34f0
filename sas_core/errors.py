from __future__ import annotations


class SasTokenError(Exception):
    """Base class for every failure raised while issuing a SAS token."""


class EncodingError(SasTokenError, ValueError):
    """Base64 conversion failed (malformed text or undersized output)."""


class BufferCapacityError(EncodingError):
    """Raised when data does not fit a fixed-capacity buffer."""

    def __init__(self, what: str, needed: int, capacity: int):
        super().__init__(f"{what}: needs {needed} bytes, capacity is {capacity}")
        self.needed = needed
        self.capacity = capacity


class ProviderError(SasTokenError):
    """The signing-string provider or the token assembler reported failure."""


class ExpiryParseError(SasTokenError, ValueError):
    """The `&se=` field is missing, non-numeric or out of range."""


class ClockError(SasTokenError, OSError):
    """System wall-clock time is unavailable."""


__all__ = [
    "SasTokenError",
    "EncodingError",
    "BufferCapacityError",
    "ProviderError",
    "ExpiryParseError",
    "ClockError",
]
