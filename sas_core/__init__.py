"""sas_core: public API.

Exports:
- SasToken (issuer) and the IoT Hub collaborator/factory
- FixedBuffer / BufferView
- codec, signer and expiry helpers
- DiagnosticSink / LogLevel / build_logger
- the error taxonomy
"""

from __future__ import annotations

from .buffers import EMPTY, BufferView, FixedBuffer
from .clock import Clock, SystemClock, clock_is_synchronized
from .codec import base64_decode, base64_encode, encoded_length
from .config import SAS_TOKEN_DURATION_IN_MINUTES, IoTSettings
from .errors import (
    BufferCapacityError,
    ClockError,
    EncodingError,
    ExpiryParseError,
    ProviderError,
    SasTokenError,
)
from .expiry import parse_expiry
from .hub import IoTHubSasCollaborator, create_sas_token
from .logger import DiagnosticSink, LogLevel, build_logger
from .sas_token import SasToken, SigningStringProvider, TokenAssembler
from .signer import DIGEST_SIZE, hmac_sha256

__version__ = "1.0.0"

__all__ = [
    "EMPTY",
    "BufferView",
    "FixedBuffer",
    "Clock",
    "SystemClock",
    "clock_is_synchronized",
    "base64_decode",
    "base64_encode",
    "encoded_length",
    "SAS_TOKEN_DURATION_IN_MINUTES",
    "IoTSettings",
    "BufferCapacityError",
    "ClockError",
    "EncodingError",
    "ExpiryParseError",
    "ProviderError",
    "SasTokenError",
    "parse_expiry",
    "IoTHubSasCollaborator",
    "create_sas_token",
    "DiagnosticSink",
    "LogLevel",
    "build_logger",
    "SasToken",
    "SigningStringProvider",
    "TokenAssembler",
    "DIGEST_SIZE",
    "hmac_sha256",
]
