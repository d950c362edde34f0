"""
Central parameters for sas_core: buffer capacities, token lifetime and the
device identity read from the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .codec import encoded_length
from .signer import DIGEST_SIZE

# ───── token lifetime ───────────────────────────────────────────────────
SAS_TOKEN_DURATION_IN_MINUTES = 60

# ───── buffer capacities (bytes) ────────────────────────────────────────
KEY_BUFFER_SIZE = 32  # decoded device key
SIGNATURE_B64_BUFFER_SIZE = 64  # base64 of the 32-byte digest (44 chars)
SIGNING_BUFFER_SIZE = 256  # "<url-encoded resource>\n<expiry>"
TOKEN_BUFFER_SIZE = 256  # "SharedAccessSignature sr=...&sig=...&se=..."

if SIGNATURE_B64_BUFFER_SIZE < encoded_length(DIGEST_SIZE):
    raise ImportError(
        f"SIGNATURE_B64_BUFFER_SIZE={SIGNATURE_B64_BUFFER_SIZE} cannot hold "
        f"{encoded_length(DIGEST_SIZE)} base64 chars"
    )


@dataclass(frozen=True)
class IoTSettings:
    """Device identity and token policy."""

    hub_fqdn: str
    device_id: str
    device_key: str
    module_id: str | None = None
    key_name: str | None = None
    token_minutes: int = SAS_TOKEN_DURATION_IN_MINUTES

    def __repr__(self) -> str:
        return (
            f"IoTSettings(hub_fqdn={self.hub_fqdn!r}, device_id={self.device_id!r}, "
            f"module_id={self.module_id!r}, key_name={self.key_name!r}, "
            f"token_minutes={self.token_minutes}, device_key=[REDACTED])"
        )

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> IoTSettings:
        env = os.environ if environ is None else environ
        missing = [
            name
            for name in ("IOT_CONFIG_IOTHUB_FQDN", "IOT_CONFIG_DEVICE_ID", "IOT_CONFIG_DEVICE_KEY")
            if not env.get(name)
        ]
        if missing:
            raise ValueError(f"missing required settings: {', '.join(missing)}")
        minutes_raw = env.get("SAS_TOKEN_DURATION_IN_MINUTES")
        try:
            minutes = int(minutes_raw) if minutes_raw else SAS_TOKEN_DURATION_IN_MINUTES
        except ValueError:
            raise ValueError(
                f"SAS_TOKEN_DURATION_IN_MINUTES must be an integer, got {minutes_raw!r}"
            ) from None
        return cls(
            hub_fqdn=env["IOT_CONFIG_IOTHUB_FQDN"],
            device_id=env["IOT_CONFIG_DEVICE_ID"],
            device_key=env["IOT_CONFIG_DEVICE_KEY"],
            module_id=env.get("IOT_CONFIG_MODULE_ID") or None,
            key_name=env.get("IOT_CONFIG_KEY_NAME") or None,
            token_minutes=minutes,
        )


__all__ = [
    "SAS_TOKEN_DURATION_IN_MINUTES",
    "KEY_BUFFER_SIZE",
    "SIGNATURE_B64_BUFFER_SIZE",
    "SIGNING_BUFFER_SIZE",
    "TOKEN_BUFFER_SIZE",
    "IoTSettings",
]
