"""
IoT Hub implementation of the signing-string provider and token assembler.

Mirrors what the Azure IoT device SDK produces for SAS authentication:

    signing string   url_encode("<hub>/devices/<device>[/modules/<module>]") "\n" <expiry>
    token            SharedAccessSignature sr=<encoded resource>&sig=<url-encoded b64 sig>&se=<expiry>[&skn=<key name>]
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from .buffers import BufferView, FixedBuffer, as_bytes
from .clock import Clock
from .config import SIGNING_BUFFER_SIZE, TOKEN_BUFFER_SIZE, IoTSettings
from .errors import ProviderError
from .expiry import MAX_EXPIRY
from .logger import DiagnosticSink
from .sas_token import SasToken

SAS_PREFIX = "SharedAccessSignature"


def url_encode(text: str) -> str:
    return quote(text, safe="")


@dataclass(frozen=True)
class IoTHubSasCollaborator:
    hub_fqdn: str
    device_id: str
    module_id: str | None = None
    key_name: str | None = None

    def __post_init__(self) -> None:
        if not self.hub_fqdn or not self.device_id:
            raise ValueError("hub_fqdn and device_id are required")

    @property
    def resource_uri(self) -> str:
        uri = f"{self.hub_fqdn}/devices/{self.device_id}"
        if self.module_id:
            uri += f"/modules/{self.module_id}"
        return uri

    @staticmethod
    def _check_expiry(expiry: int) -> None:
        if not 0 < expiry <= MAX_EXPIRY:
            raise ProviderError(f"expiry {expiry} outside 1..{MAX_EXPIRY}")

    def signing_string(self, expiry: int, buffer: FixedBuffer) -> BufferView:
        self._check_expiry(expiry)
        text = f"{url_encode(self.resource_uri)}\n{expiry}"
        return buffer.write(text.encode("ascii"))

    def assemble(self, expiry: int, signature: BufferView, buffer: FixedBuffer) -> int:
        self._check_expiry(expiry)
        if not signature:
            raise ProviderError("empty signature")
        sig = url_encode(as_bytes(signature).decode("ascii"))
        text = f"{SAS_PREFIX} sr={url_encode(self.resource_uri)}&sig={sig}&se={expiry}"
        if self.key_name:
            text += f"&skn={url_encode(self.key_name)}"
        return len(buffer.write(text.encode("ascii")))


def create_sas_token(
    settings: IoTSettings,
    *,
    clock: Clock | None = None,
    sink: DiagnosticSink | None = None,
    signing_buffer: FixedBuffer | None = None,
    token_buffer: FixedBuffer | None = None,
) -> SasToken:
    """Compose an issuer for ``settings`` with freshly allocated buffers."""
    collaborator = IoTHubSasCollaborator(
        hub_fqdn=settings.hub_fqdn,
        device_id=settings.device_id,
        module_id=settings.module_id,
        key_name=settings.key_name,
    )
    return SasToken(
        collaborator,
        collaborator,
        settings.device_key,
        signing_buffer or FixedBuffer(SIGNING_BUFFER_SIZE, name="signing buffer"),
        token_buffer or FixedBuffer(TOKEN_BUFFER_SIZE, name="token buffer"),
        clock=clock,
        sink=sink,
    )


__all__ = ["SAS_PREFIX", "IoTHubSasCollaborator", "create_sas_token", "url_encode"]
