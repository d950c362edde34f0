import sys
import os
import base64
import hashlib
import hmac
import pytest
from urllib.parse import quote

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from sas_core.buffers import FixedBuffer
from sas_core.config import IoTSettings
from sas_core.errors import BufferCapacityError, ProviderError
from sas_core.hub import IoTHubSasCollaborator, create_sas_token

HUB = "exampleHub.azure-devices.net"


def test_signing_string_format():
    hub = IoTHubSasCollaborator(HUB, "devA")
    view = hub.signing_string(1700003600, FixedBuffer(256))
    assert view.tobytes() == b"exampleHub.azure-devices.net%2Fdevices%2FdevA\n1700003600"


def test_signing_string_with_module():
    hub = IoTHubSasCollaborator(HUB, "devA", module_id="m1")
    assert hub.resource_uri == f"{HUB}/devices/devA/modules/m1"
    view = hub.signing_string(5, FixedBuffer(256))
    assert view.tobytes().startswith(b"exampleHub.azure-devices.net%2Fdevices%2FdevA%2Fmodules%2Fm1\n")


def test_assemble_url_encodes_signature():
    hub = IoTHubSasCollaborator(HUB, "devA")
    sig = FixedBuffer(64).write(b"ab+/cd==")
    out = FixedBuffer(256)
    n = hub.assemble(1700003600, sig, out)
    assert out.view(n).decode() == (
        "SharedAccessSignature sr=exampleHub.azure-devices.net%2Fdevices%2FdevA"
        "&sig=ab%2B%2Fcd%3D%3D&se=1700003600"
    )


def test_assemble_appends_key_name():
    hub = IoTHubSasCollaborator(HUB, "devA", key_name="iothubowner")
    out = FixedBuffer(256)
    n = hub.assemble(1700003600, FixedBuffer(8).write(b"c2ln"), out)
    assert out.view(n).decode().endswith("&se=1700003600&skn=iothubowner")


def test_assemble_rejects_bad_input():
    hub = IoTHubSasCollaborator(HUB, "devA")
    with pytest.raises(ProviderError, match="empty signature"):
        hub.assemble(1, FixedBuffer(8).view(0), FixedBuffer(256))
    with pytest.raises(ProviderError, match="outside"):
        hub.assemble(2**32, FixedBuffer(8).write(b"c2ln"), FixedBuffer(256))


def test_assemble_into_small_buffer():
    hub = IoTHubSasCollaborator(HUB, "devA")
    with pytest.raises(BufferCapacityError):
        hub.assemble(1700003600, FixedBuffer(8).write(b"c2ln"), FixedBuffer(40))


def test_identity_is_required():
    with pytest.raises(ValueError):
        IoTHubSasCollaborator("", "devA")


def test_create_sas_token_end_to_end(fake_clock):
    """Fluxo real: string de assinatura do Hub, HMAC e token final."""
    key = base64.b64encode(bytes(range(32))).decode()
    settings = IoTSettings(hub_fqdn=HUB, device_id="devA", device_key=key)
    sas = create_sas_token(settings, clock=fake_clock)

    assert sas.generate(60)
    signing = b"exampleHub.azure-devices.net%2Fdevices%2FdevA\n1700003600"
    sig = base64.b64encode(hmac.new(bytes(range(32)), signing, hashlib.sha256).digest()).decode()
    assert sas.get().decode() == (
        "SharedAccessSignature sr=exampleHub.azure-devices.net%2Fdevices%2FdevA"
        f"&sig={quote(sig, safe='')}&se=1700003600"
    )
    assert sas.expiry == 1700003600

    fake_clock.t += 3600
    assert sas.is_expired()


def test_settings_from_env():
    env = {
        "IOT_CONFIG_IOTHUB_FQDN": HUB,
        "IOT_CONFIG_DEVICE_ID": "devA",
        "IOT_CONFIG_DEVICE_KEY": "YmFzZTY0a2V5",
        "SAS_TOKEN_DURATION_IN_MINUTES": "15",
    }
    settings = IoTSettings.from_env(env)
    assert settings.token_minutes == 15
    assert settings.module_id is None
    assert "YmFzZTY0a2V5" not in repr(settings)


def test_settings_missing_values():
    with pytest.raises(ValueError, match="IOT_CONFIG_DEVICE_KEY"):
        IoTSettings.from_env({"IOT_CONFIG_IOTHUB_FQDN": HUB, "IOT_CONFIG_DEVICE_ID": "devA"})
    with pytest.raises(ValueError, match="must be an integer"):
        IoTSettings.from_env(
            {
                "IOT_CONFIG_IOTHUB_FQDN": HUB,
                "IOT_CONFIG_DEVICE_ID": "devA",
                "IOT_CONFIG_DEVICE_KEY": "YmFzZTY0a2V5",
                "SAS_TOKEN_DURATION_IN_MINUTES": "an hour",
            }
        )
