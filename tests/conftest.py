import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from sas_core.errors import ClockError


class FakeClock:
    """Relógio controlado pelo teste; `fail=True` simula hora indisponível."""

    def __init__(self, t: int = 1_700_000_000):
        self.t = t
        self.fail = False

    def now(self) -> int:
        if self.fail:
            raise ClockError("clock not set")
        return self.t


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sentinel_region():
    """Região de 8 bytes de sentinela + `capacity` bytes úteis + 8 de sentinela."""

    def _make(capacity: int):
        backing = bytearray(b"\xAA" * 8 + bytes(capacity) + b"\xAA" * 8)
        return backing, memoryview(backing)[8 : 8 + capacity]

    return _make
