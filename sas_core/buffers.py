# buffers.py
"""
Fixed-capacity byte regions and the views handed out over them.

A ``FixedBuffer`` never grows: every write is checked against its capacity
before the first byte is copied, so an undersized region fails with a typed
``BufferCapacityError`` instead of being silently truncated or overrun.

A ``BufferView`` is a read-only (offset, length) window into one buffer.
It is what the issuer keeps as "the current token".
"""
from __future__ import annotations

import ctypes
from dataclasses import dataclass
from typing import Union

from .errors import BufferCapacityError

BytesLike = Union[bytes, bytearray, memoryview]


def secure_memzero(region: memoryview) -> None:
    """
    Zero a writable region in a way the interpreter cannot skip.

    Uses ctypes.memset over the exported buffer; falls back to a byte loop
    when the region cannot be addressed (e.g. non-contiguous views).
    """
    n = len(region)
    if not n:
        return
    try:
        addr = ctypes.addressof(ctypes.c_char.from_buffer(region))
        ctypes.memset(addr, 0, n)
        return
    except (TypeError, ValueError, BufferError) as exc:
        from .logger import log_best_effort

        log_best_effort(__name__, exc, message="memset unavailable, zeroing by hand")
    for i in range(n):
        region[i] = 0


class FixedBuffer:
    """
    Caller-owned, fixed-capacity byte region.

    Args:
        storage: an int (allocate that many zero bytes), a bytearray, or a
            writable memoryview. Views let callers hand in a slice of a
            larger region, e.g. one surrounded by sentinel bytes.
    """

    __slots__ = ("_mv", "capacity", "name")

    def __init__(self, storage: int | bytearray | memoryview, *, name: str = "buffer") -> None:
        if isinstance(storage, int):
            if storage < 0:
                raise ValueError("capacity must be >= 0")
            storage = bytearray(storage)
        if not isinstance(storage, (bytearray, memoryview)):
            raise TypeError(f"FixedBuffer requires bytearray/memoryview, got {type(storage).__name__}")
        mv = memoryview(storage)
        if mv.readonly:
            raise TypeError("FixedBuffer storage must be writable")
        if mv.ndim != 1 or mv.itemsize != 1:
            mv = mv.cast("B")
        self._mv = mv
        self.capacity = len(mv)
        self.name = name

    def __len__(self) -> int:
        return self.capacity

    def __repr__(self) -> str:
        # never render contents
        return f"FixedBuffer(name={self.name!r}, capacity={self.capacity})"

    def require(self, length: int, what: str | None = None) -> None:
        if length > self.capacity:
            raise BufferCapacityError(what or self.name, length, self.capacity)

    def write(self, data: BytesLike, offset: int = 0) -> BufferView:
        """Copy ``data`` in at ``offset`` and return the view over it."""
        src = memoryview(data).cast("B") if isinstance(data, memoryview) else memoryview(bytes(data))
        end = offset + len(src)
        if offset < 0:
            raise ValueError("offset must be >= 0")
        self.require(end)
        self._mv[offset:end] = src
        return BufferView(self, offset, len(src))

    def fill(self, value: int = 0) -> None:
        self._mv[:] = bytes([value]) * self.capacity

    def wipe(self) -> None:
        secure_memzero(self._mv)

    def view(self, length: int, offset: int = 0) -> BufferView:
        return BufferView(self, offset, length)

    def raw(self) -> memoryview:
        """Read-only view of the whole region."""
        return self._mv.toreadonly()


@dataclass(frozen=True)
class BufferView:
    """Read-only window (offset + length) into a FixedBuffer."""

    buffer: FixedBuffer | None
    offset: int = 0
    length: int = 0

    def __post_init__(self) -> None:
        if self.offset < 0 or self.length < 0:
            raise ValueError("BufferView offset/length must be >= 0")
        if self.buffer is None:
            if self.offset or self.length:
                raise ValueError("an unbacked view must be empty")
            return
        if self.offset + self.length > self.buffer.capacity:
            raise BufferCapacityError(
                f"view over {self.buffer.name}", self.offset + self.length, self.buffer.capacity
            )

    def __len__(self) -> int:
        return self.length

    def __bool__(self) -> bool:
        return self.length > 0

    def __bytes__(self) -> bytes:
        return self.tobytes()

    def __repr__(self) -> str:
        return f"BufferView(offset={self.offset}, length={self.length})"

    @property
    def is_empty(self) -> bool:
        return self.length == 0

    def memory(self) -> memoryview:
        if self.buffer is None:
            return memoryview(b"")
        return self.buffer.raw()[self.offset : self.offset + self.length]

    def tobytes(self) -> bytes:
        return self.memory().tobytes()

    def decode(self, encoding: str = "ascii") -> str:
        return self.tobytes().decode(encoding)

    def slice(self, start: int, length: int) -> BufferView:
        """Sub-view relative to this view; must stay inside it."""
        if start < 0 or length < 0 or start + length > self.length:
            raise ValueError(f"slice [{start}:{start + length}] outside view of {self.length} bytes")
        if self.buffer is None:
            return EMPTY
        return BufferView(self.buffer, self.offset + start, length)


EMPTY = BufferView(None)


def as_bytes(data: BufferView | BytesLike | str) -> bytes:
    if isinstance(data, BufferView):
        return data.tobytes()
    if isinstance(data, str):
        return data.encode("ascii")
    if isinstance(data, memoryview):
        return data.tobytes()
    return bytes(data)


__all__ = ["FixedBuffer", "BufferView", "EMPTY", "as_bytes", "secure_memzero"]
