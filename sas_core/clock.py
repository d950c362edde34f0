from __future__ import annotations

import math
import time
from typing import Callable, Protocol

from .errors import ClockError

# Any reading before this means NTP never ran (firmware sanity check).
UNIX_TIME_NOV_13_2017 = 1510592825


class Clock(Protocol):
    def now(self) -> int:
        """Seconds since the Unix epoch; raises ClockError when unavailable."""
        ...


class SystemClock:
    """Process wall clock."""

    def __init__(self, time_source: Callable[[], float] = time.time) -> None:
        self._time = time_source

    def now(self) -> int:
        try:
            t = float(self._time())
        except (OSError, OverflowError, ValueError, TypeError) as exc:
            raise ClockError(f"system time unavailable: {exc}") from exc
        if not math.isfinite(t) or t < 0:  # NaN, inf or before the epoch
            raise ClockError(f"system time is invalid: {t!r}")
        return int(t)


def expiration_from_minutes(clock: Clock, minutes: int) -> int:
    """Absolute Unix time ``minutes`` from now."""
    if minutes < 0:
        raise ValueError("minutes must be >= 0")
    return clock.now() + int(minutes) * 60


def clock_is_synchronized(now: int) -> bool:
    return now >= UNIX_TIME_NOV_13_2017


__all__ = [
    "Clock",
    "SystemClock",
    "UNIX_TIME_NOV_13_2017",
    "expiration_from_minutes",
    "clock_is_synchronized",
]
