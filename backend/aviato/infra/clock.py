"""Injectable wall clock in epoch milliseconds."""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int:
        ...


class SystemClock:
    def now(self) -> int:
        return int(time.time() * 1000)


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start_ms: int = 0) -> None:
        self._now = int(start_ms)

    def now(self) -> int:
        return self._now

    def set(self, value_ms: int) -> None:
        self._now = int(value_ms)

    def advance(self, delta_ms: int) -> int:
        self._now += int(delta_ms)
        return self._now


system_clock = SystemClock()
