"""
Host clocks.

The ledger never measures time itself; it calls a ``Clock`` (any zero-argument
callable returning integer seconds) at the start of every operation.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def __call__(self) -> int: ...


class SystemClock:
    """Wall-clock seconds since the epoch."""

    def __call__(self) -> int:
        return int(time.time())


class ManualClock:
    """Clock driven explicitly by the caller (tests, replays, simulations)."""

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError(f"start must be non-negative: {start}")
        self._now = start

    def __call__(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"cannot advance by a negative amount: {seconds}")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < 0:
            raise ValueError(f"timestamp must be non-negative: {timestamp}")
        self._now = timestamp
