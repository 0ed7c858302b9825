"""
Global accrual-rate controller.

Holds the single system-wide rate offered to new depositors. The rate is
monotone non-increasing: any attempt to raise it is rejected before state
changes, so an earlier depositor never holds a worse rate than a later one.
"""

from __future__ import annotations

import logging
from typing import Callable, List

from ..util.structured_log import log_event
from .errors import RateIncreaseRejected
from .math import MAX_UINT256

log = logging.getLogger("accrual_ledger.rates")

RateListener = Callable[[int, int], None]


class GlobalRateController:
    def __init__(self, initial_rate: int) -> None:
        if not isinstance(initial_rate, int) or isinstance(initial_rate, bool):
            raise TypeError("initial_rate must be an int")
        if not (0 <= initial_rate <= MAX_UINT256):
            raise ValueError(f"initial_rate out of range: {initial_rate}")
        self._rate = initial_rate
        self._listeners: List[RateListener] = []

    def get_global_rate(self) -> int:
        return self._rate

    def subscribe(self, listener: RateListener) -> None:
        """Register ``listener(old, new)``, called after every accepted change.

        Listener failures are logged; they never undo or fail the change.
        """
        self._listeners.append(listener)

    def set_global_rate(self, new_rate: int) -> int:
        """Lower (or keep) the global rate. Returns the previous rate.

        Raises:
            RateIncreaseRejected: ``new_rate`` is above the current rate.
        """
        if not isinstance(new_rate, int) or isinstance(new_rate, bool):
            raise TypeError("new_rate must be an int")
        if new_rate < 0:
            raise ValueError(f"new_rate must be non-negative: {new_rate}")
        old = self._rate
        if new_rate > old:
            raise RateIncreaseRejected(old, new_rate)
        self._rate = new_rate
        log_event(log, "rate_changed", old=old, new=new_rate)
        for listener in list(self._listeners):
            try:
                listener(old, new_rate)
            except Exception:
                log.exception("rate listener %r failed", listener)
        return old
