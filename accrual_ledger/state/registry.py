"""
Per-account frozen rate and last-settlement timestamp.

A plain store: the ledger decides *when* a rate is frozen or inherited, this
table only remembers it. Records are never removed.
"""

from __future__ import annotations

from typing import Dict, List

from .balances import Account


class RateRegistry:
    def __init__(self) -> None:
        self._rates: Dict[Account, int] = {}
        self._last_settled: Dict[Account, int] = {}

    def get_rate(self, account: Account) -> int:
        """Frozen rate for account (0 for unseen accounts)."""
        return self._rates.get(account, 0)

    def set_rate(self, account: Account, rate: int) -> None:
        if rate < 0:
            raise ValueError(f"rate must be non-negative: {rate}")
        self._rates[account] = rate
        self._last_settled.setdefault(account, 0)

    def get_last_settled(self, account: Account) -> int:
        return self._last_settled.get(account, 0)

    def set_last_settled(self, account: Account, timestamp: int) -> None:
        if timestamp < 0:
            raise ValueError(f"timestamp must be non-negative: {timestamp}")
        self._last_settled[account] = timestamp
        self._rates.setdefault(account, 0)

    def has_record(self, account: Account) -> bool:
        return account in self._last_settled

    def accounts(self) -> List[Account]:
        """Every account with a record, sorted."""
        return sorted(self._last_settled)

    def __len__(self) -> int:
        return len(self._last_settled)

    def __repr__(self) -> str:
        return f"RateRegistry({len(self)} accounts)"
