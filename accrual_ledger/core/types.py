"""Data types for the accrual ledger.

All value types are frozen dataclasses (immutable).

Units/conventions:
- balances and amounts are integer ledger units,
- rates are per-second increments scaled by ``PRECISION`` (1e18),
- timestamps are integer seconds supplied by the host clock.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Any, Mapping, Optional


@unique
class Role(Enum):
    """Capabilities checked through the ledger's ``Authorizer``."""
    MINTER = "minter"
    BURNER = "burner"
    RATE_ADMIN = "rate_admin"


@unique
class Event(Enum):
    """One member per ledger notification."""
    RATE_CHANGED = "RateChanged"
    SETTLED = "Settled"
    MINTED = "Minted"
    BURNED = "Burned"
    TRANSFERRED = "Transferred"
    APPROVAL = "Approval"


@dataclass(frozen=True)
class Amount:
    """Either an exact number of units or "everything the account holds".

    Use ``Amount.exact(n)`` or ``Amount.all()``; never a sentinel integer.
    """

    value: Optional[int] = None

    def __post_init__(self) -> None:
        if self.value is None:
            return
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise TypeError("amount must be an int")
        if self.value < 0:
            raise ValueError(f"amount must be non-negative: {self.value}")

    @classmethod
    def exact(cls, value: int) -> "Amount":
        return cls(value)

    @classmethod
    def all(cls) -> "Amount":
        return cls(None)

    @property
    def is_all(self) -> bool:
        return self.value is None

    def resolve(self, available: int) -> int:
        """Concrete amount given the account's current displayed balance."""
        return available if self.value is None else self.value

    def __repr__(self) -> str:
        return "Amount.all()" if self.value is None else f"Amount.exact({self.value})"


@dataclass(frozen=True)
class AccountRecord:
    """Stored per-account fields (the persisted layout)."""

    principal: int = 0
    rate: int = 0
    last_settled: int = 0


@dataclass(frozen=True)
class LedgerEvent:
    """Notification delivered to ledger listeners after a committed change."""

    event: Event
    timestamp: int
    fields: Mapping[str, Any] = field(default_factory=dict)
