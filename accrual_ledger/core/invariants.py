"""Invariant checkers for the accrual ledger.

Each function returns True when the invariant holds, and ``check_all()``
returns the list of violated invariant IDs (empty = all pass).

These are whole-ledger checks over a ``LedgerView``. The ledger evaluates
them on the *candidate* post-state, before anything is committed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping

from .types import AccountRecord


@dataclass(frozen=True)
class LedgerView:
    """Read-only picture of the ledger at one instant."""

    records: Mapping[str, AccountRecord]
    principals: Mapping[str, int]
    total_supply: int
    global_rate: int
    rate_ceiling: int
    now: int


def inv_supply_matches_principal(v: LedgerView) -> bool:
    return v.total_supply == sum(v.principals.values())


def inv_principal_nonneg(v: LedgerView) -> bool:
    return all(p >= 0 for p in v.principals.values())


def inv_record_for_funded(v: LedgerView) -> bool:
    return all(account in v.records for account, p in v.principals.items() if p > 0)


def inv_record_matches_principal(v: LedgerView) -> bool:
    return all(rec.principal == v.principals.get(account, 0) for account, rec in v.records.items())


def inv_settled_not_from_future(v: LedgerView) -> bool:
    return all(rec.last_settled <= v.now for rec in v.records.values())


def inv_account_rate_within_ceiling(v: LedgerView) -> bool:
    # Every frozen rate was copied from the global rate at some point, or
    # inherited from an account that was; the global rate never rose.
    return all(rec.rate <= v.rate_ceiling for rec in v.records.values())


def inv_global_rate_within_ceiling(v: LedgerView) -> bool:
    return 0 <= v.global_rate <= v.rate_ceiling


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[LedgerView], bool]] = {
    "inv_supply_matches_principal": inv_supply_matches_principal,
    "inv_principal_nonneg": inv_principal_nonneg,
    "inv_record_for_funded": inv_record_for_funded,
    "inv_record_matches_principal": inv_record_matches_principal,
    "inv_settled_not_from_future": inv_settled_not_from_future,
    "inv_account_rate_within_ceiling": inv_account_rate_within_ceiling,
    "inv_global_rate_within_ceiling": inv_global_rate_within_ceiling,
}


def check_all(view: LedgerView) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(view)
    ]
