"""Tests for accrual_ledger/core/invariants.py: whole-ledger checks."""

from dataclasses import replace

from accrual_ledger.core.invariants import INVARIANT_REGISTRY, LedgerView, check_all
from accrual_ledger.core.types import AccountRecord


def _view(**overrides) -> LedgerView:
    base = LedgerView(
        records={
            "A": AccountRecord(principal=100, rate=5, last_settled=10),
            "B": AccountRecord(principal=0, rate=3, last_settled=4),
        },
        principals={"A": 100},
        total_supply=100,
        global_rate=3,
        rate_ceiling=5,
        now=10,
    )
    return replace(base, **overrides)


class TestAllInvariants:
    def test_consistent_view_passes(self):
        assert check_all(_view()) == []

    def test_empty_ledger_passes(self):
        v = LedgerView(records={}, principals={}, total_supply=0, global_rate=0, rate_ceiling=0, now=0)
        assert check_all(v) == []

    def test_registry_size(self):
        assert len(INVARIANT_REGISTRY) == 7


class TestSupply:
    def test_fail(self):
        assert "inv_supply_matches_principal" in check_all(_view(total_supply=99))


class TestPrincipalNonNeg:
    def test_fail(self):
        v = _view(principals={"A": 100, "C": -1}, total_supply=99)
        assert "inv_principal_nonneg" in check_all(v)


class TestRecordForFunded:
    def test_fail(self):
        v = _view(principals={"A": 100, "C": 1}, total_supply=101)
        assert "inv_record_for_funded" in check_all(v)


class TestRecordMatchesPrincipal:
    def test_fail(self):
        records = {"A": AccountRecord(principal=99, rate=5, last_settled=10)}
        assert "inv_record_matches_principal" in check_all(_view(records=records))


class TestSettledNotFromFuture:
    def test_fail(self):
        assert "inv_settled_not_from_future" in check_all(_view(now=9))


class TestRateCeiling:
    def test_account_fail(self):
        assert "inv_account_rate_within_ceiling" in check_all(_view(rate_ceiling=4, global_rate=3))

    def test_global_fail(self):
        assert "inv_global_rate_within_ceiling" in check_all(_view(global_rate=6))

    def test_zero_global_rate_with_funded_account_is_fine(self):
        # A global rate lowered to zero is legal; new deposits simply do not accrue.
        records = {"A": AccountRecord(principal=100, rate=0, last_settled=10)}
        assert check_all(_view(records=records, global_rate=0)) == []
