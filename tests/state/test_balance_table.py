"""Tests for accrual_ledger/state/balances.py and registry.py: raw storage."""

import pytest

from accrual_ledger.state.balances import BalanceTable
from accrual_ledger.state.registry import RateRegistry


class TestBalanceTable:
    def test_default_zero(self):
        assert BalanceTable().get("a") == 0

    def test_set_tracks_supply(self):
        t = BalanceTable()
        t.set("a", 10)
        t.set("b", 5)
        t.set("a", 3)
        assert t.total_supply == 8
        assert t.total_supply == sum(t.get_all_balances().values())

    def test_zero_is_dropped(self):
        t = BalanceTable()
        t.set("a", 10)
        t.set("a", 0)
        assert t.get_all_balances() == {}
        assert t.total_supply == 0

    def test_negative_rejected(self):
        t = BalanceTable()
        t.set("a", 1)
        with pytest.raises(ValueError):
            t.set("a", -1)
        assert t.get("a") == 1
        assert t.total_supply == 1

    def test_allowances(self):
        t = BalanceTable()
        t.set_allowance("o", "s", 5)
        assert t.get_allowance("o", "s") == 5
        assert t.get_allowance("s", "o") == 0
        t.set_allowance("o", "s", 0)
        assert t.get_all_allowances() == {}
        with pytest.raises(ValueError):
            t.set_allowance("o", "s", -1)


class TestRateRegistry:
    def test_unseen_defaults(self):
        r = RateRegistry()
        assert r.get_rate("a") == 0
        assert r.get_last_settled("a") == 0
        assert not r.has_record("a")

    def test_record_created_by_either_setter(self):
        r = RateRegistry()
        r.set_rate("b", 7)
        r.set_last_settled("a", 3)
        assert r.accounts() == ["a", "b"]
        assert r.get_last_settled("b") == 0
        assert r.get_rate("a") == 0

    def test_plain_store_allows_any_rate_change(self):
        # Rate rules live in the ledger, not here.
        r = RateRegistry()
        r.set_rate("a", 7)
        r.set_rate("a", 9)
        assert r.get_rate("a") == 9

    def test_negative_rejected(self):
        r = RateRegistry()
        with pytest.raises(ValueError):
            r.set_rate("a", -1)
        with pytest.raises(ValueError):
            r.set_last_settled("a", -1)
