"""Tests for accrual_ledger/state/snapshot.py and canonical.py."""

import json

import pytest

from accrual_ledger.core import (
    PRECISION,
    AllowAll,
    GlobalRateController,
    Ledger,
    LedgerInvariantError,
    ManualClock,
)
from accrual_ledger.state.canonical import canonical_json_bytes, domain_sep_bytes
from accrual_ledger.state.snapshot import (
    LEDGER_SNAPSHOT_VERSION,
    ledger_from_snapshot,
    load_snapshot,
    save_snapshot,
    snapshot_from_ledger,
)

RATE = 5 * 10**10


def _populated() -> tuple[Ledger, ManualClock]:
    clock = ManualClock(0)
    ledger = Ledger(clock=clock, authorizer=AllowAll(), rates=GlobalRateController(RATE))
    ledger.mint("carol", 10**21, caller="vault")
    ledger.set_global_rate(RATE // 2, caller="admin")
    clock.advance(100)
    ledger.mint("alice", 5 * 10**20, caller="vault")
    ledger.transfer("carol", "bob", 10**20)
    ledger.approve("alice", "bob", 42)
    return ledger, clock


class TestSnapshotEncoding:
    def test_layout(self):
        ledger, _clock = _populated()
        snap = snapshot_from_ledger(ledger)
        assert snap.version == LEDGER_SNAPSHOT_VERSION
        assert snap.data["precision"] == PRECISION
        assert snap.data["current_rate"] == RATE // 2
        assert snap.data["rate_ceiling"] == RATE
        assert [e["account"] for e in snap.data["accounts"]] == ["alice", "bob", "carol"]
        bob = snap.data["accounts"][1]
        assert bob["rate"] == RATE
        assert bob["principal"] == 10**20
        assert bob["last_settled"] == 100
        assert snap.data["allowances"] == [{"owner": "alice", "spender": "bob", "amount": 42}]

    def test_commitment_is_deterministic(self):
        a, _ = _populated()
        b, _ = _populated()
        assert snapshot_from_ledger(a).commitment_hex() == snapshot_from_ledger(b).commitment_hex()

    def test_commitment_changes_with_state(self):
        ledger, clock = _populated()
        before = snapshot_from_ledger(ledger).commitment_hex()
        clock.advance(1)
        ledger.settle("carol")
        assert snapshot_from_ledger(ledger).commitment_hex() != before


class TestSnapshotRestore:
    def test_round_trip(self, tmp_path):
        ledger, clock = _populated()
        snap = snapshot_from_ledger(ledger)
        path = tmp_path / "ledger.json"
        save_snapshot(snap, path)

        restored = ledger_from_snapshot(load_snapshot(path), clock=clock, authorizer=AllowAll())

        assert restored.view() == ledger.view()
        assert restored.allowance("alice", "bob") == 42
        clock.advance(1_000)
        assert restored.balance_of("carol") == ledger.balance_of("carol")
        assert snapshot_from_ledger(restored).commitment_hex() == snap.commitment_hex()

    def test_restored_rate_still_only_decreases(self):
        ledger, clock = _populated()
        data = snapshot_from_ledger(ledger).data
        restored = ledger_from_snapshot(data, clock=clock, authorizer=AllowAll())
        from accrual_ledger.core import RateIncreaseRejected

        with pytest.raises(RateIncreaseRejected):
            restored.set_global_rate(RATE, caller="admin")

    def test_wrong_version(self):
        ledger, clock = _populated()
        data = dict(snapshot_from_ledger(ledger).data, version=2)
        with pytest.raises(ValueError):
            ledger_from_snapshot(data, clock=clock, authorizer=AllowAll())

    def test_wrong_precision(self):
        ledger, clock = _populated()
        data = dict(snapshot_from_ledger(ledger).data, precision=10**6)
        with pytest.raises(ValueError):
            ledger_from_snapshot(data, clock=clock, authorizer=AllowAll())

    def test_duplicate_account(self):
        ledger, clock = _populated()
        data = snapshot_from_ledger(ledger).data
        data = dict(data, accounts=data["accounts"] + data["accounts"][:1])
        with pytest.raises(ValueError):
            ledger_from_snapshot(data, clock=clock, authorizer=AllowAll())

    def test_bool_principal_rejected(self):
        ledger, clock = _populated()
        data = snapshot_from_ledger(ledger).data
        bad = [dict(data["accounts"][0], principal=True)] + data["accounts"][1:]
        with pytest.raises(TypeError):
            ledger_from_snapshot(dict(data, accounts=bad), clock=clock, authorizer=AllowAll())

    def test_rate_above_ceiling_rejected(self):
        ledger, clock = _populated()
        data = snapshot_from_ledger(ledger).data
        bad = [dict(data["accounts"][0], rate=RATE + 1)] + data["accounts"][1:]
        with pytest.raises(LedgerInvariantError):
            ledger_from_snapshot(dict(data, accounts=bad), clock=clock, authorizer=AllowAll())


class TestCanonical:
    def test_sorted_compact(self):
        assert canonical_json_bytes({"b": 1, "a": [2, 3]}) == b'{"a":[2,3],"b":1}'

    def test_big_ints_survive(self):
        big = 2**255 + 1
        assert json.loads(canonical_json_bytes({"x": big}))["x"] == big

    def test_floats_rejected(self):
        with pytest.raises(TypeError):
            canonical_json_bytes({"x": 1.0})

    def test_domain_sep(self):
        assert domain_sep_bytes("ledger_snapshot", version=1) == b"accrual_ledger:ledger_snapshot:v1\x00"
        with pytest.raises(ValueError):
            domain_sep_bytes("bad\x00label")
