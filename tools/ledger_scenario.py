#!/usr/bin/env python3
"""
Replay a YAML ledger scenario against a manual clock.

Scenario format:

  config:                # optional, any LedgerConfig field
    initial_rate: 50000000000
    minters: [vault]
    burners: [vault]
    rate_admins: [admin]
  steps:
    - {op: mint, to: alice, amount: 1000, caller: vault}
    - {op: advance, seconds: 100}
    - {op: set_rate, rate: 20000000000, caller: admin}
    - {op: transfer, src: alice, dst: bob, amount: all}
    - {op: expect_balance, account: bob, equals: 1000}
    - {op: expect_error, error: RateIncreaseRejected, step: {op: set_rate, rate: 9, caller: admin}}

Every step prints one JSON line. The exit code is non-zero on the first
failed expectation or unexpected error.

Example:
  python3 tools/ledger_scenario.py scenario.yaml
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping

import yaml

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from accrual_ledger.core.clock import ManualClock
from accrual_ledger.core.errors import LedgerError
from accrual_ledger.core.ledger import Ledger
from accrual_ledger.core.types import Amount
from accrual_ledger.integration.config import build_ledger, config_from_mapping


class ScenarioError(Exception):
    pass


def _require_mapping(obj: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(obj, Mapping):
        raise ScenarioError(f"{name} must be a mapping")
    return obj


def _amount(raw: Any) -> Any:
    if raw == "all":
        return Amount.all()
    return raw


def _run_step(ledger: Ledger, clock: ManualClock, step: Mapping[str, Any]) -> Dict[str, Any]:
    op = step.get("op")
    if op == "advance":
        return {"now": clock.advance(int(step["seconds"]))}
    if op == "set_rate":
        old = ledger.set_global_rate(step["rate"], caller=step.get("caller", ""))
        return {"old": old, "new": ledger.get_global_rate()}
    if op == "mint":
        return {"minted": ledger.mint(step["to"], step["amount"], caller=step.get("caller", ""))}
    if op == "burn":
        return {"burned": ledger.burn(step["account"], _amount(step["amount"]), caller=step.get("caller", ""))}
    if op == "transfer":
        return {"moved": ledger.transfer(step["src"], step["dst"], _amount(step["amount"]))}
    if op == "transfer_from":
        return {"moved": ledger.transfer_from(step["spender"], step["src"], step["dst"], _amount(step["amount"]))}
    if op == "approve":
        ledger.approve(step["owner"], step["spender"], step["amount"])
        return {}
    if op == "settle":
        return {"interest": ledger.settle(step["account"])}
    if op == "expect_balance":
        actual = ledger.balance_of(step["account"])
        if actual != step["equals"]:
            raise ScenarioError(f"balance_of({step['account']}) = {actual}, expected {step['equals']}")
        return {"balance": actual}
    if op == "expect_rate":
        actual = ledger.get_user_rate(step["account"])
        if actual != step["equals"]:
            raise ScenarioError(f"rate({step['account']}) = {actual}, expected {step['equals']}")
        return {"rate": actual}
    if op == "expect_error":
        inner = _require_mapping(step.get("step"), name="expect_error.step")
        try:
            _run_step(ledger, clock, inner)
        except LedgerError as exc:
            if type(exc).__name__ != step.get("error"):
                raise ScenarioError(f"expected {step.get('error')}, got {type(exc).__name__}") from exc
            return {"error": type(exc).__name__}
        raise ScenarioError(f"expected {step.get('error')}, step succeeded")
    raise ScenarioError(f"unknown op: {op!r}")


def run_scenario(
    scenario: Mapping[str, Any],
    *,
    emit: Callable[[Dict[str, Any]], None] = lambda _row: None,
) -> List[Dict[str, Any]]:
    """Execute every step; return the result rows. Raises on the first failure."""
    scenario = _require_mapping(scenario, name="scenario")
    config = config_from_mapping(_require_mapping(scenario.get("config") or {}, name="config"))
    steps = scenario.get("steps") or []
    if not isinstance(steps, list):
        raise ScenarioError("steps must be a list")

    clock = ManualClock(int(scenario.get("start", 0)))
    ledger, _roles = build_ledger(config, clock)

    rows: List[Dict[str, Any]] = []
    for i, raw in enumerate(steps):
        step = _require_mapping(raw, name=f"steps[{i}]")
        try:
            result = _run_step(ledger, clock, step)
        except LedgerError as exc:
            raise ScenarioError(f"steps[{i}] ({step.get('op')}): {type(exc).__name__}: {exc}") from exc
        row = {"step": i, "op": step.get("op"), "t": clock(), **result}
        rows.append(row)
        emit(row)
    return rows


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    ap.add_argument("scenario", type=Path, help="YAML scenario file")
    args = ap.parse_args(argv)

    scenario = yaml.safe_load(args.scenario.read_text(encoding="utf-8"))
    try:
        run_scenario(scenario, emit=lambda row: print(json.dumps(row, sort_keys=True)))
    except ScenarioError as exc:
        print(f"[ledger-scenario] FAIL: {exc}", file=sys.stderr)
        return 1
    print("[ledger-scenario] OK", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
