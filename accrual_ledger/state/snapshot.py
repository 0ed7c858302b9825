"""
Ledger state snapshot encoding.

Goals:
- Deterministic JSON serialization for hashing / persistence.
- Round-trippable into a live ``Ledger``.
- Explicit versioning.

Persisted layout: ``{account -> {principal, rate, last_settled}}`` plus the
global ``current_rate``, the ``rate_ceiling`` and the ``PRECISION`` constant.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

from ..core.auth import Authorizer
from ..core.clock import Clock
from ..core.ledger import Ledger
from ..core.math import MAX_UINT256, PRECISION
from ..core.rates import GlobalRateController
from ..core.types import AccountRecord
from .canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex


LEDGER_SNAPSHOT_VERSION = 1


def _require_str(value: Any, *, name: str, non_empty: bool = True, max_len: int = 4096) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string")
    if non_empty and not value:
        raise ValueError(f"{name} must be non-empty")
    if max_len > 0 and len(value) > max_len:
        raise ValueError(f"{name} too large")
    return value


def _require_int(value: Any, *, name: str, non_negative: bool = True) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if non_negative and value < 0:
        raise ValueError(f"{name} must be non-negative")
    if value > MAX_UINT256:
        raise ValueError(f"{name} exceeds uint256")
    return int(value)


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    Deterministic, versioned snapshot of a ledger.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_hex(self) -> str:
        payload = domain_sep_bytes("ledger_snapshot", version=self.version) + self.canonical_bytes()
        return sha256_hex(payload)

    def commitment_bytes(self) -> bytes:
        payload = domain_sep_bytes("ledger_snapshot", version=self.version) + self.canonical_bytes()
        return hashlib.sha256(payload).digest()


def snapshot_from_ledger(ledger: Ledger, *, version: int = LEDGER_SNAPSHOT_VERSION) -> LedgerSnapshot:
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")

    view = ledger.view()
    account_entries = [
        {
            "account": account,
            "principal": int(rec.principal),
            "rate": int(rec.rate),
            "last_settled": int(rec.last_settled),
        }
        for account, rec in view.records.items()
    ]
    account_entries.sort(key=lambda e: e["account"])

    allowance_entries = [
        {"owner": owner, "spender": spender, "amount": int(amount)}
        for (owner, spender), amount in ledger.allowances().items()
    ]
    allowance_entries.sort(key=lambda e: (e["owner"], e["spender"]))

    data: Dict[str, Any] = {
        "version": int(version),
        "precision": PRECISION,
        "current_rate": int(view.global_rate),
        "rate_ceiling": int(view.rate_ceiling),
        "accounts": account_entries,
        "allowances": allowance_entries,
    }
    return LedgerSnapshot(version=version, data=data)


def ledger_from_snapshot(
    snapshot: Mapping[str, Any],
    *,
    clock: Clock,
    authorizer: Authorizer,
    max_accounts: int = 1_000_000,
    max_str_len: int = 512,
) -> Ledger:
    if not isinstance(snapshot, Mapping):
        raise TypeError("snapshot must be a mapping")

    version = snapshot.get("version", LEDGER_SNAPSHOT_VERSION)
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("snapshot.version must be a positive int")
    if version != LEDGER_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")

    precision = _require_int(snapshot.get("precision"), name="snapshot.precision")
    if precision != PRECISION:
        raise ValueError(f"snapshot precision {precision} does not match {PRECISION}")

    current_rate = _require_int(snapshot.get("current_rate"), name="snapshot.current_rate")
    rate_ceiling = _require_int(snapshot.get("rate_ceiling"), name="snapshot.rate_ceiling")

    entries = snapshot.get("accounts") or []
    if not isinstance(entries, list):
        raise TypeError("snapshot.accounts must be a list")
    if len(entries) > max_accounts:
        raise ValueError(f"too many account entries: {len(entries)} > {max_accounts}")

    records: Dict[str, AccountRecord] = {}
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise TypeError("snapshot.accounts entries must be objects")
        account = _require_str(entry.get("account"), name="account.account", max_len=max_str_len)
        if account in records:
            raise ValueError(f"duplicate account entry: {account}")
        records[account] = AccountRecord(
            principal=_require_int(entry.get("principal"), name="account.principal"),
            rate=_require_int(entry.get("rate"), name="account.rate"),
            last_settled=_require_int(entry.get("last_settled"), name="account.last_settled"),
        )

    allowance_entries = snapshot.get("allowances") or []
    if not isinstance(allowance_entries, list):
        raise TypeError("snapshot.allowances must be a list")
    allowances: Dict[Tuple[str, str], int] = {}
    for entry in allowance_entries:
        if not isinstance(entry, Mapping):
            raise TypeError("snapshot.allowances entries must be objects")
        owner = _require_str(entry.get("owner"), name="allowance.owner", max_len=max_str_len)
        spender = _require_str(entry.get("spender"), name="allowance.spender", max_len=max_str_len)
        if (owner, spender) in allowances:
            raise ValueError("duplicate allowance entry (owner, spender)")
        allowances[(owner, spender)] = _require_int(entry.get("amount"), name="allowance.amount")

    rates = GlobalRateController(current_rate)
    return Ledger.restore(
        clock=clock,
        authorizer=authorizer,
        rates=rates,
        rate_ceiling=rate_ceiling,
        records=records,
        allowances=allowances,
    )


def save_snapshot(snapshot: LedgerSnapshot, path: Path) -> None:
    path.write_bytes(snapshot.canonical_bytes())


def load_snapshot(path: Path) -> Dict[str, Any]:
    obj = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(obj, dict):
        raise TypeError("snapshot file must contain a JSON object")
    return obj
