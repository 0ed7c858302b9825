"""Accrual ledger: principal balances that grow at per-account frozen rates.

Every mutating entry point follows the same shape:

1. Read ``now`` from the host clock (a regression is rejected).
2. Check authorization and parameter domains.
3. Compute the *settled* record of every involved account (pure; see ``math.py``).
4. Build the candidate post-records and validate them (balances, uint256
   bounds, ``invariants.check_all``).
5. Commit, then notify listeners.

Steps 1-4 never touch stored state, so any ``LedgerError`` leaves the ledger
exactly as it was. All public calls are serialized by one re-entrant lock.

Rate rules:
- the first non-zero credit to an empty account freezes its rate: the global
  rate on ``mint``, the sender's rate on ``transfer``;
- a funded account keeps its rate regardless of later global changes;
- an account drained to zero keeps its record, and the rule fires again on
  its next credit.
"""

from __future__ import annotations

import functools
import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from ..state.balances import BalanceTable
from ..state.registry import RateRegistry
from ..util.structured_log import log_debug_event, log_event
from .auth import Authorizer, require_role
from .clock import Clock
from .errors import (
    AccrualOverflowError,
    ClockRegression,
    InsufficientBalance,
    InvalidAmount,
    LedgerError,
    LedgerInvariantError,
    Unauthorized,
)
from .invariants import LedgerView, check_all
from .math import MAX_UINT256, accrued_balance, checked_add
from .rates import GlobalRateController
from .types import AccountRecord, Amount, Event, LedgerEvent, Role

log = logging.getLogger("accrual_ledger.ledger")

AmountLike = Union[int, Amount]
Listener = Callable[[LedgerEvent], None]


def _serialized(fn):
    """Run ``fn`` under the ledger lock; log rejections at DEBUG."""

    @functools.wraps(fn)
    def wrapper(self: "Ledger", *args: Any, **kwargs: Any):
        with self._lock:
            try:
                return fn(self, *args, **kwargs)
            except LedgerError as exc:
                log_debug_event(log, "rejected", op=fn.__name__, code=exc.code, reason=str(exc))
                raise

    return wrapper


def _require_account(account: Any, *, name: str) -> str:
    if not isinstance(account, str):
        raise TypeError(f"{name} must be a string")
    if not account:
        raise ValueError(f"{name} must be non-empty")
    return account


def _coerce_amount(amount: AmountLike) -> Amount:
    if isinstance(amount, Amount):
        if amount.value is not None and amount.value > MAX_UINT256:
            raise InvalidAmount(f"amount exceeds uint256: {amount.value}")
        return amount
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise InvalidAmount(f"amount must be an int or Amount, got {type(amount).__name__}")
    if amount < 0:
        raise InvalidAmount(f"amount must be non-negative: {amount}")
    if amount > MAX_UINT256:
        raise InvalidAmount(f"amount exceeds uint256: {amount}")
    return Amount.exact(amount)


def _exact_amount(amount: AmountLike) -> int:
    resolved = _coerce_amount(amount)
    if resolved.is_all:
        raise InvalidAmount("Amount.all() is only meaningful for debits")
    return resolved.value  # type: ignore[return-value]


@dataclass(frozen=True)
class _TransferPlan:
    value: int
    updates: Dict[str, AccountRecord]
    interest: Dict[str, int]
    recipient_rate: int
    inherited: bool


class Ledger:
    """Interest-accruing balance ledger.

    Args:
        clock: host time source, called once per operation.
        authorizer: answers role-membership questions for privileged calls.
        rates: the global rate controller; the ledger subscribes to its changes.
        rate_ceiling: upper bound for every frozen rate. Defaults to the
            controller's rate at construction (the global rate never rises).
        check_invariants: run ``invariants.check_all`` on every candidate state.
    """

    def __init__(
        self,
        *,
        clock: Clock,
        authorizer: Authorizer,
        rates: GlobalRateController,
        rate_ceiling: Optional[int] = None,
        check_invariants: bool = True,
    ) -> None:
        ceiling = rates.get_global_rate() if rate_ceiling is None else rate_ceiling
        if ceiling < rates.get_global_rate():
            raise ValueError("rate_ceiling must be >= the current global rate")
        self._clock = clock
        self._authorizer = authorizer
        self._rates = rates
        self._rate_ceiling = ceiling
        self._check_invariants = check_invariants
        self._balances = BalanceTable()
        self._registry = RateRegistry()
        self._lock = threading.RLock()
        self._last_now = 0
        self._listeners: List[Listener] = []
        rates.subscribe(self._on_rate_changed)

    @classmethod
    def restore(
        cls,
        *,
        clock: Clock,
        authorizer: Authorizer,
        rates: GlobalRateController,
        rate_ceiling: int,
        records: Mapping[str, AccountRecord],
        allowances: Mapping[Tuple[str, str], int] | None = None,
        check_invariants: bool = True,
    ) -> "Ledger":
        """Rebuild a ledger from persisted records (see ``state/snapshot.py``)."""
        ledger = cls(
            clock=clock,
            authorizer=authorizer,
            rates=rates,
            rate_ceiling=rate_ceiling,
            check_invariants=check_invariants,
        )
        for account, rec in sorted(records.items()):
            _require_account(account, name="account")
            ledger._registry.set_rate(account, rec.rate)
            ledger._registry.set_last_settled(account, rec.last_settled)
            ledger._balances.set(account, rec.principal)
        for (owner, spender), amount in sorted((allowances or {}).items()):
            ledger._balances.set_allowance(owner, spender, amount)
        ledger._last_now = max((rec.last_settled for rec in records.values()), default=0)
        if ledger._balances.total_supply > MAX_UINT256:
            raise AccrualOverflowError("restored total supply exceeds uint256")
        violations = check_all(ledger.view())
        if violations:
            raise LedgerInvariantError(violations)
        return ledger

    # -- Listeners ------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        """Register ``listener(event)``, called after every committed change.

        A listener that raises is logged and skipped; the change it was told
        about stays committed and the call still returns normally.
        """
        self._listeners.append(listener)

    def _emit(self, event: Event, now: int, log_name: Optional[str], **fields: Any) -> None:
        if log_name is not None:
            log_event(log, log_name, ts=now, **fields)
        ev = LedgerEvent(event=event, timestamp=now, fields=dict(fields))
        for listener in list(self._listeners):
            try:
                listener(ev)
            except Exception:
                log.exception("listener %r failed on %s", listener, event.value)

    def _on_rate_changed(self, old: int, new: int) -> None:
        # Stamped with the last observed time: a change made directly on a
        # shared controller does not read this ledger's clock.
        with self._lock:
            self._emit(Event.RATE_CHANGED, self._last_now, None, old=old, new=new)

    # -- Internal helpers -----------------------------------------------------

    def _now(self) -> int:
        now = self._clock()
        if not isinstance(now, int) or isinstance(now, bool) or now < 0:
            raise ValueError(f"clock must return a non-negative int, got {now!r}")
        if now < self._last_now:
            raise ClockRegression(self._last_now, now)
        self._last_now = now
        return now

    def _record(self, account: str) -> AccountRecord:
        return AccountRecord(
            principal=self._balances.get(account),
            rate=self._registry.get_rate(account),
            last_settled=self._registry.get_last_settled(account),
        )

    def _settled(self, account: str, now: int) -> Tuple[AccountRecord, int]:
        """Record with interest folded in as of ``now``, and the interest amount."""
        rec = self._record(account)
        grown = accrued_balance(rec.principal, rec.rate, rec.last_settled, now)
        return AccountRecord(principal=grown, rate=rec.rate, last_settled=now), grown - rec.principal

    def _all_records(self) -> Dict[str, AccountRecord]:
        return {account: self._record(account) for account in self._registry.accounts()}

    def _candidate_view(self, now: int, writes: Mapping[str, AccountRecord], supply: int) -> LedgerView:
        records = self._all_records()
        principals = self._balances.get_all_balances()
        for account, rec in writes.items():
            records[account] = rec
            if rec.principal:
                principals[account] = rec.principal
            else:
                principals.pop(account, None)
        return LedgerView(
            records=records,
            principals=principals,
            total_supply=supply,
            global_rate=self._rates.get_global_rate(),
            rate_ceiling=self._rate_ceiling,
            now=now,
        )

    def _commit(
        self,
        now: int,
        updates: Mapping[str, AccountRecord],
        interest: Mapping[str, int],
        allowance: Optional[Tuple[str, str, int]] = None,
    ) -> None:
        supply = self._balances.total_supply
        for account, rec in updates.items():
            supply += rec.principal - self._balances.get(account)
        if supply > MAX_UINT256:
            raise AccrualOverflowError("total supply exceeds uint256")

        # Records are created on the first credit and then kept forever.
        writes = {
            account: rec
            for account, rec in updates.items()
            if self._registry.has_record(account) or rec.principal > 0
        }

        if self._check_invariants:
            violations = check_all(self._candidate_view(now, writes, supply))
            if violations:
                raise LedgerInvariantError(violations)

        for account, rec in writes.items():
            self._registry.set_rate(account, rec.rate)
            self._registry.set_last_settled(account, rec.last_settled)
            self._balances.set(account, rec.principal)
        if allowance is not None:
            owner, spender, remaining = allowance
            self._balances.set_allowance(owner, spender, remaining)

        for account, credited in sorted(interest.items()):
            if credited > 0:
                self._emit(
                    Event.SETTLED, now, "settled",
                    account=account, interest=credited, principal=writes[account].principal,
                )

    def _plan_transfer(self, now: int, src: str, dst: str, amount: AmountLike) -> _TransferPlan:
        src_rec, src_interest = self._settled(src, now)
        value = _coerce_amount(amount).resolve(src_rec.principal)
        if value > src_rec.principal:
            raise InsufficientBalance(src, src_rec.principal, value)

        if src == dst:
            return _TransferPlan(
                value=value,
                updates={src: src_rec},
                interest={src: src_interest},
                recipient_rate=src_rec.rate,
                inherited=False,
            )

        # Each settlement depends only on that account's own record.
        dst_rec, dst_interest = self._settled(dst, now)
        inherited = dst_rec.principal == 0 and value > 0
        dst_rate = src_rec.rate if inherited else dst_rec.rate
        return _TransferPlan(
            value=value,
            updates={
                src: replace(src_rec, principal=src_rec.principal - value),
                dst: AccountRecord(
                    principal=checked_add(dst_rec.principal, value),
                    rate=dst_rate,
                    last_settled=now,
                ),
            },
            interest={src: src_interest, dst: dst_interest},
            recipient_rate=dst_rate,
            inherited=inherited,
        )

    # -- Mutations ------------------------------------------------------------

    @_serialized
    def settle(self, account: str) -> int:
        """Fold accrued interest into ``account``'s principal.

        Returns the interest credited. A second call at the same timestamp
        credits nothing and changes nothing. Accounts without a record are
        left untouched.
        """
        now = self._now()
        _require_account(account, name="account")
        if not self._registry.has_record(account):
            return 0
        rec, interest = self._settled(account, now)
        self._commit(now, {account: rec}, {account: interest})
        return interest

    @_serialized
    def mint(self, to: str, amount: AmountLike, *, caller: str) -> int:
        """Credit ``amount`` new units to ``to``. Requires ``Role.MINTER``.

        If ``to`` holds nothing after settlement, its rate is frozen to the
        current global rate. Returns the amount minted.
        """
        now = self._now()
        require_role(self._authorizer, Role.MINTER, caller)
        _require_account(to, name="to")
        value = _exact_amount(amount)

        rec, interest = self._settled(to, now)
        rate = rec.rate
        if rec.principal == 0 and value > 0:
            rate = self._rates.get_global_rate()
        new = AccountRecord(principal=checked_add(rec.principal, value), rate=rate, last_settled=now)

        self._commit(now, {to: new}, {to: interest})
        self._emit(Event.MINTED, now, "minted", account=to, amount=value, rate=rate)
        return value

    @_serialized
    def burn(self, account: str, amount: AmountLike, *, caller: str) -> int:
        """Destroy units held by ``account``. Requires ``Role.BURNER``.

        ``Amount.all()`` burns the full displayed balance. Returns the amount burned.

        Raises:
            InsufficientBalance: ``amount`` exceeds the settled principal.
        """
        now = self._now()
        require_role(self._authorizer, Role.BURNER, caller)
        _require_account(account, name="account")
        resolved = _coerce_amount(amount)

        rec, interest = self._settled(account, now)
        value = resolved.resolve(rec.principal)
        if value > rec.principal:
            raise InsufficientBalance(account, rec.principal, value)
        new = replace(rec, principal=rec.principal - value)

        self._commit(now, {account: new}, {account: interest})
        self._emit(Event.BURNED, now, "burned", account=account, amount=value)
        return value

    @_serialized
    def transfer(self, src: str, dst: str, amount: AmountLike) -> int:
        """Move units from ``src`` to ``dst``. Returns the amount moved.

        A recipient with zero balance inherits ``src``'s frozen rate.

        Raises:
            InsufficientBalance: ``amount`` exceeds ``src``'s settled principal.
        """
        now = self._now()
        _require_account(src, name="src")
        _require_account(dst, name="dst")
        plan = self._plan_transfer(now, src, dst, amount)
        self._commit(now, plan.updates, plan.interest)
        self._emit_transfer(now, src, dst, plan)
        return plan.value

    @_serialized
    def transfer_from(self, spender: str, src: str, dst: str, amount: AmountLike) -> int:
        """Delegated transfer, spending ``spender``'s allowance over ``src``.

        ``src`` acting on its own behalf needs no allowance.

        Raises:
            Unauthorized: allowance is smaller than the resolved amount.
            InsufficientBalance: ``amount`` exceeds ``src``'s settled principal.
        """
        now = self._now()
        _require_account(spender, name="spender")
        _require_account(src, name="src")
        _require_account(dst, name="dst")
        plan = self._plan_transfer(now, src, dst, amount)

        allowance: Optional[Tuple[str, str, int]] = None
        if spender != src:
            allowed = self._balances.get_allowance(src, spender)
            if plan.value > allowed:
                raise Unauthorized(spender, f"allowance:{src}")
            allowance = (src, spender, allowed - plan.value)

        self._commit(now, plan.updates, plan.interest, allowance=allowance)
        self._emit_transfer(now, src, dst, plan, spender=spender)
        return plan.value

    def _emit_transfer(self, now: int, src: str, dst: str, plan: _TransferPlan, **extra: Any) -> None:
        self._emit(
            Event.TRANSFERRED, now, "transferred",
            src=src, dst=dst, amount=plan.value,
            recipient_rate=plan.recipient_rate, inherited=plan.inherited, **extra,
        )

    @_serialized
    def approve(self, owner: str, spender: str, amount: int) -> None:
        """Set ``spender``'s allowance over ``owner``'s units (replaces any previous value)."""
        now = self._now()
        _require_account(owner, name="owner")
        _require_account(spender, name="spender")
        value = _exact_amount(amount)
        self._balances.set_allowance(owner, spender, value)
        self._emit(Event.APPROVAL, now, "approval", owner=owner, spender=spender, amount=value)

    @_serialized
    def set_global_rate(self, new_rate: int, *, caller: str) -> int:
        """Lower the global rate. Requires ``Role.RATE_ADMIN``. Returns the previous rate.

        Raises:
            RateIncreaseRejected: ``new_rate`` is above the current rate.
        """
        self._now()
        require_role(self._authorizer, Role.RATE_ADMIN, caller)
        return self._rates.set_global_rate(new_rate)

    # -- Views ----------------------------------------------------------------

    @_serialized
    def balance_of(self, account: str) -> int:
        """Displayed balance: principal grown to the current clock time.

        Account state is never written. Reading the clock does advance
        ``last_observed_time``, and a clock behind it raises ``ClockRegression``.
        """
        now = self._now()
        rec = self._record(account)
        return accrued_balance(rec.principal, rec.rate, rec.last_settled, now)

    @_serialized
    def total_balance(self) -> int:
        """Sum of every displayed balance (supply including unsettled interest).

        Reads the clock the same way ``balance_of`` does.
        """
        now = self._now()
        return sum(
            accrued_balance(rec.principal, rec.rate, rec.last_settled, now)
            for rec in self._all_records().values()
        )

    def get_principal(self, account: str) -> int:
        return self._balances.get(account)

    def get_user_rate(self, account: str) -> int:
        return self._registry.get_rate(account)

    def get_last_settled(self, account: str) -> int:
        return self._registry.get_last_settled(account)

    def get_global_rate(self) -> int:
        return self._rates.get_global_rate()

    def get_account(self, account: str) -> AccountRecord:
        return self._record(account)

    def has_record(self, account: str) -> bool:
        return self._registry.has_record(account)

    def accounts(self) -> List[str]:
        return self._registry.accounts()

    def allowance(self, owner: str, spender: str) -> int:
        return self._balances.get_allowance(owner, spender)

    def allowances(self) -> Dict[Tuple[str, str], int]:
        return self._balances.get_all_allowances()

    @property
    def total_supply(self) -> int:
        """Sum of stored principals (excludes unsettled interest)."""
        return self._balances.total_supply

    @property
    def rate_ceiling(self) -> int:
        return self._rate_ceiling

    @property
    def last_observed_time(self) -> int:
        return self._last_now

    def view(self) -> LedgerView:
        """Snapshot of stored state at the last observed clock time."""
        with self._lock:
            return LedgerView(
                records=self._all_records(),
                principals=self._balances.get_all_balances(),
                total_supply=self._balances.total_supply,
                global_rate=self._rates.get_global_rate(),
                rate_ceiling=self._rate_ceiling,
                now=self._last_now,
            )

    def __repr__(self) -> str:
        return (
            f"Ledger({len(self._registry)} accounts, supply={self._balances.total_supply}, "
            f"rate={self._rates.get_global_rate()})"
        )
