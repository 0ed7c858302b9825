"""
Deposit / redeem front-end.

An imperative-shell adapter around the ledger: it mints ledger units for
settlement-asset units the host has already received, and on redemption
burns units *then* asks an injected ``SettlementSink`` to pay out. It never
holds assets itself.

Ordering is burn-then-pay: if the payout fails, ``SettlementTransferFailed``
is raised and the burn stands. Reconciling that is the host's responsibility.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, Union

from ..core.errors import SettlementTransferFailed
from ..core.ledger import Ledger
from ..core.types import Amount
from ..util.structured_log import log_event

log = logging.getLogger("accrual_ledger.vault")


class SettlementSink(Protocol):
    def pay(self, account: str, amount: int) -> None:
        """Send ``amount`` settlement-asset units to ``account``. Raise on failure."""


@dataclass(frozen=True)
class RedeemResult:
    account: str
    burned: int
    paid: int


class DepositVault:
    """Exchanges settlement-asset units for ledger units 1:1.

    ``vault_id`` is the caller identity the vault presents to the ledger; it
    must hold ``Role.MINTER`` and ``Role.BURNER``.
    """

    def __init__(self, ledger: Ledger, sink: SettlementSink, *, vault_id: str) -> None:
        if not isinstance(vault_id, str) or not vault_id:
            raise ValueError("vault_id must be a non-empty string")
        self._ledger = ledger
        self._sink = sink
        self._vault_id = vault_id

    @property
    def vault_id(self) -> str:
        return self._vault_id

    def deposit(self, account: str, amount: int) -> int:
        """Credit ``account`` for ``amount`` settlement units already received."""
        return self._ledger.mint(account, amount, caller=self._vault_id)

    def preview_redeem(self, account: str) -> int:
        """Units ``account`` could redeem right now (its displayed balance)."""
        return self._ledger.balance_of(account)

    def redeem(self, account: str, amount: Union[int, Amount]) -> RedeemResult:
        """Burn ``amount`` (or ``Amount.all()``) from ``account`` and pay it out.

        Raises:
            InsufficientBalance / Unauthorized: from the burn; nothing changed.
            SettlementTransferFailed: the payout failed after the burn committed.
        """
        burned = self._ledger.burn(account, amount, caller=self._vault_id)
        if burned == 0:
            return RedeemResult(account=account, burned=0, paid=0)
        try:
            self._sink.pay(account, burned)
        except Exception as exc:
            log_event(log, "redeem_transfer_failed", account=account, amount=burned, reason=str(exc))
            raise SettlementTransferFailed(account, burned, str(exc)) from exc
        return RedeemResult(account=account, burned=burned, paid=burned)
