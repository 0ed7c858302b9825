"""Exception types for the accrual ledger.

Every ledger error is raised *before* any state is mutated, so catching one
always means the ledger is unchanged.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every ledger rejection."""

    code = "ledger_error"


class RateIncreaseRejected(LedgerError):
    """Raised when a new global rate is higher than the current one."""

    code = "rate_increase_rejected"

    def __init__(self, old: int, new: int) -> None:
        self.old = old
        self.new = new
        super().__init__(f"global rate may only decrease: {old} -> {new}")


class InsufficientBalance(LedgerError):
    """Raised when a burn or transfer exceeds the settled principal."""

    code = "insufficient_balance"

    def __init__(self, account: str, available: int, requested: int) -> None:
        self.account = account
        self.available = available
        self.requested = requested
        super().__init__(f"{account}: requested {requested}, available {available}")


class Unauthorized(LedgerError):
    """Raised when the caller lacks a role or a large enough allowance."""

    code = "unauthorized"

    def __init__(self, caller: str, permission: str) -> None:
        self.caller = caller
        self.permission = permission
        super().__init__(f"{caller} lacks {permission}")


class SettlementTransferFailed(LedgerError):
    """Raised by the redemption front-end when paying out the settlement asset fails.

    The ledger-side burn has already happened and is not rolled back.
    """

    code = "settlement_transfer_failed"

    def __init__(self, account: str, amount: int, reason: str) -> None:
        self.account = account
        self.amount = amount
        self.reason = reason
        super().__init__(f"payout of {amount} to {account} failed: {reason}")


class AccrualOverflowError(LedgerError):
    """Raised when a growth-factor or balance computation leaves the uint256 range."""

    code = "overflow"


class ClockRegression(LedgerError):
    """Raised when the host clock reports a time earlier than one already observed."""

    code = "clock_regression"

    def __init__(self, last: int, now: int) -> None:
        self.last = last
        self.now = now
        super().__init__(f"clock moved backwards: {last} -> {now}")


class InvalidAmount(LedgerError):
    """Raised for negative, non-integer or out-of-range amounts."""

    code = "invalid_amount"


class LedgerInvariantError(LedgerError):
    """Raised when a candidate post-state violates one or more invariants."""

    code = "invariant"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
