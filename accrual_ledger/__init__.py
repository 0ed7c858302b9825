"""`accrual_ledger`: interest-accruing balance ledger with per-account frozen rates.

Public API:
- `Ledger` (mint / burn / transfer / transfer_from / settle / balance_of)
- `GlobalRateController` (monotone non-increasing global rate)
- `Amount.exact(n)` / `Amount.all()`
- `growth_factor`, `accrued_balance` (pure accrual math)
"""

from .core import (
    PRECISION,
    AccountRecord,
    AccrualOverflowError,
    Amount,
    ClockRegression,
    GlobalRateController,
    InsufficientBalance,
    InvalidAmount,
    Ledger,
    LedgerError,
    ManualClock,
    RateIncreaseRejected,
    Role,
    RoleTable,
    SettlementTransferFailed,
    SystemClock,
    Unauthorized,
    accrued_balance,
    growth_factor,
)

__version__ = "0.1.0"

__all__ = [
    "PRECISION",
    "AccountRecord",
    "AccrualOverflowError",
    "Amount",
    "ClockRegression",
    "GlobalRateController",
    "InsufficientBalance",
    "InvalidAmount",
    "Ledger",
    "LedgerError",
    "ManualClock",
    "RateIncreaseRejected",
    "Role",
    "RoleTable",
    "SettlementTransferFailed",
    "SystemClock",
    "Unauthorized",
    "accrued_balance",
    "growth_factor",
]
