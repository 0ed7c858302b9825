"""
Core accrual ledger: pure math, rate control and the settlement engine
"""

from .auth import AllowAll, Authorizer, RoleTable, require_role
from .clock import Clock, ManualClock, SystemClock
from .errors import (
    AccrualOverflowError,
    ClockRegression,
    InsufficientBalance,
    InvalidAmount,
    LedgerError,
    LedgerInvariantError,
    RateIncreaseRejected,
    SettlementTransferFailed,
    Unauthorized,
)
from .invariants import LedgerView, check_all
from .ledger import Ledger
from .math import MAX_UINT256, PRECISION, accrued_balance, accrued_interest, growth_factor
from .rates import GlobalRateController
from .types import AccountRecord, Amount, Event, LedgerEvent, Role

__all__ = [
    "AllowAll",
    "Authorizer",
    "RoleTable",
    "require_role",
    "Clock",
    "ManualClock",
    "SystemClock",
    "AccrualOverflowError",
    "ClockRegression",
    "InsufficientBalance",
    "InvalidAmount",
    "LedgerError",
    "LedgerInvariantError",
    "RateIncreaseRejected",
    "SettlementTransferFailed",
    "Unauthorized",
    "LedgerView",
    "check_all",
    "Ledger",
    "MAX_UINT256",
    "PRECISION",
    "accrued_balance",
    "accrued_interest",
    "growth_factor",
    "GlobalRateController",
    "AccountRecord",
    "Amount",
    "Event",
    "LedgerEvent",
    "Role",
]
