"""
Storage for the accrual ledger
"""

from .balances import BalanceTable
from .registry import RateRegistry

__all__ = [
    "BalanceTable",
    "RateRegistry",
]
