"""
Imperative-shell adapters around the ledger core
"""

from .config import LedgerConfig, build_ledger, config_from_env, load_config
from .vault import DepositVault, RedeemResult, SettlementSink

__all__ = [
    "LedgerConfig",
    "build_ledger",
    "config_from_env",
    "load_config",
    "DepositVault",
    "RedeemResult",
    "SettlementSink",
]
