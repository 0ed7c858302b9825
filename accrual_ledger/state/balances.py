"""
Principal balance and allowance tracking.

Implements BalanceTable[Account] -> Principal plus the running total supply
and the (owner, spender) -> allowance table used by delegated transfers.
"""

from typing import Dict, Tuple


# Type aliases
Account = str  # opaque account identity
Principal = int  # Non-negative integer (arbitrary precision)


class BalanceTable:
    """
    Raw principal balances and supply.

    Unlike the rate registry, zero balances are dropped from the table: an
    account's *record* lives in the registry and survives a zero principal.
    Callers must sort keys at serialization boundaries; dict order is not relied on.
    """

    def __init__(self):
        """Initialize empty balance table."""
        self._balances: Dict[Account, Principal] = {}
        self._allowances: Dict[Tuple[Account, Account], int] = {}
        self._total_supply: int = 0

    def get(self, account: Account) -> Principal:
        """Get principal for account. Returns 0 if not found."""
        return self._balances.get(account, 0)

    def set(self, account: Account, amount: Principal) -> None:
        """
        Set principal for account and adjust total supply by the difference.

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        self._total_supply += amount - self.get(account)
        if amount == 0:
            self._balances.pop(account, None)
        else:
            self._balances[account] = amount

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def get_allowance(self, owner: Account, spender: Account) -> int:
        return self._allowances.get((owner, spender), 0)

    def set_allowance(self, owner: Account, spender: Account, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Allowance cannot be negative: {amount}")
        if amount == 0:
            self._allowances.pop((owner, spender), None)
        else:
            self._allowances[(owner, spender)] = amount

    def get_all_balances(self) -> Dict[Account, Principal]:
        """Copy of every non-zero principal."""
        return dict(self._balances)

    def get_all_allowances(self) -> Dict[Tuple[Account, Account], int]:
        return dict(self._allowances)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries, supply={self._total_supply})"
