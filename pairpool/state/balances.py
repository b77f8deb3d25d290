"""
Single-asset balance tracking with deterministic ordering.

Implements BalanceTable[Account] -> Amount for one fungible asset.
"""

from typing import Dict


# Type aliases
Account = str  # opaque account identifier (address, name, ...)
AssetId = str  # asset identifier, unique per asset collaborator
Amount = int  # Non-negative integer (arbitrary precision)


class BalanceTable:
    """
    Balance table mapping account -> amount for a single asset.

    Note: balances live in a plain dict. Callers that serialize or hash the
    table must sort accounts explicitly (see `get_all_balances`).
    """

    def __init__(self):
        """Initialize empty balance table."""
        self._balances: Dict[Account, Amount] = {}

    def get(self, account: Account) -> Amount:
        """Get balance for account. Returns 0 if not found."""
        return self._balances.get(account, 0)

    def set(self, account: Account, amount: Amount) -> None:
        """
        Set balance for account.

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            # Remove zero balances to keep table sparse
            self._balances.pop(account, None)
        else:
            self._balances[account] = amount

    def credit(self, account: Account, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Credit must be non-negative: {amount}")
        self.set(account, self.get(account) + amount)

    def debit(self, account: Account, amount: Amount) -> None:
        """
        Subtract amount from account.

        Raises:
            ValueError: If amount is negative or the balance is insufficient
        """
        if amount < 0:
            raise ValueError(f"Debit must be non-negative: {amount}")
        current = self.get(account)
        if amount > current:
            raise ValueError(f"Insufficient balance: {current} < {amount}")
        self.set(account, current - amount)

    def move(self, src: Account, dst: Account, amount: Amount) -> None:
        """Debit `src` and credit `dst`; leaves both untouched on failure."""
        self.debit(src, amount)
        self.credit(dst, amount)

    def total(self) -> Amount:
        return sum(self._balances.values())

    def get_all_balances(self) -> Dict[Account, Amount]:
        """All balances, keys in sorted order."""
        return {k: self._balances[k] for k in sorted(self._balances)}

    def verify_non_negative(self) -> bool:
        return all(amount >= 0 for amount in self._balances.values())

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
