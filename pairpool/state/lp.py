"""
Pool-share balance tracking.

Shares are owned only by the pool engine (mint on deposit, burn on
withdrawal). The engine mutates a `copy()` and publishes it with the new pool
state. `total_supply` is kept alongside the balances so the two can never
disagree.
"""

from __future__ import annotations

from typing import Dict

from .balances import Account, Amount


class ShareLedger:
    """
    Share balance table mapping holder -> share amount.

    Notes:
    - Share balances are always non-negative.
    - Zero balances are omitted to keep the table sparse.
    """

    def __init__(self) -> None:
        self._balances: Dict[Account, Amount] = {}
        self._total_supply: Amount = 0

    def balance_of(self, holder: Account) -> Amount:
        """Share balance of `holder`. Returns 0 if not found."""
        return self._balances.get(holder, 0)

    @property
    def total_supply(self) -> Amount:
        return self._total_supply

    def _set(self, holder: Account, amount: Amount) -> None:
        if amount == 0:
            self._balances.pop(holder, None)
        else:
            self._balances[holder] = amount

    def mint(self, holder: Account, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Mint amount must be non-negative: {amount}")
        self._set(holder, self.balance_of(holder) + amount)
        self._total_supply += amount

    def burn(self, holder: Account, amount: Amount) -> None:
        """Burn `amount` shares held by `holder`."""
        if amount < 0:
            raise ValueError(f"Burn amount must be non-negative: {amount}")
        current = self.balance_of(holder)
        if amount > current:
            raise ValueError(f"Insufficient share balance: {current} < {amount}")
        self._set(holder, current - amount)
        self._total_supply -= amount

    def get_all_balances(self) -> Dict[Account, Amount]:
        """All share balances, holders in sorted order."""
        return {k: self._balances[k] for k in sorted(self._balances)}

    def load(self, balances: Dict[Account, Amount]) -> None:
        """Replace the ledger contents (used when restoring a snapshot)."""
        if any(v < 0 for v in balances.values()):
            raise ValueError("share balances must be non-negative")
        self._balances = {k: v for k, v in balances.items() if v != 0}
        self._total_supply = sum(self._balances.values())

    def copy(self) -> "ShareLedger":
        other = ShareLedger()
        other._balances = dict(self._balances)
        other._total_supply = self._total_supply
        return other

    def verify_supply(self) -> bool:
        """True iff the tracked supply equals the sum of all balances."""
        return self._total_supply == sum(self._balances.values())

    def __repr__(self) -> str:
        return f"ShareLedger({len(self._balances)} holders, supply={self._total_supply})"
