"""
In-memory fungible asset for local runs and tests.

Mirrors the usual token contract surface: balances, allowances granted to the
pool's custody account, and transfers that report success instead of raising.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from ..core.assets import AssetHandle
from ..state.balances import Account, Amount, BalanceTable

logger = logging.getLogger(__name__)

# Called before a pool-initiated transfer moves funds, with
# (asset, direction, account, amount). Returning False fails the transfer.
TransferHook = Callable[["InMemoryAsset", str, Account, Amount], Optional[bool]]


class InMemoryAsset(AssetHandle):
    """
    Fungible asset ledger implementing `AssetHandle`.

    Args:
        asset_id: Unique asset identifier
        custody: Account that holds assets on behalf of the pool
        symbol: Display symbol (defaults to `asset_id`)
    """

    def __init__(self, asset_id: str, *, custody: Account, symbol: Optional[str] = None) -> None:
        if not asset_id:
            raise ValueError("asset_id must be non-empty")
        if not custody:
            raise ValueError("custody account must be non-empty")
        self.asset_id = asset_id
        self.symbol = symbol or asset_id
        self.custody = custody
        self.on_transfer: Optional[TransferHook] = None
        self._balances = BalanceTable()
        self._allowances: Dict[Account, Amount] = {}

    # -- token surface --------------------------------------------------------

    def balance_of(self, account: Account) -> Amount:
        return self._balances.get(account)

    def total_supply(self) -> Amount:
        return self._balances.total()

    def allowance(self, owner: Account) -> Amount:
        """Amount `owner` lets the pool pull."""
        return self._allowances.get(owner, 0)

    def approve(self, owner: Account, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"allowance must be non-negative: {amount}")
        if amount == 0:
            self._allowances.pop(owner, None)
        else:
            self._allowances[owner] = amount

    def mint(self, account: Account, amount: Amount) -> None:
        self._balances.credit(account, amount)

    def transfer(self, sender: Account, recipient: Account, amount: Amount) -> bool:
        if amount < 0 or self._balances.get(sender) < amount:
            return False
        self._balances.move(sender, recipient, amount)
        return True

    # -- AssetHandle ----------------------------------------------------------

    def _run_hook(self, direction: str, account: Account, amount: Amount) -> bool:
        if self.on_transfer is None:
            return True
        return self.on_transfer(self, direction, account, amount) is not False

    def transfer_into(self, sender: Account, amount: Amount) -> bool:
        if not self._run_hook("into", sender, amount):
            return False
        if amount < 0:
            return False
        if self.allowance(sender) < amount or self._balances.get(sender) < amount:
            logger.debug(
                "%s: pull of %d from %s refused (balance=%d, allowance=%d)",
                self.symbol,
                amount,
                sender,
                self._balances.get(sender),
                self.allowance(sender),
            )
            return False
        self._balances.move(sender, self.custody, amount)
        self.approve(sender, self.allowance(sender) - amount)
        return True

    def transfer_out(self, recipient: Account, amount: Amount) -> bool:
        if not self._run_hook("out", recipient, amount):
            return False
        return self.transfer(self.custody, recipient, amount)

    def __repr__(self) -> str:
        return f"InMemoryAsset({self.symbol}, supply={self.total_supply()})"
