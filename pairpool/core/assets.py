"""Contract the pool requires of its two asset collaborators."""

from __future__ import annotations

from abc import ABC, abstractmethod


class AssetHandle(ABC):
    """
    A fungible asset able to move balances in and out of pool custody.

    Both transfer methods report success with a bool; anything other than
    ``True`` is treated by the pool as a failed transfer.
    """

    asset_id: str

    @abstractmethod
    def transfer_into(self, sender: str, amount: int) -> bool:
        """Move `amount` from `sender` into pool custody."""
        raise NotImplementedError

    @abstractmethod
    def transfer_out(self, recipient: str, amount: int) -> bool:
        """Move `amount` from pool custody to `recipient`."""
        raise NotImplementedError
