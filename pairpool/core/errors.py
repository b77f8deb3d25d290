"""Exception types for the pool engine.

Every failure leaves the pool exactly as it was before the call.
"""

from __future__ import annotations


class PoolError(Exception):
    """Base class for all pool operation failures."""


class InvalidAsset(PoolError):
    """Raised when an asset is not one of the pool's two configured assets."""


class InvalidAmount(PoolError, ValueError):
    """Raised for negative or non-integer amounts."""


class InvalidRatio(PoolError):
    """Raised when a non-initial deposit does not match the reserve ratio exactly."""

    def __init__(self, reserve_a: int, reserve_b: int, amount_a: int, amount_b: int) -> None:
        self.reserves = (reserve_a, reserve_b)
        self.amounts = (amount_a, amount_b)
        super().__init__(
            f"deposit ({amount_a}, {amount_b}) does not match reserve ratio ({reserve_a}, {reserve_b})"
        )


class ZeroSharesMinted(PoolError):
    """Raised when a deposit would mint no shares."""


class ZeroShares(PoolError):
    """Raised when a withdrawal burns a non-positive number of shares."""


class InsufficientShares(PoolError):
    """Raised when a caller tries to burn more shares than they hold."""

    def __init__(self, holder: str, held: int, requested: int) -> None:
        self.holder = holder
        self.held = held
        self.requested = requested
        super().__init__(f"{holder} holds {held} shares, cannot burn {requested}")


class ZeroLiquidity(PoolError):
    """Raised when a swap is priced against an empty pool."""


class TransferFailed(PoolError):
    """Raised when an asset collaborator reports a failed transfer."""

    def __init__(self, asset_id: str, direction: str, account: str, amount: int) -> None:
        self.asset_id = asset_id
        self.direction = direction
        self.account = account
        self.amount = amount
        super().__init__(f"transfer {direction} of {amount} {asset_id} for {account} failed")


class ReentrantCall(PoolError):
    """Raised when an operation starts while another is in flight on the same pool."""


class InvariantViolation(PoolError):
    """Raised when a post-state breaks the constant-product rule."""

    def __init__(self, k_before: int, k_after: int) -> None:
        self.k_before = k_before
        self.k_after = k_after
        super().__init__(f"invariant violation: k_after ({k_after}) < k_before ({k_before})")
