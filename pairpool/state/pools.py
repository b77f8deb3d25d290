"""
Pool state for a two-asset constant-product pool.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Tuple

import hashlib

from .balances import AssetId, Amount


BPS_DENOM = 10_000


def compute_pool_id(asset_a: AssetId, asset_b: AssetId, fee_bps: int) -> str:
    """
    Deterministically compute a pool_id for the given pool parameters.

        pool_id = H("PairPool" || len(asset_a) || asset_a || asset_b || fee_bps)

    Asset order is significant: the pool's A/B sides are fixed at construction.
    """
    if asset_a == asset_b:
        raise ValueError(f"Pool assets must be distinct: {asset_a}")
    if not (0 <= fee_bps < BPS_DENOM):
        raise ValueError(f"fee_bps must be in [0, {BPS_DENOM}): {fee_bps}")

    a = asset_a.encode("utf-8")
    pool_id_data = (
        b"PairPool"
        + str(len(a)).encode("ascii")
        + b":"
        + a
        + asset_b.encode("utf-8")
        + str(int(fee_bps)).encode("ascii")
    )
    return "0x" + hashlib.sha256(pool_id_data).hexdigest()


@dataclass(frozen=True)
class PoolState:
    """
    Immutable reserve-ledger record of a pool.

    Every engine operation replaces the whole record, so a reader holding a
    reference always sees a consistent (reserve_a, reserve_b, total_shares).

    Attributes:
        pool_id: Deterministic pool identifier (hex string)
        asset_a: Identifier of the A-side asset
        asset_b: Identifier of the B-side asset
        reserve_a: Reserve amount for asset_a
        reserve_b: Reserve amount for asset_b
        total_shares: Outstanding pool-share supply
        fee_bps: Swap fee in basis points, [0, 10000)
    """
    pool_id: str
    asset_a: AssetId
    asset_b: AssetId
    fee_bps: int
    reserve_a: Amount = 0
    reserve_b: Amount = 0
    total_shares: Amount = 0

    def __post_init__(self) -> None:
        if self.asset_a == self.asset_b:
            raise ValueError(f"Pool assets must be distinct: {self.asset_a}")

        for name, v in (
            ("fee_bps", self.fee_bps),
            ("reserve_a", self.reserve_a),
            ("reserve_b", self.reserve_b),
            ("total_shares", self.total_shares),
        ):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")

        if not (0 <= self.fee_bps < BPS_DENOM):
            raise ValueError(f"fee_bps must be in [0, {BPS_DENOM}): {self.fee_bps}")
        if self.reserve_a < 0 or self.reserve_b < 0:
            raise ValueError(
                f"Reserves must be non-negative: ({self.reserve_a}, {self.reserve_b})"
            )
        if self.total_shares < 0:
            raise ValueError(f"total_shares must be non-negative: {self.total_shares}")

    @classmethod
    def empty(cls, asset_a: AssetId, asset_b: AssetId, fee_bps: int) -> "PoolState":
        return cls(
            pool_id=compute_pool_id(asset_a, asset_b, fee_bps),
            asset_a=asset_a,
            asset_b=asset_b,
            fee_bps=fee_bps,
        )

    @property
    def is_empty(self) -> bool:
        return self.reserve_a == 0 and self.reserve_b == 0

    def has_asset(self, asset: AssetId) -> bool:
        return asset == self.asset_a or asset == self.asset_b

    def get_reserve(self, asset: AssetId) -> Amount:
        """
        Get reserve for a specific asset.

        Raises:
            ValueError: If asset is not in this pool
        """
        if asset == self.asset_a:
            return self.reserve_a
        elif asset == self.asset_b:
            return self.reserve_b
        else:
            raise ValueError(f"Asset {asset} not in pool {self.pool_id}")

    def oriented_reserves(self, asset_in: AssetId) -> Tuple[Amount, Amount]:
        """(reserve_in, reserve_out) for a swap that takes `asset_in`."""
        if asset_in == self.asset_a:
            return self.reserve_a, self.reserve_b
        elif asset_in == self.asset_b:
            return self.reserve_b, self.reserve_a
        else:
            raise ValueError(f"Asset {asset_in} not in pool {self.pool_id}")

    def with_swap(self, asset_in: AssetId, amount_in: Amount, amount_out: Amount) -> "PoolState":
        """New state after a swap: gross input credited, output debited."""
        if asset_in == self.asset_a:
            return replace(self, reserve_a=self.reserve_a + amount_in, reserve_b=self.reserve_b - amount_out)
        if asset_in == self.asset_b:
            return replace(self, reserve_b=self.reserve_b + amount_in, reserve_a=self.reserve_a - amount_out)
        raise ValueError(f"Asset {asset_in} not in pool {self.pool_id}")

    def with_deposit(self, amount_a: Amount, amount_b: Amount, shares: Amount) -> "PoolState":
        return replace(
            self,
            reserve_a=self.reserve_a + amount_a,
            reserve_b=self.reserve_b + amount_b,
            total_shares=self.total_shares + shares,
        )

    def with_withdrawal(self, amount_a: Amount, amount_b: Amount, shares: Amount) -> "PoolState":
        return replace(
            self,
            reserve_a=self.reserve_a - amount_a,
            reserve_b=self.reserve_b - amount_b,
            total_shares=self.total_shares - shares,
        )

    def get_constant_product(self) -> int:
        """k = reserve_a * reserve_b."""
        return self.reserve_a * self.reserve_b

    def verify_invariant(self, min_k: int = 0) -> bool:
        """reserve_a * reserve_b >= min_k."""
        return self.get_constant_product() >= min_k

    def __repr__(self) -> str:
        return (
            f"PoolState(pool_id={self.pool_id[:16]}..., "
            f"assets=({self.asset_a}, {self.asset_b}), "
            f"reserves=({self.reserve_a}, {self.reserve_b}), "
            f"total_shares={self.total_shares}, fee_bps={self.fee_bps})"
        )
