"""Structured notifications emitted by committed pool operations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Any, Callable, Dict, Optional


@unique
class EventKind(Enum):
    SWAP = "Swap"
    LIQUIDITY_ADDED = "LiquidityAdded"
    LIQUIDITY_REMOVED = "LiquidityRemoved"


@dataclass(frozen=True)
class PoolEvent:
    """One committed operation.

    Swap events fill the ``asset_*``/``amount_in``/``amount_out`` fields;
    liquidity events fill ``amount_a``/``amount_b``/``shares``.
    """

    kind: EventKind
    pool_id: str
    actor: str
    asset_in: Optional[str] = None
    asset_out: Optional[str] = None
    amount_in: int = 0
    amount_out: int = 0
    amount_a: int = 0
    amount_b: int = 0
    shares: int = 0

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "event": self.kind.value,
            "pool_id": self.pool_id,
            "actor": self.actor,
        }
        if self.kind is EventKind.SWAP:
            d.update(
                asset_in=self.asset_in,
                asset_out=self.asset_out,
                amount_in=self.amount_in,
                amount_out=self.amount_out,
            )
        else:
            d.update(amount_a=self.amount_a, amount_b=self.amount_b, shares=self.shares)
        return d


EventListener = Callable[[PoolEvent], None]


def swap_event(*, pool_id: str, actor: str, asset_in: str, asset_out: str, amount_in: int, amount_out: int) -> PoolEvent:
    return PoolEvent(
        kind=EventKind.SWAP,
        pool_id=pool_id,
        actor=actor,
        asset_in=asset_in,
        asset_out=asset_out,
        amount_in=amount_in,
        amount_out=amount_out,
    )


def liquidity_event(kind: EventKind, *, pool_id: str, actor: str, amount_a: int, amount_b: int, shares: int) -> PoolEvent:
    if kind is EventKind.SWAP:
        raise ValueError("liquidity_event requires a liquidity event kind")
    return PoolEvent(kind=kind, pool_id=pool_id, actor=actor, amount_a=amount_a, amount_b=amount_b, shares=shares)
