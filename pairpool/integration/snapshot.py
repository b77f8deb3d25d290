"""
Pool snapshot encoding.

Goals:
- Deterministic JSON serialization for hashing / persistence.
- Round-trippable into `PoolState` plus share balances.
- Explicit versioning.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

from ..core.engine import Pool
from ..state.balances import Amount
from ..state.canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex
from ..state.pools import PoolState


POOL_SNAPSHOT_VERSION = 1


def _require_str(value: Any, *, name: str, max_len: int = 4096) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string")
    if not value:
        raise ValueError(f"{name} must be non-empty")
    if len(value) > max_len:
        raise ValueError(f"{name} too large")
    return value


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


@dataclass(frozen=True)
class PoolSnapshot:
    """
    Deterministic, versioned snapshot of one pool.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        payload = domain_sep_bytes("pool_snapshot", version=self.version) + self.canonical_bytes()
        return hashlib.sha256(payload).digest()

    def commitment_hex(self) -> str:
        payload = domain_sep_bytes("pool_snapshot", version=self.version) + self.canonical_bytes()
        return sha256_hex(payload)


def snapshot_from_pool(pool: Pool, *, version: int = POOL_SNAPSHOT_VERSION) -> PoolSnapshot:
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")

    # State and share balances are published as one pair; read them in one step.
    state, balances = pool.state_and_shares()
    shares = [{"holder": holder, "amount": int(amount)} for holder, amount in balances.items()]
    shares.sort(key=lambda e: e["holder"])

    data: Dict[str, Any] = {
        "version": int(version),
        "pool": {
            "pool_id": state.pool_id,
            "asset_a": state.asset_a,
            "asset_b": state.asset_b,
            "fee_bps": int(state.fee_bps),
            "reserve_a": int(state.reserve_a),
            "reserve_b": int(state.reserve_b),
            "total_shares": int(state.total_shares),
        },
        "shares": shares,
    }
    return PoolSnapshot(version=version, data=data)


def state_from_snapshot(snapshot: Mapping[str, Any]) -> Tuple[PoolState, Dict[str, Amount]]:
    """
    Decode snapshot data into (PoolState, share balances).

    Raises TypeError/ValueError on malformed or inconsistent input.
    """
    if not isinstance(snapshot, Mapping):
        raise TypeError("snapshot must be a mapping")

    version = snapshot.get("version", POOL_SNAPSHOT_VERSION)
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("snapshot.version must be a positive int")
    if version != POOL_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")

    pool_obj = snapshot.get("pool")
    if not isinstance(pool_obj, Mapping):
        raise TypeError("snapshot.pool must be an object")

    state = PoolState(
        pool_id=_require_str(pool_obj.get("pool_id"), name="pool.pool_id"),
        asset_a=_require_str(pool_obj.get("asset_a"), name="pool.asset_a"),
        asset_b=_require_str(pool_obj.get("asset_b"), name="pool.asset_b"),
        fee_bps=_require_int(pool_obj.get("fee_bps"), name="pool.fee_bps"),
        reserve_a=_require_int(pool_obj.get("reserve_a"), name="pool.reserve_a"),
        reserve_b=_require_int(pool_obj.get("reserve_b"), name="pool.reserve_b"),
        total_shares=_require_int(pool_obj.get("total_shares"), name="pool.total_shares"),
    )

    entries = snapshot.get("shares")
    if entries is None:
        entries = []
    if not isinstance(entries, list):
        raise TypeError("snapshot.shares must be a list")
    balances: Dict[str, Amount] = {}
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise TypeError("snapshot.shares entries must be objects")
        holder = _require_str(entry.get("holder"), name="shares.holder")
        amount = _require_int(entry.get("amount"), name="shares.amount")
        if holder in balances:
            raise ValueError(f"duplicate share entry for {holder}")
        if amount == 0:
            raise ValueError(f"zero share entry for {holder}")
        balances[holder] = amount

    if sum(balances.values()) != state.total_shares:
        raise ValueError("share balances do not sum to total_shares")
    return state, balances
