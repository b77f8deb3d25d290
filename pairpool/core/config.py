"""
Pool deployment configuration.

Configs are frozen dataclasses validated on construction and can be loaded
from a YAML file:

    fee_bps: 30
    deployer: deployer
    asset_a:
      symbol: ABC
      initial_supply: 1000000000000000000000000
    asset_b:
      symbol: DEF
      initial_supply: 5000000000000000000000000
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from ..state.pools import BPS_DENOM


DEFAULT_FEE_BPS = 30
WEI = 10**18


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    return value


@dataclass(frozen=True)
class AssetConfig:
    symbol: str
    initial_supply: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.symbol, str) or not self.symbol.strip():
            raise ValueError("asset symbol must be a non-empty string")
        _require_int(self.initial_supply, name=f"{self.symbol}.initial_supply")
        if self.initial_supply < 0:
            raise ValueError(f"{self.symbol}.initial_supply must be non-negative")

    @classmethod
    def from_mapping(cls, obj: Mapping[str, Any], *, name: str) -> "AssetConfig":
        if not isinstance(obj, Mapping):
            raise TypeError(f"{name} must be a mapping")
        unknown = set(obj) - {"symbol", "initial_supply"}
        if unknown:
            raise ValueError(f"unknown keys in {name}: {sorted(unknown)}")
        return cls(symbol=obj.get("symbol"), initial_supply=obj.get("initial_supply", 0))


@dataclass(frozen=True)
class PoolConfig:
    # Swap fee in basis points; immutable for the life of the pool.
    fee_bps: int = DEFAULT_FEE_BPS

    # Account credited with each asset's initial supply at deployment.
    deployer: str = "deployer"

    asset_a: AssetConfig = field(default_factory=lambda: AssetConfig("ABC", 1_000_000 * WEI))
    asset_b: AssetConfig = field(default_factory=lambda: AssetConfig("DEF", 5_000_000 * WEI))

    def __post_init__(self) -> None:
        _require_int(self.fee_bps, name="fee_bps")
        if not (0 <= self.fee_bps < BPS_DENOM):
            raise ValueError(f"fee_bps must be in [0, {BPS_DENOM}): {self.fee_bps}")
        if not isinstance(self.deployer, str) or not self.deployer:
            raise ValueError("deployer must be a non-empty string")
        if self.asset_a.symbol == self.asset_b.symbol:
            raise ValueError(f"asset symbols must differ: {self.asset_a.symbol}")

    @classmethod
    def from_mapping(cls, obj: Mapping[str, Any]) -> "PoolConfig":
        if not isinstance(obj, Mapping):
            raise TypeError("pool config must be a mapping")
        unknown = set(obj) - {"fee_bps", "deployer", "asset_a", "asset_b"}
        if unknown:
            raise ValueError(f"unknown pool config keys: {sorted(unknown)}")

        kwargs: dict[str, Any] = {}
        if "fee_bps" in obj:
            kwargs["fee_bps"] = obj["fee_bps"]
        if "deployer" in obj:
            kwargs["deployer"] = obj["deployer"]
        for side in ("asset_a", "asset_b"):
            if side in obj:
                kwargs[side] = AssetConfig.from_mapping(obj[side], name=side)
        return cls(**kwargs)


def load_pool_config(path: Union[str, Path]) -> PoolConfig:
    """Load a `PoolConfig` from a YAML file. An empty file yields the defaults."""
    p = Path(path)
    obj = yaml.safe_load(p.read_text(encoding="utf-8"))
    if obj is None:
        return PoolConfig()
    return PoolConfig.from_mapping(obj)
