"""
Pool accounting engine
"""

from .assets import AssetHandle
from .config import AssetConfig, PoolConfig, load_pool_config
from .engine import Pool
from .errors import (
    InsufficientShares,
    InvalidAmount,
    InvalidAsset,
    InvalidRatio,
    InvariantViolation,
    PoolError,
    ReentrantCall,
    TransferFailed,
    ZeroLiquidity,
    ZeroShares,
    ZeroSharesMinted,
)
from .events import EventKind, PoolEvent
from .guards import ReentrancyGuard

__all__ = [
    "AssetHandle",
    "AssetConfig",
    "PoolConfig",
    "load_pool_config",
    "Pool",
    "PoolError",
    "InvalidAsset",
    "InvalidAmount",
    "InvalidRatio",
    "ZeroSharesMinted",
    "ZeroShares",
    "InsufficientShares",
    "ZeroLiquidity",
    "TransferFailed",
    "ReentrantCall",
    "InvariantViolation",
    "EventKind",
    "PoolEvent",
    "ReentrancyGuard",
]
