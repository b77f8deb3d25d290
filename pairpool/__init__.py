"""
pairpool: constant-product liquidity pool for one pair of fungible assets.
"""

from .core import Pool, PoolConfig, PoolError
from .kernels.python import integer_sqrt

__all__ = ["Pool", "PoolConfig", "PoolError", "integer_sqrt"]

__version__ = "0.1.0"
