"""
Local deployment: two in-memory assets plus the pool trading them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..core.config import PoolConfig
from ..core.engine import Pool
from ..state.pools import compute_pool_id
from .memory_asset import InMemoryAsset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Deployment:
    pool: Pool
    asset_a: InMemoryAsset
    asset_b: InMemoryAsset
    deployer: str


def deploy_pool(config: PoolConfig = PoolConfig()) -> Deployment:
    """
    Create both assets, credit their initial supplies to the deployer and
    open an empty pool on them.

    Asset ids are the configured symbols; the custody account of both assets
    is the pool id.
    """
    custody = compute_pool_id(config.asset_a.symbol, config.asset_b.symbol, config.fee_bps)
    asset_a = InMemoryAsset(config.asset_a.symbol, custody=custody)
    asset_b = InMemoryAsset(config.asset_b.symbol, custody=custody)
    if config.asset_a.initial_supply:
        asset_a.mint(config.deployer, config.asset_a.initial_supply)
    if config.asset_b.initial_supply:
        asset_b.mint(config.deployer, config.asset_b.initial_supply)

    pool = Pool(asset_a, asset_b, fee_bps=config.fee_bps)
    if pool.pool_id != custody:
        raise AssertionError("pool id does not match the asset custody account")

    logger.info(
        "deployed pool %s for %s/%s (fee_bps=%d)",
        pool.pool_id,
        asset_a.symbol,
        asset_b.symbol,
        config.fee_bps,
    )
    return Deployment(pool=pool, asset_a=asset_a, asset_b=asset_b, deployer=config.deployer)
