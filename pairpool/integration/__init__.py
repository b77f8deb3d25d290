"""
Asset collaborators, deployment and snapshots around the pool engine
"""

from .deploy import Deployment, deploy_pool
from .memory_asset import InMemoryAsset
from .snapshot import POOL_SNAPSHOT_VERSION, PoolSnapshot, snapshot_from_pool, state_from_snapshot

__all__ = [
    "Deployment",
    "deploy_pool",
    "InMemoryAsset",
    "POOL_SNAPSHOT_VERSION",
    "PoolSnapshot",
    "snapshot_from_pool",
    "state_from_snapshot",
]
