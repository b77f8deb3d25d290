"""
Pool state records and ledgers
"""

from .balances import Account, Amount, AssetId, BalanceTable
from .lp import ShareLedger
from .pools import BPS_DENOM, PoolState, compute_pool_id

__all__ = [
    "Account",
    "Amount",
    "AssetId",
    "BalanceTable",
    "ShareLedger",
    "BPS_DENOM",
    "PoolState",
    "compute_pool_id",
]
