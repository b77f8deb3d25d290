"""
Pure-Python kernels (no I/O, no state).
"""

from .cpmm_swap import SwapQuote, amount_in_after_fee, quote_exact_in
from .lp_math import (
    BurnLiquidityResult,
    MintLiquidityResult,
    burn_liquidity,
    integer_sqrt,
    is_balanced_deposit,
    mint_liquidity,
)

__all__ = [
    "SwapQuote",
    "amount_in_after_fee",
    "quote_exact_in",
    "BurnLiquidityResult",
    "MintLiquidityResult",
    "burn_liquidity",
    "integer_sqrt",
    "is_balanced_deposit",
    "mint_liquidity",
]
