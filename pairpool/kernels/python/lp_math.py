"""
Liquidity math kernel.

Small set of pure functions with explicit rounding rules:
- initial mint is the integer geometric mean of the deposit,
- later mints are proportional to the A-side reserve,
- burns are proportional to both reserves, rounded down.
"""

from __future__ import annotations

from dataclasses import dataclass


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class MintLiquidityResult:
    shares_minted: int
    new_reserve_a: int
    new_reserve_b: int
    new_total_shares: int


@dataclass(frozen=True)
class BurnLiquidityResult:
    amount_a_out: int
    amount_b_out: int


def integer_sqrt(n: int) -> int:
    """
    Largest z with z * z <= n.

    Newton's method on integers, seeded at n // 2 + 1 and stopped at the first
    non-decreasing step. Inputs 1..3 are answered directly with 1.
    """
    _require_int("n", n)
    if n < 0:
        raise ValueError("integer_sqrt of a negative number")
    if n > 3:
        z = n
        x = n // 2 + 1
        while x < z:
            z = x
            x = (n // x + x) // 2
        return z
    if n != 0:
        return 1
    return 0


def is_balanced_deposit(*, reserve_a: int, reserve_b: int, amount_a: int, amount_b: int) -> bool:
    """Exact ratio check by cross-multiplication: reserve_a * amount_b == reserve_b * amount_a."""
    for name, v in (
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("amount_a", amount_a),
        ("amount_b", amount_b),
    ):
        _require_int(name, v)
    return reserve_a * amount_b == reserve_b * amount_a


def mint_liquidity(
    *,
    reserve_a: int,
    reserve_b: int,
    total_shares: int,
    amount_a: int,
    amount_b: int,
) -> MintLiquidityResult:
    """
    Shares minted for a deposit of (amount_a, amount_b).

    First deposit (total_shares == 0): integer_sqrt(amount_a * amount_b).
    Later deposits: floor(amount_a * total_shares / reserve_a).

    The ratio check is the caller's job; this function only prices the deposit.
    May return zero shares.
    """
    for name, v in (
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("total_shares", total_shares),
        ("amount_a", amount_a),
        ("amount_b", amount_b),
    ):
        _require_int(name, v)

    if reserve_a < 0 or reserve_b < 0:
        raise ValueError("reserves must be non-negative")
    if total_shares < 0:
        raise ValueError("total_shares must be non-negative")
    if amount_a < 0 or amount_b < 0:
        raise ValueError("deposit amounts must be non-negative")

    if total_shares == 0:
        if reserve_a != 0 or reserve_b != 0:
            raise ValueError("cannot mint initial liquidity when reserves are non-zero")
        minted = integer_sqrt(amount_a * amount_b)
    else:
        if reserve_a == 0:
            raise ValueError("cannot mint proportionally against an empty reserve_a")
        minted = (amount_a * total_shares) // reserve_a

    return MintLiquidityResult(
        shares_minted=minted,
        new_reserve_a=reserve_a + amount_a,
        new_reserve_b=reserve_b + amount_b,
        new_total_shares=total_shares + minted,
    )


def burn_liquidity(*, shares: int, reserve_a: int, reserve_b: int, total_shares: int) -> BurnLiquidityResult:
    """
    Burn shares for underlying assets (floor rounding).
    """
    for name, v in (
        ("shares", shares),
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("total_shares", total_shares),
    ):
        _require_int(name, v)

    if shares <= 0:
        raise ValueError("shares must be positive")
    if reserve_a < 0 or reserve_b < 0:
        raise ValueError("reserves must be non-negative")
    if total_shares <= 0:
        raise ValueError("total_shares must be positive")
    if shares > total_shares:
        raise ValueError("cannot burn more than total_shares")

    amount_a_out = (reserve_a * shares) // total_shares
    amount_b_out = (reserve_b * shares) // total_shares
    return BurnLiquidityResult(amount_a_out=amount_a_out, amount_b_out=amount_b_out)
