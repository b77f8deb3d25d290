"""
CPMM exact-in swap kernel.

Semantics:
- The fee is taken off the *input* before pricing, with floor rounding:
      amount_in_with_fee = floor(amount_in * (10_000 - fee_bps) / 10_000)
- Pricing solves the discretized constant product (x + dx)(y - dy) = xy for dy:
      amount_out = floor(amount_in_with_fee * reserve_out / (reserve_in + amount_in_with_fee))
- The gross input is credited to the pool, so the fee stays behind as extra backing.

Every division truncates, which only ever lowers the payout.
"""

from __future__ import annotations

from dataclasses import dataclass


BPS_DENOM = 10_000


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class SwapQuote:
    amount_in: int
    amount_in_with_fee: int
    amount_out: int
    reserve_in: int
    reserve_out: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int

    @property
    def fee_retained(self) -> int:
        """Input units withheld from pricing and left in the pool."""
        return self.amount_in - self.amount_in_with_fee


def amount_in_after_fee(*, amount_in: int, fee_bps: int) -> int:
    """
    Compute `floor(amount_in * (10_000 - fee_bps) / 10_000)`.
    """
    _require_int("amount_in", amount_in)
    _require_int("fee_bps", fee_bps)
    if amount_in < 0:
        raise ValueError("amount_in must be non-negative")
    if not (0 <= fee_bps < BPS_DENOM):
        raise ValueError(f"fee_bps must be in [0, {BPS_DENOM})")
    return (amount_in * (BPS_DENOM - fee_bps)) // BPS_DENOM


def quote_exact_in(
    *,
    reserve_in: int,
    reserve_out: int,
    amount_in: int,
    fee_bps: int,
) -> SwapQuote:
    """
    Exact-in swap quote + post-state.

    A zero input is a valid quote for zero output. Raises ValueError on
    negative inputs or when the pricing denominator is zero.
    """
    for name, v in (
        ("reserve_in", reserve_in),
        ("reserve_out", reserve_out),
        ("amount_in", amount_in),
        ("fee_bps", fee_bps),
    ):
        _require_int(name, v)

    if reserve_in < 0 or reserve_out < 0:
        raise ValueError("reserves must be non-negative")

    with_fee = amount_in_after_fee(amount_in=amount_in, fee_bps=fee_bps)

    denominator = reserve_in + with_fee
    if denominator == 0:
        raise ValueError("zero liquidity: reserve_in + amount_in_with_fee == 0")
    amount_out = (with_fee * reserve_out) // denominator

    # amount_out == reserve_out only when reserve_in == 0; the engine rejects that case.
    if amount_out > reserve_out:
        raise AssertionError("amount_out exceeds reserve_out")

    new_reserve_in = reserve_in + amount_in
    new_reserve_out = reserve_out - amount_out

    return SwapQuote(
        amount_in=amount_in,
        amount_in_with_fee=with_fee,
        amount_out=amount_out,
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=reserve_in * reserve_out,
        k_after=new_reserve_in * new_reserve_out,
    )
