"""
Pool accounting engine.

Imperative shell around the integer kernels:
- Every operation prices and validates against the current `PoolState`
  before asking any asset collaborator to move funds.
- The pool state and the share ledger are published together as one
  `(PoolState, ShareLedger)` pair and replaced wholesale, so rollback is
  restoring the previous pair and readers never see one without the other.
- Funds already moved when a later transfer fails are returned with a
  compensating transfer before the error is raised. A withdrawal whose
  A-side payout cannot be reclaimed settles that leg instead.

All mutating operations hold the pool's `ReentrancyGuard` for their full
duration. Events are delivered after the guard is released.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Tuple, Union

from ..kernels.python.cpmm_swap import SwapQuote, amount_in_after_fee, quote_exact_in
from ..kernels.python.lp_math import burn_liquidity, is_balanced_deposit, mint_liquidity
from ..state.balances import Account, Amount
from ..state.lp import ShareLedger
from ..state.pools import PoolState
from .assets import AssetHandle
from .config import DEFAULT_FEE_BPS
from .errors import (
    InsufficientShares,
    InvalidAmount,
    InvalidAsset,
    InvalidRatio,
    InvariantViolation,
    TransferFailed,
    ZeroLiquidity,
    ZeroShares,
    ZeroSharesMinted,
)
from .events import EventKind, EventListener, PoolEvent, liquidity_event, swap_event
from .guards import ReentrancyGuard

logger = logging.getLogger(__name__)

AssetRef = Union[AssetHandle, str]

# An undo step: (description, callable returning the collaborator's status).
_Undo = Tuple[str, Callable[[], bool]]

# Published ledgers are never mutated; operations mutate a copy and publish it.
_Book = Tuple[PoolState, ShareLedger]


def _require_amount(value: object, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidAmount(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise InvalidAmount(f"{name} must be non-negative: {value}")
    return value


class Pool:
    """
    Two-asset constant-product pool.

    Args:
        asset_a: A-side asset collaborator
        asset_b: B-side asset collaborator
        fee_bps: Swap fee in basis points, [0, 10000)
    """

    def __init__(self, asset_a: AssetHandle, asset_b: AssetHandle, fee_bps: int = DEFAULT_FEE_BPS) -> None:
        for name, asset in (("asset_a", asset_a), ("asset_b", asset_b)):
            if not isinstance(asset, AssetHandle):
                raise TypeError(f"{name} must be an AssetHandle, got {type(asset).__name__}")
        self._asset_a = asset_a
        self._asset_b = asset_b
        self._book: _Book = (PoolState.empty(asset_a.asset_id, asset_b.asset_id, fee_bps), ShareLedger())
        self._guard = ReentrancyGuard()
        self._listeners: List[EventListener] = []
        self._events: List[PoolEvent] = []

    @classmethod
    def restore(
        cls,
        asset_a: AssetHandle,
        asset_b: AssetHandle,
        state: PoolState,
        share_balances: Dict[Account, Amount],
    ) -> "Pool":
        """Rebuild a pool from a saved `PoolState` and its share balances."""
        pool = cls(asset_a, asset_b, state.fee_bps)
        if (state.asset_a, state.asset_b) != (asset_a.asset_id, asset_b.asset_id):
            raise ValueError("state assets do not match the given asset handles")
        if state.pool_id != pool.pool_id:
            raise ValueError(f"pool_id mismatch: {state.pool_id} != {pool.pool_id}")
        if sum(share_balances.values()) != state.total_shares:
            raise ValueError("share balances do not sum to total_shares")
        if state.total_shares == 0 and not state.is_empty:
            raise ValueError("reserves without outstanding shares")
        ledger = ShareLedger()
        ledger.load(dict(share_balances))
        pool._book = (state, ledger)
        return pool

    # -- read-only accessors --------------------------------------------------

    @property
    def state(self) -> PoolState:
        return self._book[0]

    @property
    def pool_id(self) -> str:
        return self._book[0].pool_id

    @property
    def events(self) -> Tuple[PoolEvent, ...]:
        return tuple(self._events)

    def get_reserves(self) -> Tuple[Amount, Amount]:
        s = self._book[0]
        return s.reserve_a, s.reserve_b

    def get_assets(self) -> Tuple[AssetHandle, AssetHandle]:
        return self._asset_a, self._asset_b

    def get_fee_bps(self) -> int:
        return self._book[0].fee_bps

    def balance_of(self, holder: Account) -> Amount:
        return self._book[1].balance_of(holder)

    def total_supply(self) -> Amount:
        return self._book[0].total_shares

    def share_balances(self) -> Dict[Account, Amount]:
        return self._book[1].get_all_balances()

    def state_and_shares(self) -> Tuple[PoolState, Dict[Account, Amount]]:
        """The current state and the share balances that belong to it, read together."""
        state, ledger = self._book
        return state, ledger.get_all_balances()

    def constant_product(self) -> int:
        return self._book[0].get_constant_product()

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    # -- pricing --------------------------------------------------------------

    def _orient(self, asset: AssetRef) -> Tuple[AssetHandle, AssetHandle]:
        """(asset_in, asset_out) handles for an asset given by handle or id."""
        if asset is self._asset_a or asset == self._asset_a.asset_id:
            return self._asset_a, self._asset_b
        if asset is self._asset_b or asset == self._asset_b.asset_id:
            return self._asset_b, self._asset_a
        label = asset if isinstance(asset, str) else getattr(asset, "asset_id", repr(asset))
        raise InvalidAsset(f"asset {label} is not traded by pool {self.pool_id}")

    @staticmethod
    def _quote(state: PoolState, asset_in_id: str, amount_in: int) -> SwapQuote:
        reserve_in, reserve_out = state.oriented_reserves(asset_in_id)
        with_fee = amount_in_after_fee(amount_in=amount_in, fee_bps=state.fee_bps)
        if reserve_in + with_fee == 0:
            raise ZeroLiquidity(f"pool {state.pool_id} has no {asset_in_id} liquidity to price against")
        return quote_exact_in(
            reserve_in=reserve_in,
            reserve_out=reserve_out,
            amount_in=amount_in,
            fee_bps=state.fee_bps,
        )

    def quote_swap_output(self, input_asset: AssetRef, input_amount: int) -> Tuple[Amount, Amount, Amount]:
        """
        Price an exact-in swap without changing anything.

        Returns:
            (output_amount, input_reserve, output_reserve)

        Raises:
            InvalidAsset: `input_asset` is not one of the pool's assets
            InvalidAmount: `input_amount` is negative or not an int
            ZeroLiquidity: the pricing denominator is zero
        """
        asset_in, _ = self._orient(input_asset)
        _require_amount(input_amount, name="input_amount")
        quote = self._quote(self.state, asset_in.asset_id, input_amount)
        return quote.amount_out, quote.reserve_in, quote.reserve_out

    def get_amount_out(self, asset_in: AssetRef, amount_in: int) -> Amount:
        return self.quote_swap_output(asset_in, amount_in)[0]

    # -- transfers ------------------------------------------------------------

    @staticmethod
    def _transfer(asset: AssetHandle, direction: str, account: Account, amount: int) -> None:
        move = asset.transfer_into if direction == "into" else asset.transfer_out
        try:
            ok = move(account, amount)
        except Exception as exc:
            raise TransferFailed(asset.asset_id, direction, account, amount) from exc
        if ok is not True:
            raise TransferFailed(asset.asset_id, direction, account, amount)

    def _pull(self, asset: AssetHandle, account: Account, amount: int) -> None:
        self._transfer(asset, "into", account, amount)

    def _push(self, asset: AssetHandle, account: Account, amount: int) -> None:
        self._transfer(asset, "out", account, amount)

    def _compensate(self, undo: List[_Undo]) -> bool:
        """
        Run undo steps newest first.

        Failures are logged; the caller re-raises the original error. Returns
        True only if every step succeeded.
        """
        all_ok = True
        for label, step in reversed(undo):
            try:
                ok = step()
            except Exception:
                logger.exception("pool %s: compensating transfer raised (%s)", self.pool_id, label)
                all_ok = False
                continue
            if ok is not True:
                logger.error("pool %s: compensating transfer failed (%s)", self.pool_id, label)
                all_ok = False
        return all_ok

    def _emit(self, event: PoolEvent) -> None:
        self._events.append(event)
        for listener in list(self._listeners):
            listener(event)

    # -- operations -----------------------------------------------------------

    def swap(self, asset_in: AssetRef, amount_in: int, *, caller: Account) -> Amount:
        """
        Exact-in swap of `amount_in` of `asset_in` for the other asset.

        The gross `amount_in` is credited to the input reserve; the fee part of
        it stays in the pool.

        Returns:
            Output amount paid to `caller`.
        """
        with self._guard.enter("swap"):
            handle_in, handle_out = self._orient(asset_in)
            _require_amount(amount_in, name="amount_in")
            book = self._book
            state, ledger = book
            if state.reserve_a == 0 or state.reserve_b == 0:
                raise ZeroLiquidity(f"pool {state.pool_id} is empty")

            quote = self._quote(state, handle_in.asset_id, amount_in)
            next_state = state.with_swap(handle_in.asset_id, amount_in, quote.amount_out)
            if next_state.get_constant_product() < state.get_constant_product():
                raise InvariantViolation(state.get_constant_product(), next_state.get_constant_product())

            self._pull(handle_in, caller, amount_in)
            self._book = (next_state, ledger)
            try:
                self._push(handle_out, caller, quote.amount_out)
            except Exception:
                self._book = book
                logger.warning("pool %s: swap rolled back for %s", state.pool_id, caller)
                self._compensate(
                    [(f"refund {amount_in} {handle_in.asset_id}", lambda: handle_in.transfer_out(caller, amount_in))]
                )
                raise

            logger.debug(
                "pool %s: swap %s %s -> %s %s for %s, reserves=(%d, %d)",
                state.pool_id,
                amount_in,
                handle_in.asset_id,
                quote.amount_out,
                handle_out.asset_id,
                caller,
                next_state.reserve_a,
                next_state.reserve_b,
            )
            event = swap_event(
                pool_id=state.pool_id,
                actor=caller,
                asset_in=handle_in.asset_id,
                asset_out=handle_out.asset_id,
                amount_in=amount_in,
                amount_out=quote.amount_out,
            )

        self._emit(event)
        return quote.amount_out

    def add_liquidity(self, amount_a: int, amount_b: int, *, caller: Account) -> Amount:
        """
        Deposit (amount_a, amount_b) and mint pool shares to `caller`.

        Once the pool holds reserves the deposit must match the reserve ratio
        exactly. Both assets are pulled or neither is.

        Returns:
            Shares minted.
        """
        with self._guard.enter("add_liquidity"):
            _require_amount(amount_a, name="amount_a")
            _require_amount(amount_b, name="amount_b")
            state, ledger = self._book

            if not state.is_empty and not is_balanced_deposit(
                reserve_a=state.reserve_a,
                reserve_b=state.reserve_b,
                amount_a=amount_a,
                amount_b=amount_b,
            ):
                raise InvalidRatio(state.reserve_a, state.reserve_b, amount_a, amount_b)
            if state.total_shares and state.reserve_a == 0:
                # Only reachable after a settled partial withdrawal drained the A side.
                raise ZeroLiquidity(f"pool {state.pool_id} has no {state.asset_a} reserve to price shares against")

            mint = mint_liquidity(
                reserve_a=state.reserve_a,
                reserve_b=state.reserve_b,
                total_shares=state.total_shares,
                amount_a=amount_a,
                amount_b=amount_b,
            )
            if mint.shares_minted == 0:
                raise ZeroSharesMinted(f"deposit ({amount_a}, {amount_b}) mints no shares")

            self._pull(self._asset_a, caller, amount_a)
            try:
                self._pull(self._asset_b, caller, amount_b)
            except Exception:
                logger.warning("pool %s: add_liquidity rolled back for %s", state.pool_id, caller)
                self._compensate(
                    [
                        (
                            f"refund {amount_a} {self._asset_a.asset_id}",
                            lambda: self._asset_a.transfer_out(caller, amount_a),
                        )
                    ]
                )
                raise

            minted = ledger.copy()
            minted.mint(caller, mint.shares_minted)
            self._book = (state.with_deposit(amount_a, amount_b, mint.shares_minted), minted)

            logger.debug(
                "pool %s: %s added (%d, %d) for %d shares, total_shares=%d",
                state.pool_id,
                caller,
                amount_a,
                amount_b,
                mint.shares_minted,
                mint.new_total_shares,
            )
            event = liquidity_event(
                EventKind.LIQUIDITY_ADDED,
                pool_id=state.pool_id,
                actor=caller,
                amount_a=amount_a,
                amount_b=amount_b,
                shares=mint.shares_minted,
            )

        self._emit(event)
        return mint.shares_minted

    def remove_liquidity(self, shares: int, *, caller: Account) -> Tuple[Amount, Amount]:
        """
        Burn `shares` held by `caller` for a proportional slice of both reserves.

        Shares are burned before reserves are reduced and before any asset is
        paid out. If the B payout fails, the A payout is reclaimed from
        `caller` and everything is restored. If that reclaim fails too, the
        A leg stands: `reserve_a` drops by the A paid and the shares it was
        worth stay burned (see `_settle_a_leg`).

        Returns:
            (amount_a, amount_b) paid to `caller`.
        """
        with self._guard.enter("remove_liquidity"):
            if not isinstance(shares, int) or isinstance(shares, bool):
                raise InvalidAmount(f"shares must be an int, got {type(shares).__name__}")
            if shares <= 0:
                raise ZeroShares(f"shares to burn must be positive: {shares}")
            book = self._book
            state, ledger = book
            held = ledger.balance_of(caller)
            if held < shares:
                raise InsufficientShares(caller, held, shares)

            burn = burn_liquidity(
                shares=shares,
                reserve_a=state.reserve_a,
                reserve_b=state.reserve_b,
                total_shares=state.total_shares,
            )
            amount_a, amount_b = burn.amount_a_out, burn.amount_b_out

            burned = ledger.copy()
            burned.burn(caller, shares)
            self._book = (state.with_withdrawal(amount_a, amount_b, shares), burned)

            a_paid = False
            try:
                self._push(self._asset_a, caller, amount_a)
                a_paid = True
                self._push(self._asset_b, caller, amount_b)
            except Exception:
                logger.warning("pool %s: remove_liquidity rolled back for %s", state.pool_id, caller)
                reclaimed = (
                    not a_paid
                    or amount_a == 0
                    or self._compensate(
                        [
                            (
                                f"reclaim {amount_a} {self._asset_a.asset_id}",
                                lambda: self._asset_a.transfer_into(caller, amount_a),
                            )
                        ]
                    )
                )
                if reclaimed:
                    self._book = book
                else:
                    self._book = self._settle_a_leg(state, ledger, caller, amount_a)
                raise

            logger.debug(
                "pool %s: %s burned %d shares for (%d, %d)",
                state.pool_id,
                caller,
                shares,
                amount_a,
                amount_b,
            )
            event = liquidity_event(
                EventKind.LIQUIDITY_REMOVED,
                pool_id=state.pool_id,
                actor=caller,
                amount_a=amount_a,
                amount_b=amount_b,
                shares=shares,
            )

        self._emit(event)
        return amount_a, amount_b

    @staticmethod
    def _settle_a_leg(state: PoolState, ledger: ShareLedger, caller: Account, amount_a: int) -> _Book:
        """
        Book for a withdrawal that paid `amount_a` of A and nothing else.

        Burns ceil(amount_a * total_shares / reserve_a) of the caller's shares,
        so the A and B backing per remaining share never drops. A sole holder
        keeps one share, which then owns the whole B reserve.
        """
        burned_shares = -(-amount_a * state.total_shares // state.reserve_a)
        burned_shares = min(burned_shares, state.total_shares - 1)
        settled = ledger.copy()
        settled.burn(caller, burned_shares)
        logger.error(
            "pool %s: %s kept %d %s after a failed withdrawal; settled by burning %d shares",
            state.pool_id,
            caller,
            amount_a,
            state.asset_a,
            burned_shares,
        )
        return state.with_withdrawal(amount_a, 0, burned_shares), settled

    def __repr__(self) -> str:
        return f"Pool({self.state!r})"
