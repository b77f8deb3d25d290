# [TESTER] v1

from __future__ import annotations

import logging
import threading
from typing import List, Tuple

import pytest

from pairpool.core.engine import Pool
from pairpool.core.errors import (
    InsufficientShares,
    InvalidAmount,
    InvalidAsset,
    InvalidRatio,
    ReentrantCall,
    TransferFailed,
    ZeroLiquidity,
    ZeroShares,
    ZeroSharesMinted,
)
from pairpool.core.events import EventKind
from pairpool.integration.memory_asset import InMemoryAsset
from pairpool.integration.snapshot import snapshot_from_pool, state_from_snapshot


CUSTODY = "pool"


def _new_pool(fee_bps: int = 30) -> Tuple[Pool, InMemoryAsset, InMemoryAsset]:
    abc = InMemoryAsset("ABC", custody=CUSTODY)
    defn = InMemoryAsset("DEF", custody=CUSTODY)
    return Pool(abc, defn, fee_bps=fee_bps), abc, defn


def _fund(asset: InMemoryAsset, account: str, amount: int, *, approve: int | None = None) -> None:
    asset.mint(account, amount)
    asset.approve(account, amount if approve is None else approve)


def _seeded_pool(amount_a: int = 20000, amount_b: int = 20000) -> Tuple[Pool, InMemoryAsset, InMemoryAsset]:
    pool, abc, defn = _new_pool()
    _fund(abc, "provider", amount_a)
    _fund(defn, "provider", amount_b)
    pool.add_liquidity(amount_a, amount_b, caller="provider")
    return pool, abc, defn


# -- scenarios from the reference deployment tests ------------------------------


def test_add_liquidity_to_empty_pool_mints_geometric_mean() -> None:
    pool, abc, defn = _new_pool()
    _fund(abc, "user", 30000, approve=20000)
    _fund(defn, "user", 30000, approve=15000)

    minted = pool.add_liquidity(20000, 15000, caller="user")

    assert pool.get_reserves() == (20000, 15000)
    assert minted == 17320
    assert pool.balance_of("user") == 17320
    assert pool.total_supply() == 17320
    assert abc.balance_of(CUSTODY) == 20000
    assert defn.balance_of(CUSTODY) == 15000


def test_swap_and_swap_back() -> None:
    pool, abc, defn = _seeded_pool()
    _fund(abc, "trader", 20000)

    out_b = pool.swap(abc, 20000, caller="trader")
    assert out_b == 9984
    assert defn.balance_of("trader") == 9984
    assert pool.get_reserves() == (40000, 10016)

    defn.approve("trader", out_b)
    out_a = pool.swap(defn, out_b, caller="trader")
    assert out_a == 19937
    assert abc.balance_of("trader") == 19937
    assert out_a < 20000


def test_remove_all_liquidity_returns_deposit() -> None:
    pool, abc, defn = _seeded_pool()
    assert abc.balance_of("provider") == 0

    assert pool.remove_liquidity(20000, caller="provider") == (20000, 20000)

    assert abc.balance_of("provider") == 20000
    assert defn.balance_of("provider") == 20000
    assert pool.get_reserves() == (0, 0)
    assert pool.total_supply() == 0
    assert pool.state.is_empty


# -- accessors and quoting -------------------------------------------------------


def test_accessors() -> None:
    pool, abc, defn = _new_pool(fee_bps=5)
    assert pool.get_assets() == (abc, defn)
    assert pool.get_fee_bps() == 5
    assert pool.get_reserves() == (0, 0)
    assert pool.total_supply() == 0


def test_quote_matches_swap_and_does_not_mutate() -> None:
    pool, abc, _ = _seeded_pool()
    before = pool.state
    assert pool.quote_swap_output(abc, 20000) == (9984, 20000, 20000)
    assert pool.quote_swap_output("DEF", 20000) == (9984, 20000, 20000)
    assert pool.get_amount_out("ABC", 0) == 0
    assert pool.state is before


def test_quote_rejects_foreign_asset_and_bad_amount() -> None:
    pool, _, _ = _seeded_pool()
    stranger = InMemoryAsset("XYZ", custody=CUSTODY)
    with pytest.raises(InvalidAsset):
        pool.get_amount_out(stranger, 10)
    with pytest.raises(InvalidAsset):
        pool.get_amount_out("XYZ", 10)
    with pytest.raises(InvalidAmount):
        pool.get_amount_out("ABC", -1)


def test_quote_on_empty_pool() -> None:
    pool, _, _ = _new_pool()
    with pytest.raises(ZeroLiquidity):
        pool.get_amount_out("ABC", 0)
    # Nothing to pay out on the other side.
    assert pool.quote_swap_output("ABC", 100) == (0, 0, 0)


# -- validation failures leave state untouched ----------------------------------


def test_swap_on_empty_pool_is_rejected() -> None:
    pool, abc, _ = _new_pool()
    _fund(abc, "trader", 100)
    with pytest.raises(ZeroLiquidity):
        pool.swap(abc, 100, caller="trader")
    assert abc.balance_of("trader") == 100
    assert pool.get_reserves() == (0, 0)


def test_swap_with_foreign_asset_is_rejected() -> None:
    pool, _, _ = _seeded_pool()
    with pytest.raises(InvalidAsset):
        pool.swap("XYZ", 100, caller="trader")


def test_unbalanced_deposit_is_rejected() -> None:
    pool, abc, defn = _seeded_pool(20000, 15000)
    _fund(abc, "lp2", 1000)
    _fund(defn, "lp2", 1000)
    before = pool.state

    with pytest.raises(InvalidRatio):
        pool.add_liquidity(100, 100, caller="lp2")

    assert pool.state is before
    assert abc.balance_of("lp2") == 1000
    assert defn.balance_of("lp2") == 1000
    assert pool.balance_of("lp2") == 0


def test_balanced_deposit_preserves_ratio_exactly() -> None:
    pool, abc, defn = _seeded_pool(20000, 15000)
    _fund(abc, "lp2", 4000)
    _fund(defn, "lp2", 3000)

    minted = pool.add_liquidity(4000, 3000, caller="lp2")

    assert minted == 3464
    ra, rb = pool.get_reserves()
    assert (ra, rb) == (24000, 18000)
    assert ra * 15000 == rb * 20000
    assert pool.total_supply() == 17320 + 3464


def test_deposit_minting_nothing_is_rejected() -> None:
    pool, abc, defn = _new_pool()
    _fund(abc, "lp", 0)
    _fund(defn, "lp", 500)
    with pytest.raises(ZeroSharesMinted):
        pool.add_liquidity(0, 500, caller="lp")
    assert defn.balance_of("lp") == 500
    assert pool.state.is_empty


@pytest.mark.parametrize("amounts", [(-1, 10), (10, -1), (True, 1), (1.5, 1)])
def test_deposit_rejects_invalid_amounts(amounts) -> None:
    pool, _, _ = _new_pool()
    with pytest.raises(InvalidAmount):
        pool.add_liquidity(*amounts, caller="lp")


@pytest.mark.parametrize("shares", [0, -3])
def test_remove_requires_positive_shares(shares: int) -> None:
    pool, _, _ = _seeded_pool()
    with pytest.raises(ZeroShares):
        pool.remove_liquidity(shares, caller="provider")


def test_remove_more_than_held_is_rejected() -> None:
    pool, _, _ = _seeded_pool()
    before = pool.state
    with pytest.raises(InsufficientShares) as excinfo:
        pool.remove_liquidity(1, caller="stranger")
    assert excinfo.value.held == 0
    with pytest.raises(InsufficientShares):
        pool.remove_liquidity(20001, caller="provider")
    assert pool.state is before
    assert pool.balance_of("provider") == 20000


# -- transfer failures roll back -------------------------------------------------


def _fail_direction(direction: str):
    def hook(asset, d, account, amount):
        return d != direction

    return hook


def test_failed_input_pull_aborts_swap() -> None:
    pool, abc, _ = _seeded_pool()
    _fund(abc, "trader", 100, approve=50)
    before = pool.state
    with pytest.raises(TransferFailed) as excinfo:
        pool.swap(abc, 100, caller="trader")
    assert excinfo.value.direction == "into"
    assert pool.state is before
    assert abc.balance_of("trader") == 100


def test_failed_output_push_rolls_back_swap_and_refunds_input() -> None:
    pool, abc, defn = _seeded_pool()
    _fund(abc, "trader", 1000)
    defn.on_transfer = _fail_direction("out")
    before = pool.state

    with pytest.raises(TransferFailed) as excinfo:
        pool.swap(abc, 1000, caller="trader")

    assert excinfo.value.asset_id == "DEF"
    assert pool.state is before
    assert abc.balance_of("trader") == 1000
    assert abc.balance_of(CUSTODY) == 20000
    assert defn.balance_of("trader") == 0
    assert pool.events[-1].kind is EventKind.LIQUIDITY_ADDED


def test_deposit_is_both_or_neither() -> None:
    pool, abc, defn = _new_pool()
    _fund(abc, "lp", 1000)
    _fund(defn, "lp", 1000, approve=0)

    with pytest.raises(TransferFailed):
        pool.add_liquidity(1000, 1000, caller="lp")

    assert abc.balance_of("lp") == 1000
    assert abc.balance_of(CUSTODY) == 0
    assert pool.state.is_empty
    assert pool.balance_of("lp") == 0


def test_failed_withdrawal_restores_shares_and_reserves() -> None:
    pool, abc, defn = _seeded_pool()
    # Lets the pool reclaim the A leg already paid out.
    abc.approve("provider", 10000)
    defn.on_transfer = _fail_direction("out")
    before = pool.state

    with pytest.raises(TransferFailed):
        pool.remove_liquidity(10000, caller="provider")

    assert pool.state is before
    assert pool.balance_of("provider") == 20000
    assert abc.balance_of("provider") == 0
    assert abc.balance_of(CUSTODY) == 20000


def _fail_out_for(account: str):
    def hook(asset, d, who, amount):
        return not (d == "out" and who == account)

    return hook


def test_unreclaimed_payout_settles_the_a_leg(caplog: pytest.LogCaptureFixture) -> None:
    pool, abc, defn = _seeded_pool()
    _fund(abc, "taker", 20000)
    _fund(defn, "taker", 20000)
    pool.add_liquidity(20000, 20000, caller="taker")
    # B payouts to the taker fail and the taker never lets the pool pull A back.
    defn.on_transfer = _fail_out_for("taker")

    with caplog.at_level(logging.WARNING, logger="pairpool.core.engine"):
        with pytest.raises(TransferFailed):
            pool.remove_liquidity(20000, caller="taker")
    assert "compensating transfer failed" in caplog.text

    assert pool.get_reserves() == (abc.balance_of(CUSTODY), defn.balance_of(CUSTODY))
    assert pool.get_reserves() == (20000, 40000)
    assert abc.balance_of("taker") == 20000
    assert pool.balance_of("taker") == 0
    assert pool.total_supply() == 20000
    assert sum(pool.share_balances().values()) == pool.total_supply()

    # Nothing left to withdraw a second time.
    with pytest.raises(InsufficientShares):
        pool.remove_liquidity(20000, caller="taker")
    assert abc.balance_of(CUSTODY) == 20000

    # The remaining provider's backing did not shrink.
    defn.on_transfer = None
    assert pool.remove_liquidity(20000, caller="provider") == (20000, 40000)
    assert pool.state.is_empty


def test_unreclaimed_payout_of_sole_holder_keeps_one_share() -> None:
    pool, abc, defn = _seeded_pool()
    defn.on_transfer = _fail_direction("out")

    with pytest.raises(TransferFailed):
        pool.remove_liquidity(20000, caller="provider")

    assert pool.get_reserves() == (0, 20000)
    assert abc.balance_of(CUSTODY) == 0
    assert pool.balance_of("provider") == pool.total_supply() == 1

    _fund(abc, "trader", 10)
    with pytest.raises(ZeroLiquidity):
        pool.swap(abc, 10, caller="trader")
    with pytest.raises(ZeroLiquidity):
        pool.add_liquidity(0, 0, caller="provider")

    defn.on_transfer = None
    assert pool.remove_liquidity(1, caller="provider") == (0, 20000)
    assert pool.state.is_empty
    assert pool.total_supply() == 0


def test_collaborator_exception_becomes_transfer_failed() -> None:
    pool, abc, defn = _seeded_pool()
    _fund(abc, "trader", 1000)

    def hook(asset, d, account, amount):
        if d == "out":
            raise RuntimeError("ledger offline")
        return True

    defn.on_transfer = hook
    before = pool.state

    with pytest.raises(TransferFailed) as excinfo:
        pool.swap(abc, 1000, caller="trader")

    assert excinfo.value.asset_id == "DEF"
    assert excinfo.value.direction == "out"
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert pool.state is before
    assert abc.balance_of("trader") == 1000


# -- re-entrancy -----------------------------------------------------------------


def test_nested_calls_from_collaborator_are_rejected() -> None:
    pool, abc, defn = _seeded_pool()
    _fund(abc, "trader", 1000)
    _fund(abc, "attacker", 1000)
    _fund(defn, "attacker", 1000)
    seen: List[Exception] = []

    def hook(asset, direction, account, amount):
        for attempt in (
            lambda: pool.swap(abc, 10, caller="attacker"),
            lambda: pool.add_liquidity(10, 10, caller="attacker"),
            lambda: pool.remove_liquidity(1, caller="provider"),
        ):
            try:
                attempt()
            except ReentrantCall as exc:
                seen.append(exc)
        return True

    abc.on_transfer = hook
    out = pool.swap(abc, 1000, caller="trader")

    assert len(seen) == 3
    assert all(isinstance(e, ReentrantCall) for e in seen)
    # Only the outer swap took effect.
    assert pool.get_reserves() == (21000, 20000 - out)
    assert pool.balance_of("provider") == 20000
    assert pool.balance_of("attacker") == 0
    assert abc.balance_of("attacker") == 1000


def test_propagated_reentrant_call_leaves_state_unchanged() -> None:
    pool, abc, _ = _seeded_pool()

    def hook(asset, direction, account, amount):
        pool.remove_liquidity(1, caller="provider")
        return True

    abc.on_transfer = hook
    before = pool.state

    with pytest.raises(TransferFailed) as excinfo:
        pool.remove_liquidity(5000, caller="provider")

    assert isinstance(excinfo.value.__cause__, ReentrantCall)
    assert pool.state is before
    assert pool.balance_of("provider") == 20000
    assert abc.balance_of("provider") == 0


def test_concurrent_operation_is_rejected_and_readers_see_pre_state() -> None:
    pool, abc, defn = _seeded_pool()
    _fund(abc, "lp2", 1000)
    _fund(defn, "lp2", 1000)
    _fund(abc, "trader", 10)
    entered = threading.Event()
    release = threading.Event()

    def hook(asset, direction, account, amount):
        entered.set()
        release.wait(timeout=5)
        return True

    abc.on_transfer = hook
    worker = threading.Thread(target=lambda: pool.add_liquidity(1000, 1000, caller="lp2"))
    worker.start()
    try:
        assert entered.wait(timeout=5)
        abc.on_transfer = None
        with pytest.raises(ReentrantCall):
            pool.swap(abc, 10, caller="trader")
        assert pool.get_reserves() == (20000, 20000)
    finally:
        release.set()
        worker.join(timeout=5)

    assert pool.get_reserves() == (21000, 21000)
    assert pool.balance_of("lp2") == 1000


def test_snapshot_taken_mid_operation_is_consistent() -> None:
    pool, abc, _ = _seeded_pool()
    entered = threading.Event()
    release = threading.Event()
    errors: List[BaseException] = []

    def hook(asset, direction, account, amount):
        entered.set()
        release.wait(timeout=5)
        return True

    def withdraw():
        try:
            pool.remove_liquidity(5000, caller="provider")
        except BaseException as exc:  # surfaced to the main thread below
            errors.append(exc)

    abc.on_transfer = hook
    worker = threading.Thread(target=withdraw)
    worker.start()
    try:
        assert entered.wait(timeout=5)
        state, balances = pool.state_and_shares()
        assert sum(balances.values()) == state.total_shares
        restored_state, restored_balances = state_from_snapshot(snapshot_from_pool(pool).data)
        assert sum(restored_balances.values()) == restored_state.total_shares
    finally:
        release.set()
        worker.join(timeout=5)

    assert errors == []
    assert pool.balance_of("provider") == pool.total_supply() == 15000


# -- events ----------------------------------------------------------------------


def test_events_are_emitted_after_commit() -> None:
    pool, abc, defn = _new_pool()
    received = []
    pool.subscribe(lambda ev: received.append((ev, pool.get_reserves())))

    _fund(abc, "provider", 20000)
    _fund(defn, "provider", 20000)
    pool.add_liquidity(20000, 20000, caller="provider")
    _fund(abc, "trader", 20000)
    pool.swap(abc, 20000, caller="trader")
    pool.remove_liquidity(10000, caller="provider")

    kinds = [ev.kind for ev, _ in received]
    assert kinds == [EventKind.LIQUIDITY_ADDED, EventKind.SWAP, EventKind.LIQUIDITY_REMOVED]
    assert [ev for ev, _ in received] == list(pool.events)

    added, reserves_seen = received[0]
    assert (added.actor, added.amount_a, added.amount_b, added.shares) == ("provider", 20000, 20000, 20000)
    assert reserves_seen == (20000, 20000)

    swapped = received[1][0]
    assert swapped.to_dict() == {
        "event": "Swap",
        "pool_id": pool.pool_id,
        "actor": "trader",
        "asset_in": "ABC",
        "asset_out": "DEF",
        "amount_in": 20000,
        "amount_out": 9984,
    }

    removed = received[2][0]
    assert (removed.amount_a, removed.amount_b, removed.shares) == (20000, 5008, 10000)


def test_listener_may_call_back_into_pool() -> None:
    pool, abc, defn = _seeded_pool()
    _fund(abc, "trader", 2000)
    follow_ups = []

    def listener(ev):
        if ev.kind is EventKind.SWAP and not follow_ups:
            follow_ups.append(pool.swap(abc, 1000, caller="trader"))

    pool.subscribe(listener)
    pool.swap(abc, 1000, caller="trader")

    assert len(follow_ups) == 1
    assert len([e for e in pool.events if e.kind is EventKind.SWAP]) == 2
