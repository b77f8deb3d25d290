#!/usr/bin/env python3
"""Offline walkthrough of a local pool deployment.

Deploys two in-memory assets and a pool, then runs a deposit, a swap and its
reverse, and a full withdrawal, printing reserves and the snapshot commitment
after each step.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pairpool.core.config import PoolConfig, load_pool_config
from pairpool.core.errors import PoolError
from pairpool.integration.deploy import Deployment, deploy_pool
from pairpool.integration.snapshot import snapshot_from_pool


def _report(dep: Deployment, label: str) -> None:
    pool = dep.pool
    ra, rb = pool.get_reserves()
    print(
        f"[pool-demo] {label}: reserves=({ra}, {rb}) total_shares={pool.total_supply()} "
        f"k={pool.constant_product()} commitment={snapshot_from_pool(pool).commitment_hex()[:18]}..."
    )


def _fund(dep: Deployment, account: str, amount_a: int, amount_b: int) -> None:
    if amount_a and not dep.asset_a.transfer(dep.deployer, account, amount_a):
        raise SystemExit(f"deployer cannot fund {amount_a} {dep.asset_a.symbol}")
    if amount_b and not dep.asset_b.transfer(dep.deployer, account, amount_b):
        raise SystemExit(f"deployer cannot fund {amount_b} {dep.asset_b.symbol}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    p = argparse.ArgumentParser()
    p.add_argument("--config", default="", help="Pool config YAML (defaults to built-in ABC/DEF deployment)")
    p.add_argument("--deposit", type=int, nargs=2, default=[20000, 20000], metavar=("A", "B"))
    p.add_argument("--swap-in", type=int, default=20000, help="Amount of asset A to swap for B")
    p.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = p.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    config = load_pool_config(args.config) if args.config else PoolConfig()
    dep = deploy_pool(config)
    pool = dep.pool
    print(f"[pool-demo] pool_id={pool.pool_id} fee_bps={pool.get_fee_bps()}")

    provider, trader = "provider", "trader"
    amount_a, amount_b = args.deposit
    try:
        _fund(dep, provider, amount_a, amount_b)
        dep.asset_a.approve(provider, amount_a)
        dep.asset_b.approve(provider, amount_b)
        minted = pool.add_liquidity(amount_a, amount_b, caller=provider)
        print(f"[pool-demo] {provider} minted {minted} shares")
        _report(dep, "after deposit")

        _fund(dep, trader, args.swap_in, 0)
        dep.asset_a.approve(trader, args.swap_in)
        out_b = pool.swap(dep.asset_a, args.swap_in, caller=trader)
        print(f"[pool-demo] {trader} swapped {args.swap_in} {dep.asset_a.symbol} -> {out_b} {dep.asset_b.symbol}")
        _report(dep, "after swap")

        dep.asset_b.approve(trader, out_b)
        back_a = pool.swap(dep.asset_b, out_b, caller=trader)
        print(f"[pool-demo] {trader} swapped {out_b} {dep.asset_b.symbol} -> {back_a} {dep.asset_a.symbol}")
        _report(dep, "after reverse swap")

        got_a, got_b = pool.remove_liquidity(pool.balance_of(provider), caller=provider)
        print(f"[pool-demo] {provider} withdrew ({got_a}, {got_b})")
        _report(dep, "after withdrawal")
    except PoolError as exc:
        print(f"[pool-demo] FAIL: {type(exc).__name__}: {exc}", file=sys.stderr)
        return 1

    for event in pool.events:
        print(f"[pool-demo] event {event.to_dict()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
