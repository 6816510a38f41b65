from __future__ import annotations

import argparse
import logging
from decimal import Decimal
from typing import List, Optional

from .allocation import AllocationConfig, split_amount
from .config import Settings
from .project_constants import DEFAULT_PLATFORM_FEE_PERCENT
from .report import build_report, load_holders_file, verify_report, write_report
from .rpc import RpcClient
from .shares import (
    DEFAULT_POLICY,
    calculate_shares,
    calculate_total_shares,
    distribute_rewards,
)
from .token_accounts import fetch_holder_balances, load_excluded_wallets


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def to_tokens(raw_amount: int, decimals: int) -> str:
    return str(Decimal(raw_amount).scaleb(-decimals))


def _allocation_from_args(args: argparse.Namespace) -> AllocationConfig:
    return AllocationConfig(
        platform_fee_percent=args.platform_fee,
        reward_distribution_percent=args.reward_percent,
        burn_percent=args.burn_percent,
        burn_token=args.burn_token,
    )


def cmd_shares(args: argparse.Namespace) -> int:
    shares = calculate_shares(args.balance, args.decimals)
    print(f"Balance : {to_tokens(args.balance, args.decimals)}")
    print(f"Shares  : {shares}")
    return 0


def cmd_split(args: argparse.Namespace) -> int:
    split = split_amount(args.amount, _allocation_from_args(args))
    print(f"Platform fee : {split.platform_fee}")
    print(f"Reward pool  : {split.reward_pool}")
    print(f"Burn         : {split.burn}")
    print(f"Owner        : {split.owner}")
    return 0


def cmd_distribute(args: argparse.Namespace) -> int:
    settings = Settings.from_env(rpc_url_override=args.rpc_url)
    log = logging.getLogger("distribute")

    exclude_file = args.exclude_file or settings.excluded_wallets_file
    excluded = load_excluded_wallets(exclude_file)

    decimals = args.decimals
    if args.holders_file:
        holders = load_holders_file(args.holders_file)
        holders = [h for h in holders if h.address not in excluded]
        if decimals is None:
            decimals = settings.token_decimals
    else:
        rpc = RpcClient(settings.require_rpc_url(), timeout_s=args.timeout)
        try:
            if decimals is None:
                decimals = rpc.get_token_decimals(args.mint)
            holders = fetch_holder_balances(rpc, args.mint, excluded)
        finally:
            rpc.close()

    allocation = None
    pool = args.pool
    if args.reward_percent is not None:
        allocation = split_amount(args.pool, _allocation_from_args(args))
        pool = allocation.reward_pool
        log.info("Collected amount  : %d", args.pool)
        log.info("Reward pool       : %d", pool)

    results = distribute_rewards(holders, pool, decimals)
    total_shares = calculate_total_shares(holders, decimals)
    log.info("Holders           : %d", len(holders))
    log.info("Total shares      : %d", total_shares)
    if total_shares == 0:
        log.warning("No holder reaches one share; nothing will be distributed.")

    report = build_report(
        holders,
        results,
        pool,
        decimals,
        DEFAULT_POLICY,
        mint=args.mint,
        allocation=allocation,
    )
    write_report(report, args.out)

    meta = report["metadata"]
    print("========================================")
    print("SHARE-BASED REWARD DISTRIBUTION")
    print("========================================")
    print(f"Mint          : {args.mint or '(holders file)'}")
    print(f"Decimals      : {decimals}")
    print(f"Holders       : {len(holders)}")
    print(f"Total shares  : {total_shares}")
    print(f"Reward pool   : {pool}")
    print(f"Distributed   : {meta['distributed']}")
    print(f"Dust (kept)   : {meta['dust']}")
    print("----------------------------------------")
    for r in results:
        if r.reward:
            print(f"{r.address}: {r.shares} shares, {r.reward}")
    print("----------------------------------------")
    print(f"Wrote report: {args.out}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    result = verify_report(args.report)
    print("REPORT VERIFIED")
    print(f"Holders       : {result['holders']}")
    print(f"Total shares  : {result['total_shares']}")
    print(f"Reward pool   : {result['reward_pool']}")
    print(f"Distributed   : {result['distributed']}")
    print(f"Dust          : {result['dust']}")
    return 0


def _add_allocation_args(p: argparse.ArgumentParser, reward_default: Optional[str]) -> None:
    p.add_argument(
        "--platform-fee",
        default=DEFAULT_PLATFORM_FEE_PERCENT,
        help="Platform fee percent (0-10).",
    )
    p.add_argument(
        "--reward-percent",
        default=reward_default,
        help="Percent of the amount distributed to holders.",
    )
    p.add_argument("--burn-percent", default="0", help="Percent bought back and burned.")
    p.add_argument("--burn-token", default=None, help="Mint to buy back and burn.")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="solana-dividends",
        description="Share-based reward distribution for Solana token holders.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--rpc-url", default=None, help="Override RPC URL (else use env).")
    p.add_argument("--timeout", type=float, default=60.0, help="RPC timeout seconds.")

    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("shares", help="Shares for a single raw balance.")
    s.add_argument("--balance", required=True, type=int, help="Raw token balance.")
    s.add_argument("--decimals", type=int, default=6, help="Token decimals.")
    s.set_defaults(func=cmd_shares)

    sp = sub.add_parser("split", help="Split a collected amount by allocation.")
    sp.add_argument("--amount", required=True, type=int, help="Raw amount collected.")
    _add_allocation_args(sp, reward_default="0")
    sp.set_defaults(func=cmd_split)

    d = sub.add_parser("distribute", help="Compute a distribution and write a report.")
    src = d.add_mutually_exclusive_group(required=True)
    src.add_argument("--mint", default=None, help="Token mint to scan holders for.")
    src.add_argument(
        "--holders-file",
        default=None,
        help="JSON holders list or address->balance mapping (raw units).",
    )
    d.add_argument(
        "--pool",
        required=True,
        type=int,
        help=(
            "Raw reward amount. With --reward-percent this is the collected "
            "amount and only the reward share is distributed."
        ),
    )
    d.add_argument("--decimals", type=int, default=None, help="Token decimals.")
    d.add_argument("--exclude-file", default=None, help="Excluded wallets file.")
    d.add_argument("--out", default="distribution.json", help="Report output path.")
    _add_allocation_args(d, reward_default=None)
    d.set_defaults(func=cmd_distribute)

    v = sub.add_parser("verify", help="Recompute an existing report deterministically.")
    v.add_argument("--report", required=True, help="Path to distribution report.")
    v.set_defaults(func=cmd_verify)

    return p


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    raise SystemExit(args.func(args))
