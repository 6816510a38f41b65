from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from .allocation import AllocationSplit
from .project_constants import DUST_POLICY
from .shares import (
    DistributionResult,
    HolderBalance,
    InvalidArgument,
    SharePolicy,
    calculate_total_shares,
    distribute_rewards,
    undistributed_amount,
)

TOOL_NAME = "solana-dividends"
TOOL_VERSION = "1.0.0"


def load_holders_file(path: str) -> List[HolderBalance]:
    """
    Supports:
    1) [{"address": "...", "balance": 123}, ...]
    2) {"<address>": 123, ...}
    Balances may be ints or decimal strings (raw units).
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            j = json.load(f)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"Holders file is not valid JSON: {e}")

    if isinstance(j, dict):
        pairs = list(j.items())
    elif isinstance(j, list):
        try:
            pairs = [(item["address"], item["balance"]) for item in j]
        except (KeyError, TypeError):
            raise RuntimeError(
                "Holders list entries must be objects with address and balance."
            )
    else:
        raise RuntimeError("Holders file must be a JSON list or object.")

    # Same wallet listed twice counts once, as with per-owner aggregation.
    balances: Dict[str, int] = {}
    for addr, bal in pairs:
        if isinstance(bal, bool) or not isinstance(bal, (int, str)):
            raise RuntimeError(f"Holder {addr}: balance must be an integer, got {bal!r}")
        try:
            amount = int(bal)
        except ValueError:
            raise RuntimeError(f"Holder {addr}: balance is not an integer: {bal!r}")
        balances[str(addr)] = balances.get(str(addr), 0) + amount
    return [HolderBalance(addr, bal) for addr, bal in balances.items()]


def build_report(
    holders: Sequence[HolderBalance],
    results: Sequence[DistributionResult],
    total_reward_amount: int,
    decimals: int,
    policy: SharePolicy,
    mint: Optional[str] = None,
    allocation: Optional[AllocationSplit] = None,
) -> Dict[str, Any]:
    total_shares = calculate_total_shares(holders, decimals, policy)
    dust = undistributed_amount(results, total_reward_amount)

    metadata: Dict[str, Any] = {
        "tool": TOOL_NAME,
        "version": TOOL_VERSION,
        "generated_at_utc": datetime.now(timezone.utc).isoformat(),
        "token_mint": mint,
        "decimals": decimals,
        "tokens_per_share": policy.tokens_per_share,
        "max_shares_per_wallet": policy.max_shares_per_wallet,
        "total_shares": total_shares,
        # big ints; store as strings for safety
        "reward_pool": str(total_reward_amount),
        "distributed": str(total_reward_amount - dust),
        "dust": str(dust),
        "dust_policy": DUST_POLICY,
    }
    if allocation is not None:
        metadata["allocation"] = {
            "platform_fee": str(allocation.platform_fee),
            "reward_pool": str(allocation.reward_pool),
            "burn": str(allocation.burn),
            "owner": str(allocation.owner),
        }

    return {
        "metadata": metadata,
        # Same order as the input holders so anyone can re-run.
        "distribution": [
            {
                "address": r.address,
                "balance": str(h.balance),
                "shares": r.shares,
                "reward": str(r.reward),
            }
            for h, r in zip(holders, results)
        ],
    }


def write_report(report: Dict[str, Any], path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(report, f, indent=2)


def verify_report(report_path: str) -> Dict[str, Any]:
    with open(report_path, "r", encoding="utf-8") as f:
        try:
            report = json.load(f)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"Report is not valid JSON: {e}")

    try:
        meta = report["metadata"]
        entries = report["distribution"]
        decimals = int(meta["decimals"])
        pool = int(meta["reward_pool"])
        policy = SharePolicy(
            tokens_per_share=int(meta["tokens_per_share"]),
            max_shares_per_wallet=int(meta["max_shares_per_wallet"]),
        )
        holders = [HolderBalance(e["address"], int(e["balance"])) for e in entries]
        expected = [(int(e["shares"]), int(e["reward"])) for e in entries]
        expected_total_shares = int(meta["total_shares"])
        expected_dust = int(meta["dust"])
        expected_distributed = int(meta["distributed"])
    except (KeyError, TypeError, ValueError) as e:
        raise RuntimeError(f"Malformed report: {e}")

    try:
        results = distribute_rewards(holders, pool, decimals, policy)
    except InvalidArgument as e:
        raise RuntimeError(f"Report inputs rejected: {e}")

    total_shares = calculate_total_shares(holders, decimals, policy)
    if total_shares != expected_total_shares:
        raise RuntimeError(
            f"Total shares mismatch: report={expected_total_shares} recomputed={total_shares}"
        )

    for (shares, reward), r in zip(expected, results):
        if shares != r.shares or reward != r.reward:
            raise RuntimeError(
                f"Mismatch for {r.address}: report shares={shares} reward={reward} "
                f"recomputed shares={r.shares} reward={r.reward}"
            )

    dust = undistributed_amount(results, pool)
    if dust != expected_dust:
        raise RuntimeError(f"Dust mismatch: report={expected_dust} recomputed={dust}")
    if pool - dust != expected_distributed:
        raise RuntimeError(
            f"Distributed mismatch: report={expected_distributed} recomputed={pool - dust}"
        )

    return {
        "ok": True,
        "holders": len(results),
        "total_shares": total_shares,
        "reward_pool": pool,
        "distributed": pool - dust,
        "dust": dust,
    }
