from __future__ import annotations

import base64
import logging
import struct
from collections import defaultdict
from typing import Dict, Iterable, List, Set, Tuple

import base58

from .project_constants import SOLANA_BURN_ADDRESS
from .rpc import RpcClient
from .shares import HolderBalance

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"

log = logging.getLogger(__name__)


def parse_owner_and_amount(account_data: bytes) -> Tuple[str, int] | None:
    """
    Token account layout shared by classic and Token-2022:
    Mint(0-32) | Owner(32-64) | Amount(64-72, u64 LE)
    """
    if len(account_data) < 72:
        return None

    owner = base58.b58encode(account_data[32:64]).decode("ascii")
    (amount,) = struct.unpack("<Q", account_data[64:72])
    return owner, amount


def aggregate_balances_from_b64(b64_items: Iterable[str]) -> Dict[str, int]:
    """Sum raw balances per owner; one owner may hold several token accounts."""
    balances: Dict[str, int] = defaultdict(int)
    skipped = 0

    for b64_str in b64_items:
        try:
            raw = base64.b64decode(b64_str, validate=True)
        except ValueError:
            skipped += 1
            continue

        parsed = parse_owner_and_amount(raw)
        if not parsed:
            skipped += 1
            continue

        owner, amount = parsed
        if amount > 0:
            balances[owner] += amount

    if skipped:
        log.warning("Skipped %d undecodable token accounts", skipped)
    return dict(balances)


def to_holder_balances(
    owner_to_balance: Dict[str, int],
    excluded: Set[str],
    min_raw_balance: int = 1,
) -> List[HolderBalance]:
    holders: List[HolderBalance] = []
    for addr, bal in owner_to_balance.items():
        if addr in excluded or addr == SOLANA_BURN_ADDRESS:
            continue
        if bal < min_raw_balance:
            continue
        holders.append(HolderBalance(addr, int(bal)))

    # Deterministic ordering (critical for reproducibility)
    holders.sort(key=lambda h: h.address)
    return holders


def fetch_holder_balances(
    rpc: RpcClient, mint: str, excluded: Set[str]
) -> List[HolderBalance]:
    log.info("Scanning classic SPL Token program...")
    items = rpc.get_program_accounts_base64(
        program_id=TOKEN_PROGRAM_ID, mint=mint, classic_token_program=True
    )
    log.info("Scanning Token-2022 program...")
    items += rpc.get_program_accounts_base64(
        program_id=TOKEN_2022_PROGRAM_ID, mint=mint, classic_token_program=False
    )
    log.info("Accounts fetched  : %d", len(items))

    owner_to_balance = aggregate_balances_from_b64(items)
    log.info("Unique owners     : %d", len(owner_to_balance))
    return to_holder_balances(owner_to_balance, excluded)


def load_excluded_wallets(path: str | None) -> Set[str]:
    """One wallet per line; `#` starts a comment, inline or whole-line."""
    if not path:
        return set()
    with open(path, "r", encoding="utf-8") as f:
        wallets = {line.split("#", 1)[0].strip() for line in f}
    wallets.discard("")
    log.info("Excluded wallets  : %d (from %s)", len(wallets), path)
    return wallets
