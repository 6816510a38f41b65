from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from .project_constants import (
    DEFAULT_TOKEN_DECIMALS,
    MAX_SHARES_PER_WALLET,
    TOKENS_PER_SHARE,
)

log = logging.getLogger(__name__)


class InvalidArgument(ValueError):
    pass


def _require_int(name: str, value: object) -> None:
    # bool is an int subclass; True is not a balance.
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidArgument(f"{name} must be non-negative, got {value}")


@dataclass(frozen=True)
class SharePolicy:
    tokens_per_share: int = TOKENS_PER_SHARE
    max_shares_per_wallet: int = MAX_SHARES_PER_WALLET

    def __post_init__(self) -> None:
        _require_int("tokens_per_share", self.tokens_per_share)
        _require_int("max_shares_per_wallet", self.max_shares_per_wallet)
        if self.tokens_per_share <= 0:
            raise InvalidArgument("tokens_per_share must be positive")

    @property
    def max_tokens_for_shares(self) -> int:
        return self.tokens_per_share * self.max_shares_per_wallet


DEFAULT_POLICY = SharePolicy()


@dataclass(frozen=True)
class HolderBalance:
    address: str
    balance: int  # raw units


@dataclass(frozen=True)
class DistributionResult:
    address: str
    shares: int
    reward: int  # raw units of the reward token


def _shares_unchecked(balance: int, decimals: int, policy: SharePolicy) -> int:
    whole_tokens = balance // (10**decimals)
    return min(whole_tokens // policy.tokens_per_share, policy.max_shares_per_wallet)


def calculate_shares(
    balance: int,
    decimals: int = DEFAULT_TOKEN_DECIMALS,
    policy: SharePolicy = DEFAULT_POLICY,
) -> int:
    """
    Shares for a raw balance: one per `tokens_per_share` whole tokens,
    capped at `max_shares_per_wallet`. Integer division only, so no
    precision is lost for balances beyond 2**53.
    """
    _require_int("balance", balance)
    _require_int("decimals", decimals)
    return _shares_unchecked(balance, decimals, policy)


def _check_holders(holders: Sequence[HolderBalance]) -> None:
    for h in holders:
        _require_int(f"balance of {h.address}", h.balance)


def calculate_total_shares(
    holders: Iterable[HolderBalance],
    decimals: int = DEFAULT_TOKEN_DECIMALS,
    policy: SharePolicy = DEFAULT_POLICY,
) -> int:
    holders = list(holders)
    _require_int("decimals", decimals)
    _check_holders(holders)
    return sum(_shares_unchecked(h.balance, decimals, policy) for h in holders)


def calculate_holder_reward(
    holder_balance: int,
    total_reward_amount: int,
    total_shares: int,
    decimals: int = DEFAULT_TOKEN_DECIMALS,
    policy: SharePolicy = DEFAULT_POLICY,
) -> int:
    """
    floor(total_reward_amount * holder_shares / total_shares).

    `total_shares` must come from calculate_total_shares over the same batch.
    The remainder of the floor division (dust) is not handed out here.
    """
    _require_int("total_reward_amount", total_reward_amount)
    _require_int("total_shares", total_shares)
    holder_shares = calculate_shares(holder_balance, decimals, policy)
    if holder_shares > total_shares:
        raise InvalidArgument(
            f"holder has {holder_shares} shares but total_shares is {total_shares}"
        )
    if total_shares == 0 or holder_shares == 0:
        return 0
    return (total_reward_amount * holder_shares) // total_shares


def distribute_rewards(
    holders: Iterable[HolderBalance],
    total_reward_amount: int,
    decimals: int = DEFAULT_TOKEN_DECIMALS,
    policy: SharePolicy = DEFAULT_POLICY,
) -> List[DistributionResult]:
    holders = list(holders)
    _require_int("total_reward_amount", total_reward_amount)
    _require_int("decimals", decimals)
    _check_holders(holders)

    # Computed once; every holder is measured against the same total.
    total_shares = calculate_total_shares(holders, decimals, policy)
    log.debug(
        "Distributing %d across %d holders (%d shares)",
        total_reward_amount,
        len(holders),
        total_shares,
    )

    results: List[DistributionResult] = []
    for h in holders:
        shares = calculate_shares(h.balance, decimals, policy)
        reward = calculate_holder_reward(
            h.balance, total_reward_amount, total_shares, decimals, policy
        )
        results.append(DistributionResult(h.address, shares, reward))
    return results


def undistributed_amount(
    results: Iterable[DistributionResult], total_reward_amount: int
) -> int:
    """Dust left in the pool after a distribution."""
    _require_int("total_reward_amount", total_reward_amount)
    distributed = sum(r.reward for r in results)
    if distributed > total_reward_amount:
        raise InvalidArgument(
            f"Distributed {distributed} exceeds pool {total_reward_amount}"
        )
    return total_reward_amount - distributed
