from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

import base58

from .project_constants import DEFAULT_PLATFORM_FEE_PERCENT, MAX_PLATFORM_FEE_PERCENT
from .shares import InvalidArgument

BPS_PER_UNIT = 10_000

Percent = Union[Decimal, int, str]


def to_bps(name: str, percent: Percent) -> int:
    """Percent (e.g. "2.5") to basis points; at most two decimal places."""
    if isinstance(percent, (bool, float)):
        raise InvalidArgument(f"{name} must be a Decimal, int or str, got {percent!r}")
    try:
        value = Decimal(str(percent)) * 100
    except InvalidOperation:
        raise InvalidArgument(f"{name} is not a number: {percent!r}") from None
    if not value.is_finite():
        raise InvalidArgument(f"{name} is not a number: {percent!r}")
    if value != value.to_integral_value():
        raise InvalidArgument(f"{name} allows at most two decimal places: {percent}")
    return int(value)


def is_valid_address(address: str) -> bool:
    try:
        return len(base58.b58decode(address)) == 32
    except ValueError:
        return False


@dataclass(frozen=True)
class AllocationConfig:
    platform_fee_percent: Percent = DEFAULT_PLATFORM_FEE_PERCENT
    reward_distribution_percent: Percent = 0
    burn_percent: Percent = 0
    burn_token: Optional[str] = None

    def validate(self) -> None:
        fee = to_bps("platform_fee_percent", self.platform_fee_percent)
        reward = to_bps("reward_distribution_percent", self.reward_distribution_percent)
        burn = to_bps("burn_percent", self.burn_percent)

        if not 0 <= fee <= MAX_PLATFORM_FEE_PERCENT * 100:
            raise InvalidArgument(
                f"Platform fee must be between 0 and {MAX_PLATFORM_FEE_PERCENT}%"
            )
        if not 0 <= reward <= BPS_PER_UNIT:
            raise InvalidArgument("Reward distribution must be between 0 and 100%")
        if not 0 <= burn <= BPS_PER_UNIT:
            raise InvalidArgument("Burn percentage must be between 0 and 100%")
        if fee + reward + burn > BPS_PER_UNIT:
            raise InvalidArgument("Allocations add up to more than 100%")
        if burn > 0 and not self.burn_token:
            raise InvalidArgument("burn_token required when burn_percent > 0")
        if self.burn_token and not is_valid_address(self.burn_token):
            raise InvalidArgument(f"Invalid burn token address: {self.burn_token}")


@dataclass(frozen=True)
class AllocationSplit:
    platform_fee: int
    reward_pool: int
    burn: int
    owner: int


def split_amount(amount: int, config: AllocationConfig) -> AllocationSplit:
    """
    Split a collected raw amount into platform fee, holder reward pool,
    burn and owner buckets. Each bucket is floored; the owner gets what
    is left, so the four parts always add up to `amount`.
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise InvalidArgument(f"amount must be a non-negative integer, got {amount!r}")
    config.validate()

    fee = amount * to_bps("platform_fee_percent", config.platform_fee_percent) // BPS_PER_UNIT
    reward = (
        amount
        * to_bps("reward_distribution_percent", config.reward_distribution_percent)
        // BPS_PER_UNIT
    )
    burn = amount * to_bps("burn_percent", config.burn_percent) // BPS_PER_UNIT
    return AllocationSplit(
        platform_fee=fee,
        reward_pool=reward,
        burn=burn,
        owner=amount - fee - reward - burn,
    )
