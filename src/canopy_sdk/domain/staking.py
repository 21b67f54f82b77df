"""Multi-rewards staking value objects."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class StakingPoolInfo:
    pool_address: str
    staking_token: str
    reward_tokens: list[str]
    total_subscribed: int
    owner: str = ""


@dataclass(frozen=True)
class RewardData:
    rewards_distributor: str
    rewards_duration: int
    period_finish: int
    last_update_time: int
    reward_rate: int
    reward_per_token_stored: int


@dataclass(frozen=True)
class PendingReward:
    pool_address: str
    reward_token: str
    amount: int


@dataclass(frozen=True)
class UserStakingPosition:
    """A user's stake for one token.

    Pending rewards only cover pools the user is subscribed to.
    """

    staking_token: str
    total_staked: int
    subscribed_pools: list[str]
    pending_rewards: list[PendingReward] = field(default_factory=list)


@dataclass(frozen=True)
class StakingPoolRecord:
    """A staking pool as indexed by the rewards GraphQL service."""

    id: str
    staking_token: str
    creator: str = ""
    reward_tokens: list[str] = field(default_factory=list)
    subscriber_count: int = 0
    total_subscribed: str = "0"
    created_at: str = ""
