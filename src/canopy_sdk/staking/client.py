"""Multi-rewards staking: payload builders and views."""

from __future__ import annotations

import asyncio
from typing import Any, Sequence

from ..addresses import validate_address, validate_address_list, validate_amount
from ..clients.view import ViewClient
from ..domain import (
    EntryFunctionPayload,
    PendingReward,
    RewardData,
    StakingPoolInfo,
    UserStakingPosition,
)
from ..errors import CanopyError, ErrorCode
from ..logger import get_logger
from ..results import recover
from ..settings import ModuleSettings
from .resolver import StakingPoolResolver

logger = get_logger(__name__)


def _as_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v.get("inner")) if isinstance(v, dict) else str(v) for v in value]


class MultiRewardsClient:
    """Builds staking payloads and reads staking state.

    Router entry points live in the ``multi_rewards_router`` package, plain
    stake/withdraw/subscribe calls and all views in ``multi_rewards``.
    """

    def __init__(
        self,
        view: ViewClient,
        modules: ModuleSettings,
        resolver: StakingPoolResolver | None = None,
    ):
        self._view = view
        self._modules = modules
        self.resolver = resolver or StakingPoolResolver()

    def _function(self, package: str, module: str, name: str) -> str:
        try:
            address = self._modules.require(package)
        except ValueError as exc:
            raise CanopyError(
                str(exc), ErrorCode.TRANSACTION_BUILD_FAILED, {"function": name}
            ) from exc
        return f"{address}::{module}::{name}"

    def _router_fn(self, name: str) -> str:
        return self._function("multi_rewards_router", "router", name)

    def _module_fn(self, name: str) -> str:
        return self._function("multi_rewards", "multi_rewards", name)

    # --- payload builders ---

    def stake(
        self, coin_type: str, amount: int, pools: Sequence[str] | None = None
    ) -> EntryFunctionPayload:
        """Stake a coin type, subscribing to ``pools`` when given."""
        validate_amount(amount, "Stake")
        if pools:
            validate_address_list(pools, "pool")
            return EntryFunctionPayload(
                self._router_fn("stake_and_subscribe"),
                [coin_type],
                [list(pools), str(amount)],
            )
        return EntryFunctionPayload(self._router_fn("stake"), [coin_type], [str(amount)])

    def stake_fa(
        self, staking_token: str, amount: int, pools: Sequence[str] | None = None
    ) -> EntryFunctionPayload:
        validate_address(staking_token, "token")
        validate_amount(amount, "Stake")
        if pools:
            validate_address_list(pools, "pool")
            return EntryFunctionPayload(
                self._router_fn("stake_and_subscribe_fa"),
                [],
                [staking_token, str(amount), list(pools)],
            )
        return EntryFunctionPayload(
            self._module_fn("stake"), [], [staking_token, str(amount)]
        )

    def stake_token(
        self,
        amount: int,
        token_creator: str,
        token_name: str,
        token_symbol: str,
        token_decimals: int,
        pools: Sequence[str] | None = None,
    ) -> EntryFunctionPayload:
        """Stake a token identified by creator/name, creating its FA wrapper if needed."""
        validate_amount(amount, "Stake")
        token_args = [token_creator, token_name, token_symbol, str(token_decimals)]
        if pools:
            validate_address_list(pools, "pool")
            return EntryFunctionPayload(
                self._router_fn("stake_and_subscribe_token"),
                [],
                [list(pools), str(amount), *token_args],
            )
        return EntryFunctionPayload(
            self._router_fn("stake_token"), [], [str(amount), *token_args]
        )

    def withdraw(self, coin_type: str, amount: int) -> EntryFunctionPayload:
        validate_amount(amount, "Withdraw")
        return EntryFunctionPayload(
            self._router_fn("withdraw"), [coin_type], [str(amount)]
        )

    def withdraw_fa(self, staking_token: str, amount: int) -> EntryFunctionPayload:
        validate_address(staking_token, "token")
        validate_amount(amount, "Withdraw")
        return EntryFunctionPayload(
            self._module_fn("withdraw"), [], [staking_token, str(amount)]
        )

    def unsubscribe_and_withdraw(
        self, coin_type: str, pools: Sequence[str], amount: int
    ) -> EntryFunctionPayload:
        validate_address_list(pools, "pool")
        validate_amount(amount, "Withdraw")
        return EntryFunctionPayload(
            self._router_fn("unsubscribe_and_withdraw"),
            [coin_type],
            [list(pools), str(amount)],
        )

    def unsubscribe_and_withdraw_fa(
        self, staking_token: str, pools: Sequence[str], amount: int
    ) -> EntryFunctionPayload:
        validate_address(staking_token, "token")
        validate_address_list(pools, "pool")
        validate_amount(amount, "Withdraw")
        return EntryFunctionPayload(
            self._router_fn("unsubscribe_and_withdraw_fa"),
            [],
            [staking_token, str(amount), list(pools)],
        )

    def claim_rewards(self, staking_tokens: Sequence[str]) -> EntryFunctionPayload:
        validate_address_list(staking_tokens, "token")
        return EntryFunctionPayload(
            self._router_fn("claim_rewards"), [], [list(staking_tokens)]
        )

    def create_staking_pool(self, coin_type: str) -> EntryFunctionPayload:
        return EntryFunctionPayload(self._router_fn("create_staking_pool"), [coin_type], [])

    def subscribe(self, pool: str) -> EntryFunctionPayload:
        validate_address(pool, "pool")
        return EntryFunctionPayload(self._module_fn("subscribe"), [], [pool])

    def unsubscribe(self, pool: str) -> EntryFunctionPayload:
        validate_address(pool, "pool")
        return EntryFunctionPayload(self._module_fn("unsubscribe"), [], [pool])

    async def stake_vault_shares(
        self,
        staking_token: str,
        amount: int,
        user_address: str | None = None,
        pool_addresses: Sequence[str] | None = None,
    ) -> EntryFunctionPayload:
        """Stake vault shares and subscribe to any pools the user is not in yet.

        Falls back to a plain ``multi_rewards::stake`` when the user is
        already subscribed to every resolved pool.
        """
        validate_address(staking_token, "token")
        validate_amount(amount, "Stake")
        if user_address is not None:
            validate_address(user_address, "user")
        if pool_addresses:
            validate_address_list(pool_addresses, "pool")

        try:
            pools = await self.resolver.resolve_pools(staking_token, pool_addresses)
            to_subscribe = pools
            if user_address:
                to_subscribe = await self.resolver.unsubscribed_pools(
                    user_address, pools, self.is_user_subscribed
                )

            if to_subscribe:
                return EntryFunctionPayload(
                    self._router_fn("stake_and_subscribe_fa"),
                    [],
                    [staking_token, str(amount), to_subscribe],
                )
            return EntryFunctionPayload(
                self._module_fn("stake"), [], [staking_token, str(amount)]
            )
        except Exception as exc:
            raise CanopyError.wrap(
                exc,
                "Failed to create staking transaction",
                ErrorCode.TRANSACTION_BUILD_FAILED,
                staking_token=staking_token,
                amount=str(amount),
            ) from exc

    # --- views ---

    async def _view_values(
        self, name: str, args: list[Any], error: str, **context: Any
    ) -> list[Any]:
        try:
            values = await self._view.view(self._module_fn(name), [], args)
            if not values:
                raise ValueError(f"empty result from {name}")
            return values
        except Exception as exc:
            raise CanopyError.wrap(exc, error, ErrorCode.NETWORK_ERROR, **context) from exc

    async def get_user_staked_balance(self, user_address: str, staking_token: str) -> int:
        (balance, *_) = await self._view_values(
            "get_user_staked_balance",
            [user_address, staking_token],
            "Failed to get user staked balance",
            user_address=user_address,
            staking_token=staking_token,
        )
        return int(balance)

    async def get_user_earned(
        self, user_address: str, pool: str, reward_token: str
    ) -> int:
        (earned, *_) = await self._view_values(
            "get_earned",
            [user_address, pool, reward_token],
            "Failed to get user earned rewards",
            user_address=user_address,
            pool=pool,
            reward_token=reward_token,
        )
        return int(earned)

    async def get_user_subscribed_pools(
        self, user_address: str, staking_token: str
    ) -> list[str]:
        (pools, *_) = await self._view_values(
            "get_user_subscribed_pools",
            [user_address, staking_token],
            "Failed to get user subscribed pools",
            user_address=user_address,
            staking_token=staking_token,
        )
        return _as_str_list(pools)

    async def get_pool_info(self, pool: str) -> StakingPoolInfo:
        staking_token, reward_tokens, total_subscribed, *_ = await self._view_values(
            "get_pool_info", [pool], "Failed to get pool info", pool=pool
        )
        if isinstance(staking_token, dict):
            staking_token = staking_token.get("inner", "")
        return StakingPoolInfo(
            pool_address=pool,
            staking_token=str(staking_token),
            reward_tokens=_as_str_list(reward_tokens),
            total_subscribed=int(total_subscribed),
        )

    async def get_reward_data(self, pool: str, reward_token: str) -> RewardData:
        values = await self._view_values(
            "get_reward_data",
            [pool, reward_token],
            "Failed to get reward data",
            pool=pool,
            reward_token=reward_token,
        )
        distributor, duration, period_finish, last_update, rate, per_token = values[:6]
        return RewardData(
            rewards_distributor=str(distributor),
            rewards_duration=int(duration),
            period_finish=int(period_finish),
            last_update_time=int(last_update),
            reward_rate=int(rate),
            reward_per_token_stored=int(per_token),
        )

    async def is_user_subscribed(self, user_address: str, pool: str) -> bool:
        (subscribed, *_) = await self._view_values(
            "is_user_subscribed",
            [user_address, pool],
            "Failed to check user subscription",
            user_address=user_address,
            pool=pool,
        )
        return bool(subscribed)

    async def _pool_rewards(self, user_address: str, pool: str) -> list[PendingReward]:
        info = await self.get_pool_info(pool)
        rewards = []
        for reward_token in info.reward_tokens:
            earned = await self.get_user_earned(user_address, pool, reward_token)
            if earned:
                rewards.append(PendingReward(pool, reward_token, earned))
        return rewards

    async def get_user_staking_position(
        self, user_address: str, staking_token: str
    ) -> UserStakingPosition:
        """Staked balance, subscribed pools, and non-zero pending rewards.

        Rewards are only read for subscribed pools; a pool whose reads fail
        contributes no rewards.
        """
        try:
            staked, pools = await asyncio.gather(
                self.get_user_staked_balance(user_address, staking_token),
                self.get_user_subscribed_pools(user_address, staking_token),
            )
        except Exception as exc:
            raise CanopyError.wrap(
                exc,
                "Failed to get user staking position",
                ErrorCode.NETWORK_ERROR,
                user_address=user_address,
                staking_token=staking_token,
            ) from exc

        pending: list[PendingReward] = []
        for pool in pools:
            pending.extend(
                await recover(
                    self._pool_rewards(user_address, pool),
                    [],
                    message="Failed to get rewards for pool",
                    log=logger,
                    pool=pool,
                )
            )

        return UserStakingPosition(
            staking_token=staking_token,
            total_staked=staked,
            subscribed_pools=pools,
            pending_rewards=pending,
        )
