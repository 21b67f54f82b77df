from __future__ import annotations

import pytest

from canopy_sdk.errors import CanopyError, ErrorCode
from canopy_sdk.settings import ModuleSettings
from canopy_sdk.staking import MultiRewardsClient, StakingPoolResolver

TOKEN = "0x" + "44" * 32
USER = "0x" + "aa" * 32
POOL_A = "0x" + "5a" * 32
POOL_B = "0x" + "5b" * 32
POOL_C = "0x" + "5c" * 32
REWARD_X = "0x" + "7a" * 32
REWARD_Y = "0x" + "7b" * 32
COIN = "0x1::aptos_coin::AptosCoin"


@pytest.fixture
def client_for(make_view, modules):
    def _make(responses=None, module_settings=None):
        return MultiRewardsClient(
            make_view(responses or {}),
            module_settings or modules,
            StakingPoolResolver(),
        )

    return _make


def _subscribed(*pools: str):
    def answer(type_args, args):
        return [args[1] in pools]

    return answer


class TestStakeVaultShares:
    @pytest.mark.asyncio
    async def test_subscribes_only_to_missing_pools(self, client_for, modules):
        client = client_for({"::is_user_subscribed": _subscribed(POOL_A, POOL_C)})

        payload = await client.stake_vault_shares(
            TOKEN, 1000, USER, [POOL_A, POOL_B, POOL_C]
        )

        assert payload.function == (
            f"{modules.multi_rewards_router}::router::stake_and_subscribe_fa"
        )
        assert payload.type_arguments == []
        assert payload.function_arguments == [TOKEN, "1000", [POOL_B]]

    @pytest.mark.asyncio
    async def test_fully_subscribed_plain_stake(self, client_for, modules):
        client = client_for({"::is_user_subscribed": _subscribed(POOL_A, POOL_B, POOL_C)})

        payload = await client.stake_vault_shares(
            TOKEN, 1000, USER, [POOL_A, POOL_B, POOL_C]
        )

        assert payload.function == f"{modules.multi_rewards}::multi_rewards::stake"
        assert payload.function_arguments == [TOKEN, "1000"]

    @pytest.mark.asyncio
    async def test_without_user_subscribes_to_all(self, client_for):
        client = client_for({"::is_user_subscribed": AssertionError("not expected")})

        payload = await client.stake_vault_shares(TOKEN, 5, pool_addresses=[POOL_A, POOL_B])

        assert payload.function_arguments == [TOKEN, "5", [POOL_A, POOL_B]]

    @pytest.mark.asyncio
    async def test_failed_check_counts_as_unsubscribed(self, client_for):
        client = client_for({"::is_user_subscribed": RuntimeError("node down")})

        payload = await client.stake_vault_shares(TOKEN, 5, USER, [POOL_A])

        assert payload.function.endswith("::router::stake_and_subscribe_fa")
        assert payload.function_arguments[2] == [POOL_A]

    @pytest.mark.asyncio
    async def test_no_pool_source(self, client_for):
        client = client_for()

        with pytest.raises(CanopyError) as exc:
            await client.stake_vault_shares(TOKEN, 5, USER)

        assert exc.value.code is ErrorCode.STAKING_POOLS_NOT_FOUND

    @pytest.mark.asyncio
    async def test_validates_inputs(self, client_for):
        client = client_for()

        with pytest.raises(CanopyError) as exc:
            await client.stake_vault_shares(TOKEN, 0)
        assert exc.value.code is ErrorCode.AMOUNT_TOO_SMALL

        with pytest.raises(CanopyError) as exc:
            await client.stake_vault_shares(TOKEN, 1, "not-an-address")
        assert exc.value.code is ErrorCode.INVALID_USER_ADDRESS

        with pytest.raises(CanopyError) as exc:
            await client.stake_vault_shares(TOKEN, 1, pool_addresses=["0xzz"])
        assert exc.value.code is ErrorCode.INVALID_POOL_ADDRESS

    @pytest.mark.asyncio
    async def test_missing_router_address(self, client_for, modules):
        client = client_for(
            module_settings=modules.model_copy(update={"multi_rewards_router": None})
        )

        with pytest.raises(CanopyError, match="multi_rewards_router") as exc:
            await client.stake_vault_shares(TOKEN, 1, pool_addresses=[POOL_A])

        assert exc.value.code is ErrorCode.TRANSACTION_BUILD_FAILED


class TestPayloads:
    def test_stake_coin(self, client_for, modules):
        client = client_for()

        plain = client.stake(COIN, 10)
        assert plain.function == f"{modules.multi_rewards_router}::router::stake"
        assert plain.type_arguments == [COIN]
        assert plain.function_arguments == ["10"]

        subscribed = client.stake(COIN, 10, [POOL_A])
        assert subscribed.function.endswith("::router::stake_and_subscribe")
        assert subscribed.function_arguments == [[POOL_A], "10"]

    def test_stake_fa(self, client_for, modules):
        client = client_for()

        assert client.stake_fa(TOKEN, 3).function == (
            f"{modules.multi_rewards}::multi_rewards::stake"
        )
        assert client.stake_fa(TOKEN, 3, [POOL_A]).function_arguments == [
            TOKEN,
            "3",
            [POOL_A],
        ]

    def test_stake_token(self, client_for):
        client = client_for()

        payload = client.stake_token(10, "0xcreator", "Token", "TKN", 8)
        assert payload.function.endswith("::router::stake_token")
        assert payload.function_arguments == ["10", "0xcreator", "Token", "TKN", "8"]

        payload = client.stake_token(10, "0xcreator", "Token", "TKN", 8, [POOL_A])
        assert payload.function.endswith("::router::stake_and_subscribe_token")
        assert payload.function_arguments[:2] == [[POOL_A], "10"]

    def test_withdraw_variants(self, client_for, modules):
        client = client_for()

        assert client.withdraw(COIN, 4).function == (
            f"{modules.multi_rewards_router}::router::withdraw"
        )
        assert client.withdraw_fa(TOKEN, 4).function == (
            f"{modules.multi_rewards}::multi_rewards::withdraw"
        )
        assert client.withdraw_fa(TOKEN, 4).function_arguments == [TOKEN, "4"]

        coin = client.unsubscribe_and_withdraw(COIN, [POOL_A], 4)
        assert coin.type_arguments == [COIN]
        assert coin.function_arguments == [[POOL_A], "4"]

        fa = client.unsubscribe_and_withdraw_fa(TOKEN, [POOL_A], 4)
        assert fa.function.endswith("::router::unsubscribe_and_withdraw_fa")
        assert fa.function_arguments == [TOKEN, "4", [POOL_A]]

    def test_claim_rewards(self, client_for):
        client = client_for()

        payload = client.claim_rewards([TOKEN])
        assert payload.function.endswith("::router::claim_rewards")
        assert payload.function_arguments == [[TOKEN]]

        with pytest.raises(CanopyError) as exc:
            client.claim_rewards([])
        assert exc.value.code is ErrorCode.INVALID_INPUT

    def test_pool_management(self, client_for):
        client = client_for()

        assert client.create_staking_pool(COIN).type_arguments == [COIN]
        assert client.subscribe(POOL_A).function.endswith("::multi_rewards::subscribe")
        assert client.unsubscribe(POOL_A).function_arguments == [POOL_A]
        with pytest.raises(CanopyError) as exc:
            client.subscribe("pool")
        assert exc.value.code is ErrorCode.INVALID_POOL_ADDRESS

    def test_missing_module_address(self, client_for):
        client = client_for(module_settings=ModuleSettings())

        with pytest.raises(CanopyError) as exc:
            client.withdraw_fa(TOKEN, 1)
        assert exc.value.code is ErrorCode.TRANSACTION_BUILD_FAILED


class TestViews:
    @pytest.mark.asyncio
    async def test_scalar_views(self, client_for):
        client = client_for(
            {
                "::get_user_staked_balance": ["500"],
                "::get_earned": ["12"],
                "::is_user_subscribed": [False],
            }
        )

        assert await client.get_user_staked_balance(USER, TOKEN) == 500
        assert await client.get_user_earned(USER, POOL_A, REWARD_X) == 12
        assert await client.is_user_subscribed(USER, POOL_A) is False

    @pytest.mark.asyncio
    async def test_pool_info_and_reward_data(self, client_for):
        client = client_for(
            {
                "::get_pool_info": [{"inner": TOKEN}, [{"inner": REWARD_X}], "900"],
                "::get_reward_data": ["0xdist", "604800", "1700", "1600", "5", "77"],
            }
        )

        info = await client.get_pool_info(POOL_A)
        assert info.staking_token == TOKEN
        assert info.reward_tokens == [REWARD_X]
        assert info.total_subscribed == 900

        data = await client.get_reward_data(POOL_A, REWARD_X)
        assert data.rewards_distributor == "0xdist"
        assert data.rewards_duration == 604800
        assert data.reward_per_token_stored == 77

    @pytest.mark.asyncio
    async def test_view_failure_is_network_error(self, client_for):
        client = client_for({"::get_user_staked_balance": RuntimeError("timeout")})

        with pytest.raises(CanopyError) as exc:
            await client.get_user_staked_balance(USER, TOKEN)

        assert exc.value.code is ErrorCode.NETWORK_ERROR

    @pytest.mark.asyncio
    async def test_empty_view_result_is_network_error(self, client_for):
        client = client_for({"::get_earned": []})

        with pytest.raises(CanopyError) as exc:
            await client.get_user_earned(USER, POOL_A, REWARD_X)

        assert exc.value.code is ErrorCode.NETWORK_ERROR

    @pytest.mark.asyncio
    async def test_staking_position(self, client_for):
        def pool_info(type_args, args):
            if args[0] == POOL_B:
                raise RuntimeError("pool view failed")
            return [{"inner": TOKEN}, [REWARD_X, REWARD_Y], "100"]

        def earned(type_args, args):
            return ["8" if args[2] == REWARD_X else "0"]

        client = client_for(
            {
                "::get_user_staked_balance": ["250"],
                "::get_user_subscribed_pools": [[{"inner": POOL_A}, POOL_B]],
                "::get_pool_info": pool_info,
                "::get_earned": earned,
            }
        )

        position = await client.get_user_staking_position(USER, TOKEN)

        assert position.total_staked == 250
        assert position.subscribed_pools == [POOL_A, POOL_B]
        assert [(r.pool_address, r.reward_token, r.amount) for r in position.pending_rewards] == [
            (POOL_A, REWARD_X, 8)
        ]

    @pytest.mark.asyncio
    async def test_staking_position_balance_failure(self, client_for):
        client = client_for(
            {
                "::get_user_staked_balance": RuntimeError("down"),
                "::get_user_subscribed_pools": [[]],
            }
        )

        with pytest.raises(CanopyError) as exc:
            await client.get_user_staking_position(USER, TOKEN)

        assert exc.value.code is ErrorCode.NETWORK_ERROR
