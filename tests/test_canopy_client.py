from __future__ import annotations

import asyncio

import pytest

from canopy_sdk import CanopyClient, CanopyError, ErrorCode

TOKEN = "0x" + "44" * 32
USER = "0x" + "aa" * 32
POOL = "0x" + "5a" * 32
COIN = "0x1::aptos_coin::AptosCoin"
S1 = "0x" + "01" * 32


@pytest.fixture
def client_for(settings, make_view):
    def _make(responses=None, **overrides):
        cfg = settings.model_copy(update=overrides) if overrides else settings
        return CanopyClient(cfg, view=make_view(responses or {}))

    return _make


@pytest.mark.asyncio
async def test_deposit_end_to_end(client_for, raw_vault, modules):
    vault = raw_vault(["0x1234"])
    client = client_for(
        {
            "::vault::vault_view": [vault],
            "::deposit::get_allocations_view": [
                {"data": [{"key": {"inner": S1}, "value": "1000"}]}
            ],
        }
    )

    payload = await client.deposit(vault["vault_address"], 1000)

    assert payload.to_dict() == {
        "function": f"{modules.router}::router::deposit_fa_with_coin_type",
        "typeArguments": ["0x" + "0" * 63 + "1::aptos_coin::AptosCoin"],
        "functionArguments": [vault["vault_address"], [], [], "1000", "0"],
    }


@pytest.mark.asyncio
async def test_withdraw_failure_keeps_code(client_for):
    client = client_for({"::vault::vault_view": RuntimeError("missing")})

    with pytest.raises(CanopyError) as exc:
        await client.withdraw("0x" + "11" * 32, 5)

    assert exc.value.code is ErrorCode.VAULT_NOT_FOUND


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("call", "code"),
    [
        (lambda c: c.deposit("", 1), ErrorCode.INVALID_VAULT_ADDRESS),
        (lambda c: c.deposit("abc", 1), ErrorCode.INVALID_VAULT_ADDRESS),
        (lambda c: c.deposit("0x1", 0), ErrorCode.AMOUNT_TOO_SMALL),
        (lambda c: c.deposit("0x1", 1.5), ErrorCode.AMOUNT_TOO_SMALL),
        (lambda c: c.withdraw("0x1", -1), ErrorCode.AMOUNT_TOO_SMALL),
        (lambda c: c.get_user_vault_position("bob", "0x1"), ErrorCode.INVALID_USER_ADDRESS),
        (lambda c: c.stake("token", 1), ErrorCode.INVALID_TOKEN_ADDRESS),
        (lambda c: c.get_user_earned(USER, "pool", TOKEN), ErrorCode.INVALID_POOL_ADDRESS),
        (lambda c: c.claim_rewards([]), ErrorCode.INVALID_INPUT),
    ],
)
async def test_inputs_validated_before_any_read(client_for, call, code):
    client = client_for()

    with pytest.raises(CanopyError) as exc:
        await call(client)

    assert exc.value.code is code
    client.view.view.assert_not_called()


@pytest.mark.asyncio
async def test_vault_address_format_message(client_for):
    with pytest.raises(CanopyError, match="must start with 0x"):
        await client_for().deposit("abc", 1)


@pytest.mark.asyncio
async def test_unstake_dispatches_on_token_form(client_for, modules):
    client = client_for()

    coin = await client.unstake(COIN, 10)
    assert coin.function == f"{modules.multi_rewards_router}::router::withdraw"
    assert coin.type_arguments == [COIN]
    assert coin.function_arguments == ["10"]

    fa = await client.unstake(TOKEN, 10)
    assert fa.function == f"{modules.multi_rewards}::multi_rewards::withdraw"
    assert fa.type_arguments == []
    assert fa.function_arguments == [TOKEN, "10"]


@pytest.mark.asyncio
async def test_stake_with_explicit_pools(client_for):
    client = client_for({"::is_user_subscribed": [False]})

    payload = await client.stake(TOKEN, 7, USER, [POOL])

    assert payload.function.endswith("::router::stake_and_subscribe_fa")
    assert payload.function_arguments == [TOKEN, "7", [POOL]]


@pytest.mark.asyncio
async def test_claim_rewards(client_for):
    payload = await client_for().claim_rewards([TOKEN])
    assert payload.function_arguments == [[TOKEN]]


@pytest.mark.asyncio
async def test_slow_build_times_out_as_network_error(client_for, raw_vault):
    async def slow(*args, **kwargs):
        await asyncio.sleep(1)

    client = client_for(build_timeout_seconds=0.01)
    client.view.view.side_effect = slow

    with pytest.raises(CanopyError) as exc:
        await client.deposit("0x" + "11" * 32, 100)

    assert exc.value.code is ErrorCode.NETWORK_ERROR
    assert "timed out" in exc.value.message


@pytest.mark.asyncio
async def test_user_position(client_for, raw_vault):
    vault = raw_vault()
    client = client_for(
        {
            "::vault::vault_view": [vault],
            "::primary_fungible_store::balance": ["10"],
            "::vault::shares_to_amount": ["11"],
        }
    )

    position = await client.get_user_vault_position(USER, vault["vault_address"])

    assert (position.shares_balance, position.asset_value) == (10, 11)
