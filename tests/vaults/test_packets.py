from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest

from canopy_sdk.constants import MOVEPOSITION_NAME_MAP, MOVEPOSITION_VIRTUAL_COIN_MAP
from canopy_sdk.domain import AllocationMap, PacketData, VaultView
from canopy_sdk.errors import CanopyError, ErrorCode
from canopy_sdk.platforms import MOVEPOSITION
from canopy_sdk.vaults.packets import PacketGenerator, create_packet_arrays, pair_legs

USDC_FA = "0x83121c9f9b0527d1f056e21a950d6bf3b9e9e2e8353d0e95ccea726713cbea39"
USDC_VIRTUAL = (
    "0xccd2621d2897d407e06d18e6ebe3be0e6d9b61f1e809dd49360522b9105812cf::coins::USDC"
)

S1 = "0x" + "01" * 32
S2 = "0x" + "02" * 32
S3 = "0x" + "03" * 32


def _vault(asset: str = USDC_FA) -> VaultView:
    return VaultView("0xvault", asset, "0xshares")


@pytest.fixture
def moveposition() -> AsyncMock:
    client = AsyncMock()
    client.get_portfolio = AsyncMock(return_value={"collaterals": [], "liabilities": []})

    async def create_packet(operation, request):
        return "0x" + request["signerPubkey"][-2:] * 2

    client.create_packet = AsyncMock(side_effect=create_packet)
    return client


def _generator(view, moveposition) -> PacketGenerator:
    return PacketGenerator(
        view, moveposition, MOVEPOSITION_NAME_MAP, MOVEPOSITION_VIRTUAL_COIN_MAP
    )


def test_virtual_coin_lookup_is_normalized(make_view):
    generator = _generator(make_view({}), None)
    assert generator.virtual_coin_for(_vault(USDC_FA.upper().replace("0X", "0x"))) == USDC_VIRTUAL
    assert generator.virtual_coin_for(_vault("0x1234")) == ""


@pytest.mark.asyncio
async def test_deposit_packets_follow_input_order(make_view, moveposition):
    generator = _generator(make_view({}), moveposition)

    packets = await generator.generate(
        [S2, S1], [10, 20], "deposit", _vault(), MOVEPOSITION
    )

    assert [p.strategy for p in packets] == [S2, S1]
    assert [p.packet for p in packets] == [b"\x02\x02", b"\x01\x01"]
    request = moveposition.create_packet.await_args_list[0].args[1]
    assert request["amount"] == "10"
    assert request["brokerName"] == "movement-usdc"
    assert request["network"] == "aptos"
    assert moveposition.create_packet.await_args_list[0].args[0] == "deposit"


@pytest.mark.asyncio
async def test_one_failure_does_not_affect_others(make_view, moveposition, caplog):
    async def create_packet(operation, request):
        if request["signerPubkey"] == S2:
            raise RuntimeError("signer unavailable")
        return "0xabcd"

    moveposition.create_packet.side_effect = create_packet
    generator = _generator(make_view({}), moveposition)

    with caplog.at_level(logging.WARNING):
        packets = await generator.generate(
            [S1, S2, S3], [1, 2, 3], "deposit", _vault(), MOVEPOSITION
        )

    assert [p.is_empty for p in packets] == [False, True, False]
    assert packets[0].packet == b"\xab\xcd"
    assert "Failed to generate packet" in caplog.text


@pytest.mark.asyncio
async def test_zero_amount_skips_api(make_view, moveposition):
    generator = _generator(make_view({}), moveposition)

    packets = await generator.generate([S1], [0], "deposit", _vault(), MOVEPOSITION)

    assert packets == [PacketData(S1)]
    moveposition.create_packet.assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_broker_gives_empty_packets(make_view, moveposition):
    generator = _generator(make_view({}), moveposition)

    packets = await generator.generate(
        [S1], [5], "deposit", _vault("0x1234"), MOVEPOSITION
    )

    assert packets[0].is_empty
    moveposition.get_portfolio.assert_not_awaited()


@pytest.mark.asyncio
async def test_without_api_client_packets_are_empty(make_view):
    generator = _generator(make_view({}), None)

    packets = await generator.generate([S1, S2], [5, 6], "deposit", _vault(), MOVEPOSITION)

    assert all(p.is_empty for p in packets)


@pytest.mark.asyncio
async def test_withdraw_uses_exact_amount(make_view, moveposition):
    seen = []

    def exact(type_args, args):
        seen.append((type_args, args))
        return ["1234"]

    view = make_view({"::strategy::withdrawal_amount_view": exact})
    generator = _generator(view, moveposition)

    packets = await generator.generate([S1], [1000], "withdraw", _vault(), MOVEPOSITION)

    assert not packets[0].is_empty
    assert seen == [([USDC_VIRTUAL], [S1, "1000"])]
    operation, request = moveposition.create_packet.await_args.args
    assert operation == "withdraw"
    assert request["amount"] == "1234"
    view.view.assert_awaited_once()
    assert view.view.await_args.args[0].startswith(MOVEPOSITION.concrete_address)


@pytest.mark.asyncio
async def test_withdraw_exact_amount_zero_gives_empty_packet(make_view, moveposition):
    view = make_view({"::strategy::withdrawal_amount_view": ["0"]})
    generator = _generator(view, moveposition)

    packets = await generator.generate([S1], [1000], "withdraw", _vault(), MOVEPOSITION)

    assert packets[0].is_empty
    moveposition.create_packet.assert_not_awaited()


@pytest.mark.asyncio
async def test_withdraw_exact_amount_failure_gives_empty_packet(make_view, moveposition):
    view = make_view({"::strategy::withdrawal_amount_view": RuntimeError("boom")})
    generator = _generator(view, moveposition)

    packets = await generator.generate([S1], [1000], "withdraw", _vault(), MOVEPOSITION)

    assert packets[0].is_empty


@pytest.mark.asyncio
async def test_length_mismatch(make_view):
    generator = _generator(make_view({}), None)

    with pytest.raises(CanopyError) as exc:
        await generator.generate([S1, S2], [1], "deposit", _vault(), MOVEPOSITION)

    assert exc.value.code is ErrorCode.PACKET_GENERATION_FAILED


def test_pair_legs_and_arrays_follow_allocation_order():
    allocation = AllocationMap([S1, S2, S3], [10, 20, 30])
    packets = [PacketData(S3, b"\x03"), PacketData(S2), PacketData(S1, b"\x01")]

    legs = pair_legs(allocation, packets)
    assert [(leg.strategy, leg.amount, leg.packet) for leg in legs] == [
        (S1, 10, b"\x01"),
        (S2, 20, b""),
        (S3, 30, b"\x03"),
    ]

    assert create_packet_arrays(packets, allocation) == ([S1, S3], [b"\x01", b"\x03"])
    assert create_packet_arrays(packets) == ([S3, S1], [b"\x03", b"\x01"])
