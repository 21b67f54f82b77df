"""Signed packet generation for strategies that need external proof-of-state.

Packets are produced per strategy. A failure for one strategy yields an empty
packet for that strategy only; the rest of the batch is unaffected.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from eth_utils import decode_hex

from ..addresses import normalize_address
from ..clients.moveposition import CreatePacketRequest, MovePositionClient
from ..clients.view import ViewClient
from ..constants import MOVEPOSITION_PACKET_SIGNER_NETWORK
from ..domain import (
    EMPTY_PACKET,
    AllocationMap,
    Operation,
    PacketData,
    StrategyLeg,
    VaultView,
)
from ..errors import CanopyError, ErrorCode
from ..logger import get_logger
from ..platforms import PlatformSpec
from ..results import recover

logger = get_logger(__name__)


class PacketGenerator:
    def __init__(
        self,
        view: ViewClient,
        moveposition: MovePositionClient | None,
        name_map: Mapping[str, str],
        virtual_coin_map: Mapping[str, str],
    ):
        self._view = view
        self._moveposition = moveposition
        self._name_map = dict(name_map)
        self._virtual_coins = {
            normalize_address(fa): coin for fa, coin in virtual_coin_map.items()
        }

    def virtual_coin_for(self, vault: VaultView) -> str:
        return self._virtual_coins.get(normalize_address(vault.asset_address), "")

    async def generate(
        self,
        strategies: Sequence[str],
        amounts: Sequence[int],
        operation: Operation,
        vault: VaultView,
        platform: PlatformSpec,
    ) -> list[PacketData]:
        """Return one PacketData per strategy, in input order."""
        if len(strategies) != len(amounts):
            raise CanopyError(
                "Strategies and amounts arrays must have the same length",
                ErrorCode.PACKET_GENERATION_FAILED,
                {"strategies": len(strategies), "amounts": len(amounts)},
            )

        virtual_coin = self.virtual_coin_for(vault)
        packets: list[PacketData] = []
        for strategy, amount in zip(strategies, amounts):
            if amount == 0:
                packets.append(PacketData(strategy))
                continue
            packet = await recover(
                self._packet_for(strategy, amount, operation, virtual_coin, platform),
                EMPTY_PACKET,
                message="Failed to generate packet",
                log=logger,
                strategy=strategy,
                operation=operation,
            )
            packets.append(PacketData(strategy, packet))
        return packets

    async def _packet_for(
        self,
        strategy: str,
        amount: int,
        operation: Operation,
        virtual_coin: str,
        platform: PlatformSpec,
    ) -> bytes:
        if self._moveposition is None:
            logger.info("MovePosition API URL not configured, returning empty packet")
            return EMPTY_PACKET

        broker_name = self._name_map.get(virtual_coin)
        if not broker_name:
            logger.info(
                "Broker name not found for token %r, returning empty packet",
                virtual_coin,
            )
            return EMPTY_PACKET

        exact_amount = amount
        if operation == "withdraw":
            exact_amount = await recover(
                self.exact_withdraw_amount(strategy, amount, virtual_coin, platform),
                0,
                message="Failed to get exact withdrawal amount",
                log=logger,
                strategy=strategy,
            )

        if exact_amount == 0:
            logger.info(
                "Exact amount is 0 for strategy %s, returning empty packet", strategy
            )
            return EMPTY_PACKET

        portfolio = await self._moveposition.get_portfolio(strategy)
        request: CreatePacketRequest = {
            "amount": str(exact_amount),
            "network": MOVEPOSITION_PACKET_SIGNER_NETWORK,
            "signerPubkey": strategy,
            "currentPortfolioState": portfolio,
            "brokerName": broker_name,
        }
        packet_hex = await self._moveposition.create_packet(operation, request)
        return decode_hex(packet_hex)

    async def exact_withdraw_amount(
        self,
        strategy: str,
        amount: int,
        virtual_coin: str,
        platform: PlatformSpec,
    ) -> int:
        """Amount the strategy will actually release, accounting for accrued yield."""
        result = await self._view.view(
            f"{platform.concrete_address}::strategy::withdrawal_amount_view",
            [virtual_coin],
            [strategy, str(amount)],
        )
        value = int(result[0]) if result and result[0] is not None else 0
        return max(value, 0)


def pair_legs(
    allocation: AllocationMap, packets: Sequence[PacketData]
) -> list[StrategyLeg]:
    """Pair each allocation entry with its packet, in allocation order."""
    by_strategy = {normalize_address(p.strategy): p.packet for p in packets}
    return [
        StrategyLeg(
            strategy,
            amount,
            by_strategy.get(normalize_address(strategy), EMPTY_PACKET),
        )
        for strategy, amount in zip(allocation.strategies, allocation.amounts)
    ]


def create_packet_arrays(
    packets: Sequence[PacketData],
    allocation: AllocationMap | None = None,
) -> tuple[list[str], list[bytes]]:
    """Strategies and packet bytes for the router, empty packets dropped.

    With an allocation the output follows the allocation's strategy order,
    which is the order the router pairs arrays by.
    """
    if allocation is not None:
        legs = [(leg.strategy, leg.packet) for leg in pair_legs(allocation, packets)]
    else:
        legs = [(p.strategy, p.packet) for p in packets]

    strategies: list[str] = []
    data: list[bytes] = []
    for strategy, packet in legs:
        if packet:
            strategies.append(strategy)
            data.append(packet)
    return strategies, data
