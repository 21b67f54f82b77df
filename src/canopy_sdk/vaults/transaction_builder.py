"""Deposit and withdraw payload assembly.

A build reads the vault, resolves the strategy allocation, attaches packets
when the vault's platform requires external proof, and picks the router entry
point for the vault's platform and asset representation.
"""

from __future__ import annotations

from typing import Sequence

from ..addresses import normalize_type_name
from ..constants import (
    DEFAULT_MAX_LOSS,
    DEFAULT_MIN_SHARES_OUT,
    NATIVE_COIN_TYPE,
    WITHDRAW_MIN_AMOUNT_OUT,
)
from ..domain import (
    AllocationMap,
    EntryFunctionPayload,
    Operation,
    PacketData,
    VaultView,
)
from ..errors import CanopyError, ErrorCode
from ..logger import get_logger
from ..platforms import PlatformSpec
from ..settings import ModuleSettings
from .allocation import AllocationResolver
from .detector import VaultDetector
from .packets import PacketGenerator, create_packet_arrays

logger = get_logger(__name__)


class TransactionPayloadBuilder:
    def __init__(
        self,
        vaults: VaultDetector,
        allocations: AllocationResolver,
        packets: PacketGenerator,
        modules: ModuleSettings,
    ):
        self.vaults = vaults
        self.allocations = allocations
        self.packets = packets
        self._modules = modules

    def _router_fn(self, name: str) -> str:
        try:
            router = self._modules.require("router")
        except ValueError as exc:
            raise CanopyError(
                str(exc), ErrorCode.TRANSACTION_BUILD_FAILED, {"function": name}
            ) from exc
        return f"{router}::router::{name}"

    async def build_deposit(self, vault_address: str, amount: int) -> EntryFunctionPayload:
        try:
            vault = await self.vaults.get_vault_view(vault_address)
            allocation = await self.allocations.resolve_deposit(vault_address, amount)
            self.allocations.validate(allocation, amount)

            platform = self.vaults.platforms.classify(vault)
            packets = await self._packets_if_needed(vault, platform, allocation, "deposit")
            logger.debug(
                "Deposit into %s: platform=%s strategies=%d packets=%d",
                vault_address,
                platform.name,
                len(allocation),
                sum(1 for p in packets if not p.is_empty),
            )

            if platform.coin_entry_point:
                coin_type = self._coin_type(vault)
                return EntryFunctionPayload(
                    self._router_fn("deposit_coin"),
                    [coin_type, coin_type],
                    [vault_address, [], [], str(amount), DEFAULT_MIN_SHARES_OUT],
                )

            strategies, data = create_packet_arrays(packets, allocation)
            return EntryFunctionPayload(
                self._router_fn("deposit_fa_with_coin_type"),
                [normalize_type_name(vault.paired_coin_type or NATIVE_COIN_TYPE)],
                [vault_address, strategies, data, str(amount), DEFAULT_MIN_SHARES_OUT],
            )
        except Exception as exc:
            raise CanopyError.wrap(
                exc,
                "Failed to build deposit transaction",
                ErrorCode.TRANSACTION_BUILD_FAILED,
                vault_address=vault_address,
                amount=str(amount),
            ) from exc

    async def build_withdraw(
        self,
        vault_address: str,
        shares: int,
        max_loss: str = DEFAULT_MAX_LOSS,
    ) -> EntryFunctionPayload:
        """Withdraw payload. Withdrawal amounts come from the chain, so no
        conservation check is applied to the withdrawal map."""
        try:
            vault = await self.vaults.get_vault_view(vault_address)
            allocation = await self.allocations.resolve_withdraw(vault_address, shares)

            platform = self.vaults.platforms.classify(vault)
            packets = await self._packets_if_needed(vault, platform, allocation, "withdraw")
            min_amount_out = platform.withdraw_min_amount_out

            if platform.coin_entry_point:
                coin_type = self._coin_type(vault)
                return EntryFunctionPayload(
                    self._router_fn("withdraw_coin"),
                    [coin_type, coin_type],
                    [vault_address, [], [], str(shares), max_loss, min_amount_out],
                )

            strategies, data = create_packet_arrays(packets, allocation)
            return EntryFunctionPayload(
                self._router_fn("withdraw_fa_with_coin_type"),
                [normalize_type_name(vault.paired_coin_type or NATIVE_COIN_TYPE)],
                [vault_address, strategies, data, str(shares), max_loss, min_amount_out],
            )
        except Exception as exc:
            raise CanopyError.wrap(
                exc,
                "Failed to build withdraw transaction",
                ErrorCode.TRANSACTION_BUILD_FAILED,
                vault_address=vault_address,
                shares=str(shares),
            ) from exc

    def build_simple_deposit(
        self,
        vault_address: str,
        amount: int,
        strategies: Sequence[str] = (),
        packets: Sequence[bytes] = (),
    ) -> EntryFunctionPayload:
        """``router::deposit_fa`` for callers that already know the vault layout.

        Minimum shares out is 99% of ``amount``.
        """
        return EntryFunctionPayload(
            self._router_fn("deposit_fa"),
            [],
            [
                vault_address,
                list(strategies),
                list(packets),
                str(amount),
                str(amount * 99 // 100),
            ],
        )

    def build_simple_withdraw(
        self,
        vault_address: str,
        shares: int,
        strategies: Sequence[str] = (),
        packets: Sequence[bytes] = (),
        max_loss: str = DEFAULT_MAX_LOSS,
    ) -> EntryFunctionPayload:
        return EntryFunctionPayload(
            self._router_fn("withdraw_fa"),
            [],
            [
                vault_address,
                list(strategies),
                list(packets),
                str(shares),
                WITHDRAW_MIN_AMOUNT_OUT,
                max_loss,
            ],
        )

    async def _packets_if_needed(
        self,
        vault: VaultView,
        platform: PlatformSpec,
        allocation: AllocationMap,
        operation: Operation,
    ) -> list[PacketData]:
        if not platform.requires_external_proof:
            return []
        return await self.packets.generate(
            allocation.strategies, allocation.amounts, operation, vault, platform
        )

    @staticmethod
    def _coin_type(vault: VaultView) -> str:
        if not vault.paired_coin_type:
            raise CanopyError(
                "Vault has no paired coin type for a coin entry point",
                ErrorCode.TRANSACTION_BUILD_FAILED,
                {"vault_address": vault.vault_address},
            )
        return normalize_type_name(vault.paired_coin_type)
