"""Top-level SDK entry point."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Sequence, TypeVar

from .addresses import (
    is_coin_type,
    validate_address,
    validate_address_list,
    validate_amount,
)
from .clients.graphql import GraphQLClient, StakingPoolsClient, VaultMetadataClient
from .clients.moveposition import MovePositionClient
from .clients.view import AptosViewClient, ViewClient
from .domain import (
    EntryFunctionPayload,
    PaginatedVaults,
    UserStakingPosition,
    VaultData,
    VaultPosition,
)
from .errors import ERROR_MESSAGES, CanopyError, ErrorCode
from .logger import get_logger
from .platforms import DEFAULT_PLATFORM, PlatformDetector, platforms_from_settings
from .settings import CanopySettings
from .staking import MultiRewardsClient, StakingPoolResolver
from .vaults import (
    AllocationResolver,
    PacketGenerator,
    TransactionPayloadBuilder,
    VaultDetector,
)

logger = get_logger(__name__)

T = TypeVar("T")


class CanopyClient:
    """Builds vault and staking transaction payloads and reads vault state.

    Payloads are returned unsigned; submitting them is up to the caller's
    wallet.
    """

    def __init__(
        self,
        settings: CanopySettings | None = None,
        *,
        view: ViewClient | None = None,
    ):
        self.settings = s = settings or CanopySettings()
        self.view = view or AptosViewClient(
            s.rpc_url,
            request_timeout=s.request_timeout,
            max_tries=s.rpc_max_tries,
        )

        metadata_graphql = GraphQLClient(
            s.graphql_endpoint,
            ttl_seconds=s.cache_ttl_seconds,
            request_timeout=s.request_timeout,
        )
        pools_graphql = GraphQLClient(
            s.sentio_endpoint,
            api_key=s.sentio_api_key_value,
            ttl_seconds=s.cache_ttl_seconds,
            request_timeout=s.request_timeout,
        )
        moveposition = (
            MovePositionClient(s.moveposition_api_url, request_timeout=s.request_timeout)
            if s.moveposition_api_url
            else None
        )

        self.platforms = PlatformDetector(
            platforms_from_settings(s.platforms), DEFAULT_PLATFORM
        )
        self.vaults = VaultDetector(
            self.view,
            s.modules,
            self.platforms,
            VaultMetadataClient(metadata_graphql),
            chain_id=s.chain_id,
        )
        self.transactions = TransactionPayloadBuilder(
            self.vaults,
            AllocationResolver(self.view, s.modules),
            PacketGenerator(
                self.view,
                moveposition,
                s.moveposition_name_map,
                s.moveposition_virtual_coin_map,
            ),
            s.modules,
        )
        self.staking = MultiRewardsClient(
            self.view,
            s.modules,
            StakingPoolResolver(StakingPoolsClient(pools_graphql)),
        )

    @asynccontextmanager
    async def _deadline(self) -> AsyncIterator[None]:
        timeout = self.settings.build_timeout_seconds
        if timeout is None or timeout <= 0:
            yield
            return
        try:
            async with asyncio.timeout(timeout):
                yield
        except TimeoutError as exc:
            raise CanopyError(
                f"Operation timed out after {timeout}s",
                ErrorCode.NETWORK_ERROR,
                {"timeout_seconds": timeout, "original_error": exc},
            ) from exc

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        async with self._deadline():
            return await awaitable

    async def deposit(self, vault_address: str, amount: int) -> EntryFunctionPayload:
        validate_address(vault_address, "vault")
        validate_amount(amount, "deposit")
        try:
            return await self._bounded(
                self.transactions.build_deposit(vault_address, amount)
            )
        except Exception as exc:
            raise CanopyError.wrap(
                exc,
                ERROR_MESSAGES["DEPOSIT_FAILED"],
                ErrorCode.TRANSACTION_BUILD_FAILED,
                vault_address=vault_address,
                amount=str(amount),
            ) from exc

    async def withdraw(self, vault_address: str, shares: int) -> EntryFunctionPayload:
        validate_address(vault_address, "vault")
        validate_amount(shares, "withdraw")
        try:
            return await self._bounded(
                self.transactions.build_withdraw(vault_address, shares)
            )
        except Exception as exc:
            raise CanopyError.wrap(
                exc,
                ERROR_MESSAGES["WITHDRAWAL_FAILED"],
                ErrorCode.TRANSACTION_BUILD_FAILED,
                vault_address=vault_address,
                shares=str(shares),
            ) from exc

    async def get_vault(self, vault_address: str) -> VaultData | None:
        validate_address(vault_address, "vault")
        return await self._bounded(self.vaults.get_vault_data(vault_address))

    async def get_vaults(self) -> list[VaultData]:
        return await self._bounded(self.vaults.get_all_vaults())

    async def list_vaults(self, offset: int = 0, limit: int = 50) -> PaginatedVaults:
        """One page of on-chain vault views, without metadata."""
        return await self._bounded(self.vaults.get_vaults(offset, limit))

    async def get_user_vault_position(
        self, user_address: str, vault_address: str
    ) -> VaultPosition:
        validate_address(user_address, "user")
        validate_address(vault_address, "vault")
        return await self._bounded(
            self.vaults.get_user_vault_position(user_address, vault_address)
        )

    async def stake(
        self,
        staking_token: str,
        amount: int,
        user_address: str | None = None,
        pool_addresses: Sequence[str] | None = None,
    ) -> EntryFunctionPayload:
        validate_address(staking_token, "token")
        validate_amount(amount, "stake")
        return await self._bounded(
            self.staking.stake_vault_shares(
                staking_token, amount, user_address, pool_addresses
            )
        )

    async def unstake(self, token: str, amount: int) -> EntryFunctionPayload:
        """Unstake; ``pkg::module::Type`` tokens use the coin path, addresses the FA path."""
        validate_address(token, "token")
        validate_amount(amount, "unstake")
        if is_coin_type(token):
            return self.staking.withdraw(token, amount)
        return self.staking.withdraw_fa(token, amount)

    async def claim_rewards(self, staking_tokens: Sequence[str]) -> EntryFunctionPayload:
        validate_address_list(staking_tokens, "token")
        return self.staking.claim_rewards(staking_tokens)

    async def get_user_staking_position(
        self, user_address: str, staking_token: str
    ) -> UserStakingPosition:
        validate_address(user_address, "user")
        validate_address(staking_token, "token")
        return await self._bounded(
            self.staking.get_user_staking_position(user_address, staking_token)
        )

    async def get_user_staked_balance(self, user_address: str, staking_token: str) -> int:
        validate_address(user_address, "user")
        validate_address(staking_token, "token")
        return await self._bounded(
            self.staking.get_user_staked_balance(user_address, staking_token)
        )

    async def get_user_earned(
        self, user_address: str, pool: str, reward_token: str
    ) -> int:
        validate_address(user_address, "user")
        validate_address(pool, "pool")
        validate_address(reward_token, "token")
        return await self._bounded(
            self.staking.get_user_earned(user_address, pool, reward_token)
        )
