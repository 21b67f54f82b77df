"""Pool resolution for staking vault shares.

Sources are tried in order: explicit pools, the static table, then the
rewards indexer (only when an API key is configured). The first source that
applies wins, even if it yields nothing.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from ..clients.graphql import StakingPoolsClient
from ..errors import ERROR_MESSAGES, CanopyError, ErrorCode
from ..logger import get_logger
from ..results import recover
from .pool_mappings import get_static_pool_mapping, has_static_pool_mapping

logger = get_logger(__name__)

SubscriptionCheck = Callable[[str, str], Awaitable[bool]]


class StakingPoolResolver:
    def __init__(self, pools_client: StakingPoolsClient | None = None):
        self._pools_client = pools_client

    @property
    def has_remote_source(self) -> bool:
        return self._pools_client is not None and self._pools_client.has_api_key

    async def resolve_pools(
        self,
        staking_token: str,
        explicit_pools: Sequence[str] | None = None,
    ) -> list[str]:
        if explicit_pools:
            pools = list(explicit_pools)
            source = "explicit"
        elif has_static_pool_mapping(staking_token):
            pools = get_static_pool_mapping(staking_token)
            source = "static"
        elif self.has_remote_source:
            records = await recover(
                self._pools_client.fetch_pools_by_token(staking_token),  # type: ignore[union-attr]
                [],
                message="Failed to fetch staking pools, continuing without pool data",
                log=logger,
                log_level=logging.DEBUG,
                staking_token=staking_token,
            )
            pools = [r.id for r in records]
            source = "indexer"
        else:
            raise CanopyError(
                ERROR_MESSAGES["STAKING_POOLS_NOT_CONFIGURED"],
                ErrorCode.STAKING_POOLS_NOT_FOUND,
                {
                    "staking_token": staking_token,
                    "has_static_mapping": has_static_pool_mapping(staking_token),
                },
            )

        if not pools:
            raise CanopyError(
                ERROR_MESSAGES["STAKING_POOLS_EMPTY"],
                ErrorCode.STAKING_POOLS_NOT_FOUND,
                {"staking_token": staking_token, "source": source},
            )

        logger.debug("Resolved %d pools for %s from %s", len(pools), staking_token, source)
        return pools

    @staticmethod
    async def unsubscribed_pools(
        user_address: str,
        pools: Sequence[str],
        is_subscribed: SubscriptionCheck,
    ) -> list[str]:
        """Pools the user is not subscribed to, in input order.

        A failed check counts as not subscribed. If the batch itself fails,
        every pool is returned.
        """
        if not pools:
            return []

        async def _check(pool: str) -> bool:
            return await recover(
                is_subscribed(user_address, pool),
                False,
                message="Failed to check subscription",
                log=logger,
                log_level=logging.DEBUG,
                pool=pool,
            )

        try:
            subscribed = await asyncio.gather(*(_check(p) for p in pools))
        except Exception as exc:
            logger.debug("Failed to check pool subscriptions: %s", exc)
            return list(pools)

        return [pool for pool, sub in zip(pools, subscribed) if not sub]
