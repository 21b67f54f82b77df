"""GraphQL metadata clients with a per-key TTL cache."""

from __future__ import annotations

import asyncio
import time
from typing import Any

import requests

from ..addresses import same_address
from ..domain import StakingPoolRecord, VaultMetadata
from ..errors import ERROR_MESSAGES, CanopyError, ErrorCode
from ..logger import get_logger

logger = get_logger(__name__)

GET_CANOPY_METADATA = "GetCanopyMetadata"
GET_STAKING_POOLS = "GetMRStakingPools"
GET_STAKING_POOLS_BY_TOKEN = "GetMRStakingPoolsByToken"

CANOPY_METADATA_QUERY = """query GetCanopyMetadata($chainId: Int!) {
  listCanopyMetadata(filter: {chainId: {eq: $chainId}}) {
    items {
      id
      chainId
      networkAddress
      displayName
      investmentType
      networkType
      riskScore
      priority
      isHidden
      description
      iconURL
      labels
      rewardPools
      additionalMetadata { item key }
      paused
      token0
      token1
      tvl
      totalSupply
      token0Balance
      token1Balance
      decimals0
      decimals1
      apr
      rewardApr
    }
  }
}"""

_POOL_FIELDS = """
    id
    creator
    staking_token
    reward_tokens
    subscriber_count
    total_subscribed
    created_at"""

STAKING_POOLS_QUERY = (
    "query GetMRStakingPools {\n  mrstakingPools {" + _POOL_FIELDS + "\n  }\n}"
)
STAKING_POOLS_BY_TOKEN_QUERY = (
    "query GetMRStakingPoolsByToken($stakingToken: String!) {\n"
    "  mrstakingPools(where: { staking_token: $stakingToken }) {"
    + _POOL_FIELDS
    + "\n  }\n}"
)


class GraphQLClient:
    """POSTs GraphQL queries and caches the ``data`` member per cache key."""

    def __init__(
        self,
        endpoint: str,
        *,
        api_key: str | None = None,
        ttl_seconds: float = 60.0,
        request_timeout: float = 15.0,
        session: requests.Session | None = None,
    ):
        self.endpoint = endpoint
        self._api_key = api_key
        self._ttl = ttl_seconds
        self._request_timeout = request_timeout
        self._session = session or requests.Session()
        self._cache: dict[str, tuple[float, Any]] = {}

    @property
    def has_api_key(self) -> bool:
        return bool(self._api_key)

    def clear_cache(self) -> None:
        self._cache.clear()

    def _cached(self, key: str) -> tuple[bool, Any]:
        entry = self._cache.get(key)
        if entry is None:
            return False, None
        stored_at, data = entry
        if time.monotonic() - stored_at >= self._ttl:
            del self._cache[key]
            return False, None
        return True, data

    async def query(
        self,
        operation_name: str,
        variables: dict[str, Any],
        query_text: str,
        cache_key: str | None = None,
    ) -> dict[str, Any]:
        """Run a query and return its ``data`` member (``{}`` when absent).

        Raises:
            requests.HTTPError: on a non-2xx response
            CanopyError: NETWORK_ERROR when the response carries GraphQL errors
        """
        key = cache_key or f"{operation_name}:{sorted(variables.items())}"
        hit, data = self._cached(key)
        if hit:
            logger.debug("GraphQL cache hit for %s", key)
            return data

        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["api-key"] = self._api_key

        response = await asyncio.to_thread(
            self._session.post,
            self.endpoint,
            json={
                "operationName": operation_name,
                "variables": variables,
                "query": query_text,
            },
            headers=headers,
            timeout=self._request_timeout,
        )
        response.raise_for_status()
        payload = response.json()

        errors = payload.get("errors") or []
        if errors:
            raise CanopyError(
                "GraphQL errors: "
                + ", ".join(str(e.get("message", e)) for e in errors),
                ErrorCode.NETWORK_ERROR,
                {"operation": operation_name, "errors": errors},
            )

        data = payload.get("data") or {}
        self._cache[key] = (time.monotonic(), data)
        return data


def _metadata_from_item(item: dict[str, Any]) -> VaultMetadata:
    additional = {
        meta["key"]: meta["item"]
        for meta in item.get("additionalMetadata") or []
        if meta.get("key") and meta.get("item")
    }
    return VaultMetadata(
        address=item.get("networkAddress") or "",
        display_name=item.get("displayName") or "",
        description=item.get("description") or "",
        icon_url=item.get("iconURL") or "",
        investment_type=item.get("investmentType") or "",
        network_type=item.get("networkType") or "",
        risk_score=item.get("riskScore") or 0,
        labels=list(item.get("labels") or []),
        paused=bool(item.get("paused")),
        tvl=str(item.get("tvl") or 0),
        apr=str(item.get("apr") or 0),
        reward_apr=str(item.get("rewardApr") or 0),
        token0=item.get("token0") or "",
        token1=item.get("token1") or "",
        token0_balance=item.get("token0Balance") or "0",
        token1_balance=item.get("token1Balance") or "0",
        decimals0=item.get("decimals0") or 0,
        decimals1=item.get("decimals1") or 0,
        total_supply=item.get("totalSupply") or "0",
        reward_pools=list(item.get("rewardPools") or []),
        additional_metadata=additional,
    )


class VaultMetadataClient:
    """Off-chain vault metadata (display names, APR, TVL)."""

    def __init__(self, graphql: GraphQLClient):
        self._graphql = graphql

    async def fetch_vault_metadata(self, chain_id: int) -> list[VaultMetadata]:
        try:
            data = await self._graphql.query(
                GET_CANOPY_METADATA,
                {"chainId": chain_id},
                CANOPY_METADATA_QUERY,
                cache_key=f"chain-{chain_id}",
            )
        except Exception as exc:
            raise CanopyError(
                ERROR_MESSAGES["FAILED_TO_FETCH_METADATA"],
                ErrorCode.NETWORK_ERROR,
                {"chain_id": chain_id, "original_error": exc},
            ) from exc

        items = (data.get("listCanopyMetadata") or {}).get("items") or []
        return [
            _metadata_from_item(item)
            for item in items
            if item.get("isHidden") is not True
        ]

    async def fetch_vault_by_address(
        self, chain_id: int, vault_address: str
    ) -> VaultMetadata | None:
        for vault in await self.fetch_vault_metadata(chain_id):
            if same_address(vault.address, vault_address):
                return vault
        return None


def _pool_from_item(item: dict[str, Any]) -> StakingPoolRecord:
    return StakingPoolRecord(
        id=item["id"],
        staking_token=item.get("staking_token") or "",
        creator=item.get("creator") or "",
        reward_tokens=list(item.get("reward_tokens") or []),
        subscriber_count=int(item.get("subscriber_count") or 0),
        total_subscribed=str(item.get("total_subscribed") or "0"),
        created_at=str(item.get("created_at") or ""),
    )


class StakingPoolsClient:
    """Staking-pool discovery through the rewards indexer."""

    def __init__(self, graphql: GraphQLClient):
        self._graphql = graphql

    @property
    def has_api_key(self) -> bool:
        return self._graphql.has_api_key

    async def _pools(
        self, operation: str, variables: dict[str, Any], query_text: str, key: str
    ) -> list[StakingPoolRecord]:
        try:
            data = await self._graphql.query(
                operation, variables, query_text, cache_key=key
            )
        except Exception as exc:
            raise CanopyError(
                "Failed to fetch staking pools",
                ErrorCode.NETWORK_ERROR,
                {**variables, "original_error": exc},
            ) from exc
        return [_pool_from_item(item) for item in data.get("mrstakingPools") or []]

    async def fetch_all_pools(self) -> list[StakingPoolRecord]:
        return await self._pools(GET_STAKING_POOLS, {}, STAKING_POOLS_QUERY, "all-pools")

    async def fetch_pools_by_token(self, staking_token: str) -> list[StakingPoolRecord]:
        return await self._pools(
            GET_STAKING_POOLS_BY_TOKEN,
            {"stakingToken": staking_token},
            STAKING_POOLS_BY_TOKEN_QUERY,
            f"token-{staking_token}",
        )
