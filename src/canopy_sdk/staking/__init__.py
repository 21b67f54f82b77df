from __future__ import annotations

from .client import MultiRewardsClient
from .pool_mappings import (
    STAKING_TOKEN_POOL_MAPPINGS,
    get_static_pool_mapping,
    has_static_pool_mapping,
)
from .resolver import StakingPoolResolver

__all__ = [
    "MultiRewardsClient",
    "STAKING_TOKEN_POOL_MAPPINGS",
    "StakingPoolResolver",
    "get_static_pool_mapping",
    "has_static_pool_mapping",
]
