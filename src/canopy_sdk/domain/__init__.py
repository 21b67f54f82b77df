"""Domain models for the SDK."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from .staking import (
    PendingReward,
    RewardData,
    StakingPoolInfo,
    StakingPoolRecord,
    UserStakingPosition,
)
from .vaults import (
    PaginatedVaults,
    StrategyDetails,
    StrategyView,
    VaultData,
    VaultMetadata,
    VaultPosition,
    VaultView,
)

Operation = Literal["deposit", "withdraw"]

EMPTY_PACKET = b""


@dataclass(frozen=True)
class AllocationMap:
    """Parallel strategy/amount sequences returned by the router views.

    Zero-amount entries are never present.
    """

    strategies: list[str] = field(default_factory=list)
    amounts: list[int] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.amounts)

    def __len__(self) -> int:
        return len(self.strategies)


@dataclass(frozen=True)
class PacketData:
    """Packet for one strategy. An empty packet means nothing to attach."""

    strategy: str
    packet: bytes = EMPTY_PACKET

    @property
    def is_empty(self) -> bool:
        return len(self.packet) == 0


@dataclass(frozen=True)
class StrategyLeg:
    """One strategy's amount and packet, kept together so they cannot drift."""

    strategy: str
    amount: int
    packet: bytes = EMPTY_PACKET


@dataclass(frozen=True)
class EntryFunctionPayload:
    """Entry function call ready for signing by an external wallet."""

    function: str
    type_arguments: list[str]
    function_arguments: list[Any]

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable dict; bytes are rendered as 0x hex."""
        return {
            "function": self.function,
            "typeArguments": list(self.type_arguments),
            "functionArguments": [_jsonable(a) for a in self.function_arguments],
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


__all__ = [
    "AllocationMap",
    "EMPTY_PACKET",
    "EntryFunctionPayload",
    "Operation",
    "PacketData",
    "PaginatedVaults",
    "PendingReward",
    "RewardData",
    "StakingPoolInfo",
    "StakingPoolRecord",
    "StrategyDetails",
    "StrategyLeg",
    "StrategyView",
    "UserStakingPosition",
    "VaultData",
    "VaultMetadata",
    "VaultPosition",
    "VaultView",
]
