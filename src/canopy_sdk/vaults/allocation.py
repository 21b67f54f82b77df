"""Strategy allocation maps from the router view functions.

The router returns a Move ``SimpleMap<Object<Strategy>, u64>`` which the node
serializes as ``{"data": [{"key": {"inner": "0x.."}, "value": "123"}]}``.
Some nodes return the same map as a list of ``[strategy, amount]`` pairs.
Both are accepted; any other shape is rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from ..clients.view import ViewClient
from ..domain import AllocationMap, Operation
from ..errors import CanopyError, ErrorCode
from ..logger import get_logger
from ..settings import ModuleSettings

logger = get_logger(__name__)


@dataclass(frozen=True)
class SimpleMapShape:
    data: list[dict[str, Any]]

    def entries(self) -> Iterator[tuple[Any, Any]]:
        for entry in self.data:
            key = entry.get("key")
            if isinstance(key, dict):
                key = key.get("inner")
            yield key, entry.get("value")


@dataclass(frozen=True)
class PairListShape:
    pairs: list[Any]

    def entries(self) -> Iterator[tuple[Any, Any]]:
        for pair in self.pairs:
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                raise ValueError(f"allocation pair must have two elements: {pair!r}")
            strategy, amount = pair
            if isinstance(strategy, dict):
                strategy = strategy.get("inner")
            yield strategy, amount


AllocationShape = SimpleMapShape | PairListShape


def detect_shape(raw: Any) -> AllocationShape:
    if isinstance(raw, dict) and isinstance(raw.get("data"), list):
        return SimpleMapShape(raw["data"])
    if isinstance(raw, list):
        return PairListShape(raw)
    raise CanopyError(
        "Unrecognized allocation map shape",
        ErrorCode.TRANSACTION_BUILD_FAILED,
        {"raw_data": raw},
    )


def parse_allocation_map(raw: Any) -> AllocationMap:
    """Parse a router map into parallel arrays, dropping zero/absent amounts."""
    shape = detect_shape(raw)
    strategies: list[str] = []
    amounts: list[int] = []
    try:
        for strategy, value in shape.entries():
            if not strategy or value is None:
                continue
            amount = int(value)
            if amount <= 0:
                continue
            strategies.append(str(strategy))
            amounts.append(amount)
    except (TypeError, ValueError) as exc:
        raise CanopyError(
            "Failed to parse allocation map",
            ErrorCode.TRANSACTION_BUILD_FAILED,
            {"raw_data": raw, "original_error": exc},
        ) from exc
    return AllocationMap(strategies, amounts)


class AllocationResolver:
    """Reads deposit allocations and withdrawal maps for a vault."""

    def __init__(self, view: ViewClient, modules: ModuleSettings):
        self._view = view
        self._modules = modules

    @property
    def deposit_function(self) -> str:
        return f"{self._modules.require('deposit_view')}::deposit::get_allocations_view"

    @property
    def withdraw_function(self) -> str:
        return f"{self._modules.require('withdraw_view')}::withdraw::get_withdrawal_map_view"

    async def _resolve(
        self, operation: Operation, vault: str, amount: int, what: str, amount_key: str
    ) -> AllocationMap:
        try:
            function = (
                self.deposit_function
                if operation == "deposit"
                else self.withdraw_function
            )
            result = await self._view.view(function, [], [vault, str(amount)])
            allocation = parse_allocation_map(result[0] if result else None)
        except Exception as exc:
            raise CanopyError.wrap(
                exc,
                f"Failed to get {what}",
                ErrorCode.TRANSACTION_BUILD_FAILED,
                vault_address=vault,
                **{amount_key: str(amount)},
            ) from exc
        logger.debug(
            "%s for %s: %d strategies, total %d",
            what.capitalize(),
            vault,
            len(allocation),
            allocation.total,
        )
        return allocation

    async def resolve_deposit(self, vault: str, amount: int) -> AllocationMap:
        return await self._resolve(
            "deposit", vault, amount, "optimal allocation", "amount"
        )

    async def resolve_withdraw(self, vault: str, shares: int) -> AllocationMap:
        return await self._resolve(
            "withdraw", vault, shares, "withdrawal map", "shares"
        )

    @staticmethod
    def validate(allocation: AllocationMap, total_amount: int) -> None:
        """Reject empty or misaligned allocations and totals off by more than 0.1%."""
        if len(allocation.strategies) == 0:
            raise CanopyError(
                "No strategies available for allocation",
                ErrorCode.TRANSACTION_BUILD_FAILED,
                {"total_amount": str(total_amount)},
            )

        if len(allocation.strategies) != len(allocation.amounts):
            raise CanopyError(
                "Mismatched strategies and amounts",
                ErrorCode.TRANSACTION_BUILD_FAILED,
                {
                    "strategies": len(allocation.strategies),
                    "amounts": len(allocation.amounts),
                },
            )

        allocated = allocation.total
        tolerance = total_amount // 1000
        diff = abs(allocated - total_amount)
        if diff > tolerance:
            raise CanopyError(
                "Allocation total does not match deposit amount",
                ErrorCode.TRANSACTION_BUILD_FAILED,
                {
                    "expected_total": str(total_amount),
                    "allocated_total": str(allocated),
                    "difference": str(diff),
                },
            )
