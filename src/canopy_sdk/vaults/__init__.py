from __future__ import annotations

from .allocation import AllocationResolver, parse_allocation_map
from .detector import VaultDetector
from .packets import PacketGenerator, create_packet_arrays, pair_legs
from .transaction_builder import TransactionPayloadBuilder

__all__ = [
    "AllocationResolver",
    "PacketGenerator",
    "TransactionPayloadBuilder",
    "VaultDetector",
    "create_packet_arrays",
    "pair_legs",
    "parse_allocation_map",
]
