from __future__ import annotations

from typing import Iterable

from ..constants import (
    ECHELON_SIMPLE_CONCRETE_ADDRESS,
    LAYERBANK_SIMPLE_CONCRETE_ADDRESS,
    MERIDIAN_SIMPLE_CONCRETE_ADDRESS,
    MOVEPOSITION_SIMPLE_CONCRETE_ADDRESS,
)
from ..settings import PlatformSettings
from .base import PlatformSpec
from .detector import PlatformDetector

MOVEPOSITION = PlatformSpec(
    "MovePosition",
    MOVEPOSITION_SIMPLE_CONCRETE_ADDRESS,
    requires_external_proof=True,
)
ECHELON = PlatformSpec("Echelon", ECHELON_SIMPLE_CONCRETE_ADDRESS, coin_entry_point=True)
LAYERBANK = PlatformSpec("LayerBank", LAYERBANK_SIMPLE_CONCRETE_ADDRESS)
MERIDIAN = PlatformSpec("Meridian", MERIDIAN_SIMPLE_CONCRETE_ADDRESS)

# Fallback for vaults whose first strategy matches nothing in the registry
DEFAULT_PLATFORM = PlatformSpec("Satay")

# Classification order: first match wins
DEFAULT_PLATFORMS: list[PlatformSpec] = [MOVEPOSITION, ECHELON, LAYERBANK, MERIDIAN]

PLATFORM_REGISTRY: dict[str, PlatformSpec] = {
    p.name.lower(): p for p in [*DEFAULT_PLATFORMS, DEFAULT_PLATFORM]
}


def get_platform(name: str) -> PlatformSpec:
    """Get a built-in platform by name.

    Args:
        name: Name of the platform (case-insensitive)

    Raises:
        ValueError: If name is not recognized
    """
    key = name.lower()
    if key not in PLATFORM_REGISTRY:
        raise ValueError(
            f"Unknown platform '{name}'. "
            f"Available: {', '.join(PLATFORM_REGISTRY.keys())}"
        )
    return PLATFORM_REGISTRY[key]


def platforms_from_settings(entries: Iterable[PlatformSettings]) -> list[PlatformSpec]:
    """Build an ordered registry from config; empty config keeps the defaults."""
    platforms = [
        PlatformSpec(
            name=e.name,
            concrete_address=e.concrete_address,
            requires_external_proof=e.requires_external_proof,
            coin_entry_point=e.coin_entry_point,
        )
        for e in entries
    ]
    return platforms or list(DEFAULT_PLATFORMS)


__all__ = [
    "DEFAULT_PLATFORM",
    "DEFAULT_PLATFORMS",
    "ECHELON",
    "LAYERBANK",
    "MERIDIAN",
    "MOVEPOSITION",
    "PLATFORM_REGISTRY",
    "PlatformDetector",
    "PlatformSpec",
    "get_platform",
    "platforms_from_settings",
]
