"""Vault platform classification and display naming."""

from __future__ import annotations

import re
from typing import Sequence

from ..addresses import normalize_address
from ..domain import VaultView
from .base import PlatformSpec

_KNOWN_COIN_NAMES = (
    ("aptoscoin", "APT"),
    ("usdccoin", "USDC"),
    ("usdtcoin", "USDT"),
    ("wethcoin", "WETH"),
)
_COIN_SUFFIX = re.compile(r"coin$", re.IGNORECASE)


class PlatformDetector:
    """Classifies a vault by its *first* strategy's concrete address.

    A vault is assumed to hold strategies of a single platform; later
    strategies are not inspected.
    """

    def __init__(self, platforms: Sequence[PlatformSpec], default: PlatformSpec):
        self.platforms = list(platforms)
        self.default = default
        self._by_address = [
            (normalize_address(p.concrete_address), p)
            for p in self.platforms
            if p.concrete_address
        ]

    def classify(self, vault: VaultView) -> PlatformSpec:
        concrete = vault.first_concrete_address
        if concrete is None:
            return self.default
        normalized = normalize_address(concrete)
        for address, platform in self._by_address:
            if address == normalized:
                return platform
        return self.default

    def platform_name(self, vault: VaultView) -> str:
        return self.classify(vault).name

    def display_name(self, vault: VaultView) -> str:
        """Name for vaults without off-chain metadata, e.g. ``Echelon APT Vault``."""
        return f"{self.platform_name(vault)} {asset_name(vault)} Vault"


def asset_name(vault: VaultView) -> str:
    if vault.asset_name:
        return vault.asset_name

    if vault.paired_coin_type:
        parts = vault.paired_coin_type.split("::")
        if len(parts) >= 3 and parts[2]:
            coin = parts[2]
            lowered = coin.lower()
            for needle, name in _KNOWN_COIN_NAMES:
                if needle in lowered:
                    return name
            return _COIN_SUFFIX.sub("", coin).upper()

    if len(vault.asset_address) > 10:
        return f"FA-{vault.asset_address[-6:].upper()}"

    return "Asset"
