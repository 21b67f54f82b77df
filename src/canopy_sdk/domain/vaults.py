"""Vault-side value objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

AssetRepresentation = Literal["coin", "fa"]


@dataclass(frozen=True)
class StrategyView:
    """One allocation target inside a vault, as reported by ``vault_view``."""

    strategy_address: str
    concrete_address: str
    asset_address: str = ""
    shares_address: str = ""
    vault_address: str = ""
    decimals: int = 0
    current_vault_debt: int = 0
    debt_limit: int = 0
    last_report: int = 0
    total_asset: int = 0
    total_debt: int = 0
    total_idle: int = 0
    total_loss: int = 0
    total_profit: int = 0
    total_shares: int = 0


@dataclass(frozen=True)
class VaultView:
    """Snapshot of a vault's on-chain state.

    ``paired_coin_type`` is the only signal for the asset representation:
    present means the vault works with a native coin, absent means a
    fungible asset.
    """

    vault_address: str
    asset_address: str
    shares_address: str
    decimals: int = 8
    total_debt: int = 0
    total_idle: int = 0
    total_asset: int = 0
    total_shares: int = 0
    asset_name: str = ""
    shares_name: str = ""
    paired_coin_type: str | None = None
    strategies: tuple[StrategyView, ...] = ()

    @property
    def asset_representation(self) -> AssetRepresentation:
        return "coin" if self.paired_coin_type else "fa"

    @property
    def first_concrete_address(self) -> str | None:
        if not self.strategies:
            return None
        return self.strategies[0].concrete_address or None


@dataclass(frozen=True)
class PaginatedVaults:
    offset: int
    limit: int
    total_count: int
    vaults: list[VaultView]


@dataclass(frozen=True)
class StrategyDetails:
    address: str
    vault: str
    debt: int
    debt_limit: int
    last_report: int
    total_profit: int
    total_loss: int
    shares_balance: int


@dataclass(frozen=True)
class VaultPosition:
    user_address: str
    vault_address: str
    shares_balance: int
    asset_value: int


@dataclass(frozen=True)
class VaultMetadata:
    """Off-chain display and financial metadata for a vault."""

    address: str
    display_name: str = ""
    description: str = ""
    icon_url: str = ""
    investment_type: str = ""
    network_type: str = ""
    risk_score: int = 0
    labels: list[str] = field(default_factory=list)
    paused: bool = False
    tvl: str = "0"
    apr: str = "0"
    reward_apr: str = "0"
    token0: str = ""
    token1: str = ""
    token0_balance: str = "0"
    token1_balance: str = "0"
    decimals0: int = 0
    decimals1: int = 0
    total_supply: str = "0"
    reward_pools: list[str] = field(default_factory=list)
    additional_metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class VaultData:
    """Vault as exposed to integrators: metadata merged with on-chain state."""

    address: str
    chain_id: int
    display_name: str
    description: str
    icon_url: str
    labels: list[str]
    investment_type: str
    network_type: str
    risk_score: int
    paused: bool
    base_asset: str
    shares_asset: str
    base_asset_decimals: int
    shares_asset_decimals: int
    tvl: str
    apr: str
    reward_apr: str
    reward_pools: list[str]
    additional_metadata: dict[str, str]
    total_assets: str | None = None
    total_supply: str | None = None
    base_asset_balance: str | None = None
    shares_asset_balance: str | None = None
    strategies: list[str] | None = None
