"""On-chain vault state, merged with off-chain metadata when available."""

from __future__ import annotations

import logging
from typing import Any

from ..addresses import normalize_address
from ..clients.graphql import VaultMetadataClient
from ..clients.view import ViewClient
from ..constants import FUNGIBLE_ASSET_METADATA_TYPE
from ..domain import (
    PaginatedVaults,
    StrategyDetails,
    StrategyView,
    VaultData,
    VaultMetadata,
    VaultPosition,
    VaultView,
)
from ..errors import ERROR_MESSAGES, CanopyError, ErrorCode
from ..logger import get_logger
from ..platforms import PlatformDetector
from ..results import recover
from ..settings import ModuleSettings

logger = get_logger(__name__)

ALL_VAULTS_LIMIT = 100


def _int(value: Any) -> int:
    return int(value) if value not in (None, "") else 0


def _inner(value: Any) -> str:
    if isinstance(value, dict):
        return str(value.get("inner", ""))
    return "" if value is None else str(value)


def parse_strategy_view(raw: dict[str, Any]) -> StrategyView:
    return StrategyView(
        strategy_address=_inner(raw.get("strategy_address")),
        concrete_address=_inner(raw.get("concrete_address")),
        asset_address=_inner(raw.get("asset_address")),
        shares_address=_inner(raw.get("shares_address")),
        vault_address=_inner(raw.get("vault_address")),
        decimals=_int(raw.get("decimals")),
        current_vault_debt=_int(raw.get("current_vault_debt")),
        debt_limit=_int(raw.get("debt_limit")),
        last_report=_int(raw.get("last_report")),
        total_asset=_int(raw.get("total_asset")),
        total_debt=_int(raw.get("total_debt")),
        total_idle=_int(raw.get("total_idle")),
        total_loss=_int(raw.get("total_loss")),
        total_profit=_int(raw.get("total_profit")),
        total_shares=_int(raw.get("total_shares")),
    )


def parse_vault_view(raw: dict[str, Any]) -> VaultView:
    """Parse the ``vault::vault_view`` struct.

    ``paired_coin_type`` is a Move ``Option<String>`` (``{"vec": [..]}``).
    """
    paired = raw.get("paired_coin_type") or {}
    vec = paired.get("vec") if isinstance(paired, dict) else None
    return VaultView(
        vault_address=_inner(raw.get("vault_address")),
        asset_address=_inner(raw.get("asset_address")),
        shares_address=_inner(raw.get("shares_address")),
        decimals=_int(raw.get("decimals")),
        total_debt=_int(raw.get("total_debt")),
        total_idle=_int(raw.get("total_idle")),
        total_asset=_int(raw.get("total_asset")),
        total_shares=_int(raw.get("total_shares")),
        asset_name=str(raw.get("asset_name") or ""),
        shares_name=str(raw.get("shares_name") or ""),
        paired_coin_type=(vec[0] or None) if vec else None,
        strategies=tuple(parse_strategy_view(s) for s in raw.get("strategies") or []),
    )


class VaultDetector:
    def __init__(
        self,
        view: ViewClient,
        modules: ModuleSettings,
        platforms: PlatformDetector,
        metadata: VaultMetadataClient | None = None,
        chain_id: int = 126,
    ):
        self._view = view
        self._modules = modules
        self.platforms = platforms
        self._metadata = metadata
        self.chain_id = chain_id

    def _vault_fn(self, name: str) -> str:
        return f"{self._modules.require('vault')}::vault::{name}"

    async def _first(self, function: str, args: list[Any], type_args: list[str] | None = None) -> Any:
        result = await self._view.view(function, type_args or [], args)
        return result[0] if result else None

    async def get_vault_view(self, vault_address: str) -> VaultView:
        try:
            raw = await self._first(self._vault_fn("vault_view"), [vault_address])
            if not isinstance(raw, dict):
                raise ValueError(f"unexpected vault_view result: {raw!r}")
            return parse_vault_view(raw)
        except Exception as exc:
            raise CanopyError.wrap(
                exc,
                ERROR_MESSAGES["FAILED_TO_GET_VAULT_DETAILS"],
                ErrorCode.VAULT_NOT_FOUND,
                vault_address=vault_address,
            ) from exc

    async def get_vaults(self, offset: int = 0, limit: int = 50) -> PaginatedVaults:
        try:
            # u64 view arguments travel as decimal strings
            raw = await self._first(
                self._vault_fn("vaults_view"), [str(offset), str(limit)]
            )
            return PaginatedVaults(
                offset=_int(raw.get("offset")),
                limit=_int(raw.get("limit")),
                total_count=_int(raw.get("total_count")),
                vaults=[parse_vault_view(v) for v in raw.get("vaults") or []],
            )
        except Exception as exc:
            raise CanopyError.wrap(
                exc,
                ERROR_MESSAGES["FAILED_TO_GET_VAULTS_LIST"],
                ErrorCode.NETWORK_ERROR,
                offset=offset,
                limit=limit,
            ) from exc

    async def get_strategy_details(
        self, vault_address: str, strategy_address: str
    ) -> StrategyDetails:
        args = [vault_address, strategy_address]
        try:
            values = {}
            for name in (
                "strategy_debt",
                "strategy_debt_limit",
                "strategy_last_report",
                "strategy_total_profit",
                "strategy_total_loss",
                "get_strategy_shares_balance",
            ):
                values[name] = _int(await self._first(self._vault_fn(name), args))
        except Exception as exc:
            raise CanopyError.wrap(
                exc,
                ERROR_MESSAGES["FAILED_TO_GET_STRATEGY_DETAILS"],
                ErrorCode.NETWORK_ERROR,
                vault_address=vault_address,
                strategy_address=strategy_address,
            ) from exc

        return StrategyDetails(
            address=strategy_address,
            vault=vault_address,
            debt=values["strategy_debt"],
            debt_limit=values["strategy_debt_limit"],
            last_report=values["strategy_last_report"],
            total_profit=values["strategy_total_profit"],
            total_loss=values["strategy_total_loss"],
            shares_balance=values["get_strategy_shares_balance"],
        )

    async def is_paused(self, vault_address: str) -> bool:
        try:
            return bool(await self._first(self._vault_fn("is_paused"), [vault_address]))
        except Exception as exc:
            raise CanopyError.wrap(
                exc,
                ERROR_MESSAGES["VAULT_NOT_FOUND"],
                ErrorCode.VAULT_NOT_FOUND,
                vault_address=vault_address,
            ) from exc

    async def get_user_vault_position(
        self, user_address: str, vault_address: str
    ) -> VaultPosition:
        try:
            vault = await self.get_vault_view(vault_address)
            shares = _int(
                await self._first(
                    "0x1::primary_fungible_store::balance",
                    [user_address, vault.shares_address],
                    [FUNGIBLE_ASSET_METADATA_TYPE],
                )
            )
            asset_value = 0
            if shares > 0:
                asset_value = _int(
                    await self._first(
                        self._vault_fn("shares_to_amount"), [vault_address, str(shares)]
                    )
                )
        except Exception as exc:
            raise CanopyError(
                ERROR_MESSAGES["FAILED_TO_GET_VAULT_DETAILS"],
                ErrorCode.VAULT_NOT_FOUND,
                {
                    "user_address": user_address,
                    "vault_address": vault_address,
                    "original_error": exc,
                },
            ) from exc

        return VaultPosition(
            user_address=user_address,
            vault_address=vault_address,
            shares_balance=shares,
            asset_value=asset_value,
        )

    async def _fetch_metadata(self) -> list[VaultMetadata]:
        if self._metadata is None:
            return []
        return await self._metadata.fetch_vault_metadata(self.chain_id)

    async def get_vault_data(self, vault_address: str) -> VaultData | None:
        """Vault metadata merged with on-chain state; None if neither is available."""
        metadata: VaultMetadata | None = None
        if self._metadata is not None:
            metadata = await recover(
                self._metadata.fetch_vault_by_address(self.chain_id, vault_address),
                None,
                message="Could not fetch metadata for vault",
                log=logger,
                log_level=logging.DEBUG,
                vault_address=vault_address,
            )
        on_chain = await recover(
            self.get_vault_view(vault_address),
            None,
            message="Could not fetch on-chain data for vault",
            log=logger,
            log_level=logging.DEBUG,
            vault_address=vault_address,
        )
        if metadata is None and on_chain is None:
            return None
        return self._merge(metadata.address if metadata else vault_address, metadata, on_chain)

    async def get_all_vaults(self) -> list[VaultData]:
        """On-chain vaults (first page) enriched with metadata, plus metadata-only vaults."""
        metadata_list = await recover(
            self._fetch_metadata(),
            [],
            message="Could not fetch metadata for vaults",
            log=logger,
            log_level=logging.DEBUG,
        )
        page = await recover(
            self.get_vaults(0, ALL_VAULTS_LIMIT),
            None,
            message="Could not fetch on-chain vault list",
            log=logger,
            log_level=logging.DEBUG,
        )

        by_address = {normalize_address(m.address): m for m in metadata_list}
        seen: set[str] = set()
        result: list[VaultData] = []

        for vault in page.vaults if page else []:
            key = normalize_address(vault.vault_address)
            seen.add(key)
            result.append(self._merge(vault.vault_address, by_address.get(key), vault))

        for metadata in metadata_list:
            if normalize_address(metadata.address) not in seen:
                result.append(self._merge(metadata.address, metadata, None))

        return result

    def _merge(
        self,
        address: str,
        metadata: VaultMetadata | None,
        on_chain: VaultView | None,
    ) -> VaultData:
        m = metadata
        v = on_chain
        platform_name = self.platforms.platform_name(v) if v else ""
        return VaultData(
            address=address,
            chain_id=self.chain_id,
            display_name=(m and m.display_name)
            or (self.platforms.display_name(v) if v else ""),
            description=m.description if m else "",
            icon_url=m.icon_url if m else "",
            labels=list(m.labels) if m else [],
            investment_type=(m and m.investment_type) or platform_name,
            network_type=m.network_type if m else "",
            risk_score=m.risk_score if m else 0,
            paused=m.paused if m else False,
            base_asset=(m and m.token0) or (v.asset_address if v else ""),
            shares_asset=(m and m.token1) or (v.shares_address if v else ""),
            base_asset_decimals=(m and m.decimals0) or (v.decimals if v else 0) or 8,
            shares_asset_decimals=(m and m.decimals1) or (v.decimals if v else 0) or 8,
            tvl=m.tvl if m else "0",
            apr=m.apr if m else "0",
            reward_apr=m.reward_apr if m else "0",
            reward_pools=list(m.reward_pools) if m else [],
            additional_metadata=dict(m.additional_metadata) if m else {},
            total_assets=str(v.total_asset) if v else None,
            total_supply=str(v.total_shares) if v else (m.total_supply if m else None),
            base_asset_balance=_nonzero(m.token0_balance if m else None)
            or (str(v.total_asset) if v else "0"),
            shares_asset_balance=_nonzero(m.token1_balance if m else None)
            or (str(v.total_shares) if v else "0"),
            strategies=[s.strategy_address for s in v.strategies] if v else None,
        )


def _nonzero(value: str | None) -> str | None:
    return value if value and value != "0" else None
