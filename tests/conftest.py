from __future__ import annotations

import os
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

from canopy_sdk.settings import CanopySettings, ModuleSettings

ROUTER = "0x" + "a1" * 32
VAULT_MODULE = "0x" + "b2" * 32
DEPOSIT_VIEW = "0x" + "c3" * 32
WITHDRAW_VIEW = "0x" + "d4" * 32
MULTI_REWARDS = "0x" + "e5" * 32
MULTI_REWARDS_ROUTER = "0x" + "f6" * 32


@pytest.fixture
def modules() -> ModuleSettings:
    return ModuleSettings(
        router=ROUTER,
        vault=VAULT_MODULE,
        deposit_view=DEPOSIT_VIEW,
        withdraw_view=WITHDRAW_VIEW,
        multi_rewards=MULTI_REWARDS,
        multi_rewards_router=MULTI_REWARDS_ROUTER,
    )


@pytest.fixture
def settings(tmp_path, monkeypatch, modules) -> CanopySettings:
    """Settings isolated from the developer's env and config files."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for key in list(os.environ):
        if key.startswith("CANOPY_"):
            monkeypatch.delenv(key, raising=False)
    return CanopySettings(modules=modules)


@pytest.fixture
def make_view() -> Callable[[dict[str, Any]], AsyncMock]:
    """Build a view client answering by function name suffix.

    Values in ``responses`` are either the result list or a callable taking
    ``(type_arguments, arguments)``; an Exception instance is raised.
    """

    def _make(responses: dict[str, Any]) -> AsyncMock:
        async def _view(function: str, type_arguments, arguments):
            for suffix, answer in responses.items():
                if function.endswith(suffix):
                    if isinstance(answer, Exception):
                        raise answer
                    if callable(answer):
                        return answer(list(type_arguments), list(arguments))
                    return answer
            raise AssertionError(f"unexpected view call {function}")

        mock = AsyncMock()
        mock.view = AsyncMock(side_effect=_view)
        return mock

    return _make


VAULT = "0x" + "11" * 32
ASSET = "0x83121c9f9b0527d1f056e21a950d6bf3b9e9e2e8353d0e95ccea726713cbea39"
SHARES = "0x" + "22" * 32


@pytest.fixture
def raw_vault() -> Callable[..., dict[str, Any]]:
    """Build a raw ``vault_view`` struct as returned by the node."""

    def _make(
        concrete_addresses: list[str] | None = None,
        paired_coin_type: str | None = None,
        **overrides: Any,
    ) -> dict[str, Any]:
        strategies = [
            {
                "strategy_address": f"0x{index + 1:064x}",
                "concrete_address": concrete,
                "asset_address": ASSET,
                "current_vault_debt": "100",
                "debt_limit": "1000",
                "decimals": 6,
                "last_report": "1700000000",
                "shares_address": SHARES,
                "total_asset": "100",
                "total_debt": "100",
                "total_idle": "0",
                "total_loss": "0",
                "total_profit": "3",
                "total_shares": "100",
                "vault_address": VAULT,
            }
            for index, concrete in enumerate(concrete_addresses or [])
        ]
        raw = {
            "decimals": 6,
            "total_debt": "100",
            "total_idle": "50",
            "total_shares": "140",
            "total_asset": "150",
            "asset_name": "",
            "shares_name": "cvUSDC",
            "vault_address": VAULT,
            "asset_address": ASSET,
            "shares_address": SHARES,
            "paired_coin_type": {"vec": [paired_coin_type] if paired_coin_type else []},
            "strategies": strategies,
        }
        raw.update(overrides)
        return raw

    return _make
