"""Rich console output for the CLI."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .domain import EntryFunctionPayload, VaultData
from .units import scale_from_decimals


def _truncate_address(address: str) -> str:
    """Truncate address for display."""
    if len(address) <= 16:
        return address
    return f"{address[:10]}...{address[-4:]}"


def _format_amount(raw: str | None, decimals: int) -> str:
    if not raw or not raw.isdigit():
        return raw or "-"
    return scale_from_decimals(int(raw), decimals)


def print_payload(payload: EntryFunctionPayload) -> None:
    """Print a payload as JSON on stdout (bytes as 0x hex)."""
    print(json.dumps(payload.to_dict(), indent=2))


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def format_vaults_table(vaults: list[VaultData], console: Console | None = None) -> None:
    console = console or Console()
    table = Table(title="Vaults", show_lines=False)
    table.add_column("Address", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Type", style="magenta")
    table.add_column("Total assets", justify="right")
    table.add_column("APR", justify="right")
    table.add_column("Strategies", justify="right")
    table.add_column("Paused", justify="center")

    for vault in vaults:
        table.add_row(
            _truncate_address(vault.address),
            vault.display_name or "-",
            vault.investment_type or "-",
            _format_amount(vault.total_assets, vault.base_asset_decimals),
            vault.apr,
            str(len(vault.strategies)) if vault.strategies is not None else "-",
            "[red]yes[/red]" if vault.paused else "no",
        )

    console.print(table)


def format_vault_panel(vault: VaultData, console: Console | None = None) -> None:
    console = console or Console()
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    table.add_row("Address", vault.address)
    table.add_row("Chain", str(vault.chain_id))
    table.add_row("Type", vault.investment_type or "-")
    table.add_row("Base asset", vault.base_asset or "-")
    table.add_row("Shares asset", vault.shares_asset or "-")
    table.add_row(
        "Total assets", _format_amount(vault.total_assets, vault.base_asset_decimals)
    )
    table.add_row(
        "Total supply", _format_amount(vault.total_supply, vault.shares_asset_decimals)
    )
    table.add_row("TVL", vault.tvl)
    table.add_row("APR / reward APR", f"{vault.apr} / {vault.reward_apr}")
    table.add_row("Paused", "yes" if vault.paused else "no")
    for strategy in vault.strategies or []:
        table.add_row("Strategy", strategy)
    for pool in vault.reward_pools:
        table.add_row("Reward pool", pool)

    console.print(Panel(table, title=vault.display_name or "Vault", expand=False))
