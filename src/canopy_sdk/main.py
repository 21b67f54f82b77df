"""CLI entrypoint for the Canopy SDK."""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import os
from pathlib import Path
from typing import Annotated, Awaitable, TypeVar

import typer

from .errors import CanopyError
from .formatter import (
    format_vault_panel,
    format_vaults_table,
    print_json,
    print_payload,
)
from .logger import setup_logging
from .settings import CanopySettings
from .state import AppState
from .units import scale_to_decimals

T = TypeVar("T")

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Build unsigned Canopy vault and staking transactions.",
)


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("canopy_sdk")


def _state(ctx: typer.Context) -> AppState:
    return ctx.obj


def _run(ctx: typer.Context, awaitable: Awaitable[T]) -> T:
    try:
        return asyncio.run(awaitable)  # type: ignore[arg-type]
    except CanopyError as exc:
        _state(ctx).logger.debug(
            "Command %s failed with %s: %s",
            ctx.info_name,
            exc.code.value,
            exc.details,
        )
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc


def _amount(value: str, decimals: int | None) -> int:
    if decimals is None and "." in value:
        raise typer.BadParameter(
            f"{value!r} has a fractional part; pass --decimals to scale it",
            param_hint="AMOUNT",
        )
    try:
        return scale_to_decimals(value, decimals or 0)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="AMOUNT") from exc


DecimalsOption = Annotated[
    int | None,
    typer.Option(
        "--decimals",
        "-d",
        min=0,
        max=32,
        help="Treat AMOUNT as a decimal number with this many decimals.",
    ),
]


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [canopy] table).",
        ),
    ] = None,
    rpc_url: Annotated[
        str | None,
        typer.Option("--rpc-url", help="Fullnode REST URL; overrides the default."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Load configuration and set up logging for the subcommands."""
    if config_path:
        os.environ["CANOPY_CONFIG"] = str(config_path)

    init_kwargs: dict[str, str] = {}
    if rpc_url is not None:
        init_kwargs["rpc_url"] = rpc_url
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = CanopySettings(**init_kwargs)
    setup_logging(settings.log_level)

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    ctx.obj = AppState(settings=settings, logger=_build_logger())


@app.command()
def deposit(
    ctx: typer.Context,
    vault: Annotated[str, typer.Argument(help="Vault address.")],
    amount: Annotated[str, typer.Argument(help="Amount of the vault asset.")],
    decimals: DecimalsOption = None,
):
    """Build a deposit payload."""
    client = _state(ctx).client
    print_payload(_run(ctx, client.deposit(vault, _amount(amount, decimals))))


@app.command()
def withdraw(
    ctx: typer.Context,
    vault: Annotated[str, typer.Argument(help="Vault address.")],
    shares: Annotated[str, typer.Argument(help="Amount of vault shares.")],
    decimals: DecimalsOption = None,
):
    """Build a withdraw payload."""
    client = _state(ctx).client
    print_payload(_run(ctx, client.withdraw(vault, _amount(shares, decimals))))


@app.command()
def stake(
    ctx: typer.Context,
    token: Annotated[str, typer.Argument(help="Staking token (vault shares) address.")],
    amount: Annotated[str, typer.Argument(help="Amount to stake.")],
    user: Annotated[
        str | None,
        typer.Option("--user", "-u", help="Skip pools this user is already subscribed to."),
    ] = None,
    pools: Annotated[
        list[str] | None,
        typer.Option("--pool", "-p", help="Pool address to subscribe to (repeatable)."),
    ] = None,
    decimals: DecimalsOption = None,
):
    """Build a stake payload, subscribing to reward pools as needed."""
    client = _state(ctx).client
    print_payload(
        _run(ctx, client.stake(token, _amount(amount, decimals), user, pools or None))
    )


@app.command()
def unstake(
    ctx: typer.Context,
    token: Annotated[str, typer.Argument(help="Token address or coin type.")],
    amount: Annotated[str, typer.Argument(help="Amount to unstake.")],
    decimals: DecimalsOption = None,
):
    """Build an unstake payload."""
    client = _state(ctx).client
    print_payload(_run(ctx, client.unstake(token, _amount(amount, decimals))))


@app.command()
def claim(
    ctx: typer.Context,
    tokens: Annotated[list[str], typer.Argument(help="Staking token addresses.")],
):
    """Build a claim-rewards payload for one or more staking tokens."""
    client = _state(ctx).client
    print_payload(_run(ctx, client.claim_rewards(tokens)))


@app.command()
def vault(
    ctx: typer.Context,
    address: Annotated[str, typer.Argument(help="Vault address.")],
):
    """Show a vault's metadata and on-chain state."""
    client = _state(ctx).client
    data = _run(ctx, client.get_vault(address))
    if data is None:
        typer.secho(f"Vault {address} not found", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)
    format_vault_panel(data)


@app.command()
def vaults(ctx: typer.Context):
    """List known vaults."""
    client = _state(ctx).client
    format_vaults_table(_run(ctx, client.get_vaults()))


@app.command()
def position(
    ctx: typer.Context,
    user: Annotated[str, typer.Argument(help="User address.")],
    vault: Annotated[str, typer.Argument(help="Vault address.")],
):
    """Show a user's shares in a vault and their asset value."""
    client = _state(ctx).client
    print_json(dataclasses.asdict(_run(ctx, client.get_user_vault_position(user, vault))))


@app.command(name="staking-position")
def staking_position(
    ctx: typer.Context,
    user: Annotated[str, typer.Argument(help="User address.")],
    token: Annotated[str, typer.Argument(help="Staking token address.")],
):
    """Show a user's staked balance, subscribed pools and pending rewards."""
    client = _state(ctx).client
    print_json(dataclasses.asdict(_run(ctx, client.get_user_staking_position(user, token))))


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
