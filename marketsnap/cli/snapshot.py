"""Snapshot and indicator commands for the marketsnap CLI."""

from __future__ import annotations

import asyncio
import sys
from typing import Any, Callable

import typer

from marketsnap.core.aggregator import Aggregator, RequestOptions
from marketsnap.core.config import MarketSnapConfig
from marketsnap.core.indicators import RSI_PERIOD, rsi_wilder
from marketsnap.core.models import FieldName
from marketsnap.core.providers import ProviderClients, create_http_client
from marketsnap.core.scheduler import RefreshScheduler

from .formatters import create_formatter


def register(app: typer.Typer) -> None:
    """Register the snapshot and rsi commands on the provided application."""

    app.command("snapshot")(snapshot_command)
    app.command("rsi")(rsi_command)


async def run_snapshot(config: MarketSnapConfig, options: RequestOptions) -> dict[str, Any]:
    """Aggregate once with a short-lived HTTP client and return the wire payload."""

    async with create_http_client(config.providers) as http_client:
        clients = ProviderClients.create(http_client, config.providers)
        aggregator = Aggregator.from_settings(config.providers, clients)
        snapshot = await aggregator.collect(options)
    return snapshot.to_wire()


async def watch_snapshots(
    config: MarketSnapConfig,
    options: RequestOptions,
    interval: float,
    render: Callable[[dict[str, Any]], None],
) -> None:
    async def tick() -> None:
        render(await run_snapshot(config, options))

    scheduler = RefreshScheduler(tick)
    scheduler.start(int(interval * 1000))
    try:
        while scheduler.running:
            await asyncio.sleep(1)
    finally:
        await scheduler.stop()


def snapshot_command(
    ctx: typer.Context,
    no_inav: bool = typer.Option(False, "--no-inav", help="Skip the NAV lookup."),
    inav_manual: float | None = typer.Option(None, "--inav-manual", help="Manual NAV value."),
    price_manual: float | None = typer.Option(None, "--price-manual", help="Manual ETF price."),
    real_yield_manual: float | None = typer.Option(None, "--real-yield-manual", help="Manual real yield."),
    watch: float | None = typer.Option(None, "--watch", help="Refresh every N seconds until interrupted."),
) -> None:
    """Fetch one market snapshot and print it."""

    formatter = create_formatter(ctx.obj["format"], no_color=ctx.obj["no_color"])
    manual = {
        FieldName.INAV: inav_manual,
        FieldName.PRICE: price_manual,
        FieldName.REAL_YIELD: real_yield_manual,
    }
    options = RequestOptions(
        inav_enabled=not no_inav,
        overrides={name: value for name, value in manual.items() if value is not None},
    )
    config: MarketSnapConfig = ctx.obj["config"]

    def render(payload: dict[str, Any]) -> None:
        formatter.render(payload, stream=sys.stdout)

    if watch:
        if watch <= 0:
            raise typer.BadParameter("must be positive", param_hint="--watch")
        try:
            asyncio.run(watch_snapshots(config, options, watch, render))
        except KeyboardInterrupt:
            typer.echo("stopped")
        return
    render(asyncio.run(run_snapshot(config, options)))


def rsi_command(
    closes: list[float] = typer.Argument(..., help="Closing prices, oldest first."),
    period: int = typer.Option(RSI_PERIOD, "--period", help="Smoothing period."),
) -> None:
    """Compute the Wilder RSI of the given closes."""

    value = rsi_wilder(closes, period)
    if value is None:
        typer.echo(f"need at least {period + 1} closes, got {len(closes)}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"{value:.1f}")
