"""Typer-based CLI for querying Poloniex."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from .api.client import PoloniexClient


# Imported lazily so tests can patch them
def _load_settings(config_path: Optional[Path] = None):
    from .config import load_settings
    return load_settings(config_path)

def _create_client(settings) -> "PoloniexClient":
    from .api.factory import create_client
    return create_client(settings)

def _configure_logging(log_dir: Path | None = None):
    from .logging import configure_logging
    return configure_logging(log_dir)

app = typer.Typer(help="Poloniex market data and account CLI")
console = Console()
logger = logging.getLogger(__name__)


def run_cli(argv: list[str] | None = None) -> None:
    """Run CLI with optional argv parameter."""
    app(argv)


def init_client(config_path: Optional[Path] = None) -> "PoloniexClient":
    settings = _load_settings(config_path)
    _configure_logging(None)
    logger.debug("settings=%s", settings.redacted())
    return _create_client(settings)


async def _with_client(config: Optional[Path], fn):
    async with init_client(config) as client:
        return await fn(client)


def _fail(action: str, exc: Exception) -> typer.Exit:
    logger.error("Failed to %s: %s", action, exc, exc_info=True)
    console.print(f"[red]Error:[/red] {exc}")
    return typer.Exit(1)


@app.command()
def ticker(
    pair: Optional[str] = typer.Argument(None, help="Only show this market"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show the ticker for all markets."""
    try:
        tickers = asyncio.run(_with_client(config, lambda c: c.get_ticker()))
    except Exception as e:
        raise _fail("fetch ticker", e)

    if pair:
        tickers = {k: v for k, v in tickers.items() if k == pair}
    if not tickers:
        console.print("[yellow]No markets found[/yellow]")
        return

    table = Table(title="Ticker")
    table.add_column("Market", style="cyan")
    table.add_column("Last", style="green")
    table.add_column("Bid", style="blue")
    table.add_column("Ask", style="red")
    table.add_column("Change", style="yellow")
    table.add_column("Base Volume", style="magenta")

    for market, t in sorted(tickers.items()):
        table.add_row(
            market,
            str(t.last),
            str(t.highest_bid),
            str(t.lowest_ask),
            f"{t.percent_change * 100:.2f}%",
            str(t.base_volume),
        )

    console.print(table)


@app.command()
def order_book(
    pair: str = typer.Argument(..., help="Market, e.g. BTC_LTC"),
    depth: int = typer.Option(10, help="Number of levels per side"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show the order book for one market."""
    try:
        books = asyncio.run(_with_client(config, lambda c: c.get_order_book(pair, depth)))
    except Exception as e:
        raise _fail("fetch order book", e)

    book = books.get(pair)
    if book is None:
        console.print(f"[yellow]No order book for {pair}[/yellow]")
        return

    table = Table(title=f"{pair} (seq {book.seq}){' FROZEN' if book.is_frozen else ''}")
    table.add_column("Bid Qty", style="blue")
    table.add_column("Bid", style="green")
    table.add_column("Ask", style="red")
    table.add_column("Ask Qty", style="magenta")

    for i in range(max(len(book.bids), len(book.asks))):
        bid = book.bids[i] if i < len(book.bids) else None
        ask = book.asks[i] if i < len(book.asks) else None
        table.add_row(
            str(bid.quantity) if bid else "",
            str(bid.price) if bid else "",
            str(ask.price) if ask else "",
            str(ask.quantity) if ask else "",
        )

    console.print(table)


@app.command()
def volume(
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show 24h volume totals per currency."""
    try:
        summary = asyncio.run(_with_client(config, lambda c: c.get_24h_volume()))
    except Exception as e:
        raise _fail("fetch 24h volume", e)

    table = Table(title="24h Volume Totals")
    table.add_column("Currency", style="cyan")
    table.add_column("Volume", style="green")
    for currency, amount in sorted(summary.totals.items()):
        table.add_row(currency, str(amount))

    console.print(table)
    console.print(f"\n[bold]Markets:[/bold] {len(summary.markets)}")


@app.command()
def balances(
    show_zero: bool = typer.Option(False, help="Include zero balances"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show complete account balances."""
    try:
        result = asyncio.run(_with_client(config, lambda c: c.get_complete_balances()))
    except Exception as e:
        raise _fail("fetch balances", e)

    rows = {k: v for k, v in result.items() if show_zero or v.total > 0}
    if not rows:
        console.print("[yellow]No balances found[/yellow]")
        return

    table = Table(title="Balances")
    table.add_column("Currency", style="cyan")
    table.add_column("Available", style="green")
    table.add_column("On Orders", style="yellow")
    table.add_column("BTC Value", style="magenta")
    for currency, b in sorted(rows.items()):
        table.add_row(currency, str(b.available), str(b.on_orders), str(b.btc_value))

    console.print(table)


@app.command()
def fee_info(
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show maker/taker fees and 30-day volume."""
    try:
        info = asyncio.run(_with_client(config, lambda c: c.get_fee_info()))
    except Exception as e:
        raise _fail("fetch fee info", e)

    console.print(Panel.fit(
        f"Maker fee: [bold]{info.maker_fee}[/bold]\n"
        f"Taker fee: [bold]{info.taker_fee}[/bold]\n"
        f"30-day volume: {info.thirty_day_volume}\n"
        f"Next tier: {info.next_tier if info.next_tier is not None else 'N/A'}",
        title="Fee Info"
    ))


@app.command()
def open_orders(
    pair: str = typer.Argument("all", help="Market, or 'all'"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """List open orders."""
    try:
        orders = asyncio.run(_with_client(config, lambda c: c.get_open_orders(pair)))
    except Exception as e:
        raise _fail("fetch open orders", e)

    rows = [(market, o) for market, items in sorted(orders.items()) for o in items]
    if not rows:
        console.print("[yellow]No open orders[/yellow]")
        return

    table = Table(title="Open Orders")
    table.add_column("Market", style="cyan")
    table.add_column("Order", style="magenta")
    table.add_column("Type", style="yellow")
    table.add_column("Rate", style="green")
    table.add_column("Amount", style="blue")
    table.add_column("Total", style="red")
    for market, o in rows:
        table.add_row(market, str(o.order_number), o.type, str(o.rate), str(o.amount), str(o.total))

    console.print(table)
    console.print(f"\n[bold]Total orders:[/bold] {len(rows)}")


def main():
    """CLI main entry point."""
    run_cli()


if __name__ == "__main__":
    main()
