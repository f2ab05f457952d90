"""Shared utility functions for CLI commands."""

import sys
from collections.abc import Iterable
from decimal import Decimal
from pathlib import Path

import typer
from loguru import logger
from rich.table import Table

from exchange_sim.core.config import ExchangeConfig
from exchange_sim.engine import ExchangeEngine
from exchange_sim.errors import PersistenceError
from exchange_sim.models import AccountSummary, NetWorthReport, PriceQuote
from exchange_sim.persistence import JsonPersistenceStore


def setup_logging(log_dir: Path, verbose: bool = False, quiet: bool = False) -> None:
    """Configure loguru logging.

    Args:
        log_dir: Directory for log files
        verbose: Enable verbose debug logging
        quiet: Only show warnings on the console (interactive sessions)
    """
    # Remove default handler
    logger.remove()

    # Console handler
    log_level = "DEBUG" if verbose else "WARNING" if quiet else "INFO"
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
        "<level>{message}</level>",
        level=log_level,
    )

    # File handler
    logger.add(
        log_dir / "exchange_{time}.log",
        rotation="1 day",
        retention="7 days",
        level="DEBUG",
    )


def build_engine(config: ExchangeConfig) -> ExchangeEngine:
    """Create an engine backed by the JSON store under ``config.data_dir``."""
    store = JsonPersistenceStore(config.data_dir)
    try:
        return ExchangeEngine(config=config, store=store)
    except PersistenceError as exc:
        logger.error("Unable to load exchange state: {}", exc)
        raise typer.Exit(code=1) from exc


def format_money(value: Decimal) -> str:
    return f"${value:,.2f}"


def price_table(quotes: Iterable[PriceQuote]) -> Table:
    table = Table(title="Stock Prices")
    table.add_column("Symbol", style="cyan")
    table.add_column("Name")
    table.add_column("Price", justify="right", style="green")
    for quote in quotes:
        table.add_row(quote.symbol, quote.name or "", format_money(quote.price))
    return table


def portfolio_table(report: NetWorthReport) -> Table:
    table = Table(title="Portfolio")
    table.add_column("Symbol", style="cyan")
    table.add_column("Quantity", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Value", justify="right", style="green")
    for holding in report.holdings:
        table.add_row(
            holding.symbol,
            str(holding.quantity),
            format_money(holding.price),
            format_money(holding.value),
        )
    for symbol, quantity in report.unresolved.items():
        table.add_row(symbol, str(quantity), "delisted", "unresolved", style="red")
    table.add_section()
    table.add_row("Cash", "", "", format_money(report.balance))
    table.add_row("Net worth", "", "", format_money(report.total), style="bold")
    return table


def accounts_table(accounts: Iterable[AccountSummary]) -> Table:
    table = Table(title="Accounts")
    table.add_column("Username", style="cyan")
    table.add_column("Role")
    table.add_column("Balance", justify="right", style="green")
    table.add_column("Positions")
    for account in accounts:
        positions = ", ".join(f"{symbol} x{qty}" for symbol, qty in account.portfolio.items())
        table.add_row(
            account.username, account.role.value, format_money(account.balance), positions
        )
    return table
