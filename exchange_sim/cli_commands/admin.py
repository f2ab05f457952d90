"""Offline administration commands against the stored exchange state."""

import typer
from loguru import logger
from rich.console import Console

from exchange_sim.core.config import load_config
from exchange_sim.engine import ExchangeEngine, Session
from exchange_sim.errors import ExchangeError

from .utils import accounts_table, build_engine, format_money, price_table, setup_logging

admin_app = typer.Typer(
    name="admin",
    help="Price list and account administration",
)

console = Console()


def _admin_session(engine: ExchangeEngine, username: str, password: str) -> Session:
    try:
        session = engine.login(username, password)
    except ExchangeError as exc:
        logger.error("Login failed: {}", exc)
        raise typer.Exit(code=1) from exc
    if not session.is_admin:
        logger.error("{} is not an administrator", username)
        raise typer.Exit(code=1)
    return session


@admin_app.command()
def prices(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Show the stored price list."""

    config = load_config()
    setup_logging(config.log_dir, verbose)
    engine = build_engine(config)
    console.print(price_table(engine.list_prices()))


@admin_app.command("set-price")
def set_price(
    symbol: str = typer.Argument(..., help="Ticker symbol"),
    price: str = typer.Argument(..., help="New price"),
    name: str | None = typer.Option(None, "--name", help="Display name"),
    username: str = typer.Option(..., "--username", "-u", prompt=True),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Add a symbol or change its price."""

    config = load_config()
    setup_logging(config.log_dir, verbose)
    engine = build_engine(config)
    session = _admin_session(engine, username, password)
    try:
        quote = engine.set_price(session, symbol, price, name=name)
    except ExchangeError as exc:
        logger.error("Unable to set price: {}", exc)
        raise typer.Exit(code=1) from exc
    if engine.last_save_error is not None:
        raise typer.Exit(code=1)
    typer.echo(f"{quote.symbol} set to {format_money(quote.price)}")


@admin_app.command("remove-symbol")
def remove_symbol(
    symbol: str = typer.Argument(..., help="Ticker symbol"),
    username: str = typer.Option(..., "--username", "-u", prompt=True),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Delist a symbol. Held positions stay in portfolios but are no longer valued."""

    config = load_config()
    setup_logging(config.log_dir, verbose)
    engine = build_engine(config)
    session = _admin_session(engine, username, password)
    if not engine.remove_symbol(session, symbol):
        logger.error("{} is not listed", symbol.upper())
        raise typer.Exit(code=1)
    if engine.last_save_error is not None:
        raise typer.Exit(code=1)
    typer.echo(f"{symbol.upper()} removed")


@admin_app.command()
def accounts(
    username: str = typer.Option(..., "--username", "-u", prompt=True),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """List every account with balance and positions."""

    config = load_config()
    setup_logging(config.log_dir, verbose)
    engine = build_engine(config)
    session = _admin_session(engine, username, password)
    console.print(accounts_table(engine.list_accounts(session)))
