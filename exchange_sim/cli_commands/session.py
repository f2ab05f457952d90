"""Interactive menu session for customers and administrators."""

from collections.abc import Callable
from typing import TypeVar

import typer
from loguru import logger
from rich.console import Console

from exchange_sim.core.config import load_config
from exchange_sim.engine import ExchangeEngine, Session
from exchange_sim.errors import ExchangeError

from .utils import (
    accounts_table,
    build_engine,
    format_money,
    portfolio_table,
    price_table,
    setup_logging,
)

T = TypeVar("T")

session_app = typer.Typer(
    name="session",
    help="Interactive exchange session",
)

console = Console()

MAIN_MENU = ("1. Login", "2. Create New User", "3. Exit")
ADMIN_MENU = (
    "1. Add or Edit Stock Price",
    "2. Remove Stock",
    "3. View Stock Prices",
    "4. View All Users",
    "5. Logout",
)
CUSTOMER_MENU = (
    "1. Buy Stock",
    "2. Sell Stock",
    "3. Deposit Funds",
    "4. View Portfolio",
    "5. View Balance",
    "6. View Stock Prices",
    "7. Delete Account",
    "8. Logout",
)


@session_app.command()
def run(
    tick_interval: float | None = typer.Option(
        None, "--tick-interval", help="Seconds between price changes (overrides config)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Start the interactive exchange with prices moving in the background."""

    config = load_config()
    if tick_interval is not None:
        config = config.model_copy(update={"tick_interval_seconds": tick_interval})
    setup_logging(config.log_dir, verbose=verbose, quiet=not verbose)

    engine = build_engine(config)
    engine.start()
    try:
        main_menu(engine)
    except (KeyboardInterrupt, typer.Abort):
        console.print()
    finally:
        engine.shutdown()
        if engine.last_save_error is not None:
            console.print(f"[red]Warning: last save failed: {engine.last_save_error}[/red]")


def main_menu(engine: ExchangeEngine) -> None:
    while True:
        console.print("[bold]Welcome to the Stock Exchange![/bold]")
        choice = _choose(MAIN_MENU)
        if choice == "1":
            session = _attempt(
                lambda: engine.login(
                    typer.prompt("Username"), typer.prompt("Password", hide_input=True)
                )
            )
            if session is None:
                continue
            console.print(f"[green]Welcome {session.username}![/green]")
            if session.is_admin:
                admin_menu(engine, session)
            else:
                customer_menu(engine, session)
        elif choice == "2":
            session = _attempt(
                lambda: engine.sign_up(
                    typer.prompt("New username"),
                    typer.prompt("New password", hide_input=True, confirmation_prompt=True),
                )
            )
            if session is not None:
                console.print(f"[green]Account {session.username} created.[/green]")
        elif choice == "3":
            return
        else:
            console.print("[red]Invalid choice.[/red]")


def admin_menu(engine: ExchangeEngine, session: Session) -> None:
    while True:
        choice = _choose(ADMIN_MENU, title="Admin Menu")
        if choice == "1":
            quote = _attempt(
                lambda: engine.set_price(
                    session,
                    typer.prompt("Symbol"),
                    typer.prompt("Price"),
                    name=typer.prompt("Name", default="", show_default=False) or None,
                )
            )
            if quote is not None:
                console.print(f"[green]{quote.symbol} set to {format_money(quote.price)}[/green]")
        elif choice == "2":
            symbol = typer.prompt("Symbol")
            removed = _attempt(lambda: engine.remove_symbol(session, symbol))
            if removed:
                console.print(f"[green]{symbol.upper()} removed.[/green]")
            elif removed is not None:
                console.print(f"[yellow]{symbol.upper()} is not listed.[/yellow]")
        elif choice == "3":
            console.print(price_table(engine.list_prices()))
        elif choice == "4":
            accounts = _attempt(lambda: engine.list_accounts(session))
            if accounts is not None:
                console.print(accounts_table(accounts))
        elif choice == "5":
            engine.logout(session)
            return
        else:
            console.print("[red]Invalid choice.[/red]")


def customer_menu(engine: ExchangeEngine, session: Session) -> None:
    while True:
        choice = _choose(CUSTOMER_MENU, title="User Menu")
        if choice in ("1", "2"):
            console.print(price_table(engine.list_prices()))
            trade = engine.buy if choice == "1" else engine.sell
            result = _attempt(
                lambda: trade(session, typer.prompt("Symbol"), typer.prompt("Quantity"))
            )
            if result is not None:
                console.print(
                    f"[green]{result.side.value} {result.quantity} {result.symbol} @ "
                    f"{format_money(result.price)} (total {format_money(result.total)}). "
                    f"Balance: {format_money(result.balance)}[/green]"
                )
        elif choice == "3":
            balance = _attempt(lambda: engine.deposit(session, typer.prompt("Amount")))
            if balance is not None:
                console.print(f"[green]New balance: {format_money(balance)}[/green]")
        elif choice == "4":
            report = _attempt(lambda: engine.net_worth(session))
            if report is not None:
                console.print(portfolio_table(report))
                if report.has_unresolved:
                    console.print(
                        "[yellow]Positions in delisted symbols are not valued.[/yellow]"
                    )
        elif choice == "5":
            balance = _attempt(lambda: engine.balance(session))
            if balance is not None:
                console.print(f"Your current balance: {format_money(balance)}")
        elif choice == "6":
            console.print(price_table(engine.list_prices()))
        elif choice == "7":
            if not typer.confirm("Delete your account permanently?", default=False):
                continue
            try:
                engine.delete_account(session)
            except ExchangeError as exc:
                console.print(f"[red]{exc}[/red]")
                continue
            console.print("[green]Account deleted.[/green]")
            return
        elif choice == "8":
            engine.logout(session)
            return
        else:
            console.print("[red]Invalid choice.[/red]")


def _choose(options: tuple[str, ...], title: str | None = None) -> str:
    if title:
        console.print(f"[bold]{title}:[/bold]")
    for option in options:
        console.print(option)
    return typer.prompt("Choice").strip()


def _attempt(action: Callable[[], T]) -> T | None:
    """Run ``action``; domain errors are printed and None is returned."""
    try:
        return action()
    except ExchangeError as exc:
        logger.debug("Operation failed: {}", exc)
        console.print(f"[red]{exc}[/red]")
        return None
