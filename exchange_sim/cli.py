"""CLI entry point for the exchange simulator.

Commands are grouped under ``session`` and ``admin``. The day-to-day ones are
also exposed at the top level, so ``exchange-sim run`` opens the interactive
menu and ``exchange-sim prices`` prints the stored price list.
"""

import typer

from exchange_sim.cli_commands import admin, session

app = typer.Typer(
    name="exchange-sim",
    help="Stock exchange simulator with a moving price list",
)

app.add_typer(session.session_app, name="session")
app.add_typer(admin.admin_app, name="admin")

SHORTCUTS = {
    "run": session.run,
    "prices": admin.prices,
    "set-price": admin.set_price,
    "remove-symbol": admin.remove_symbol,
    "accounts": admin.accounts,
}

for _name, _command in SHORTCUTS.items():
    app.command(name=_name)(_command)


if __name__ == "__main__":
    app()
