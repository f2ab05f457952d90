"""Common constants shared across the exchange simulator."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

DEFAULT_TICK_SECONDS = 5.0
DEFAULT_MAX_TICK_SWING = 0.1
DEFAULT_STARTING_BALANCE = Decimal("1000")
PRICE_QUANTUM = Decimal("0.01")

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "admin"

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20

PASSWORD_HASH_ITERATIONS = 200_000
PASSWORD_SALT_BYTES = 16

# symbol -> (name, price)
PRESET_PRICES: dict[str, tuple[str, Decimal]] = {
    "AAPL": ("Apple Inc.", Decimal("150.00")),
    "TSLA": ("Tesla Inc.", Decimal("300.00")),
}

ACCOUNTS_FILE = Path("accounts.json")
PRICES_FILE = Path("prices.json")
