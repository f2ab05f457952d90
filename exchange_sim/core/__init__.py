"""Core infrastructure modules for the exchange simulator."""

from .config import ExchangeConfig, load_config
from .constants import (
    ACCOUNTS_FILE,
    DEFAULT_ADMIN_PASSWORD,
    DEFAULT_ADMIN_USERNAME,
    DEFAULT_STARTING_BALANCE,
    DEFAULT_TICK_SECONDS,
    PRESET_PRICES,
    PRICE_QUANTUM,
    PRICES_FILE,
)

__all__ = [
    "ExchangeConfig",
    "load_config",
    "ACCOUNTS_FILE",
    "PRICES_FILE",
    "DEFAULT_ADMIN_USERNAME",
    "DEFAULT_ADMIN_PASSWORD",
    "DEFAULT_STARTING_BALANCE",
    "DEFAULT_TICK_SECONDS",
    "PRESET_PRICES",
    "PRICE_QUANTUM",
]
