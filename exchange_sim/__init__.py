"""Exchange Simulator - a stock trading sandbox with a moving price list."""

__version__ = "0.1.0"

from exchange_sim.core.config import ExchangeConfig, load_config
from exchange_sim.core.constants import (
    DEFAULT_STARTING_BALANCE,
    DEFAULT_TICK_SECONDS,
    PRESET_PRICES,
)
from exchange_sim.engine import ExchangeEngine, Session
from exchange_sim.errors import (
    ExchangeError,
    Forbidden,
    InsufficientFunds,
    InsufficientShares,
    InvalidAmount,
    InvalidUsername,
    InvalidValue,
    PersistenceError,
    SymbolNotFound,
    Unauthorized,
    UsernameTaken,
)
from exchange_sim.ledger import Account, Ledger
from exchange_sim.models import (
    AccountRecord,
    AccountSummary,
    Holding,
    NetWorthReport,
    PriceQuote,
    Role,
    TradeResult,
    TradeSide,
)
from exchange_sim.oscillator import PriceOscillator
from exchange_sim.persistence import (
    JsonPersistenceStore,
    MemoryPersistenceStore,
    PersistenceStore,
)
from exchange_sim.prices import PriceTable

__all__ = [
    "ExchangeConfig",
    "load_config",
    "DEFAULT_STARTING_BALANCE",
    "DEFAULT_TICK_SECONDS",
    "PRESET_PRICES",
    "ExchangeEngine",
    "Session",
    "ExchangeError",
    "Forbidden",
    "InsufficientFunds",
    "InsufficientShares",
    "InvalidAmount",
    "InvalidUsername",
    "InvalidValue",
    "PersistenceError",
    "SymbolNotFound",
    "Unauthorized",
    "UsernameTaken",
    "Account",
    "Ledger",
    "AccountRecord",
    "AccountSummary",
    "Holding",
    "NetWorthReport",
    "PriceQuote",
    "Role",
    "TradeResult",
    "TradeSide",
    "PriceOscillator",
    "JsonPersistenceStore",
    "MemoryPersistenceStore",
    "PersistenceStore",
    "PriceTable",
]
