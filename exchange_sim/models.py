"""Exchange models using Pydantic v2."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from exchange_sim.core.constants import PASSWORD_HASH_ITERATIONS
from exchange_sim.errors import ExchangeError, InvalidAmount


class Role(str, Enum):
    """Account role enumeration."""

    CUSTOMER = "Customer"
    ADMIN = "Admin"


class TradeSide(str, Enum):
    """Trade side enumeration."""

    BUY = "BUY"
    SELL = "SELL"


def normalize_symbol(symbol: str) -> str:
    """Uppercase and strip a ticker symbol."""
    return symbol.strip().upper()


def to_decimal(value: object, error: type[ExchangeError] = InvalidAmount) -> Decimal:
    """Convert user input to a finite Decimal, raising ``error`` otherwise."""
    if isinstance(value, bool):
        raise error(f"Not a number: {value!r}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise error(f"Not a number: {value!r}") from exc
    if not result.is_finite():
        raise error(f"Not a finite number: {value!r}")
    return result


class PriceQuote(BaseModel):
    """A single price table entry."""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(..., description="Ticker symbol")
    price: Decimal = Field(..., ge=0, description="Current price")
    name: str | None = Field(default=None, description="Display name")

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, v: str) -> str:
        """Ensure symbol is uppercase and non-empty."""
        if not v or not v.strip():
            raise ValueError("Symbol cannot be empty")
        return normalize_symbol(v)


class AccountRecord(BaseModel):
    """Serialized form of an account, as exchanged with the persistence store."""

    username: str
    password_hash: str
    salt: str
    iterations: int = Field(default=PASSWORD_HASH_ITERATIONS, ge=1)
    role: Role = Role.CUSTOMER
    balance: Decimal = Field(default=Decimal("0"), ge=0)
    portfolio: dict[str, int] = Field(default_factory=dict)

    @field_validator("portfolio")
    @classmethod
    def validate_portfolio(cls, v: dict[str, int]) -> dict[str, int]:
        """Drop empty positions and normalize symbols."""
        cleaned: dict[str, int] = {}
        for symbol, quantity in v.items():
            if quantity < 0:
                raise ValueError(f"Negative quantity for {symbol}: {quantity}")
            if quantity > 0:
                cleaned[normalize_symbol(symbol)] = quantity
        return cleaned


class TradeResult(BaseModel):
    """Outcome of a committed buy or sell."""

    username: str
    side: TradeSide
    symbol: str
    quantity: int
    price: Decimal
    total: Decimal
    balance: Decimal
    position: int


class Holding(BaseModel):
    """A valued position inside a net worth report."""

    symbol: str
    quantity: int
    price: Decimal
    value: Decimal


class NetWorthReport(BaseModel):
    """Balance plus market value of all resolvable positions."""

    balance: Decimal
    holdings: list[Holding] = Field(default_factory=list)
    unresolved: dict[str, int] = Field(
        default_factory=dict, description="Delisted symbols held, with quantity"
    )

    @property
    def market_value(self) -> Decimal:
        return sum((holding.value for holding in self.holdings), Decimal("0"))

    @property
    def total(self) -> Decimal:
        return self.balance + self.market_value

    @property
    def has_unresolved(self) -> bool:
        return bool(self.unresolved)


class AccountSummary(BaseModel):
    """Read-only view of an account for listings."""

    username: str
    role: Role
    balance: Decimal
    portfolio: dict[str, int] = Field(default_factory=dict)
