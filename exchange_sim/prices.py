"""Authoritative symbol -> price table shared by the engine and the oscillator."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from decimal import Decimal

from loguru import logger

from exchange_sim.errors import InvalidValue, SymbolNotFound
from exchange_sim.models import PriceQuote, normalize_symbol, to_decimal


class PriceTable:
    """Thread-safe price table.

    Every read and write goes through one re-entrant lock, so a reader never
    observes a partially applied tick or admin edit. ``locked()`` lets a
    caller hold prices stable across several reads (e.g. a trade).
    """

    def __init__(self, quotes: Iterable[PriceQuote] = ()) -> None:
        self._lock = threading.RLock()
        self._prices: dict[str, Decimal] = {}
        self._names: dict[str, str] = {}
        self.load(quotes)

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def get(self, symbol: str) -> Decimal:
        key = normalize_symbol(symbol)
        with self._lock:
            price = self._prices.get(key)
        if price is None:
            raise SymbolNotFound(f"Symbol not listed: {key}")
        return price

    def find(self, symbol: str) -> Decimal | None:
        """Return the price for ``symbol`` or None when it is not listed."""
        with self._lock:
            return self._prices.get(normalize_symbol(symbol))

    def set(self, symbol: str, price: object, name: str | None = None) -> PriceQuote:
        """Insert or update a symbol; the existing name is kept when ``name`` is None."""
        key = normalize_symbol(symbol)
        if not key:
            raise InvalidValue("Symbol cannot be empty")
        value = to_decimal(price, InvalidValue)
        if value < 0:
            raise InvalidValue(f"Price cannot be negative: {value}")
        with self._lock:
            self._prices[key] = value
            if name:
                self._names[key] = name
            return PriceQuote(symbol=key, price=value, name=self._names.get(key))

    def remove(self, symbol: str) -> bool:
        key = normalize_symbol(symbol)
        with self._lock:
            if key not in self._prices:
                return False
            del self._prices[key]
            self._names.pop(key, None)
            return True

    def snapshot(self) -> list[PriceQuote]:
        """Ordered copy of every entry."""
        with self._lock:
            return [
                PriceQuote(symbol=symbol, price=self._prices[symbol], name=self._names.get(symbol))
                for symbol in sorted(self._prices)
            ]

    def symbols(self) -> list[str]:
        with self._lock:
            return sorted(self._prices)

    def load(self, quotes: Iterable[PriceQuote]) -> None:
        """Replace the whole table with ``quotes``."""
        prices: dict[str, Decimal] = {}
        names: dict[str, str] = {}
        for quote in quotes:
            prices[quote.symbol] = quote.price
            if quote.name:
                names[quote.symbol] = quote.name
        with self._lock:
            self._prices = prices
            self._names = names

    def apply_tick(self, transform: Callable[[str, Decimal], Decimal]) -> dict[str, Decimal]:
        """Recompute every price and commit the batch atomically.

        ``transform`` receives each (symbol, price) captured at the start of the
        tick. Nothing is committed if it raises. Negative results are clamped
        to zero.
        """
        with self._lock:
            updates: dict[str, Decimal] = {}
            for symbol, price in list(self._prices.items()):
                new_price = transform(symbol, price)
                if new_price < 0:
                    logger.warning(
                        "Clamping negative price for {}: {} -> 0", symbol, new_price
                    )
                    new_price = Decimal("0")
                updates[symbol] = new_price
            self._prices.update(updates)
            return dict(updates)

    def __contains__(self, symbol: object) -> bool:
        if not isinstance(symbol, str):
            return False
        with self._lock:
            return normalize_symbol(symbol) in self._prices

    def __len__(self) -> int:
        with self._lock:
            return len(self._prices)
