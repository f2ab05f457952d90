"""Persistence stores for the account ledger and the price table."""

from __future__ import annotations

import json
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol

from loguru import logger
from pydantic import ValidationError

from exchange_sim.core.constants import ACCOUNTS_FILE, PRICES_FILE
from exchange_sim.errors import PersistenceError
from exchange_sim.models import AccountRecord, PriceQuote


class PersistenceStore(Protocol):
    """Whole-state store the engine loads on startup and saves after mutations.

    The loaders return None when nothing has been saved yet; an empty list is
    a saved empty state.
    """

    def load_accounts(self) -> list[AccountRecord] | None: ...

    def load_prices(self) -> list[PriceQuote] | None: ...

    def save(self, accounts: Sequence[AccountRecord], prices: Sequence[PriceQuote]) -> None: ...


class MemoryPersistenceStore:
    """Keeps the last saved state in process memory."""

    def __init__(
        self,
        accounts: Sequence[AccountRecord] | None = None,
        prices: Sequence[PriceQuote] | None = None,
    ) -> None:
        self._accounts = list(accounts) if accounts is not None else None
        self._prices = list(prices) if prices is not None else None
        self.saves = 0

    def load_accounts(self) -> list[AccountRecord] | None:
        if self._accounts is None:
            return None
        return [record.model_copy(deep=True) for record in self._accounts]

    def load_prices(self) -> list[PriceQuote] | None:
        if self._prices is None:
            return None
        return list(self._prices)

    def save(self, accounts: Sequence[AccountRecord], prices: Sequence[PriceQuote]) -> None:
        self._accounts = [record.model_copy(deep=True) for record in accounts]
        self._prices = list(prices)
        self.saves += 1


class JsonPersistenceStore:
    """Mirrors state into ``accounts.json`` and ``prices.json`` under ``data_dir``.

    Files are written to a temporary sibling and renamed into place, so a
    concurrent reader never sees a truncated document. A missing file loads
    as None so the engine can tell a fresh install from an emptied table.
    """

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir
        self.accounts_path = data_dir / ACCOUNTS_FILE.name
        self.prices_path = data_dir / PRICES_FILE.name
        self._lock = threading.Lock()

    def load_accounts(self) -> list[AccountRecord] | None:
        decoded = self._read(self.accounts_path)
        if decoded is None:
            return None
        if not isinstance(decoded, list):
            raise PersistenceError(f"Expected a list of accounts in {self.accounts_path}")
        try:
            records = [AccountRecord.model_validate(item) for item in decoded]
        except ValidationError as exc:
            raise PersistenceError(
                f"Invalid account record in {self.accounts_path}: {exc}"
            ) from exc
        logger.info("Loaded {} accounts from {}", len(records), self.accounts_path)
        return records

    def load_prices(self) -> list[PriceQuote] | None:
        decoded = self._read(self.prices_path)
        if decoded is None:
            return None
        if not isinstance(decoded, dict):
            raise PersistenceError(f"Expected a symbol mapping in {self.prices_path}")
        try:
            quotes = [
                PriceQuote(symbol=symbol, **_price_payload(payload))
                for symbol, payload in decoded.items()
            ]
        except (ValidationError, TypeError) as exc:
            raise PersistenceError(f"Invalid price entry in {self.prices_path}: {exc}") from exc
        logger.info("Loaded {} prices from {}", len(quotes), self.prices_path)
        return quotes

    def save(self, accounts: Sequence[AccountRecord], prices: Sequence[PriceQuote]) -> None:
        account_data = [record.model_dump(mode="json") for record in accounts]
        price_data: dict[str, Any] = {
            quote.symbol: {"price": str(quote.price), "name": quote.name} for quote in prices
        }
        with self._lock:
            try:
                self.data_dir.mkdir(parents=True, exist_ok=True)
                self._write(self.accounts_path, account_data)
                self._write(self.prices_path, price_data)
            except OSError as exc:
                raise PersistenceError(f"Failed to save exchange state: {exc}") from exc
        logger.debug("Saved {} accounts and {} prices", len(account_data), len(price_data))

    @staticmethod
    def _read(path: Path) -> Any:
        if not path.exists():
            return None
        try:
            decoded = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"Failed to read {path}: {exc}") from exc
        if decoded is None:
            raise PersistenceError(f"Unexpected null document in {path}")
        return decoded

    @staticmethod
    def _write(path: Path, payload: Any) -> None:
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp_path.replace(path)


def _price_payload(payload: Any) -> dict[str, Any]:
    # Plain "SYMBOL": "123.45" entries are accepted alongside {"price", "name"} objects.
    if isinstance(payload, dict):
        return {"price": payload.get("price"), "name": payload.get("name")}
    return {"price": payload}
