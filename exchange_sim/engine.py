"""Exchange engine: the single entry point the menu layer talks to."""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass
from decimal import Decimal
from types import TracebackType

from loguru import logger

from exchange_sim.core.config import ExchangeConfig
from exchange_sim.core.constants import PRESET_PRICES
from exchange_sim.errors import Forbidden, PersistenceError, Unauthorized
from exchange_sim.ledger import Account, Ledger
from exchange_sim.models import (
    AccountSummary,
    NetWorthReport,
    PriceQuote,
    Role,
    TradeResult,
)
from exchange_sim.oscillator import PriceOscillator
from exchange_sim.persistence import PersistenceStore
from exchange_sim.prices import PriceTable


@dataclass(frozen=True, slots=True)
class Session:
    """A logged-in user."""

    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class ExchangeEngine:
    """Owns the price table, the ledger and the price oscillator.

    Mutating calls commit in memory first and then save through the
    persistence store. A failed save is logged and kept in
    ``last_save_error``; the in-memory state stays authoritative.
    """

    def __init__(
        self,
        config: ExchangeConfig | None = None,
        store: PersistenceStore | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or ExchangeConfig()
        self._store = store if self.config.persist else None
        self._prices = PriceTable()
        self._ledger = Ledger(self._prices, password_iterations=self.config.password_iterations)
        self._oscillator = PriceOscillator(
            self._prices,
            interval=self.config.tick_interval_seconds,
            max_swing=self.config.max_tick_swing,
            rng=rng,
        )
        self._save_lock = threading.Lock()
        self.last_save_error: PersistenceError | None = None
        self._restore()

    @property
    def prices(self) -> PriceTable:
        return self._prices

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def oscillator(self) -> PriceOscillator:
        return self._oscillator

    # -- lifecycle --------------------------------------------------------

    def start(self) -> None:
        self._oscillator.start()

    def shutdown(self) -> None:
        """Stop the oscillator before the final save."""
        self._oscillator.stop()
        self.save()
        logger.info("Exchange engine shut down")

    def __enter__(self) -> ExchangeEngine:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown()

    def save(self) -> bool:
        """Mirror current state into the store. Returns False when the save failed."""
        if self._store is None:
            return True
        # Snapshot and write together so a stale snapshot is never written last.
        with self._save_lock:
            accounts = self._ledger.records()
            prices = self._prices.snapshot()
            try:
                self._store.save(accounts, prices)
            except PersistenceError as exc:
                self.last_save_error = exc
                logger.error("Failed to persist exchange state: {}", exc)
                return False
            self.last_save_error = None
        return True

    def _restore(self) -> None:
        seeded = False
        accounts = self._store.load_accounts() if self._store is not None else None
        if accounts is not None:
            self._ledger.load(accounts)
        else:
            self._ledger.create_account(
                self.config.admin_username,
                self.config.admin_password,
                role=Role.ADMIN,
                balance=self.config.starting_balance,
            )
            seeded = True

        quotes = self._store.load_prices() if self._store is not None else None
        if quotes is not None:
            self._prices.load(quotes)
        else:
            for symbol, (name, price) in PRESET_PRICES.items():
                self._prices.set(symbol, price, name=name)
            seeded = True

        logger.info(
            "Exchange engine ready: {} accounts, {} symbols",
            len(self._ledger),
            len(self._prices),
        )
        if seeded:
            self.save()

    # -- accounts ---------------------------------------------------------

    def sign_up(self, username: str, password: str, role: Role = Role.CUSTOMER) -> Session:
        account = self._ledger.create_account(
            username, password, role=role, balance=self.config.starting_balance
        )
        self.save()
        return Session(username=account.username, role=account.role)

    def login(self, username: str, password: str) -> Session:
        account = self._ledger.authenticate(username, password)
        logger.info("{} logged in", account.username)
        return Session(username=account.username, role=account.role)

    def logout(self, session: Session) -> None:
        logger.info("{} logged out", session.username)

    def delete_account(self, session: Session) -> None:
        self._ledger.delete_account(self._account(session))
        self.save()

    def list_accounts(self, session: Session) -> list[AccountSummary]:
        self._require_admin(session)
        return [account.summary() for account in self._ledger.accounts()]

    # -- customer operations ----------------------------------------------

    def buy(self, session: Session, symbol: str, quantity: object) -> TradeResult:
        result = self._ledger.buy(self._account(session), symbol, quantity)
        self.save()
        return result

    def sell(self, session: Session, symbol: str, quantity: object) -> TradeResult:
        result = self._ledger.sell(self._account(session), symbol, quantity)
        self.save()
        return result

    def deposit(self, session: Session, amount: object) -> Decimal:
        balance = self._ledger.deposit(self._account(session), amount)
        self.save()
        return balance

    def balance(self, session: Session) -> Decimal:
        return self._account(session).summary().balance

    def portfolio(self, session: Session) -> dict[str, int]:
        return self._account(session).summary().portfolio

    def net_worth(self, session: Session) -> NetWorthReport:
        return self._ledger.net_worth(self._account(session))

    # -- price administration ---------------------------------------------

    def list_prices(self) -> list[PriceQuote]:
        return self._prices.snapshot()

    def set_price(
        self, session: Session, symbol: str, price: object, name: str | None = None
    ) -> PriceQuote:
        self._require_admin(session)
        quote = self._prices.set(symbol, price, name=name)
        logger.info("{} set {} to {}", session.username, quote.symbol, quote.price)
        self.save()
        return quote

    def remove_symbol(self, session: Session, symbol: str) -> bool:
        self._require_admin(session)
        removed = self._prices.remove(symbol)
        if removed:
            logger.info("{} removed {}", session.username, symbol.upper())
            self.save()
        return removed

    # -- helpers ----------------------------------------------------------

    def _account(self, session: Session) -> Account:
        account = self._ledger.find(session.username)
        if account is None:
            raise Unauthorized(f"Session for {session.username} is no longer valid")
        return account

    def _require_admin(self, session: Session) -> Account:
        account = self._account(session)
        if not account.is_admin:
            raise Forbidden(f"{session.username} is not an administrator")
        return account
