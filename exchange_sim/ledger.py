"""Account ledger: balances, portfolios and the trades that move them."""

from __future__ import annotations

import re
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from loguru import logger

from exchange_sim.core.constants import (
    PASSWORD_HASH_ITERATIONS,
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
)
from exchange_sim.errors import (
    Forbidden,
    InsufficientFunds,
    InsufficientShares,
    InvalidAmount,
    InvalidUsername,
    Unauthorized,
    UsernameTaken,
)
from exchange_sim.models import (
    AccountRecord,
    AccountSummary,
    Holding,
    NetWorthReport,
    Role,
    TradeResult,
    TradeSide,
    normalize_symbol,
    to_decimal,
)
from exchange_sim.prices import PriceTable
from exchange_sim.security import PasswordHash, hash_password, verify_password

USERNAME_PATTERN = re.compile(
    rf"^[A-Za-z0-9]{{{USERNAME_MIN_LENGTH},{USERNAME_MAX_LENGTH}}}$"
)


def validate_username(username: str) -> str:
    """Return ``username`` unchanged, or raise InvalidUsername on a format violation."""
    if not isinstance(username, str) or not USERNAME_PATTERN.fullmatch(username):
        raise InvalidUsername(
            f"Username must be {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} "
            "letters or digits with no spaces"
        )
    return username


def _to_quantity(value: object) -> int:
    if isinstance(value, bool):
        raise InvalidAmount(f"Quantity must be a whole number: {value!r}")
    if isinstance(value, int):
        quantity = value
    else:
        try:
            quantity = int(str(value).strip())
        except ValueError as exc:
            raise InvalidAmount(f"Quantity must be a whole number: {value!r}") from exc
    if quantity <= 0:
        raise InvalidAmount(f"Quantity must be positive: {quantity}")
    return quantity


@dataclass(eq=False, slots=True)
class Account:
    """In-memory account. Mutate only through Ledger operations."""

    username: str
    credential: PasswordHash
    role: Role = Role.CUSTOMER
    balance: Decimal = Decimal("0")
    portfolio: dict[str, int] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def key(self) -> str:
        return self.username.lower()

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def quantity(self, symbol: str) -> int:
        with self.lock:
            return self.portfolio.get(normalize_symbol(symbol), 0)

    def summary(self) -> AccountSummary:
        with self.lock:
            return AccountSummary(
                username=self.username,
                role=self.role,
                balance=self.balance,
                portfolio=dict(self.portfolio),
            )

    def to_record(self) -> AccountRecord:
        with self.lock:
            return AccountRecord(
                username=self.username,
                password_hash=self.credential.digest,
                salt=self.credential.salt,
                iterations=self.credential.iterations,
                role=self.role,
                balance=self.balance,
                portfolio=dict(self.portfolio),
            )

    @classmethod
    def from_record(cls, record: AccountRecord) -> Account:
        return cls(
            username=record.username,
            credential=PasswordHash(
                digest=record.password_hash,
                salt=record.salt,
                iterations=record.iterations,
            ),
            role=record.role,
            balance=record.balance,
            portfolio=dict(record.portfolio),
        )


class Ledger:
    """Owns every account and applies balance/position changes atomically.

    Each account carries its own re-entrant lock. Trades hold the account lock
    and then the price table lock, and release both before returning. The
    oscillator only ever takes the price table lock, so the order cannot invert.
    """

    def __init__(
        self,
        prices: PriceTable,
        password_iterations: int = PASSWORD_HASH_ITERATIONS,
    ) -> None:
        self._prices = prices
        self._password_iterations = password_iterations
        self._lock = threading.RLock()
        self._accounts: dict[str, Account] = {}

    # -- account registry -------------------------------------------------

    def create_account(
        self,
        username: str,
        password: str,
        role: Role = Role.CUSTOMER,
        balance: object = Decimal("0"),
    ) -> Account:
        validate_username(username)
        opening = to_decimal(balance)
        if opening < 0:
            raise InvalidAmount(f"Opening balance cannot be negative: {opening}")
        account = Account(
            username=username,
            credential=hash_password(password, iterations=self._password_iterations),
            role=role,
            balance=opening,
        )
        self.add(account)
        logger.info("Created {} account {}", role.value, username)
        return account

    def add(self, account: Account) -> None:
        with self._lock:
            if account.key in self._accounts:
                raise UsernameTaken(f"Username already taken: {account.username}")
            self._accounts[account.key] = account

    def find(self, username: str) -> Account | None:
        with self._lock:
            return self._accounts.get(username.lower())

    def get(self, username: str) -> Account:
        account = self.find(username)
        if account is None:
            raise Unauthorized(f"Unknown account: {username}")
        return account

    def authenticate(self, username: str, password: str) -> Account:
        account = self.find(username)
        if account is None or not verify_password(password, account.credential):
            raise Unauthorized("Invalid username or password")
        return account

    def accounts(self) -> list[Account]:
        with self._lock:
            return list(self._accounts.values())

    def delete_account(self, account: Account) -> None:
        if account.is_admin:
            raise Forbidden("Admin accounts cannot be deleted")
        with self._lock, account.lock:
            if self._accounts.get(account.key) is not account:
                raise Unauthorized(f"Unknown account: {account.username}")
            del self._accounts[account.key]
        logger.info("Deleted account {}", account.username)

    def records(self) -> list[AccountRecord]:
        return [account.to_record() for account in self.accounts()]

    def load(self, records: Iterable[AccountRecord]) -> None:
        """Replace every account with ``records``."""
        accounts: dict[str, Account] = {}
        for record in records:
            account = Account.from_record(record)
            if account.key in accounts:
                raise UsernameTaken(f"Duplicate stored account: {record.username}")
            accounts[account.key] = account
        with self._lock:
            self._accounts = accounts

    def __contains__(self, username: object) -> bool:
        return isinstance(username, str) and self.find(username) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)

    # -- balance and position primitives ----------------------------------

    def deposit(self, account: Account, amount: object) -> Decimal:
        value = to_decimal(amount)
        if value < 0:
            raise InvalidAmount(f"Deposit amount cannot be negative: {value}")
        with account.lock:
            account.balance += value
            return account.balance

    def adjust_balance(self, account: Account, delta: object) -> Decimal:
        change = to_decimal(delta)
        with account.lock:
            new_balance = account.balance + change
            if new_balance < 0:
                raise InsufficientFunds(
                    f"Insufficient funds: balance {account.balance}, required {-change}"
                )
            account.balance = new_balance
            return new_balance

    def adjust_portfolio(self, account: Account, symbol: str, delta: int) -> int:
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise InvalidAmount(f"Share delta must be a whole number: {delta!r}")
        key = normalize_symbol(symbol)
        with account.lock:
            current = account.portfolio.get(key, 0)
            if delta <= 0 and current < -delta:
                raise InsufficientShares(
                    f"Insufficient shares of {key}: holding {current}, required {-delta}"
                )
            remaining = current + delta
            if remaining == 0:
                account.portfolio.pop(key, None)
            else:
                account.portfolio[key] = remaining
            return remaining

    # -- trades -----------------------------------------------------------

    def buy(self, account: Account, symbol: str, quantity: object) -> TradeResult:
        qty = _to_quantity(quantity)
        key = normalize_symbol(symbol)
        with account.lock, self._prices.locked():
            price = self._prices.get(key)
            total = price * qty
            balance = self.adjust_balance(account, -total)
            position = self.adjust_portfolio(account, key, qty)
        logger.info("{} bought {} {} @ {} (total {})", account.username, qty, key, price, total)
        return TradeResult(
            username=account.username,
            side=TradeSide.BUY,
            symbol=key,
            quantity=qty,
            price=price,
            total=total,
            balance=balance,
            position=position,
        )

    def sell(self, account: Account, symbol: str, quantity: object) -> TradeResult:
        qty = _to_quantity(quantity)
        key = normalize_symbol(symbol)
        with account.lock, self._prices.locked():
            price = self._prices.get(key)
            total = price * qty
            position = self.adjust_portfolio(account, key, -qty)
            balance = self.adjust_balance(account, total)
        logger.info("{} sold {} {} @ {} (total {})", account.username, qty, key, price, total)
        return TradeResult(
            username=account.username,
            side=TradeSide.SELL,
            symbol=key,
            quantity=qty,
            price=price,
            total=total,
            balance=balance,
            position=position,
        )

    def net_worth(self, account: Account) -> NetWorthReport:
        """Value the account at current prices; delisted positions are reported apart."""
        holdings: list[Holding] = []
        unresolved: dict[str, int] = {}
        with account.lock, self._prices.locked():
            balance = account.balance
            for symbol, quantity in sorted(account.portfolio.items()):
                price = self._prices.find(symbol)
                if price is None:
                    unresolved[symbol] = quantity
                    continue
                holdings.append(
                    Holding(symbol=symbol, quantity=quantity, price=price, value=price * quantity)
                )
        if unresolved:
            logger.warning(
                "Unresolved positions for {}: {}", account.username, ", ".join(unresolved)
            )
        return NetWorthReport(balance=balance, holdings=holdings, unresolved=unresolved)
