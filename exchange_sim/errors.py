"""Domain exceptions raised by the exchange engine."""

from __future__ import annotations


class ExchangeError(Exception):
    """Base error for recoverable exchange failures."""


class InvalidAmount(ExchangeError):
    """Raised for a negative, zero (where disallowed) or non-numeric amount."""


class InvalidValue(ExchangeError):
    """Raised when a price is negative or not a number."""


class InsufficientFunds(ExchangeError):
    """Raised when a balance change would leave the balance negative."""


class InsufficientShares(ExchangeError):
    """Raised when a position is smaller than the requested reduction."""


class SymbolNotFound(ExchangeError):
    """Raised when a symbol is not listed in the price table."""


class UsernameTaken(ExchangeError):
    """Raised when a username already exists (case-insensitive)."""


class InvalidUsername(ExchangeError):
    """Raised when a username violates the format rules."""


class Forbidden(ExchangeError):
    """Raised for operations the caller's role does not permit."""


class Unauthorized(ExchangeError):
    """Raised on unknown users or wrong passwords."""


class PersistenceError(ExchangeError):
    """Raised when the persistence store cannot read or write state."""
