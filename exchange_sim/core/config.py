"""Configuration management for the exchange simulator."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from exchange_sim.core.constants import (
    DEFAULT_ADMIN_PASSWORD,
    DEFAULT_ADMIN_USERNAME,
    DEFAULT_MAX_TICK_SWING,
    DEFAULT_STARTING_BALANCE,
    DEFAULT_TICK_SECONDS,
    PASSWORD_HASH_ITERATIONS,
)


class ExchangeConfig(BaseSettings):
    """Exchange engine configuration.

    Uses Pydantic v2 settings with environment variable support
    (``EXCHANGE_`` prefix, optional ``.env`` file).
    """

    model_config = SettingsConfigDict(
        env_prefix="EXCHANGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Data paths
    data_dir: Path = Field(default=Path("data"), description="Directory for the JSON store")
    log_dir: Path = Field(default=Path("logs"), description="Directory for logs")
    persist: bool = Field(default=True, description="Write state through to the JSON store")

    # Price oscillator
    tick_interval_seconds: float = Field(
        default=DEFAULT_TICK_SECONDS, description="Seconds between price oscillator ticks"
    )
    max_tick_swing: float = Field(
        default=DEFAULT_MAX_TICK_SWING,
        description="Maximum relative price change per tick (0.1 = +/-10%)",
    )

    # Accounts
    starting_balance: Decimal = Field(
        default=DEFAULT_STARTING_BALANCE, description="Cash balance of new customer accounts"
    )
    admin_username: str = Field(default=DEFAULT_ADMIN_USERNAME, description="Seeded admin user")
    admin_password: str = Field(default=DEFAULT_ADMIN_PASSWORD, description="Seeded admin password")
    password_iterations: int = Field(
        default=PASSWORD_HASH_ITERATIONS, description="PBKDF2 iterations for password hashing"
    )

    @field_validator("tick_interval_seconds")
    @classmethod
    def validate_tick_interval(cls, value: float) -> float:
        """Ensure the oscillator interval is positive."""
        if value <= 0:
            raise ValueError("tick_interval_seconds must be positive.")
        return value

    @field_validator("max_tick_swing")
    @classmethod
    def validate_max_tick_swing(cls, value: float) -> float:
        """Ensure a tick can never move a price by 100% or more."""
        if not (0.0 < value < 1.0):
            raise ValueError("max_tick_swing must be between 0 and 1 (exclusive).")
        return value

    @field_validator("starting_balance")
    @classmethod
    def validate_starting_balance(cls, value: Decimal) -> Decimal:
        if value < 0:
            raise ValueError("starting_balance cannot be negative.")
        return value

    @field_validator("password_iterations")
    @classmethod
    def validate_password_iterations(cls, value: int) -> int:
        if value < 1:
            raise ValueError("password_iterations must be at least 1.")
        return value

    def model_post_init(self, __context: object) -> None:
        """Create directories after initialization."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)


def load_config() -> ExchangeConfig:
    """Load configuration from environment and .env file."""
    return ExchangeConfig()
