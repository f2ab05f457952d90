"""Pytest configuration for shared fixtures."""

from __future__ import annotations

import random
from decimal import Decimal
from pathlib import Path

import pytest
from loguru import logger

from exchange_sim.core.config import ExchangeConfig
from exchange_sim.engine import ExchangeEngine
from exchange_sim.ledger import Ledger
from exchange_sim.persistence import MemoryPersistenceStore
from exchange_sim.prices import PriceTable


@pytest.fixture(scope="session", autouse=True)
def silence_loguru_handlers() -> None:
    """Route Loguru output to a no-op sink during tests to avoid closed stream errors."""
    logger.remove()
    logger.add(lambda _: None, catch=True)
    yield


@pytest.fixture
def config(tmp_path: Path) -> ExchangeConfig:
    """Fast configuration isolated to a temporary directory."""
    return ExchangeConfig(
        data_dir=tmp_path / "data",
        log_dir=tmp_path / "logs",
        password_iterations=1,
        tick_interval_seconds=0.05,
    )


@pytest.fixture
def prices() -> PriceTable:
    table = PriceTable()
    table.set("AAPL", Decimal("100"), name="Apple Inc.")
    return table


@pytest.fixture
def ledger(prices: PriceTable) -> Ledger:
    return Ledger(prices, password_iterations=1)


@pytest.fixture
def store() -> MemoryPersistenceStore:
    return MemoryPersistenceStore()


@pytest.fixture
def engine(config: ExchangeConfig, store: MemoryPersistenceStore) -> ExchangeEngine:
    engine = ExchangeEngine(config=config, store=store, rng=random.Random(7))
    yield engine
    engine.oscillator.stop(timeout=1)
