"""Tests for the background price oscillator."""

from __future__ import annotations

import random
import threading
import time
from decimal import Decimal

import pytest

from exchange_sim.oscillator import PriceOscillator
from exchange_sim.prices import PriceTable


def _table(**prices: str) -> PriceTable:
    table = PriceTable()
    for symbol, price in prices.items():
        table.set(symbol, Decimal(price))
    return table


def test_factor_stays_within_swing() -> None:
    oscillator = PriceOscillator(PriceTable(), rng=random.Random(1))
    for _ in range(1000):
        factor = oscillator.factor()
        assert Decimal("0.9") <= factor < Decimal("1.1")


def test_factor_matches_formula() -> None:
    class FixedRandom(random.Random):
        def random(self) -> float:
            return 0.75

    oscillator = PriceOscillator(PriceTable(), rng=FixedRandom())
    assert oscillator.factor() == Decimal("1.05")


def test_tick_updates_every_symbol_and_counts() -> None:
    table = _table(AAPL="100", TSLA="300")
    oscillator = PriceOscillator(table, rng=random.Random(3))

    updated = oscillator.tick()

    assert set(updated) == {"AAPL", "TSLA"}
    assert oscillator.ticks == 1
    for symbol, price in updated.items():
        assert table.get(symbol) == price
        assert price == price.quantize(Decimal("0.01"))


def test_many_ticks_never_go_negative() -> None:
    table = _table(AAPL="0.05", TSLA="300")
    oscillator = PriceOscillator(table, rng=random.Random(11))

    for _ in range(500):
        oscillator.tick()

    assert all(quote.price >= 0 for quote in table.snapshot())


def test_tick_bounds_each_move() -> None:
    table = _table(AAPL="1000")
    oscillator = PriceOscillator(table, rng=random.Random(5))

    before = table.get("AAPL")
    oscillator.tick()
    after = table.get("AAPL")

    assert before * Decimal("0.9") - Decimal("0.01") <= after <= before * Decimal("1.1")


def test_tick_handles_prices_beyond_default_precision() -> None:
    class FixedRandom(random.Random):
        def random(self) -> float:
            return 0.75

    table = _table(AAPL="100", BIG="1e30")
    oscillator = PriceOscillator(table, rng=FixedRandom())

    updated = oscillator.tick()

    assert updated == {"AAPL": Decimal("105.00"), "BIG": Decimal("1.05e30")}
    assert table.get("AAPL") == Decimal("105.00")
    assert table.get("BIG") == Decimal("1050000000000000000000000000000.00")


def test_tick_on_empty_table_is_noop() -> None:
    oscillator = PriceOscillator(PriceTable())
    assert oscillator.tick() == {}


def test_symbols_added_between_ticks_are_picked_up() -> None:
    table = _table(AAPL="100")
    oscillator = PriceOscillator(table, rng=random.Random(2))

    assert set(oscillator.tick()) == {"AAPL"}
    table.set("TSLA", Decimal("300"))
    table.remove("AAPL")
    assert set(oscillator.tick()) == {"TSLA"}


@pytest.mark.parametrize(
    ("interval", "swing"),
    [(0, 0.1), (-1, 0.1), (1, 0), (1, 1.0)],
)
def test_rejects_invalid_parameters(interval: float, swing: float) -> None:
    with pytest.raises(ValueError):
        PriceOscillator(PriceTable(), interval=interval, max_swing=swing)


def test_background_loop_ticks_and_stops_promptly() -> None:
    table = _table(AAPL="100")
    oscillator = PriceOscillator(table, interval=0.02, rng=random.Random(4))

    oscillator.start()
    deadline = time.monotonic() + 2
    while oscillator.ticks < 3 and time.monotonic() < deadline:
        time.sleep(0.01)

    started = time.monotonic()
    oscillator.stop(timeout=1)
    assert time.monotonic() - started < 1
    assert not oscillator.is_running
    assert oscillator.ticks >= 3

    ticks_at_stop = oscillator.ticks
    price_at_stop = table.get("AAPL")
    time.sleep(0.1)
    assert oscillator.ticks == ticks_at_stop
    assert table.get("AAPL") == price_at_stop


def test_stop_interrupts_long_sleep() -> None:
    oscillator = PriceOscillator(_table(AAPL="100"), interval=60)
    oscillator.start()
    assert oscillator.is_running

    started = time.monotonic()
    oscillator.stop(timeout=1)

    assert time.monotonic() - started < 1
    assert oscillator.ticks == 0


def test_start_is_idempotent_and_restartable() -> None:
    oscillator = PriceOscillator(_table(AAPL="100"), interval=60)
    oscillator.start()
    first = [thread for thread in threading.enumerate() if thread.name == "price-oscillator"]
    oscillator.start()
    second = [thread for thread in threading.enumerate() if thread.name == "price-oscillator"]
    assert len(first) == len(second)

    oscillator.stop(timeout=1)
    oscillator.start()
    assert oscillator.is_running
    oscillator.stop(timeout=1)
    assert not oscillator.is_running


def test_loop_survives_failed_tick(monkeypatch: pytest.MonkeyPatch) -> None:
    table = _table(AAPL="100")
    oscillator = PriceOscillator(table, interval=0.01, rng=random.Random(6))
    calls = {"count": 0}
    original = table.apply_tick

    def flaky(transform):  # type: ignore[no-untyped-def]
        calls["count"] += 1
        if calls["count"] == 1:
            raise RuntimeError("transient")
        return original(transform)

    monkeypatch.setattr(table, "apply_tick", flaky)
    oscillator.start()
    deadline = time.monotonic() + 2
    while oscillator.ticks < 1 and time.monotonic() < deadline:
        time.sleep(0.01)
    oscillator.stop(timeout=1)

    assert calls["count"] >= 2
    assert oscillator.ticks >= 1
