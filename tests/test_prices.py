"""Tests for the shared price table."""

from __future__ import annotations

import threading
from decimal import Decimal

import pytest

from exchange_sim.errors import InvalidValue, SymbolNotFound
from exchange_sim.models import PriceQuote
from exchange_sim.prices import PriceTable


def test_set_normalizes_symbol_and_get_returns_price() -> None:
    table = PriceTable()
    quote = table.set(" aapl ", "150.25", name="Apple Inc.")

    assert quote == PriceQuote(symbol="AAPL", price=Decimal("150.25"), name="Apple Inc.")
    assert table.get("AAPL") == Decimal("150.25")
    assert table.get("aapl") == Decimal("150.25")
    assert "aapl" in table
    assert len(table) == 1


def test_set_keeps_existing_name_when_not_given() -> None:
    table = PriceTable()
    table.set("TSLA", Decimal("300"), name="Tesla Inc.")
    quote = table.set("TSLA", Decimal("310"))

    assert quote.name == "Tesla Inc."
    assert quote.price == Decimal("310")


@pytest.mark.parametrize("price", ["-1", Decimal("-0.01"), "abc", "NaN", "Infinity"])
def test_set_rejects_invalid_prices(price: object) -> None:
    table = PriceTable()
    with pytest.raises(InvalidValue):
        table.set("AAPL", price)
    assert "AAPL" not in table


def test_set_rejects_empty_symbol() -> None:
    with pytest.raises(InvalidValue):
        PriceTable().set("   ", Decimal("1"))


def test_zero_price_is_allowed() -> None:
    table = PriceTable()
    table.set("PENNY", Decimal("0"))
    assert table.get("PENNY") == Decimal("0")


def test_get_missing_symbol_raises() -> None:
    with pytest.raises(SymbolNotFound):
        PriceTable().get("MSFT")


def test_remove_reports_presence() -> None:
    table = PriceTable()
    table.set("AAPL", Decimal("100"), name="Apple Inc.")

    assert table.remove("aapl") is True
    assert table.remove("AAPL") is False
    assert table.find("AAPL") is None


def test_snapshot_is_ordered_copy() -> None:
    table = PriceTable()
    table.set("TSLA", Decimal("300"))
    table.set("AAPL", Decimal("150"))

    snapshot = table.snapshot()
    table.set("AAPL", Decimal("1"))

    assert [quote.symbol for quote in snapshot] == ["AAPL", "TSLA"]
    assert snapshot[0].price == Decimal("150")


def test_apply_tick_commits_all_or_nothing() -> None:
    table = PriceTable()
    table.set("AAPL", Decimal("100"))
    table.set("TSLA", Decimal("200"))

    def failing(symbol: str, price: Decimal) -> Decimal:
        if symbol == "TSLA":
            raise RuntimeError("boom")
        return price * 2

    with pytest.raises(RuntimeError):
        table.apply_tick(failing)

    assert table.get("AAPL") == Decimal("100")
    assert table.get("TSLA") == Decimal("200")


def test_apply_tick_clamps_negative_results() -> None:
    table = PriceTable()
    table.set("AAPL", Decimal("100"))

    updated = table.apply_tick(lambda _symbol, _price: Decimal("-5"))

    assert updated == {"AAPL": Decimal("0")}
    assert table.get("AAPL") == Decimal("0")


def test_reader_never_sees_partial_tick() -> None:
    table = PriceTable()
    symbols = [f"S{i}" for i in range(20)]
    for symbol in symbols:
        table.set(symbol, Decimal("1"))

    entered = threading.Event()
    release = threading.Event()

    def slow_transform(symbol: str, price: Decimal) -> Decimal:
        entered.set()
        release.wait(1)
        return price + 1

    worker = threading.Thread(target=table.apply_tick, args=(slow_transform,))
    worker.start()
    assert entered.wait(1)

    observed: list[set[Decimal]] = []
    reader = threading.Thread(
        target=lambda: observed.append({quote.price for quote in table.snapshot()})
    )
    reader.start()
    release.set()
    worker.join(2)
    reader.join(2)

    assert observed == [{Decimal("2")}]
