"""Tests for ExchangeConfig settings."""

from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from exchange_sim.core.config import ExchangeConfig


def test_config_defaults(tmp_path: Path) -> None:
    config = ExchangeConfig(data_dir=tmp_path / "data", log_dir=tmp_path / "logs")

    assert config.tick_interval_seconds == 5.0
    assert config.max_tick_swing == 0.1
    assert config.starting_balance == Decimal("1000")
    assert config.admin_username == "admin"
    assert config.persist is True
    assert config.data_dir.is_dir()
    assert config.log_dir.is_dir()


def test_config_reads_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXCHANGE_TICK_INTERVAL_SECONDS", "0.5")
    monkeypatch.setenv("EXCHANGE_STARTING_BALANCE", "2500")
    monkeypatch.setenv("EXCHANGE_DATA_DIR", str(tmp_path / "env-data"))
    monkeypatch.setenv("EXCHANGE_LOG_DIR", str(tmp_path / "env-logs"))

    config = ExchangeConfig()

    assert config.tick_interval_seconds == 0.5
    assert config.starting_balance == Decimal("2500")
    assert config.data_dir == tmp_path / "env-data"


@pytest.mark.parametrize(
    "overrides",
    [
        {"tick_interval_seconds": 0},
        {"max_tick_swing": 0},
        {"max_tick_swing": 1.0},
        {"starting_balance": Decimal("-1")},
        {"password_iterations": 0},
    ],
)
def test_config_rejects_invalid_values(tmp_path: Path, overrides: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        ExchangeConfig(data_dir=tmp_path / "data", log_dir=tmp_path / "logs", **overrides)
