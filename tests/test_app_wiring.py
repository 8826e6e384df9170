import pandas as pd
import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from fear_greed_bot.config import Settings
from fear_greed_bot.container import close_container, init_container
from fear_greed_bot.db import (ConstraintKind, StorageError, create_db_engine,
                               init_db)
from fear_greed_bot.db.errors import classify_constraint, wrap_storage_error
from fear_greed_bot.errors import AppError, ErrorType, to_app_error
from fear_greed_bot.providers import YFinanceProvider
from fear_greed_bot.services import CommandHandler, NotificationService


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "tok")
    monkeypatch.setenv("ADMIN_CHAT_ID", "")
    monkeypatch.setenv("SQL_ECHO", "1")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.delenv("DATABASE_URL", raising=False)

    settings = Settings.from_env()

    assert settings.telegram_bot_token == "tok"
    assert settings.admin_chat_id is None
    assert settings.sql_echo is True
    assert settings.log_level == "DEBUG"
    assert settings.database_url == "sqlite:///fear_greed_bot.db"


async def test_container_wires_services():
    container = init_container(Settings(telegram_bot_token="tok", database_url="sqlite://"))
    init_db(container.engine())

    handler = container.command_handler()
    assert isinstance(handler, CommandHandler)
    assert container.command_handler() is handler
    assert isinstance(container.notification_service(), NotificationService)
    assert await container.subscription_repository().get_active_chat_ids() == []

    await close_container(container)


class FakeTicker:
    fast_info = {"lastPrice": 101.5}

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol

    def history(self, period, interval, auto_adjust):
        index = pd.date_range("2026-01-01", periods=3, freq="D", tz="UTC")
        return pd.DataFrame(
            {
                "Open": [100.0, 101.0, float("nan")],
                "High": [101.0, 102.0, 103.0],
                "Low": [99.0, 100.0, 101.0],
                "Close": [100.5, 101.5, 102.5],
                "Volume": [1000, float("nan"), 3000],
            },
            index=index,
        )


class EmptyTicker(FakeTicker):
    def history(self, period, interval, auto_adjust):
        return pd.DataFrame()


async def test_yfinance_provider_builds_market_data(monkeypatch):
    monkeypatch.setattr("fear_greed_bot.providers.yfinance.yf.Ticker", FakeTicker)

    data = await YFinanceProvider().get_market_data(" spy ")

    assert data.ticker == "SPY"
    assert data.current_price == 101.5
    # the bar with a missing open is dropped
    assert [bar.close for bar in data.bars] == [100.5, 101.5]
    assert data.bars[1].volume is None


async def test_yfinance_provider_reports_missing_history(monkeypatch):
    monkeypatch.setattr("fear_greed_bot.providers.yfinance.yf.Ticker", EmptyTicker)

    with pytest.raises(AppError) as exc_info:
        await YFinanceProvider().get_market_data("NOPE")
    assert exc_info.value.type is ErrorType.API
    assert exc_info.value.status_code == 404


@pytest.mark.parametrize(
    "message, expected",
    [
        ("UNIQUE constraint failed: watchlists.chat_id", ConstraintKind.UNIQUE),
        ("FOREIGN KEY constraint failed", ConstraintKind.FOREIGN_KEY),
        ("CHECK constraint failed: ck_executions_signal_type", ConstraintKind.CHECK),
        ("NOT NULL constraint failed: users.created_at", ConstraintKind.UNKNOWN),
    ],
)
def test_integrity_errors_are_classified(message, expected):
    assert classify_constraint(IntegrityError("INSERT", {}, Exception(message))) is expected


def test_operational_errors_are_plain_storage_errors():
    exc = OperationalError("SELECT", {}, Exception("database is locked"))

    assert classify_constraint(exc) is None
    error = wrap_storage_error("users.get", exc)
    assert type(error) is StorageError
    assert error.operation == "users.get"


def test_to_app_error():
    storage = StorageError("cache.get", RuntimeError("locked"))
    assert to_app_error(storage).type is ErrorType.STORAGE
    assert to_app_error(ValueError("bad")).type is ErrorType.UNKNOWN

    original = AppError(ErrorType.NETWORK, "down")
    assert to_app_error(original) is original


def test_init_db_wraps_engine_errors(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'missing' / 'bot.db'}")

    with pytest.raises(StorageError) as exc_info:
        init_db(engine)

    assert exc_info.value.operation == "init_db"
    assert isinstance(exc_info.value.original, OperationalError)
    engine.dispose()
