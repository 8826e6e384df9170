from datetime import datetime, timedelta, timezone

import pytest

from fear_greed_bot.db import StorageError
from fear_greed_bot.db.models import SignalType
from fear_greed_bot.errors import AppError, ErrorType
from fear_greed_bot.schemas import ExecutionRecord
from fear_greed_bot.services.commands import (parse_execution_date,
                                              parse_price, split_command)
from fear_greed_bot.trading import PositionService, format_execution_history
from fear_greed_bot.utils import to_ms


async def test_second_trade_in_same_month_is_blocked(position_service, execution_repo):
    now = datetime(2026, 3, 20, 15, 0, tzinfo=timezone.utc)
    await execution_repo.record("1", "BUY", "SPY", 400.0, execution_date=to_ms(datetime(2026, 3, 2, tzinfo=timezone.utc)))

    assert await position_service.can_trade("1", now) is False
    assert await position_service.can_trade("1", datetime(2026, 4, 1, tzinfo=timezone.utc)) is True
    assert await position_service.can_trade("someone-else", now) is True


async def test_month_boundary_is_utc(position_service, execution_repo):
    last_of_march = datetime(2026, 3, 31, 23, 30, tzinfo=timezone.utc)
    await execution_repo.record("1", "BUY", "SPY", 400.0, execution_date=to_ms(last_of_march))

    # 20:00 on April 1 in UTC-5 is April 2 in UTC; March still differs
    eastern = timezone(timedelta(hours=-5))
    assert await position_service.can_trade("1", datetime(2026, 4, 1, 20, 0, tzinfo=eastern)) is True


class BrokenExecutions:
    async def latest(self, chat_id, ticker=None):
        raise StorageError("executions.latest", RuntimeError("database is locked"))


async def test_can_trade_fails_open_on_storage_error(position_repo):
    service = PositionService(position_repo, BrokenExecutions())
    assert await service.can_trade("1") is True


async def test_buy_opens_position_and_sell_clears_it(execution_service, position_repo, watchlist_repo):
    long_ago = datetime.now(timezone.utc) - timedelta(days=62)

    bought = await execution_service.execute("5", "qqq", 300.0, long_ago)
    assert bought.accepted
    assert bought.execution.signal_type is SignalType.BUY
    position = await position_repo.get("5")
    assert position.ticker == "QQQ"
    assert position.entry_price == 300.0
    assert "QQQ" in await watchlist_repo.get("5")

    sold = await execution_service.execute("5", "QQQ", 330.0)
    assert sold.accepted
    assert sold.execution.signal_type is SignalType.SELL
    assert await position_repo.get("5") is None


async def test_execute_rejected_twice_in_one_month(execution_service, execution_repo):
    first = await execution_service.execute("6", "SPY", 400.0)
    second = await execution_service.execute("6", "SPY", 410.0)

    assert first.accepted
    assert not second.accepted
    assert "one trade per calendar month" in second.message
    assert await execution_repo.count("6") == 1


async def test_execute_rejected_while_holding_other_ticker(execution_service, position_repo):
    await position_repo.set("7", "SPY", 400.0)

    outcome = await execution_service.execute("7", "QQQ", 300.0)

    assert not outcome.accepted
    assert "active position in SPY" in outcome.message
    assert (await position_repo.get("7")).ticker == "SPY"


def test_format_execution_history():
    assert format_execution_history([]) == "No executions recorded."

    text = format_execution_history(
        [
            ExecutionRecord(
                signal_type=SignalType.SELL,
                ticker="SPY",
                execution_price=420.0,
                signal_price=400.0,
                execution_date=to_ms(datetime(2024, 1, 15, 14, 30, tzinfo=timezone.utc)),
            ),
            ExecutionRecord(
                signal_type=SignalType.BUY,
                ticker="SPY",
                execution_price=380.0,
                execution_date=to_ms(datetime(2023, 12, 1, tzinfo=timezone.utc)),
            ),
        ]
    )
    assert text.startswith("*Execution History (2 entries):*")
    assert "🔴 *SELL* SPY at $420.00 (signal: $400.00, +5.00%)" in text
    assert "📅 Jan 15, 2024, 14:30 UTC" in text
    assert "🟢 *BUY* SPY at $380.00" in text


def test_parse_execution_date():
    assert parse_execution_date("2024-01-15") == datetime(2024, 1, 15, tzinfo=timezone.utc)


@pytest.mark.parametrize("raw", ["2024-02-30", "15-01-2024", "2024-1-5", "yesterday"])
def test_parse_execution_date_rejects_bad_input(raw):
    with pytest.raises(AppError) as exc_info:
        parse_execution_date(raw)
    assert exc_info.value.type is ErrorType.VALIDATION


@pytest.mark.parametrize("raw", ["abc", "0", "-5", "inf", "nan"])
def test_parse_price_rejects_non_positive(raw):
    with pytest.raises(AppError):
        parse_price(raw)


def test_split_command_strips_bot_name():
    assert split_command("/Execute@FearGreedBot spy 400") == ("/execute", ["spy", "400"])
    assert split_command("   ") == ("", [])
