from datetime import datetime, timezone

import pytest

from conftest import FakeSentiment, FakeTelegram, make_sentiment
from fear_greed_bot.db import StorageError
from fear_greed_bot.errors import network_error
from fear_greed_bot.services import NotificationService

MONDAY = datetime(2026, 7, 6, 14, 0, tzinfo=timezone.utc)
OBSERVED_JULY_4TH = datetime(2026, 7, 3, 14, 0, tzinfo=timezone.utc)
SUNDAY = datetime(2026, 7, 5, 14, 0, tzinfo=timezone.utc)
ADMIN = "999"


@pytest.fixture
def build(signal_service, subscription_repo, watchlist_service, calendar):
    def _build(sentiment=None, telegram=None):
        return NotificationService(
            sentiment or FakeSentiment(),
            signal_service,
            subscription_repo,
            watchlist_service,
            telegram or FakeTelegram(),
            calendar,
            admin_chat_id=ADMIN,
            chart_url=lambda score: "https://chart.test/gauge",
        )

    return _build


async def test_holiday_skips_broadcast(build, subscription_repo):
    await subscription_repo.add_chat_id("1")
    telegram = FakeTelegram()

    run = await build(telegram=telegram).run_scheduled(OBSERVED_JULY_4TH)

    assert run.skipped
    assert run.reason == "Independence Day"
    assert telegram.sent == []


async def test_weekend_skips_broadcast(build):
    run = await build().run_scheduled(SUNDAY)
    assert run.skipped
    assert run.reason == "weekend"


async def test_no_broadcast_outside_fear(build, subscription_repo, watchlist_repo):
    await subscription_repo.add_chat_id("1")
    telegram = FakeTelegram()

    run = await build(FakeSentiment(make_sentiment("Greed", 70.0)), telegram).run_scheduled(MONDAY)

    assert not run.skipped
    assert run.reason == "rating greed"
    assert telegram.sent == []
    assert await watchlist_repo.get("1") == ["SPY"]


async def test_fear_broadcasts_each_watchlist_ticker(build, subscription_repo, watchlist_repo):
    await subscription_repo.add_chat_id("1")
    await subscription_repo.add_chat_id("2")
    await watchlist_repo.add("1", "SPY")
    await watchlist_repo.add("1", "QQQ")
    telegram = FakeTelegram()

    run = await build(telegram=telegram).run_scheduled(MONDAY)

    assert run.users_processed == 2
    assert run.messages_sent == 3
    first_user = telegram.messages_for("1")
    assert len(first_user) == 2
    assert first_user[0].startswith(
        "⚠️ The current [Fear and Greed Index](https://chart.test/gauge) rating is 20.00% (*EXTREME FEAR*)."
    )
    assert "*Trading Signal: BUY*" in first_user[0]
    # QQQ has no market data: that message degrades, the others are unaffected
    assert "Market data (QQQ price and indicators) unavailable" in first_user[1]
    assert len(telegram.messages_for("2")) == 1
    assert telegram.messages_for(ADMIN) == []


async def test_failed_send_is_counted_and_others_continue(build, subscription_repo):
    await subscription_repo.add_chat_id("1")
    await subscription_repo.add_chat_id("2")
    telegram = FakeTelegram(failing={"1"})

    run = await build(telegram=telegram).run_scheduled(MONDAY)

    assert run.messages_failed == 1
    assert run.messages_sent == 1
    assert len(telegram.messages_for("2")) == 1


class LockedWatchlists:
    """Delegates to a real watchlist service but fails reads for one chat."""

    def __init__(self, inner, locked_chat_id: str) -> None:
        self._inner = inner
        self._locked = locked_chat_id

    async def initialize_if_missing(self, chat_id):
        return await self._inner.initialize_if_missing(chat_id)

    async def get(self, chat_id):
        if str(chat_id) == self._locked:
            raise StorageError("watchlist.get", RuntimeError("database is locked"))
        return await self._inner.get(chat_id)


async def test_user_error_does_not_abort_other_users(signal_service, subscription_repo, watchlist_service, calendar):
    await subscription_repo.add_chat_id("1")
    await subscription_repo.add_chat_id("2")
    telegram = FakeTelegram()
    service = NotificationService(
        FakeSentiment(),
        signal_service,
        subscription_repo,
        LockedWatchlists(watchlist_service, "1"),
        telegram,
        calendar,
        admin_chat_id=ADMIN,
        chart_url=lambda score: "https://chart.test/gauge",
    )

    run = await service.run_scheduled(MONDAY)

    assert run.users_processed == 1
    assert len(run.errors) == 1
    assert run.errors[0].startswith("1: ")
    assert "database is locked" in run.errors[0]
    assert telegram.messages_for("1") == []
    assert len(telegram.messages_for("2")) == 1


async def test_sentiment_failure_notifies_admin(build, subscription_repo):
    await subscription_repo.add_chat_id("1")
    telegram = FakeTelegram()
    sentiment = FakeSentiment(error=network_error("CNN unreachable"))

    run = await build(sentiment, telegram).run_scheduled(MONDAY)

    assert run.errors == ["CNN unreachable"]
    assert telegram.messages_for("1") == []
    assert telegram.messages_for(ADMIN) == ["An error occurred: CNN unreachable"]


async def test_send_now_ignores_rating_and_notes_closed_market(build):
    telegram = FakeTelegram()

    run = await build(FakeSentiment(make_sentiment("Greed", 70.0)), telegram).send_now("5", "spy", SUNDAY)

    assert run.messages_sent == 1
    text = telegram.messages_for("5")[0]
    assert text.startswith("ℹ️ Market is closed today (weekend).")
    assert "*GREED*" in text
    assert "*Trading Signal: HOLD*" in text


async def test_send_now_without_sentiment_sends_data_unavailable(build):
    telegram = FakeTelegram()
    sentiment = FakeSentiment(error=network_error("CNN unreachable"))

    run = await build(sentiment, telegram).send_now("5", now=MONDAY)

    assert run.messages_sent == 1
    assert "Fear & Greed Index data unavailable." in telegram.messages_for("5")[0]
    assert telegram.messages_for(ADMIN) == ["An error occurred: CNN unreachable"]


async def test_send_now_for_watchlist_omits_header_outside_fear(build):
    telegram = FakeTelegram()

    run = await build(FakeSentiment(make_sentiment("Greed", 70.0)), telegram).send_now("5", now=MONDAY)

    assert run.messages_sent == 1
    text = telegram.messages_for("5")[0]
    assert "Fear and Greed Index" not in text
    assert text.splitlines()[0].endswith("*Trading Signal: HOLD*")
