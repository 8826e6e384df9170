import pytest
from sqlalchemy.exc import OperationalError

from fear_greed_bot.db import StorageError
from fear_greed_bot.errors import AppError, ErrorType
from fear_greed_bot.repositories import SubscriptionRepository
from fear_greed_bot.services import SubscriptionService
from fear_greed_bot.services.watchlist import WatchlistService, validate_ticker


async def test_new_user_gets_default_ticker(watchlist_service, watchlist_repo):
    assert await watchlist_service.get("1") == ["SPY"]
    assert await watchlist_repo.get("1") == ["SPY"]


async def test_add_remove_round_trip_restores_default(watchlist_service):
    await watchlist_service.initialize_if_missing("1")

    assert await watchlist_service.add("1", "qqq") is True
    assert await watchlist_service.get("1") == ["SPY", "QQQ"]

    assert await watchlist_service.remove("1", "SPY") is True
    assert await watchlist_service.get("1") == ["QQQ"]

    assert await watchlist_service.remove("1", "QQQ") is True
    assert await watchlist_service.get("1") == ["SPY"]


async def test_initialize_only_when_missing(watchlist_service):
    assert await watchlist_service.initialize_if_missing("2") is True
    assert await watchlist_service.initialize_if_missing("2") is False


@pytest.mark.parametrize("raw", ["", "SP-Y", "TOOLONGTICKER", "$SPY"])
def test_invalid_tickers_are_rejected(raw):
    with pytest.raises(AppError) as exc_info:
        validate_ticker(raw)
    assert exc_info.value.type is ErrorType.VALIDATION
    assert exc_info.value.message.startswith("❌ Invalid ticker symbol")


def test_ticker_is_normalized():
    assert validate_ticker(" brk1 ") == "BRK1"


def test_format_lists_tickers():
    assert WatchlistService.format(["SPY", "QQQ"]) == "*Your watchlist:*\n• SPY\n• QQQ"


async def test_subscribe_seeds_watchlist(subscription_service, watchlist_repo, subscription_repo):
    result = await subscription_service.subscribe(10)

    assert result.success and result.changed
    assert await watchlist_repo.get("10") == ["SPY"]
    assert await subscription_repo.get_active_chat_ids() == ["10"]

    again = await subscription_service.subscribe(10)
    assert again.success and not again.changed

    stopped = await subscription_service.unsubscribe(10)
    assert stopped.success and stopped.changed


class BrokenSubscriptions:
    async def subscribe(self, chat_id, default_ticker):
        raise StorageError("subscribe", RuntimeError("disk I/O error"))

    async def remove_chat_id(self, chat_id):
        raise StorageError("remove_chat_id", RuntimeError("disk I/O error"))


async def test_subscription_storage_failure_is_reported(watchlist_service):
    service = SubscriptionService(BrokenSubscriptions(), watchlist_service)

    result = await service.subscribe(1)
    assert not result.success
    assert "disk I/O error" in result.error
    assert not (await service.unsubscribe(1)).success


class SeedFailingSubscriptions(SubscriptionRepository):
    @staticmethod
    def _seed_watchlist(session, chat_id, ticker):
        raise OperationalError("INSERT INTO watchlists", {}, Exception("disk I/O error"))


async def test_subscribe_rolls_back_user_when_watchlist_seed_fails(engine, watchlist_service,
                                                                   subscription_repo, watchlist_repo):
    service = SubscriptionService(SeedFailingSubscriptions(engine), watchlist_service)

    result = await service.subscribe(7)

    assert not result.success
    assert not await subscription_repo.exists("7")
    assert await subscription_repo.get_active_chat_ids() == []
    assert await watchlist_repo.get("7") == []


async def test_subscribe_keeps_existing_watchlist(subscription_repo, watchlist_repo):
    await watchlist_repo.add("8", "QQQ")

    assert await subscription_repo.subscribe("8", "SPY") is True
    assert await watchlist_repo.get("8") == ["QQQ"]
