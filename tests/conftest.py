"""Shared fixtures: in-memory database, repositories and collaborator fakes."""
from datetime import datetime, timedelta, timezone

import pytest

from fear_greed_bot.db import create_db_engine, init_db
from fear_greed_bot.errors import api_error
from fear_greed_bot.repositories import (CacheRepository, ExecutionRepository,
                                         MigrationStatusRepository,
                                         PositionRepository,
                                         SubscriptionRepository,
                                         WatchlistRepository)
from fear_greed_bot.schemas import (BroadcastResult, MarketData, PriceBar,
                                    SendResult, SentimentReading)
from fear_greed_bot.services import SubscriptionService, WatchlistService
from fear_greed_bot.trading import (ExecutionService, HolidayCalendar,
                                    PositionService, SignalService)


def make_bars(closes: list[float], start: datetime | None = None) -> list[PriceBar]:
    start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [
        PriceBar(date=start + timedelta(days=i), open=c, high=c, low=c, close=c, volume=1000)
        for i, c in enumerate(closes)
    ]


def make_sentiment(rating: str = "extreme fear", score: float = 20.0) -> SentimentReading:
    return SentimentReading(score=score, rating=rating, timestamp="2026-07-06T12:00:00+00:00")


class FakeMarketData:
    """Serves canned MarketData per ticker; unknown tickers fail like the real provider."""

    def __init__(self, data: dict[str, MarketData] | None = None) -> None:
        self.data = data or {}
        self.calls: list[str] = []

    async def get_market_data(self, ticker: str) -> MarketData:
        self.calls.append(ticker)
        if ticker not in self.data:
            raise api_error(f"No price history for '{ticker}'", status_code=404)
        return self.data[ticker]


class FakeTelegram:
    """Records outgoing messages instead of calling the Bot API."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.sent: list[tuple[str, str]] = []
        self.failing = failing or set()

    async def send_message(self, chat_id, text, parse_mode="Markdown") -> SendResult:
        target = str(chat_id)
        if target in self.failing:
            return SendResult(ok=False, chat_id=target, status_code=403, error="Forbidden")
        self.sent.append((target, text))
        return SendResult(ok=True, chat_id=target, status_code=200)

    async def broadcast(self, chat_ids, text) -> BroadcastResult:
        ids = list(chat_ids)
        result = BroadcastResult(total_subscribers=len(ids))
        for chat_id in ids:
            sent = await self.send_message(chat_id, text)
            if sent.ok:
                result.successful += 1
            else:
                result.failed += 1
                result.errors.append(f"{sent.chat_id}: {sent.error}")
        return result

    def messages_for(self, chat_id) -> list[str]:
        return [text for target, text in self.sent if target == str(chat_id)]

    async def close(self) -> None:
        pass


class FakeSentiment:
    def __init__(self, reading: SentimentReading | None = None, error: Exception | None = None) -> None:
        self.reading = reading or make_sentiment()
        self.error = error

    async def get_index(self) -> SentimentReading:
        if self.error is not None:
            raise self.error
        return self.reading


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def subscription_repo(engine):
    return SubscriptionRepository(engine)


@pytest.fixture
def watchlist_repo(engine):
    return WatchlistRepository(engine)


@pytest.fixture
def execution_repo(engine):
    return ExecutionRepository(engine)


@pytest.fixture
def position_repo(engine):
    return PositionRepository(engine)


@pytest.fixture
def cache_repo(engine):
    return CacheRepository(engine)


@pytest.fixture
def migration_status_repo(engine):
    return MigrationStatusRepository(engine)


@pytest.fixture
def watchlist_service(watchlist_repo):
    return WatchlistService(watchlist_repo)


@pytest.fixture
def subscription_service(subscription_repo, watchlist_service):
    return SubscriptionService(subscription_repo, watchlist_service)


@pytest.fixture
def position_service(position_repo, execution_repo):
    return PositionService(position_repo, execution_repo)


@pytest.fixture
def execution_service(execution_repo, position_service, watchlist_repo):
    return ExecutionService(execution_repo, position_service, watchlist_repo)


@pytest.fixture
def market_data():
    return FakeMarketData({"SPY": MarketData(ticker="SPY", current_price=100.0, bars=make_bars([100.0] * 200))})


@pytest.fixture
def signal_service(market_data, position_repo):
    return SignalService(market_data, position_repo)


@pytest.fixture
def telegram():
    return FakeTelegram()


@pytest.fixture
def calendar():
    return HolidayCalendar()
