"""Watchlist service: ticker validation and the never-empty default."""
import logging
import re

from fear_greed_bot.constants import DEFAULT_TICKER, TICKER_MAX_LENGTH
from fear_greed_bot.errors import validation_error
from fear_greed_bot.repositories import WatchlistRepository
from fear_greed_bot.utils import normalize_ticker

logger = logging.getLogger(__name__)

_TICKER_RE = re.compile(rf"^[A-Z0-9]{{1,{TICKER_MAX_LENGTH}}}$")


def validate_ticker(raw: str) -> str:
    """Normalized ticker, or a validation AppError."""
    ticker = normalize_ticker(raw or "")
    if not _TICKER_RE.match(ticker):
        raise validation_error(
            f'❌ Invalid ticker symbol: "{raw}". '
            f"Please use a valid ticker (1-{TICKER_MAX_LENGTH} alphanumeric characters)."
        )
    return ticker


class WatchlistService:
    """Every read returns a non-empty list; an empty watchlist gets the default ticker."""

    def __init__(self, repository: WatchlistRepository, default_ticker: str = DEFAULT_TICKER) -> None:
        self._repository = repository
        self._default = default_ticker

    @property
    def default_ticker(self) -> str:
        return self._default

    async def get(self, chat_id: int | str) -> list[str]:
        tickers = await self._repository.get(chat_id)
        if tickers:
            return tickers
        await self._repository.add(chat_id, self._default)
        return [self._default]

    async def initialize_if_missing(self, chat_id: int | str) -> bool:
        """Seed the default ticker for users without a watchlist. True if seeded."""
        if await self._repository.get(chat_id):
            return False
        await self._repository.add(chat_id, self._default)
        logger.info("Initialized watchlist for %s with %s", chat_id, self._default)
        return True

    async def add(self, chat_id: int | str, ticker: str) -> bool:
        """Add a validated ticker; False if it was already there."""
        return await self._repository.add(chat_id, validate_ticker(ticker))

    async def remove(self, chat_id: int | str, ticker: str) -> bool:
        """Remove a ticker, re-adding the default if the list would become empty."""
        symbol = validate_ticker(ticker)
        removed = await self._repository.remove(chat_id, symbol)
        if removed and not await self._repository.get(chat_id):
            await self._repository.add(chat_id, self._default)
        return removed

    @staticmethod
    def format(tickers: list[str]) -> str:
        lines = ["*Your watchlist:*", *(f"• {t}" for t in tickers)]
        return "\n".join(lines)
