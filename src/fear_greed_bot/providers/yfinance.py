"""Yahoo Finance daily price history via yfinance."""
import asyncio
import logging
import math

import yfinance as yf

from fear_greed_bot.constants import HISTORY_PERIOD
from fear_greed_bot.errors import AppError, api_error
from fear_greed_bot.providers.core import ProviderABC
from fear_greed_bot.schemas import MarketData, PriceBar
from fear_greed_bot.utils import normalize_ticker

logger = logging.getLogger(__name__)


def _volume(value) -> float | None:
    if value is None or math.isnan(value):
        return None
    return float(value)


class YFinanceProvider(ProviderABC):
    """Price history provider for stocks and ETFs.

    yfinance is synchronous, so every fetch runs in a worker thread.
    No API key required.
    """

    def __init__(self, period: str = HISTORY_PERIOD) -> None:
        """Initialize the provider.

        Args:
            period: yfinance history period; one year covers the 200 bars
                needed for SMA200.
        """
        self._period = period

    @staticmethod
    def _extract_price(ticker: yf.Ticker) -> float | None:
        info = getattr(ticker, "fast_info", None)
        if not info:
            return None
        try:
            price = info.get("lastPrice") or info.get("regularMarketPrice")
        except Exception:  # pylint: disable=broad-except
            logger.debug("fast_info lookup failed", exc_info=True)
            return None
        return float(price) if price else None

    def _fetch_market_data_sync(self, symbol: str) -> MarketData:
        """Fetch history and current price synchronously (run in thread)."""
        ticker = yf.Ticker(symbol)
        try:
            df = ticker.history(period=self._period, interval="1d", auto_adjust=False)
        except Exception as e:
            raise api_error(f"Failed to fetch history for '{symbol}': {e}", status_code=502, cause=e) from e
        if df is None or df.empty:
            raise api_error(f"No price history for '{symbol}'", status_code=404)

        bars = [
            PriceBar(
                date=ts.to_pydatetime(),
                open=float(row["Open"]),
                high=float(row["High"]),
                low=float(row["Low"]),
                close=float(row["Close"]),
                volume=_volume(row.get("Volume")),
            )
            for ts, row in df.iterrows()
            if not row[["Open", "High", "Low", "Close"]].isna().any()
        ]
        if not bars:
            raise api_error(f"No usable price bars for '{symbol}'", status_code=404)

        price = self._extract_price(ticker) or bars[-1].close
        return MarketData(ticker=symbol, current_price=price, bars=bars)

    async def get_market_data(self, ticker: str) -> MarketData:
        """Current price plus ascending daily bars for a ticker."""
        symbol = normalize_ticker(ticker)
        try:
            return await asyncio.to_thread(self._fetch_market_data_sync, symbol)
        except AppError:
            raise
        except Exception as e:
            raise api_error(f"Failed to fetch market data for '{symbol}': {e}", status_code=502, cause=e) from e

    async def close(self) -> None:
        """Nothing to release; yfinance keeps no persistent connections here."""
