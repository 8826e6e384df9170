"""External collaborators: sentiment, price history, chat dispatch and charts.

- FearGreedProvider: CNN Fear & Greed Index over httpx
- YFinanceProvider: daily price history via yfinance
- TelegramClient: outbound Bot API messages
- gauge_chart_url: QuickChart gauge image URL

Providers holding network resources are async context managers:

    async with FearGreedProvider() as provider:
        reading = await provider.get_index()
"""
from fear_greed_bot.providers.chart import gauge_chart_url
from fear_greed_bot.providers.core import ProviderABC, RetryPolicy
from fear_greed_bot.providers.fear_greed import FearGreedProvider
from fear_greed_bot.providers.telegram import TelegramClient
from fear_greed_bot.providers.yfinance import YFinanceProvider

__all__ = [
    "FearGreedProvider",
    "ProviderABC",
    "RetryPolicy",
    "TelegramClient",
    "YFinanceProvider",
    "gauge_chart_url",
]
