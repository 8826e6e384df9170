"""Constants shared across the bot: keys, URLs, thresholds and message templates."""

DEFAULT_TICKER = "SPY"

# Legacy key-value layout (read only by the migrator)
LEGACY_CHAT_IDS_KEY = "chat_ids"
FEAR_GREED_CACHE_KEY = "fear_greed_cache"
WATCHLIST_KEY_PREFIX = "watchlist:"
EXECUTION_HISTORY_KEY_PREFIX = "execution_history:"
ACTIVE_POSITION_KEY_PREFIX = "active_position:"


def watchlist_key(chat_id: int | str) -> str:
    """Legacy key holding a user's watchlist blob."""
    return f"{WATCHLIST_KEY_PREFIX}{chat_id}"


def execution_history_key(chat_id: int | str) -> str:
    """Legacy key holding a user's execution history blob."""
    return f"{EXECUTION_HISTORY_KEY_PREFIX}{chat_id}"


def active_position_key(chat_id: int | str) -> str:
    """Legacy key holding a user's active position blob."""
    return f"{ACTIVE_POSITION_KEY_PREFIX}{chat_id}"


# Fear & Greed ratings (lower-cased)
RATING_FEAR = "fear"
RATING_EXTREME_FEAR = "extreme fear"
FEAR_RATINGS = frozenset({RATING_FEAR, RATING_EXTREME_FEAR})

# External endpoints
FEAR_GREED_URL = "https://production.dataviz.cnn.io/index/fearandgreed/current"
TELEGRAM_BASE_URL = "https://api.telegram.org"
QUICKCHART_URL = "https://quickchart.io/chart"
TRADINGVIEW_CHART_URL = "https://www.tradingview.com/chart/"

# Browser-like headers; the sentiment endpoint rejects bare clients
BROWSER_HEADERS = {
    "Accept": "application/json",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "max-age=0",
    "Dnt": "1",
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/142.0.0.0 Safari/537.36"
    ),
}

# Cache
FEAR_GREED_TTL_MS = 300_000
LEGACY_CACHE_TTL_MS = 24 * 60 * 60 * 1000

# Outbound requests
REQUEST_TIMEOUT_SECONDS = 10.0
MAX_RETRIES = 3
RETRY_DELAY_SECONDS = 1.0
RETRY_BACKOFF_MULTIPLIER = 2.0
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

# Telegram broadcast pacing
TELEGRAM_BATCH_SIZE = 30
TELEGRAM_BATCH_PAUSE_SECONDS = 1.0

# Chart
CHART_WIDTH = 400
CHART_HEIGHT = 250
GAUGE_SEGMENTS = (25, 45, 55, 75, 100)
GAUGE_COLORS = ("#f06c00ff", "#ffb9a180", "#e6e6e6", "#b9ede9", "#8cd6c3")

# Trading
SMA_PERIODS = (20, 50, 100, 200)
BOLLINGER_PERIOD = 20
BOLLINGER_STDDEV = 2
ENTRY_TOLERANCE = 1.01  # price within 1% above an entry level
EXIT_TOLERANCE = 0.99  # price within 1% below an exit target
BB_UPPER_SELL_MULTIPLIER = 1.01
HISTORY_PERIOD = "1y"
TICKER_MAX_LENGTH = 10

# Migration
MIGRATION_VERSION = "1.0.0"
MIGRATION_BATCH_SIZE = 100

# Telegram commands
COMMAND_START = "/start"
COMMAND_STOP = "/stop"
COMMAND_HELP = "/help"
COMMAND_NOW = "/now"
COMMAND_EXECUTE = "/execute"
COMMAND_EXECUTIONS = "/executions"
COMMAND_WATCHLIST = "/watchlist"
COMMAND_WATCH = "/watch"

MESSAGE_SUBSCRIBED = "You've subscribed to Fear and Greed Index alerts."
MESSAGE_UNSUBSCRIBED = "You've unsubscribed from Fear and Greed Index alerts."
MESSAGE_GENERIC_ERROR = "❌ Something went wrong. Please try again later."
MESSAGE_HELP = """
Available commands:
/start - Subscribe to Fear and Greed Index alerts.
/stop - Unsubscribe from Fear and Greed Index alerts.
/now - Get trading signals for all tickers in your watchlist.
/now TICKER - Get trading signal for a specific ticker (e.g., /now AAPL).
/watchlist - View your watchlist.
/watchlist add TICKER - Add ticker to your watchlist (e.g., /watchlist add AAPL).
/watchlist remove TICKER - Remove ticker from your watchlist (e.g., /watchlist remove SPY).
/execute TICKER PRICE [DATE] - Record execution of a signal at a specific price (e.g., /execute SPY 400.50). Optionally specify date as YYYY-MM-DD (e.g., /execute SPY 400.50 2024-01-15).
/executions - View your execution history.
/executions TICKER - View execution history for a specific ticker (e.g., /executions SPY).
/help - Show this help message.
"""
