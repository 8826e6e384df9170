"""Service layer: command handling, notifications, subscriptions and watchlists."""
from fear_greed_bot.services.commands import CommandHandler
from fear_greed_bot.services.notifications import NotificationService
from fear_greed_bot.services.sentiment import SentimentService
from fear_greed_bot.services.subscriptions import SubscriptionService
from fear_greed_bot.services.watchlist import WatchlistService

__all__ = [
    "CommandHandler",
    "NotificationService",
    "SentimentService",
    "SubscriptionService",
    "WatchlistService",
]
