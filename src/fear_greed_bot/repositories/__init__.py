"""Repositories over the relational store, one per record type."""
from fear_greed_bot.repositories.base import Repository
from fear_greed_bot.repositories.cache import CacheRepository
from fear_greed_bot.repositories.executions import ExecutionRepository
from fear_greed_bot.repositories.migration_status import \
    MigrationStatusRepository
from fear_greed_bot.repositories.positions import PositionRepository
from fear_greed_bot.repositories.subscriptions import SubscriptionRepository
from fear_greed_bot.repositories.watchlists import WatchlistRepository

__all__ = [
    "CacheRepository",
    "ExecutionRepository",
    "MigrationStatusRepository",
    "PositionRepository",
    "Repository",
    "SubscriptionRepository",
    "WatchlistRepository",
]
