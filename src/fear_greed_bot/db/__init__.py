"""Database package: models, typed storage errors and session management."""
from fear_greed_bot.db.errors import (ConstraintKind, StorageConstraintError,
                                      StorageError, StorageTransactionError)
from fear_greed_bot.db.models import (ActivePosition, CacheEntry, Execution,
                                      MigrationStatus, SignalType, User,
                                      Watchlist)
from fear_greed_bot.db.sessions import create_db_engine, get_session, init_db

__all__ = [
    "ActivePosition",
    "CacheEntry",
    "ConstraintKind",
    "Execution",
    "MigrationStatus",
    "SignalType",
    "StorageConstraintError",
    "StorageError",
    "StorageTransactionError",
    "User",
    "Watchlist",
    "create_db_engine",
    "get_session",
    "init_db",
]
