"""Database models for the bot.

All per-user state is persisted here: subscriptions, watchlists, the
execution log, open positions, a small JSON cache and the migration status
singleton. Timestamps are Unix epoch milliseconds.
"""
from enum import Enum

from sqlalchemy import CheckConstraint, Index, UniqueConstraint
from sqlmodel import Field, SQLModel

from fear_greed_bot.constants import MIGRATION_VERSION
from fear_greed_bot.utils import now_ms


class SignalType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class User(SQLModel, table=True):
    """One row per chat ever seen; /stop only clears subscription_status."""

    __tablename__ = "users"

    chat_id: str = Field(primary_key=True)
    subscription_status: bool = Field(default=True, index=True)
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)


class Watchlist(SQLModel, table=True):
    """A ticker a user follows."""

    __tablename__ = "watchlists"
    __table_args__ = (UniqueConstraint("chat_id", "ticker", name="uq_watchlists_chat_ticker"),)

    id: int | None = Field(default=None, primary_key=True)
    chat_id: str = Field(foreign_key="users.chat_id", ondelete="CASCADE", index=True)
    ticker: str = Field(index=True)  # uppercase
    created_at: int = Field(default_factory=now_ms)


class Execution(SQLModel, table=True):
    """Append-only log of user-confirmed signal executions."""

    __tablename__ = "executions"
    __table_args__ = (
        CheckConstraint("signal_type IN ('BUY', 'SELL')", name="ck_executions_signal_type"),
        Index("ix_executions_chat_ticker", "chat_id", "ticker"),
    )

    id: int | None = Field(default=None, primary_key=True)
    chat_id: str = Field(foreign_key="users.chat_id", ondelete="CASCADE", index=True)
    signal_type: str  # BUY | SELL
    ticker: str
    execution_price: float
    signal_price: float | None = None
    execution_date: int = Field(index=True)
    created_at: int = Field(default_factory=now_ms)


class ActivePosition(SQLModel, table=True):
    """A user's open simulated trade."""

    __tablename__ = "active_positions"
    __table_args__ = (UniqueConstraint("chat_id", "ticker", name="uq_active_positions_chat_ticker"),)

    id: int | None = Field(default=None, primary_key=True)
    chat_id: str = Field(foreign_key="users.chat_id", ondelete="CASCADE", index=True)
    ticker: str = Field(index=True)
    entry_price: float
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)


class CacheEntry(SQLModel, table=True):
    """Serialized JSON value with an absolute expiry."""

    __tablename__ = "cache"

    cache_key: str = Field(primary_key=True)
    cache_value: str
    expires_at: int = Field(index=True)
    updated_at: int = Field(default_factory=now_ms)


class MigrationStatus(SQLModel, table=True):
    """Singleton row recording whether the legacy store has been migrated."""

    __tablename__ = "_migration_status"
    __table_args__ = (CheckConstraint("id = 1", name="ck_migration_status_singleton"),)

    id: int = Field(default=1, primary_key=True)
    completed: bool = False
    completed_at: int | None = None
    version: str = MIGRATION_VERSION
