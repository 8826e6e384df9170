"""Database engine and session management."""
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from fear_greed_bot.db.errors import log_storage_error, wrap_storage_error
from fear_greed_bot.db.models import (  # noqa: F401  # pylint: disable=unused-import
    ActivePosition, CacheEntry, Execution, MigrationStatus, User, Watchlist)

DEFAULT_DATABASE_URL = "sqlite:///fear_greed_bot.db"


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str = DEFAULT_DATABASE_URL, echo: bool = False) -> Engine:
    """Create the engine; SQLite gets foreign keys on and a shared pool for :memory:."""
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=echo, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


@contextmanager
def get_session(engine: Engine, operation: str) -> Generator[Session, None, None]:
    """Yield a session as one transaction; engine errors are wrapped and logged.

    Work done inside the block is flushed and committed on exit, or rolled
    back on any error. A failure at commit time is reported as a transaction
    error unless the engine names a violated constraint.
    """
    session = Session(engine, expire_on_commit=False)
    try:
        try:
            yield session
            session.flush()
        except SQLAlchemyError as exc:
            session.rollback()
            raise log_storage_error(wrap_storage_error(operation, exc)) from exc
        except Exception:
            session.rollback()
            raise
        try:
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise log_storage_error(
                wrap_storage_error(operation, exc, during_commit=True)
            ) from exc
    finally:
        session.close()


def init_db(engine: Engine) -> None:
    """Create all tables and seed the migration status row. Idempotent."""
    try:
        SQLModel.metadata.create_all(engine)
    except SQLAlchemyError as exc:
        raise log_storage_error(wrap_storage_error("init_db", exc)) from exc
    with get_session(engine, "init_db") as session:
        if session.get(MigrationStatus, 1) is None:
            session.add(MigrationStatus(id=1))
