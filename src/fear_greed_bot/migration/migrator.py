"""One-time migration from the legacy key-value store to the relational store.

Steps run in order: subscriptions, watchlists, executions, positions, cache.
Each legacy record is written in its own transaction (subscriptions in
batches), so one bad record is reported and skipped without aborting the
run. The status row is marked complete only after every step has run; if
that write fails the error propagates and the next startup retries.
Executions have no natural key, so re-running is prevented by the status
row rather than by the data.
"""
import json
import logging
import time
from collections.abc import Awaitable, Callable

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from fear_greed_bot.constants import (ACTIVE_POSITION_KEY_PREFIX,
                                      EXECUTION_HISTORY_KEY_PREFIX,
                                      FEAR_GREED_CACHE_KEY,
                                      LEGACY_CACHE_TTL_MS, LEGACY_CHAT_IDS_KEY,
                                      MIGRATION_BATCH_SIZE,
                                      WATCHLIST_KEY_PREFIX)
from fear_greed_bot.db.errors import StorageError
from fear_greed_bot.db.models import (ActivePosition, CacheEntry, Execution,
                                      User, Watchlist)
from fear_greed_bot.migration.legacy_store import (LegacyCacheBlob,
                                                   LegacyExecution,
                                                   LegacyPosition, LegacyStore,
                                                   chat_id_from_key)
from fear_greed_bot.repositories import MigrationStatusRepository
from fear_greed_bot.repositories.base import ensure_user, run_in_session
from fear_greed_bot.schemas import (MigrationError, MigrationResult,
                                    MigrationRun)
from fear_greed_bot.utils import normalize_ticker, now_ms

logger = logging.getLogger(__name__)

_chat_ids_adapter = TypeAdapter(list[int | str])
_tickers_adapter = TypeAdapter(list[str])
_executions_adapter = TypeAdapter(list[LegacyExecution])


def load_legacy_chat_ids(blob: str | None) -> list[str]:
    """Parse the legacy subscriber list; ids are stored as strings."""
    if not blob:
        return []
    return [str(chat_id) for chat_id in _chat_ids_adapter.validate_json(blob)]


class DataMigrator:
    """Copies every legacy record set into the relational tables."""

    def __init__(
        self,
        legacy: LegacyStore,
        engine: Engine,
        status: MigrationStatusRepository,
        batch_size: int = MIGRATION_BATCH_SIZE,
    ) -> None:
        self._legacy = legacy
        self._engine = engine
        self._status = status
        self._batch_size = batch_size

    async def needs_migration(self) -> bool:
        """True unless the status row says the migration completed.

        If the status cannot be read the migration is assumed to be needed.
        """
        try:
            return not (await self._status.get()).completed
        except StorageError as exc:
            logger.warning("Could not read migration status, assuming migration needed: %s", exc)
            return True

    async def migrate(self) -> MigrationRun:
        if not await self.needs_migration():
            logger.info("Legacy migration already completed; skipping")
            return MigrationRun(completed=True, skipped=True)

        logger.info("Starting legacy store migration...")
        results = [
            await self._timed("users", self._migrate_subscriptions),
            await self._timed("watchlists", self._migrate_watchlists),
            await self._timed("executions", self._migrate_executions),
            await self._timed("active_positions", self._migrate_positions),
            await self._timed("cache", self._migrate_cache),
        ]
        await self._status.mark_completed()

        logger.info("Migration completed:")
        for result in results:
            logger.info("  %s: %d records (%dms)", result.table, result.records_migrated, result.duration_ms)
            if result.errors:
                logger.warning("    Errors: %d", len(result.errors))
        return MigrationRun(completed=True, results=results)

    async def _timed(
        self, table: str, step: Callable[[MigrationResult], Awaitable[None]]
    ) -> MigrationResult:
        result = MigrationResult(table=table)
        started = time.monotonic()
        await step(result)
        result.duration_ms = int((time.monotonic() - started) * 1000)
        return result

    @staticmethod
    def _fail(result: MigrationResult, key: str, exc: Exception) -> None:
        logger.error("Failed to migrate %s: %s", key, exc)
        result.errors.append(MigrationError(key=key, error=str(exc)))

    # -- users -------------------------------------------------------------

    async def _migrate_subscriptions(self, result: MigrationResult) -> None:
        try:
            chat_ids = load_legacy_chat_ids(await self._legacy.get(LEGACY_CHAT_IDS_KEY))
        except ValidationError as exc:
            self._fail(result, LEGACY_CHAT_IDS_KEY, exc)
            return

        for start in range(0, len(chat_ids), self._batch_size):
            batch = chat_ids[start:start + self._batch_size]
            try:
                await run_in_session(self._engine, "migrate.users", self._insert_users, batch)
                result.records_migrated += len(batch)
            except StorageError:
                for chat_id in batch:
                    try:
                        await run_in_session(self._engine, "migrate.users", self._insert_users, [chat_id])
                        result.records_migrated += 1
                    except StorageError as exc:
                        self._fail(result, f"{LEGACY_CHAT_IDS_KEY}[{chat_id}]", exc)

    @staticmethod
    def _insert_users(session: Session, chat_ids: list[str]) -> None:
        now = now_ms()
        for chat_id in chat_ids:
            if session.get(User, chat_id) is None:
                session.add(User(chat_id=chat_id, subscription_status=True, created_at=now, updated_at=now))

    # -- watchlists --------------------------------------------------------

    async def _migrate_watchlists(self, result: MigrationResult) -> None:
        for key in await self._legacy.list_keys(WATCHLIST_KEY_PREFIX):
            try:
                tickers = _tickers_adapter.validate_json(await self._legacy.get(key) or "[]")
                result.records_migrated += await run_in_session(
                    self._engine, "migrate.watchlists", self._insert_watchlist, chat_id_from_key(key), tickers
                )
            except (ValidationError, StorageError) as exc:
                self._fail(result, key, exc)

    @staticmethod
    def _insert_watchlist(session: Session, chat_id: str, tickers: list[str]) -> int:
        ensure_user(session, chat_id)
        existing = set(session.exec(select(Watchlist.ticker).where(Watchlist.chat_id == chat_id)).all())
        now = now_ms()
        inserted = 0
        for ticker in (normalize_ticker(t) for t in tickers):
            if not ticker or ticker in existing:
                continue
            session.add(Watchlist(chat_id=chat_id, ticker=ticker, created_at=now))
            existing.add(ticker)
            inserted += 1
        return inserted

    # -- executions --------------------------------------------------------

    async def _migrate_executions(self, result: MigrationResult) -> None:
        for key in await self._legacy.list_keys(EXECUTION_HISTORY_KEY_PREFIX):
            try:
                history = _executions_adapter.validate_json(await self._legacy.get(key) or "[]")
                result.records_migrated += await run_in_session(
                    self._engine, "migrate.executions", self._insert_executions, chat_id_from_key(key), history
                )
            except (ValidationError, StorageError) as exc:
                self._fail(result, key, exc)

    @staticmethod
    def _insert_executions(session: Session, chat_id: str, history: list[LegacyExecution]) -> int:
        now = now_ms()
        ensure_user(session, chat_id, now)
        for entry in history:
            session.add(
                Execution(
                    chat_id=chat_id,
                    signal_type=entry.signal_type,
                    ticker=normalize_ticker(entry.ticker),
                    execution_price=entry.execution_price,
                    signal_price=entry.signal_price,
                    execution_date=entry.execution_date,
                    created_at=now,
                )
            )
        return len(history)

    # -- positions ---------------------------------------------------------

    async def _migrate_positions(self, result: MigrationResult) -> None:
        for key in await self._legacy.list_keys(ACTIVE_POSITION_KEY_PREFIX):
            try:
                position = LegacyPosition.model_validate_json(await self._legacy.get(key) or "null")
                await run_in_session(
                    self._engine, "migrate.positions", self._upsert_position, chat_id_from_key(key), position
                )
                result.records_migrated += 1
            except (ValidationError, StorageError) as exc:
                self._fail(result, key, exc)

    @staticmethod
    def _upsert_position(session: Session, chat_id: str, position: LegacyPosition) -> None:
        now = now_ms()
        ensure_user(session, chat_id, now)
        ticker = normalize_ticker(position.ticker)
        row = session.exec(
            select(ActivePosition).where(ActivePosition.chat_id == chat_id, ActivePosition.ticker == ticker)
        ).first()
        if row is None:
            row = ActivePosition(chat_id=chat_id, ticker=ticker, entry_price=position.entry_price, created_at=now)
        row.entry_price = position.entry_price
        row.updated_at = now
        session.add(row)

    # -- cache -------------------------------------------------------------

    async def _migrate_cache(self, result: MigrationResult) -> None:
        blob = await self._legacy.get(FEAR_GREED_CACHE_KEY)
        if blob is None:
            return
        try:
            cached = LegacyCacheBlob.model_validate_json(blob)
            await run_in_session(
                self._engine,
                "migrate.cache",
                self._upsert_cache,
                FEAR_GREED_CACHE_KEY,
                json.dumps(cached.data),
                cached.timestamp + LEGACY_CACHE_TTL_MS,
            )
            result.records_migrated += 1
        except (ValidationError, StorageError) as exc:
            self._fail(result, FEAR_GREED_CACHE_KEY, exc)

    @staticmethod
    def _upsert_cache(session: Session, key: str, payload: str, expires_at: int) -> None:
        entry = session.get(CacheEntry, key) or CacheEntry(cache_key=key, cache_value=payload, expires_at=expires_at)
        entry.cache_value = payload
        entry.expires_at = expires_at
        entry.updated_at = now_ms()
        session.add(entry)
