"""Read-only consistency check between the legacy store and the relational store."""
import logging

from pydantic import TypeAdapter, ValidationError

from fear_greed_bot.constants import (ACTIVE_POSITION_KEY_PREFIX,
                                      EXECUTION_HISTORY_KEY_PREFIX,
                                      LEGACY_CHAT_IDS_KEY, WATCHLIST_KEY_PREFIX)
from fear_greed_bot.migration.legacy_store import (LegacyExecution,
                                                   LegacyPosition, LegacyStore,
                                                   chat_id_from_key)
from fear_greed_bot.migration.migrator import load_legacy_chat_ids
from fear_greed_bot.repositories import (ExecutionRepository,
                                         PositionRepository,
                                         SubscriptionRepository,
                                         WatchlistRepository)
from fear_greed_bot.schemas import TableValidation, ValidationReport
from fear_greed_bot.utils import normalize_ticker

logger = logging.getLogger(__name__)

PRICE_TOLERANCE = 0.01

_tickers_adapter = TypeAdapter(list[str])
_executions_adapter = TypeAdapter(list[LegacyExecution])


class DataValidator:
    """Recomputes per-table counts from both stores and lists discrepancies.

    Nothing is repaired; the report is meant for a human deciding whether
    the migration can be trusted.
    """

    def __init__(
        self,
        legacy: LegacyStore,
        subscriptions: SubscriptionRepository,
        watchlists: WatchlistRepository,
        executions: ExecutionRepository,
        positions: PositionRepository,
    ) -> None:
        self._legacy = legacy
        self._subscriptions = subscriptions
        self._watchlists = watchlists
        self._executions = executions
        self._positions = positions

    async def validate(self) -> ValidationReport:
        tables = [
            await self.validate_users(),
            await self.validate_watchlists(),
            await self.validate_executions(),
            await self.validate_positions(),
        ]
        failed = [t for t in tables if not t.match]
        if failed:
            issues = sum(len(t.discrepancies) for t in failed)
            summary = (
                f"Validation failed: {', '.join(t.table for t in failed)} "
                f"mismatched ({issues} discrepancies)."
            )
            logger.warning(summary)
        else:
            summary = f"Validation passed: all {len(tables)} tables match."
            logger.info(summary)
        return ValidationReport(overall_success=not failed, tables=tables, summary=summary)

    async def validate_users(self) -> TableValidation:
        discrepancies: list[str] = []
        try:
            legacy_ids = load_legacy_chat_ids(await self._legacy.get(LEGACY_CHAT_IDS_KEY))
        except ValidationError:
            legacy_ids = []
            discrepancies.append(f"unreadable_legacy:{LEGACY_CHAT_IDS_KEY}")
        db_ids = await self._subscriptions.get_active_chat_ids()

        legacy_set, db_set = set(legacy_ids), set(db_ids)
        if len(legacy_set) != len(db_set):
            discrepancies.append(f"count_mismatch: legacy {len(legacy_set)}, db {len(db_set)}")
        discrepancies += [f"missing_chat_id:{c}" for c in sorted(legacy_set - db_set)]
        discrepancies += [f"extra_chat_id:{c}" for c in sorted(db_set - legacy_set)]
        return TableValidation(
            table="users",
            legacy_count=len(legacy_set),
            db_count=len(db_set),
            match=not discrepancies,
            discrepancies=discrepancies,
        )

    async def validate_watchlists(self) -> TableValidation:
        discrepancies: list[str] = []
        legacy_total = 0
        for key in await self._legacy.list_keys(WATCHLIST_KEY_PREFIX):
            chat_id = chat_id_from_key(key)
            try:
                tickers = _tickers_adapter.validate_json(await self._legacy.get(key) or "[]")
            except ValidationError:
                discrepancies.append(f"unreadable_legacy:{key}")
                continue
            legacy = {normalize_ticker(t) for t in tickers if t.strip()}
            legacy_total += len(legacy)
            db = set(await self._watchlists.get(chat_id))
            if legacy != db:
                discrepancies.append(f"chat {chat_id}: legacy {len(legacy)}, db {len(db)}")
        db_total = await self._watchlists.count()
        if legacy_total != db_total:
            discrepancies.append(f"count_mismatch: legacy {legacy_total}, db {db_total}")
        return TableValidation(
            table="watchlists",
            legacy_count=legacy_total,
            db_count=db_total,
            match=not discrepancies,
            discrepancies=discrepancies,
        )

    async def validate_executions(self) -> TableValidation:
        discrepancies: list[str] = []
        legacy_total = 0
        for key in await self._legacy.list_keys(EXECUTION_HISTORY_KEY_PREFIX):
            chat_id = chat_id_from_key(key)
            try:
                history = _executions_adapter.validate_json(await self._legacy.get(key) or "[]")
            except ValidationError:
                discrepancies.append(f"unreadable_legacy:{key}")
                continue
            legacy_total += len(history)
            db_count = await self._executions.count(chat_id)
            if db_count != len(history):
                discrepancies.append(f"chat {chat_id}: legacy {len(history)}, db {db_count}")
        db_total = await self._executions.count()
        if legacy_total != db_total:
            discrepancies.append(f"count_mismatch: legacy {legacy_total}, db {db_total}")
        return TableValidation(
            table="executions",
            legacy_count=legacy_total,
            db_count=db_total,
            match=not discrepancies,
            discrepancies=discrepancies,
        )

    async def validate_positions(self) -> TableValidation:
        discrepancies: list[str] = []
        legacy_total = 0
        for key in await self._legacy.list_keys(ACTIVE_POSITION_KEY_PREFIX):
            chat_id = chat_id_from_key(key)
            try:
                legacy = LegacyPosition.model_validate_json(await self._legacy.get(key) or "null")
            except ValidationError:
                discrepancies.append(f"unreadable_legacy:{key}")
                continue
            legacy_total += 1
            db = await self._positions.get(chat_id)
            if db is None:
                discrepancies.append(f"missing_position:{chat_id}")
                continue
            if normalize_ticker(legacy.ticker) != db.ticker:
                discrepancies.append(f"ticker_mismatch:{chat_id} legacy {legacy.ticker}, db {db.ticker}")
            if abs(legacy.entry_price - db.entry_price) > PRICE_TOLERANCE:
                discrepancies.append(
                    f"price_mismatch:{chat_id} legacy {legacy.entry_price}, db {db.entry_price}"
                )
        db_total = await self._positions.count()
        if legacy_total != db_total:
            discrepancies.append(f"count_mismatch: legacy {legacy_total}, db {db_total}")
        return TableValidation(
            table="active_positions",
            legacy_count=legacy_total,
            db_count=db_total,
            match=not discrepancies,
            discrepancies=discrepancies,
        )
