import json

import pytest

from fear_greed_bot.constants import (FEAR_GREED_CACHE_KEY,
                                      LEGACY_CHAT_IDS_KEY,
                                      active_position_key,
                                      execution_history_key, watchlist_key)
from fear_greed_bot.db.models import SignalType
from fear_greed_bot.migration import (DataMigrator, DataValidator,
                                      LegacyKeyValueStore)
from fear_greed_bot.utils import now_ms


def legacy_data() -> dict:
    return {
        LEGACY_CHAT_IDS_KEY: ["1", "2", 3],
        watchlist_key(1): ["SPY", "qqq"],
        execution_history_key(1): [
            {"signalType": "BUY", "ticker": "spy", "executionPrice": 400.0, "executionDate": 1_700_000_000_000},
            {
                "signalType": "SELL",
                "ticker": "SPY",
                "executionPrice": 420.0,
                "executionDate": 1_705_000_000_000,
                "signalPrice": 418.0,
            },
        ],
        active_position_key(2): {"ticker": "QQQ", "entryPrice": 300.0},
        FEAR_GREED_CACHE_KEY: {"data": {"score": 20, "rating": "extreme fear"}, "timestamp": now_ms()},
    }


@pytest.fixture
def legacy():
    return LegacyKeyValueStore(legacy_data())


@pytest.fixture
def migrator(legacy, engine, migration_status_repo):
    return DataMigrator(legacy, engine, migration_status_repo)


@pytest.fixture
def validator(legacy, subscription_repo, watchlist_repo, execution_repo, position_repo):
    return DataValidator(legacy, subscription_repo, watchlist_repo, execution_repo, position_repo)


async def test_migrates_every_record_set(migrator, subscription_repo, watchlist_repo,
                                         execution_repo, position_repo, cache_repo):
    run = await migrator.migrate()

    assert run.completed and not run.skipped
    assert {r.table: r.records_migrated for r in run.results} == {
        "users": 3,
        "watchlists": 2,
        "executions": 2,
        "active_positions": 1,
        "cache": 1,
    }
    assert run.total_errors == 0

    assert sorted(await subscription_repo.get_active_chat_ids()) == ["1", "2", "3"]
    assert await watchlist_repo.get("1") == ["SPY", "QQQ"]
    history = await execution_repo.history("1")
    assert [e.signal_type for e in history] == [SignalType.SELL, SignalType.BUY]
    assert history[0].signal_price == 418.0
    assert (await position_repo.get("2")).entry_price == 300.0
    assert await cache_repo.get(FEAR_GREED_CACHE_KEY) == {"score": 20, "rating": "extreme fear"}


async def test_migration_runs_once(migrator, execution_repo, migration_status_repo):
    assert await migrator.needs_migration()
    await migrator.migrate()
    assert not await migrator.needs_migration()

    second = await migrator.migrate()

    assert second.skipped
    assert await execution_repo.count() == 2
    assert (await migration_status_repo.get()).completed


async def test_bad_records_are_reported_and_skipped(engine, migration_status_repo, watchlist_repo):
    data = {LEGACY_CHAT_IDS_KEY: []}
    for i in range(10):
        data[watchlist_key(i)] = "{corrupt" if i in (2, 5, 8) else json.dumps([f"T{i}"])
    migrator = DataMigrator(LegacyKeyValueStore(data), engine, migration_status_repo)

    run = await migrator.migrate()

    watchlists = next(r for r in run.results if r.table == "watchlists")
    assert watchlists.records_migrated == 7
    assert len(watchlists.errors) == 3
    assert {e.key for e in watchlists.errors} == {watchlist_key(2), watchlist_key(5), watchlist_key(8)}
    assert await watchlist_repo.get("9") == ["T9"]
    assert run.completed


async def test_invalid_execution_blob_is_rejected_whole(engine, migration_status_repo, execution_repo):
    data = {
        execution_history_key(1): [
            {"signalType": "BUY", "ticker": "SPY", "executionPrice": 400.0, "executionDate": 1},
            {"signalType": "HOLD", "ticker": "SPY", "executionPrice": 400.0, "executionDate": 2},
        ]
    }
    run = await DataMigrator(LegacyKeyValueStore(data), engine, migration_status_repo).migrate()

    executions = next(r for r in run.results if r.table == "executions")
    assert executions.records_migrated == 0
    assert [e.key for e in executions.errors] == [execution_history_key(1)]
    assert await execution_repo.count() == 0


async def test_validator_passes_after_migration(migrator, validator):
    await migrator.migrate()

    report = await validator.validate()

    assert report.overall_success, report.summary
    assert [t.table for t in report.tables] == ["users", "watchlists", "executions", "active_positions"]
    assert report.summary == "Validation passed: all 4 tables match."


async def test_validator_reports_discrepancies(migrator, validator, subscription_repo, position_repo):
    await migrator.migrate()
    await subscription_repo.add_chat_id("99")
    await subscription_repo.remove_chat_id("1")
    await position_repo.set("2", "QQQ", 310.0)

    report = await validator.validate()

    assert not report.overall_success
    users = report.tables[0]
    assert "missing_chat_id:1" in users.discrepancies
    assert "extra_chat_id:99" in users.discrepancies
    positions = report.tables[3]
    assert any(d.startswith("price_mismatch:2") for d in positions.discrepancies)


async def test_legacy_export_accepts_key_value_list(tmp_path):
    export = tmp_path / "export.json"
    export.write_text(
        json.dumps(
            [
                {"key": LEGACY_CHAT_IDS_KEY, "value": "[\"1\"]"},
                {"key": watchlist_key(1), "value": ["SPY"]},
            ]
        ),
        encoding="utf-8",
    )

    store = LegacyKeyValueStore.from_json_file(export)

    assert await store.get(LEGACY_CHAT_IDS_KEY) == "[\"1\"]"
    assert json.loads(await store.get(watchlist_key(1))) == ["SPY"]


async def test_legacy_store_lists_keys_by_prefix():
    store = LegacyKeyValueStore({watchlist_key(2): [], watchlist_key(1): [], LEGACY_CHAT_IDS_KEY: []})

    assert await store.list_keys("watchlist:") == [watchlist_key(1), watchlist_key(2)]
    assert await store.get("missing") is None
