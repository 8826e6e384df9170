"""Console entry points: cron broadcast, legacy migration and validation."""
import argparse
import asyncio
import logging
import sys

from dependency_injector import providers

from fear_greed_bot.config import Settings
from fear_greed_bot.container import (Container, close_container,
                                      init_container)
from fear_greed_bot.db import init_db
from fear_greed_bot.main import configure_logging
from fear_greed_bot.migration import LegacyKeyValueStore

logger = logging.getLogger(__name__)


def _bootstrap(export_path: str | None = None) -> Container:
    settings = Settings.from_env()
    configure_logging(settings)
    container = init_container(settings)
    if export_path:
        container.legacy_store.override(
            providers.Object(LegacyKeyValueStore.from_json_file(export_path))
        )
    init_db(container.engine())
    return container


def _export_path(description: str) -> str | None:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "export",
        nargs="?",
        help="Path to the legacy key-value JSON export (defaults to LEGACY_KV_EXPORT)",
    )
    return parser.parse_args().export


async def _scheduled() -> int:
    container = _bootstrap()
    try:
        run = await container.notification_service().run_scheduled()
    finally:
        await close_container(container)
    if run.skipped:
        logger.info("Skipped: %s", run.reason)
    else:
        logger.info(
            "Processed %d users: %d sent, %d failed",
            run.users_processed,
            run.messages_sent,
            run.messages_failed,
        )
    return 1 if run.errors else 0


async def _migrate(export_path: str | None) -> int:
    container = _bootstrap(export_path)
    try:
        if not (export_path or container.settings().legacy_kv_export):
            logger.error("No legacy export given and LEGACY_KV_EXPORT is not set")
            return 2
        run = await container.data_migrator().migrate()
    finally:
        await close_container(container)
    return 1 if run.total_errors else 0


async def _validate(export_path: str | None) -> int:
    container = _bootstrap(export_path)
    try:
        if not (export_path or container.settings().legacy_kv_export):
            logger.error("No legacy export given and LEGACY_KV_EXPORT is not set")
            return 2
        report = await container.data_validator().validate()
    finally:
        await close_container(container)
    print(report.summary)
    for table in report.tables:
        for discrepancy in table.discrepancies:
            print(f"  {table.table}: {discrepancy}")
    return 0 if report.overall_success else 1


def scheduled():
    """Run one scheduled broadcast. Use for `poetry run fear-greed-bot-scheduled`."""
    sys.exit(asyncio.run(_scheduled()))


def migrate():
    """Migrate a legacy export into the database."""
    sys.exit(asyncio.run(_migrate(_export_path("Migrate legacy bot data into the database"))))


def validate():
    """Compare a legacy export with the database."""
    sys.exit(asyncio.run(_validate(_export_path("Validate migrated bot data against the legacy export"))))
