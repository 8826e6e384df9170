"""Legacy key-value store migration and validation."""
from fear_greed_bot.migration.legacy_store import (LegacyKeyValueStore,
                                                   LegacyStore)
from fear_greed_bot.migration.migrator import DataMigrator
from fear_greed_bot.migration.validator import DataValidator

__all__ = [
    "DataMigrator",
    "DataValidator",
    "LegacyKeyValueStore",
    "LegacyStore",
]
