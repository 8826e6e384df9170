"""DI container. Build via init_container(); main.lifespan copies services onto app.state."""
import logging

from dependency_injector import containers, providers

from fear_greed_bot.config import Settings
from fear_greed_bot.db.sessions import create_db_engine
from fear_greed_bot.migration import (DataMigrator, DataValidator,
                                      LegacyKeyValueStore)
from fear_greed_bot.providers import (FearGreedProvider, TelegramClient,
                                      YFinanceProvider)
from fear_greed_bot.repositories import (CacheRepository, ExecutionRepository,
                                         MigrationStatusRepository,
                                         PositionRepository,
                                         SubscriptionRepository,
                                         WatchlistRepository)
from fear_greed_bot.services import (CommandHandler, NotificationService,
                                     SentimentService, SubscriptionService,
                                     WatchlistService)
from fear_greed_bot.trading import (ExecutionService, HolidayCalendar,
                                    PositionService, SignalService)

logger = logging.getLogger(__name__)


class Container(containers.DeclarativeContainer):
    settings = providers.Singleton(Settings.from_env)

    engine = providers.Singleton(
        create_db_engine,
        settings.provided.database_url,
        echo=settings.provided.sql_echo,
    )

    # Repositories
    subscription_repository = providers.Singleton(SubscriptionRepository, engine)
    watchlist_repository = providers.Singleton(WatchlistRepository, engine)
    execution_repository = providers.Singleton(ExecutionRepository, engine)
    position_repository = providers.Singleton(PositionRepository, engine)
    cache_repository = providers.Singleton(CacheRepository, engine)
    migration_status_repository = providers.Singleton(MigrationStatusRepository, engine)

    # External collaborators
    fear_greed_provider = providers.Singleton(
        FearGreedProvider, timeout=settings.provided.http_timeout_seconds
    )
    market_data_provider = providers.Singleton(YFinanceProvider)
    telegram_client = providers.Singleton(TelegramClient, settings.provided.telegram_bot_token)
    holiday_calendar = providers.Singleton(HolidayCalendar)

    # Services
    sentiment_service = providers.Singleton(SentimentService, fear_greed_provider, cache_repository)
    watchlist_service = providers.Singleton(WatchlistService, watchlist_repository)
    subscription_service = providers.Singleton(
        SubscriptionService, subscription_repository, watchlist_service
    )
    position_service = providers.Singleton(PositionService, position_repository, execution_repository)
    execution_service = providers.Singleton(
        ExecutionService, execution_repository, position_service, watchlist_repository
    )
    signal_service = providers.Singleton(SignalService, market_data_provider, position_repository)
    notification_service = providers.Singleton(
        NotificationService,
        sentiment_service,
        signal_service,
        subscription_repository,
        watchlist_service,
        telegram_client,
        holiday_calendar,
        admin_chat_id=settings.provided.admin_chat_id,
    )
    command_handler = providers.Singleton(
        CommandHandler,
        telegram_client,
        subscription_service,
        watchlist_service,
        execution_service,
        notification_service,
    )

    # Legacy migration (only used when an export path is configured)
    legacy_store = providers.Singleton(
        LegacyKeyValueStore.from_json_file, settings.provided.legacy_kv_export
    )
    data_migrator = providers.Factory(
        DataMigrator, legacy_store, engine, migration_status_repository
    )
    data_validator = providers.Factory(
        DataValidator,
        legacy_store,
        subscription_repository,
        watchlist_repository,
        execution_repository,
        position_repository,
    )


def init_container(settings: Settings | None = None) -> Container:
    """Create the container, optionally pinning explicit settings."""
    container = Container()
    if settings is not None:
        container.settings.override(providers.Object(settings))
    return container


async def close_container(container: Container) -> None:
    """Close network clients and dispose of the engine."""
    for provider in (
        container.fear_greed_provider(),
        container.market_data_provider(),
        container.telegram_client(),
    ):
        try:
            await provider.close()
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Error closing provider %s: %s", type(provider).__name__, exc)
    container.engine().dispose()
