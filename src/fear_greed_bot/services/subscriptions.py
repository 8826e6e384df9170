"""Subscribe / unsubscribe commands with explicit failure results."""
import logging

from fear_greed_bot.db.errors import StorageError
from fear_greed_bot.repositories import SubscriptionRepository
from fear_greed_bot.schemas import SubscriptionResult
from fear_greed_bot.services.watchlist import WatchlistService

logger = logging.getLogger(__name__)


class SubscriptionService:

    def __init__(self, repository: SubscriptionRepository, watchlists: WatchlistService) -> None:
        self._repository = repository
        self._watchlists = watchlists

    async def subscribe(self, chat_id: int | str) -> SubscriptionResult:
        """Subscribe the chat and seed its default watchlist atomically."""
        try:
            changed = await self._repository.subscribe(chat_id, self._watchlists.default_ticker)
        except StorageError as exc:
            logger.error("Failed to subscribe %s: %s", chat_id, exc)
            return SubscriptionResult(success=False, error=str(exc))
        return SubscriptionResult(success=True, changed=changed)

    async def unsubscribe(self, chat_id: int | str) -> SubscriptionResult:
        try:
            changed = await self._repository.remove_chat_id(chat_id)
        except StorageError as exc:
            logger.error("Failed to unsubscribe %s: %s", chat_id, exc)
            return SubscriptionResult(success=False, error=str(exc))
        return SubscriptionResult(success=True, changed=changed)

    async def active_chat_ids(self) -> list[str]:
        return await self._repository.get_active_chat_ids()
