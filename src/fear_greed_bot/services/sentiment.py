"""Fear & Greed readings served through the relational cache."""
import logging

from pydantic import ValidationError

from fear_greed_bot.constants import FEAR_GREED_CACHE_KEY, FEAR_GREED_TTL_MS
from fear_greed_bot.db.errors import StorageError
from fear_greed_bot.providers import FearGreedProvider
from fear_greed_bot.repositories import CacheRepository
from fear_greed_bot.schemas import SentimentReading

logger = logging.getLogger(__name__)


class SentimentService:
    """Returns the current reading, fetching at most once per TTL window.

    Cache failures never block a fetch: they are logged and the provider is
    called directly.
    """

    def __init__(
        self,
        provider: FearGreedProvider,
        cache: CacheRepository,
        ttl_ms: int = FEAR_GREED_TTL_MS,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._ttl_ms = ttl_ms

    async def get_index(self) -> SentimentReading:
        cached = await self._read_cache()
        if cached is not None:
            return cached
        reading = await self._provider.get_index()
        try:
            await self._cache.set(FEAR_GREED_CACHE_KEY, reading.model_dump(mode="json"), self._ttl_ms)
        except StorageError as exc:
            logger.warning("Could not cache Fear & Greed reading: %s", exc)
        return reading

    async def _read_cache(self) -> SentimentReading | None:
        try:
            payload = await self._cache.get(FEAR_GREED_CACHE_KEY)
        except StorageError as exc:
            logger.warning("Fear & Greed cache read failed: %s", exc)
            return None
        if payload is None:
            return None
        try:
            return SentimentReading.model_validate(payload)
        except ValidationError:
            logger.warning("Ignoring malformed cached Fear & Greed reading")
            return None
