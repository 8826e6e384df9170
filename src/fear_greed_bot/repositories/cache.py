"""Cache repository: JSON values with absolute expiry, lazily evicted."""
import json
import logging
from typing import Any

from sqlalchemy import delete
from sqlmodel import Session

from fear_greed_bot.db.models import CacheEntry
from fear_greed_bot.repositories.base import Repository
from fear_greed_bot.utils import now_ms

logger = logging.getLogger(__name__)


class CacheRepository(Repository):

    async def get(self, key: str) -> Any | None:
        """Cached value, or None when missing, expired or unreadable."""
        return await self._run("cache.get", self._get, key, now_ms())

    async def set(self, key: str, value: Any, ttl_ms: int) -> None:
        """Store a JSON-serializable value.

        Args:
            key: Cache key.
            value: Value to store; serialized with json.dumps.
            ttl_ms: Time to live in milliseconds from now.
        """
        now = now_ms()
        await self._run("cache.set", self._put, key, json.dumps(value), now + ttl_ms, now)

    async def set_until(self, key: str, value: Any, expires_at: int) -> None:
        """Store a value with an explicit expiry (epoch ms)."""
        await self._run("cache.set_until", self._put, key, json.dumps(value), expires_at, now_ms())

    async def delete(self, key: str) -> bool:
        """Remove a key. True if an entry was deleted."""
        return await self._run("cache.delete", self._delete, key)

    async def cleanup(self) -> int:
        """Delete all expired entries; returns how many were removed."""
        return await self._run("cache.cleanup", self._cleanup, now_ms())

    @staticmethod
    def _get(session: Session, key: str, now: int) -> Any | None:
        entry = session.get(CacheEntry, key)
        if entry is None:
            return None
        if entry.expires_at <= now:
            session.delete(entry)
            return None
        try:
            return json.loads(entry.cache_value)
        except ValueError:
            logger.warning("Dropping unreadable cache entry %s", key)
            session.delete(entry)
            return None

    @staticmethod
    def _put(session: Session, key: str, payload: str, expires_at: int, now: int) -> None:
        entry = session.get(CacheEntry, key)
        if entry is None:
            entry = CacheEntry(cache_key=key, cache_value=payload, expires_at=expires_at, updated_at=now)
        else:
            entry.cache_value = payload
            entry.expires_at = expires_at
            entry.updated_at = now
        session.add(entry)

    @staticmethod
    def _delete(session: Session, key: str) -> bool:
        result = session.execute(delete(CacheEntry).where(CacheEntry.cache_key == key))
        return result.rowcount > 0

    @staticmethod
    def _cleanup(session: Session, now: int) -> int:
        result = session.execute(delete(CacheEntry).where(CacheEntry.expires_at <= now))
        return result.rowcount
