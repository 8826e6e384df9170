"""Position state and the one-trade-per-month frequency guard."""
import logging
from datetime import datetime, timezone

from fear_greed_bot.db.errors import StorageError
from fear_greed_bot.repositories import (ExecutionRepository,
                                         PositionRepository)
from fear_greed_bot.schemas import OpenPosition

logger = logging.getLogger(__name__)


class PositionService:
    """Reads a user's open position and decides whether they may trade now."""

    def __init__(self, positions: PositionRepository, executions: ExecutionRepository) -> None:
        self._positions = positions
        self._executions = executions

    async def get_active_position(self, chat_id: int | str) -> OpenPosition | None:
        return await self._positions.get(chat_id)

    async def can_trade(self, chat_id: int | str, now: datetime | None = None) -> bool:
        """False when the latest execution falls in the current UTC month.

        Storage failures allow the trade (fail open).
        """
        try:
            latest = await self._executions.latest(chat_id)
        except StorageError:
            logger.exception("Error checking trade frequency limit for %s; allowing trade", chat_id)
            return True
        if latest is None:
            return True
        current = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
        last = latest.executed_at
        return (last.year, last.month) != (current.year, current.month)
