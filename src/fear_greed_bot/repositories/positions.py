"""Active position repository. A user holds at most one open position."""
from sqlalchemy import delete, func
from sqlmodel import Session, select

from fear_greed_bot.db.models import ActivePosition
from fear_greed_bot.repositories.base import Repository, ensure_user
from fear_greed_bot.schemas import OpenPosition
from fear_greed_bot.utils import normalize_ticker, now_ms


class PositionRepository(Repository):

    async def get(self, chat_id: int | str) -> OpenPosition | None:
        """Current open position.

        Args:
            chat_id: Telegram chat id.

        Returns:
            The position, or None when the user holds nothing.
        """
        return await self._run("positions.get", self._get, str(chat_id))

    async def set(self, chat_id: int | str, ticker: str, entry_price: float) -> OpenPosition:
        """Open or overwrite the user's position.

        Args:
            chat_id: Telegram chat id.
            ticker: Ticker symbol, normalized before storing.
            entry_price: Price the position was opened at.

        Returns:
            The stored position.
        """
        return await self._run(
            "positions.set", self._set, str(chat_id), normalize_ticker(ticker), entry_price
        )

    async def clear(self, chat_id: int | str) -> bool:
        """Close the position. True if one was open."""
        return await self._run("positions.clear", self._clear, str(chat_id))

    async def count(self) -> int:
        return await self._run("positions.count", self._count)

    @staticmethod
    def _get(session: Session, chat_id: str) -> OpenPosition | None:
        stmt = (
            select(ActivePosition)
            .where(ActivePosition.chat_id == chat_id)
            .order_by(ActivePosition.updated_at.desc(), ActivePosition.id.desc())
        )
        row = session.exec(stmt).first()
        if row is None:
            return None
        return OpenPosition(ticker=row.ticker, entry_price=row.entry_price)

    @staticmethod
    def _set(session: Session, chat_id: str, ticker: str, entry_price: float) -> OpenPosition:
        now = now_ms()
        ensure_user(session, chat_id, now)
        existing = session.exec(
            select(ActivePosition).where(
                ActivePosition.chat_id == chat_id, ActivePosition.ticker == ticker
            )
        ).first()
        session.execute(
            delete(ActivePosition).where(
                ActivePosition.chat_id == chat_id, ActivePosition.ticker != ticker
            )
        )
        if existing is None:
            session.add(
                ActivePosition(
                    chat_id=chat_id,
                    ticker=ticker,
                    entry_price=entry_price,
                    created_at=now,
                    updated_at=now,
                )
            )
        else:
            existing.entry_price = entry_price
            existing.updated_at = now
            session.add(existing)
        return OpenPosition(ticker=ticker, entry_price=entry_price)

    @staticmethod
    def _clear(session: Session, chat_id: str) -> bool:
        result = session.execute(delete(ActivePosition).where(ActivePosition.chat_id == chat_id))
        return result.rowcount > 0

    @staticmethod
    def _count(session: Session) -> int:
        return session.exec(select(func.count()).select_from(ActivePosition)).one()
