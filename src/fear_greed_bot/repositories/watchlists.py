"""Watchlist repository: raw per-user ticker rows in insertion order.

Default-ticker handling lives in WatchlistService; this layer stores exactly
what it is told.
"""
from sqlalchemy import delete, func
from sqlmodel import Session, select

from fear_greed_bot.db.models import Watchlist
from fear_greed_bot.repositories.base import Repository, ensure_user
from fear_greed_bot.utils import normalize_ticker, now_ms


class WatchlistRepository(Repository):

    async def get(self, chat_id: int | str) -> list[str]:
        """Stored tickers in insertion order.

        Args:
            chat_id: Telegram chat id.

        Returns:
            The tickers; empty when the user has no rows.
        """
        return await self._run("watchlist.get", self._get, str(chat_id))

    async def add(self, chat_id: int | str, ticker: str) -> bool:
        """Add a ticker; False if it was already present."""
        return await self._run("watchlist.add", self._add, str(chat_id), normalize_ticker(ticker))

    async def remove(self, chat_id: int | str, ticker: str) -> bool:
        """Remove a ticker; False if it was not present."""
        return await self._run("watchlist.remove", self._remove, str(chat_id), normalize_ticker(ticker))

    async def clear(self, chat_id: int | str) -> int:
        """Delete every ticker for the chat; returns how many were removed."""
        return await self._run("watchlist.clear", self._clear, str(chat_id))

    async def replace(self, chat_id: int | str, tickers: list[str]) -> list[str]:
        """Atomically replace the whole watchlist."""
        normalized = list(dict.fromkeys(normalize_ticker(t) for t in tickers))
        return await self._run("watchlist.replace", self._replace, str(chat_id), normalized)

    async def count(self) -> int:
        return await self._run("watchlist.count", self._count)

    @staticmethod
    def _get(session: Session, chat_id: str) -> list[str]:
        stmt = (
            select(Watchlist.ticker)
            .where(Watchlist.chat_id == chat_id)
            .order_by(Watchlist.created_at, Watchlist.id)
        )
        return list(session.exec(stmt).all())

    @staticmethod
    def _exists(session: Session, chat_id: str, ticker: str) -> bool:
        stmt = select(Watchlist.id).where(Watchlist.chat_id == chat_id, Watchlist.ticker == ticker)
        return session.exec(stmt).first() is not None

    @classmethod
    def _add(cls, session: Session, chat_id: str, ticker: str) -> bool:
        ensure_user(session, chat_id)
        if cls._exists(session, chat_id, ticker):
            return False
        session.add(Watchlist(chat_id=chat_id, ticker=ticker, created_at=now_ms()))
        return True

    @staticmethod
    def _remove(session: Session, chat_id: str, ticker: str) -> bool:
        result = session.execute(
            delete(Watchlist).where(Watchlist.chat_id == chat_id, Watchlist.ticker == ticker)
        )
        return result.rowcount > 0

    @staticmethod
    def _clear(session: Session, chat_id: str) -> int:
        result = session.execute(delete(Watchlist).where(Watchlist.chat_id == chat_id))
        return result.rowcount

    @classmethod
    def _replace(cls, session: Session, chat_id: str, tickers: list[str]) -> list[str]:
        ensure_user(session, chat_id)
        cls._clear(session, chat_id)
        now = now_ms()
        for ticker in tickers:
            session.add(Watchlist(chat_id=chat_id, ticker=ticker, created_at=now))
        return tickers

    @staticmethod
    def _count(session: Session) -> int:
        return session.exec(select(func.count()).select_from(Watchlist)).one()
