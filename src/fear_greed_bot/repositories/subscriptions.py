"""Subscription repository: users and their soft-delete subscription flag."""
from sqlalchemy import func
from sqlmodel import Session, select

from fear_greed_bot.db.models import User, Watchlist
from fear_greed_bot.repositories.base import Repository
from fear_greed_bot.utils import normalize_ticker, now_ms


class SubscriptionRepository(Repository):

    async def get_active_chat_ids(self) -> list[str]:
        """Chat ids of all subscribed users, oldest first."""
        return await self._run("get_active_chat_ids", self._get_active_chat_ids)

    async def add_chat_id(self, chat_id: int | str) -> bool:
        """Subscribe a chat.

        Args:
            chat_id: Telegram chat id.

        Returns:
            True if the chat was new or reactivated, False if already active.
        """
        return await self._run("add_chat_id", self._add_chat_id, str(chat_id))

    async def subscribe(self, chat_id: int | str, default_ticker: str) -> bool:
        """Subscribe a chat and seed an empty watchlist in one transaction.

        Either both the user row and the watchlist row are written, or
        neither is.

        Args:
            chat_id: Telegram chat id.
            default_ticker: Ticker stored when the chat has no watchlist rows.

        Returns:
            True if the chat was new or reactivated, False if already active.
        """
        return await self._run(
            "subscribe", self._subscribe, str(chat_id), normalize_ticker(default_ticker)
        )

    async def remove_chat_id(self, chat_id: int | str) -> bool:
        """Unsubscribe a chat (soft delete). True if it was active."""
        return await self._run("remove_chat_id", self._remove_chat_id, str(chat_id))

    async def exists(self, chat_id: int | str) -> bool:
        """True if the chat is currently subscribed."""
        return await self._run("exists", self._exists, str(chat_id))

    async def count_active(self) -> int:
        return await self._run("count_active", self._count_active)

    @staticmethod
    def _get_active_chat_ids(session: Session) -> list[str]:
        stmt = (
            select(User.chat_id)
            .where(User.subscription_status == True)  # noqa: E712
            .order_by(User.created_at, User.chat_id)
        )
        return list(session.exec(stmt).all())

    @staticmethod
    def _add_chat_id(session: Session, chat_id: str) -> bool:
        now = now_ms()
        user = session.get(User, chat_id)
        if user is None:
            session.add(User(chat_id=chat_id, subscription_status=True, created_at=now, updated_at=now))
            return True
        if user.subscription_status:
            return False
        user.subscription_status = True
        user.updated_at = now
        session.add(user)
        return True

    @classmethod
    def _subscribe(cls, session: Session, chat_id: str, default_ticker: str) -> bool:
        changed = cls._add_chat_id(session, chat_id)
        session.flush()
        cls._seed_watchlist(session, chat_id, default_ticker)
        return changed

    @staticmethod
    def _seed_watchlist(session: Session, chat_id: str, ticker: str) -> bool:
        stmt = select(Watchlist.id).where(Watchlist.chat_id == chat_id)
        if session.exec(stmt).first() is not None:
            return False
        session.add(Watchlist(chat_id=chat_id, ticker=ticker, created_at=now_ms()))
        return True

    @staticmethod
    def _remove_chat_id(session: Session, chat_id: str) -> bool:
        user = session.get(User, chat_id)
        if user is None or not user.subscription_status:
            return False
        user.subscription_status = False
        user.updated_at = now_ms()
        session.add(user)
        return True

    @staticmethod
    def _exists(session: Session, chat_id: str) -> bool:
        user = session.get(User, chat_id)
        return user is not None and user.subscription_status

    @staticmethod
    def _count_active(session: Session) -> int:
        stmt = select(func.count()).select_from(User).where(User.subscription_status == True)  # noqa: E712
        return session.exec(stmt).one()
