"""Base repository: runs synchronous session work off the event loop."""
import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

from sqlalchemy.engine import Engine
from sqlmodel import Session

from fear_greed_bot.db.models import User
from fear_greed_bot.db.sessions import get_session
from fear_greed_bot.utils import now_ms

T = TypeVar("T")


def ensure_user(session: Session, chat_id: str, now: int | None = None) -> User:
    """Return the user row, creating an unsubscribed one if the chat is new."""
    user = session.get(User, chat_id)
    if user is None:
        ts = now or now_ms()
        user = User(chat_id=chat_id, subscription_status=False, created_at=ts, updated_at=ts)
        session.add(user)
        session.flush()
    return user


def _transact(engine: Engine, operation: str, work: Callable[..., T], *args: Any) -> T:
    with get_session(engine, operation) as session:
        return work(session, *args)


async def run_in_session(engine: Engine, operation: str, work: Callable[..., T], *args: Any) -> T:
    """Run `work(session, *args)` as one transaction in a worker thread."""
    return await asyncio.to_thread(_transact, engine, operation, work, *args)


class Repository:
    """Shared plumbing for all repositories.

    Public methods are async; each one hands a synchronous function to a
    worker thread where it runs inside a single transaction. Engine errors
    surface as StorageError subclasses.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    async def _run(self, operation: str, work: Callable[..., T], *args: Any) -> T:
        return await run_in_session(self._engine, operation, work, *args)
