"""Execution repository: append-only log of confirmed signal executions."""
from sqlalchemy import delete, func
from sqlmodel import Session, select

from fear_greed_bot.db.models import ActivePosition, Execution, SignalType
from fear_greed_bot.repositories.base import Repository, ensure_user
from fear_greed_bot.schemas import ExecutionRecord
from fear_greed_bot.utils import normalize_ticker, now_ms


def _to_record(row: Execution) -> ExecutionRecord:
    return ExecutionRecord(
        signal_type=SignalType(row.signal_type),
        ticker=row.ticker,
        execution_price=row.execution_price,
        signal_price=row.signal_price,
        execution_date=row.execution_date,
    )


class ExecutionRepository(Repository):

    async def record(
        self,
        chat_id: int | str,
        signal_type: SignalType | str,
        ticker: str,
        execution_price: float,
        signal_price: float | None = None,
        execution_date: int | None = None,
    ) -> ExecutionRecord:
        """Append an execution without touching the position.

        Args:
            chat_id: Telegram chat id; an unsubscribed user row is created if missing.
            signal_type: BUY or SELL.
            ticker: Ticker symbol, normalized before storing.
            execution_price: Price the user traded at.
            signal_price: Price when the signal was generated, if known.
            execution_date: Epoch milliseconds; defaults to now.

        Returns:
            The stored execution.
        """
        return await self._run(
            "executions.record",
            self._record,
            str(chat_id),
            SignalType(signal_type).value,
            normalize_ticker(ticker),
            execution_price,
            signal_price,
            execution_date,
        )

    async def record_with_position(
        self,
        chat_id: int | str,
        signal_type: SignalType | str,
        ticker: str,
        execution_price: float,
        signal_price: float | None = None,
        execution_date: int | None = None,
    ) -> ExecutionRecord:
        """Append an execution and apply its position change in one transaction.

        BUY opens (or overwrites) the position at the execution price; SELL
        clears the user's position.
        """
        return await self._run(
            "executions.record_with_position",
            self._record_with_position,
            str(chat_id),
            SignalType(signal_type).value,
            normalize_ticker(ticker),
            execution_price,
            signal_price,
            execution_date,
        )

    async def history(self, chat_id: int | str, ticker: str | None = None) -> list[ExecutionRecord]:
        """Executions newest first, optionally for one ticker."""
        return await self._run(
            "executions.history",
            self._history,
            str(chat_id),
            normalize_ticker(ticker) if ticker else None,
            None,
        )

    async def latest(self, chat_id: int | str, ticker: str | None = None) -> ExecutionRecord | None:
        """Most recent execution, or None if the user has none."""
        rows = await self._run(
            "executions.latest",
            self._history,
            str(chat_id),
            normalize_ticker(ticker) if ticker else None,
            1,
        )
        return rows[0] if rows else None

    async def count(self, chat_id: int | str | None = None) -> int:
        """Number of executions, for one chat or across all chats."""
        return await self._run("executions.count", self._count, str(chat_id) if chat_id is not None else None)

    @staticmethod
    def _record(
        session: Session,
        chat_id: str,
        signal_type: str,
        ticker: str,
        execution_price: float,
        signal_price: float | None,
        execution_date: int | None,
    ) -> ExecutionRecord:
        now = now_ms()
        ensure_user(session, chat_id, now)
        row = Execution(
            chat_id=chat_id,
            signal_type=signal_type,
            ticker=ticker,
            execution_price=execution_price,
            signal_price=signal_price,
            execution_date=execution_date if execution_date is not None else now,
            created_at=now,
        )
        session.add(row)
        return _to_record(row)

    @classmethod
    def _record_with_position(
        cls,
        session: Session,
        chat_id: str,
        signal_type: str,
        ticker: str,
        execution_price: float,
        signal_price: float | None,
        execution_date: int | None,
    ) -> ExecutionRecord:
        record = cls._record(
            session, chat_id, signal_type, ticker, execution_price, signal_price, execution_date
        )
        session.execute(delete(ActivePosition).where(ActivePosition.chat_id == chat_id))
        if signal_type == SignalType.BUY.value:
            now = now_ms()
            session.add(
                ActivePosition(
                    chat_id=chat_id,
                    ticker=ticker,
                    entry_price=execution_price,
                    created_at=now,
                    updated_at=now,
                )
            )
        return record

    @staticmethod
    def _history(
        session: Session, chat_id: str, ticker: str | None, limit: int | None
    ) -> list[ExecutionRecord]:
        stmt = select(Execution).where(Execution.chat_id == chat_id)
        if ticker:
            stmt = stmt.where(Execution.ticker == ticker)
        stmt = stmt.order_by(Execution.execution_date.desc(), Execution.id.desc())
        if limit:
            stmt = stmt.limit(limit)
        return [_to_record(row) for row in session.exec(stmt).all()]

    @staticmethod
    def _count(session: Session, chat_id: str | None) -> int:
        stmt = select(func.count()).select_from(Execution)
        if chat_id is not None:
            stmt = stmt.where(Execution.chat_id == chat_id)
        return session.exec(stmt).one()
