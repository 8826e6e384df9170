"""Recording user-confirmed executions and rendering their history."""
import logging
from datetime import datetime

from fear_greed_bot.db.models import SignalType
from fear_greed_bot.repositories import (ExecutionRepository,
                                         WatchlistRepository)
from fear_greed_bot.schemas import ExecutionOutcome, ExecutionRecord
from fear_greed_bot.trading.positions import PositionService
from fear_greed_bot.utils import normalize_ticker, to_ms

logger = logging.getLogger(__name__)


def format_execution_history(executions: list[ExecutionRecord]) -> str:
    """Markdown listing of executions, in the order given."""
    if not executions:
        return "No executions recorded."
    noun = "entry" if len(executions) == 1 else "entries"
    blocks = [f"*Execution History ({len(executions)} {noun}):*\n"]
    for execution in executions:
        emoji = "🟢" if execution.signal_type is SignalType.BUY else "🔴"
        line = (
            f"{emoji} *{execution.signal_type.value}* {execution.ticker} "
            f"at ${execution.execution_price:.2f}"
        )
        if execution.signal_price and execution.signal_price != execution.execution_price:
            diff = execution.execution_price - execution.signal_price
            sign = "+" if diff >= 0 else ""
            line += (
                f" (signal: ${execution.signal_price:.2f}, "
                f"{sign}{diff / execution.signal_price * 100:.2f}%)"
            )
        line += f"\n   📅 {execution.executed_at.strftime('%b %d, %Y, %H:%M')} UTC"
        blocks.append(line)
    return "\n\n".join(blocks)


class ExecutionService:
    """Records executions, keeping the position and watchlist in step."""

    def __init__(
        self,
        executions: ExecutionRepository,
        positions: PositionService,
        watchlists: WatchlistRepository,
    ) -> None:
        self._executions = executions
        self._positions = positions
        self._watchlists = watchlists

    async def execute(
        self,
        chat_id: int | str,
        ticker: str,
        price: float,
        execution_date: datetime | None = None,
        signal_price: float | None = None,
    ) -> ExecutionOutcome:
        """Record a BUY or SELL for the user.

        The side is inferred from the open position: holding this ticker
        means SELL, holding nothing means BUY. Holding a different ticker, or
        having traded already this month, rejects the request.
        """
        symbol = normalize_ticker(ticker)
        if not await self._positions.can_trade(chat_id):
            return ExecutionOutcome(
                accepted=False,
                message="❌ You have already recorded an execution this month. "
                "Only one trade per calendar month is allowed.",
            )

        position = await self._positions.get_active_position(chat_id)
        if position is None:
            signal_type = SignalType.BUY
        elif normalize_ticker(position.ticker) == symbol:
            signal_type = SignalType.SELL
        else:
            return ExecutionOutcome(
                accepted=False,
                message=f"❌ You have an active position in {position.ticker}. "
                f"Sell it before buying {symbol}.",
            )

        record = await self._executions.record_with_position(
            chat_id,
            signal_type,
            symbol,
            price,
            signal_price,
            to_ms(execution_date) if execution_date else None,
        )
        await self._watchlists.add(chat_id, symbol)
        logger.info("Recorded %s %s at %.2f for %s", signal_type.value, symbol, price, chat_id)
        return ExecutionOutcome(
            accepted=True,
            message=f"✅ Recorded {signal_type.value} execution for {symbol} at ${price:.2f}.",
            execution=record,
        )

    async def history(self, chat_id: int | str, ticker: str | None = None) -> list[ExecutionRecord]:
        return await self._executions.history(chat_id, ticker)
