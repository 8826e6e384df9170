"""Trading schemas: signals, positions and executions."""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from fear_greed_bot.db.models import SignalType
from fear_greed_bot.schemas.market import TechnicalIndicators
from fear_greed_bot.utils import from_ms


class ExitTrigger(str, Enum):
    ALL_TIME_HIGH = "ALL_TIME_HIGH"
    BOLLINGER_UPPER = "BOLLINGER_UPPER"


class OpenPosition(BaseModel):
    ticker: str
    entry_price: float


class TradingSignal(BaseModel):
    """Outcome of one evaluation, including the user-facing reasoning."""

    signal: SignalType
    current_price: float
    indicators: TechnicalIndicators
    condition_a: bool
    condition_b: bool
    condition_c: bool
    reasoning: str
    entry_price: float | None = None
    sell_target: float | None = None
    bollinger_sell_target: float | None = None
    exit_trigger: ExitTrigger | None = None

    @property
    def is_data_unavailable(self) -> bool:
        return self.current_price == 0 and self.indicators.is_empty


class ExecutionRecord(BaseModel):
    """A recorded execution as exposed to services."""

    signal_type: SignalType
    ticker: str
    execution_price: float
    execution_date: int  # epoch ms
    signal_price: float | None = None

    @property
    def executed_at(self) -> datetime:
        return from_ms(self.execution_date)


class ExecutionOutcome(BaseModel):
    """Result of an /execute request."""

    accepted: bool
    message: str
    execution: ExecutionRecord | None = None
