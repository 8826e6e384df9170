"""Trading domain: indicators, holiday calendar, signals, positions and executions."""
from fear_greed_bot.trading.executions import (ExecutionService,
                                               format_execution_history)
from fear_greed_bot.trading.holidays import HolidayCalendar, HolidayInfo
from fear_greed_bot.trading.indicators import (calculate_all_time_high,
                                               calculate_indicators)
from fear_greed_bot.trading.positions import PositionService
from fear_greed_bot.trading.signals import (SignalService,
                                            data_unavailable_signal,
                                            evaluate_signal,
                                            format_signal_message)

__all__ = [
    "ExecutionService",
    "HolidayCalendar",
    "HolidayInfo",
    "PositionService",
    "SignalService",
    "calculate_all_time_high",
    "calculate_indicators",
    "data_unavailable_signal",
    "evaluate_signal",
    "format_execution_history",
    "format_signal_message",
]
