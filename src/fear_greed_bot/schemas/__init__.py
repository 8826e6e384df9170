"""Pydantic schemas for runtime use and webhook payloads. Not persisted to DB."""
from fear_greed_bot.schemas.market import (MarketData, PriceBar,
                                           SentimentReading,
                                           TechnicalIndicators)
from fear_greed_bot.schemas.migration import (MigrationError, MigrationResult,
                                              MigrationRun, MigrationState,
                                              TableValidation,
                                              ValidationReport)
from fear_greed_bot.schemas.telegram import (BroadcastResult,
                                             DeployNotification,
                                             NotificationRun, SendResult,
                                             SubscriptionResult, TelegramChat,
                                             TelegramMessage, TelegramUpdate)
from fear_greed_bot.schemas.trading import (ExecutionOutcome, ExecutionRecord,
                                            ExitTrigger, OpenPosition,
                                            TradingSignal)

__all__ = [
    "BroadcastResult",
    "DeployNotification",
    "ExecutionOutcome",
    "ExecutionRecord",
    "ExitTrigger",
    "MarketData",
    "MigrationError",
    "MigrationResult",
    "MigrationRun",
    "MigrationState",
    "NotificationRun",
    "OpenPosition",
    "PriceBar",
    "SendResult",
    "SentimentReading",
    "SubscriptionResult",
    "TableValidation",
    "TechnicalIndicators",
    "TelegramChat",
    "TelegramMessage",
    "TelegramUpdate",
    "TradingSignal",
    "ValidationReport",
]
