"""Trading signal evaluation.

Entry (no open position in the ticker) needs Condition A and Condition C:

    A: price <= SMA50*1.01 or price <= SMA100*1.01 or price <= SMA200*1.01
       or (price <= SMA20*1.01 and price <= BBlower*1.01)
    C: Fear & Greed rating is "fear" or "extreme fear"

Condition B (price <= BBlower*1.01) is reported for display only.

Exit (open position in the ticker) needs a profit and one of two targets
reached within 1%: the all-time high or the Bollinger upper band. When both
are reached the Bollinger target is reported only if the price is at or
above the band itself.
"""
import logging
from typing import Protocol

from fear_greed_bot.constants import (BB_UPPER_SELL_MULTIPLIER,
                                      DEFAULT_TICKER, ENTRY_TOLERANCE,
                                      EXIT_TOLERANCE, TRADINGVIEW_CHART_URL)
from fear_greed_bot.db.models import SignalType
from fear_greed_bot.schemas import (ExitTrigger, MarketData, OpenPosition,
                                    SentimentReading, TechnicalIndicators,
                                    TradingSignal)
from fear_greed_bot.trading.indicators import (calculate_all_time_high,
                                               calculate_indicators)
from fear_greed_bot.utils import normalize_ticker

logger = logging.getLogger(__name__)

SIGNAL_EMOJI = {SignalType.BUY: "🟢", SignalType.SELL: "🔴", SignalType.HOLD: "🟡"}


def _sma20_with_bb_lower(price: float, ind: TechnicalIndicators) -> bool:
    return price <= ind.sma20 * ENTRY_TOLERANCE and price <= ind.bollinger_lower * ENTRY_TOLERANCE


def evaluate_condition_a(price: float, ind: TechnicalIndicators) -> bool:
    return (
        price <= ind.sma50 * ENTRY_TOLERANCE
        or price <= ind.sma100 * ENTRY_TOLERANCE
        or price <= ind.sma200 * ENTRY_TOLERANCE
        or _sma20_with_bb_lower(price, ind)
    )


def evaluate_condition_b(price: float, ind: TechnicalIndicators) -> bool:
    return price <= ind.bollinger_lower * ENTRY_TOLERANCE


def evaluate_condition_c(sentiment: SentimentReading) -> bool:
    return sentiment.is_fear


def _entry_condition_parts(price: float, ind: TechnicalIndicators) -> list[str]:
    parts = []
    if _sma20_with_bb_lower(price, ind):
        parts.append(
            f"Price within 1% of SMA20 ({ind.sma20:.2f}) AND within 1% of BB lower ({ind.bollinger_lower:.2f})"
        )
    for label, value in (("SMA50", ind.sma50), ("SMA100", ind.sma100), ("SMA200", ind.sma200)):
        if price <= value * ENTRY_TOLERANCE:
            parts.append(f"Price within 1% of {label} ({value:.2f})")
    return parts


def _percent_away(target: float, price: float) -> str:
    return f"{(target - price) / price * 100:.2f}"


def _buy_reasons(price: float, ind: TechnicalIndicators) -> list[str]:
    reasons = ["BUY signal triggered"]
    parts = _entry_condition_parts(price, ind)
    if parts:
        reasons.append(f"Entry condition met: {' OR '.join(parts)}")
    else:
        reasons.append("Price condition met")
    reasons.append("Fear & Greed Index indicates fear/extreme fear")
    return reasons


def _hold_with_position_reasons(
    price: float, ind: TechnicalIndicators, all_time_high: float, entry_price: float
) -> list[str]:
    reasons = ["HOLD - You have an active position"]
    if price > 0 and all_time_high > 0:
        ath_threshold = all_time_high * EXIT_TOLERANCE
        bb_threshold = ind.bollinger_upper * EXIT_TOLERANCE
        targets = [
            f"ATH (within 1%): ${ath_threshold:.2f} ({_percent_away(ath_threshold, price)}% away)",
            f"BB upper (within 1%): ${bb_threshold:.2f} ({_percent_away(bb_threshold, price)}% away)",
        ]
        reasons.append(
            f"Price has not reached the sell targets ({'; '.join(targets)}), currently ${price:.2f}"
        )
    else:
        reasons.append("Waiting for price to reach the configured sell targets before SELL signal")
    if price <= entry_price:
        drawdown = (entry_price - price) / entry_price * 100 if entry_price else 0.0
        reasons.append(
            f"Holding until the position is back in profit (entry ${entry_price:.2f}, "
            f"currently ${price:.2f}, down {drawdown:.2f}%)"
        )
    return reasons


def _hold_without_position_reasons(condition_a: bool, condition_c: bool) -> list[str]:
    reasons = ["HOLD - Entry conditions not met"]
    if not condition_a:
        reasons.append(
            "Price condition not met (not (price within 1% of SMA20 AND near BB lower) "
            "OR price within 1% of SMA50/100/200)"
        )
    if not condition_c:
        reasons.append("Fear & Greed Index is not in fear/extreme fear")
    return reasons


def _join(reasons: list[str]) -> str:
    return ". ".join(reasons) + "."


def evaluate_signal(
    ticker: str,
    sentiment: SentimentReading,
    current_price: float,
    indicators: TechnicalIndicators,
    active_position: OpenPosition | None = None,
    *,
    all_time_high: float | None = None,
) -> TradingSignal:
    """Decide BUY / SELL / HOLD for one ticker.

    Args:
        ticker: Symbol being evaluated.
        sentiment: Current Fear & Greed reading.
        current_price: Latest price of the ticker.
        indicators: Indicators computed from the ticker's history.
        active_position: The user's open position, if any. A position in a
            different ticker is ignored.
        all_time_high: Highest high in the history; required when the user
            holds this ticker.

    Returns:
        The signal with its conditions, targets and reasoning.
    """
    condition_a = evaluate_condition_a(current_price, indicators)
    condition_b = evaluate_condition_b(current_price, indicators)
    condition_c = evaluate_condition_c(sentiment)

    position = active_position
    if position is not None and normalize_ticker(position.ticker) != normalize_ticker(ticker):
        position = None

    if position is None:
        if condition_a and condition_c:
            signal, reasons = SignalType.BUY, _buy_reasons(current_price, indicators)
        else:
            signal, reasons = SignalType.HOLD, _hold_without_position_reasons(condition_a, condition_c)
        return TradingSignal(
            signal=signal,
            current_price=current_price,
            indicators=indicators,
            condition_a=condition_a,
            condition_b=condition_b,
            condition_c=condition_c,
            reasoning=_join(reasons),
        )

    if all_time_high is None:
        raise ValueError("all_time_high is required to evaluate an open position")

    bollinger_sell_target = indicators.bollinger_upper * BB_UPPER_SELL_MULTIPLIER
    has_profit = current_price > position.entry_price
    reached_ath = current_price >= all_time_high * EXIT_TOLERANCE
    reached_bb = current_price >= indicators.bollinger_upper * EXIT_TOLERANCE

    signal = SignalType.HOLD
    exit_trigger: ExitTrigger | None = None
    sell_target = all_time_high
    if has_profit and (reached_ath or reached_bb):
        signal = SignalType.SELL
        only_bb = reached_bb and not reached_ath
        both = reached_bb and reached_ath
        if only_bb or (both and current_price >= indicators.bollinger_upper):
            exit_trigger = ExitTrigger.BOLLINGER_UPPER
            sell_target = bollinger_sell_target
        else:
            exit_trigger = ExitTrigger.ALL_TIME_HIGH

    if signal is SignalType.SELL:
        reasons = ["SELL signal triggered"]
        if exit_trigger is ExitTrigger.BOLLINGER_UPPER:
            reasons.append("Price within 1% or higher than Bollinger Band upper target")
        else:
            reasons.append("Price within 1% or higher than all-time high")
    else:
        reasons = _hold_with_position_reasons(
            current_price, indicators, all_time_high, position.entry_price
        )

    return TradingSignal(
        signal=signal,
        current_price=current_price,
        indicators=indicators,
        condition_a=condition_a,
        condition_b=condition_b,
        condition_c=condition_c,
        reasoning=_join(reasons),
        entry_price=position.entry_price,
        sell_target=sell_target,
        bollinger_sell_target=bollinger_sell_target,
        exit_trigger=exit_trigger,
    )


def data_unavailable_signal(
    sentiment: SentimentReading | None = None, ticker: str = DEFAULT_TICKER
) -> TradingSignal:
    """HOLD with zeroed indicators, naming the data source that failed."""
    reasons = ["HOLD - Insufficient data to evaluate trading conditions"]
    if sentiment is None:
        reasons.append("Fear & Greed Index data unavailable")
    else:
        reasons.append(f"Market data ({ticker} price and indicators) unavailable")
    return TradingSignal(
        signal=SignalType.HOLD,
        current_price=0.0,
        indicators=TechnicalIndicators(),
        condition_a=False,
        condition_b=False,
        condition_c=False,
        reasoning=_join(reasons),
    )


def _check(flag: bool) -> str:
    return "✅" if flag else "❌"


def format_signal_message(
    signal: TradingSignal,
    sentiment: SentimentReading | None = None,
    ticker: str = DEFAULT_TICKER,
) -> str:
    """Render a signal as a Telegram Markdown message."""
    lines = [f"{SIGNAL_EMOJI[signal.signal]} *Trading Signal: {signal.signal.value}*", ""]

    if signal.is_data_unavailable:
        lines += ["⚠️ *Data Unavailable*", ""]
        if sentiment is not None:
            lines.append(f"*Fear & Greed Index:* {sentiment.rating} ({sentiment.score:.2f}%)")
        else:
            lines.append("Fear & Greed Index data unavailable.")
        lines += [f"Market data ({ticker} price and indicators) unavailable.", ""]
    else:
        ind = signal.indicators
        lines += [
            f"💰 Current [{ticker} Price]({TRADINGVIEW_CHART_URL}?symbol={ticker}): ${signal.current_price:.2f}",
            "",
            "*Technical Indicators:*",
            f"• SMA 20: ${ind.sma20:.2f}",
            f"• SMA 50: ${ind.sma50:.2f}",
            f"• SMA 100: ${ind.sma100:.2f}",
            f"• SMA 200: ${ind.sma200:.2f}",
            f"• BB Upper: ${ind.bollinger_upper:.2f}",
            f"• BB Middle: ${ind.bollinger_middle:.2f}",
            f"• BB Lower: ${ind.bollinger_lower:.2f}",
            "",
            "*Conditions:*",
            f"• Condition A (Price near SMA/BB lower): {_check(signal.condition_a)}",
            f"• Condition B (Price near BB Lower): {_check(signal.condition_b)}",
            f"• Condition C (Fear/Extreme Fear): {_check(signal.condition_c)}",
            "",
        ]
        if sentiment is not None:
            lines += [f"*Fear & Greed Index:* {sentiment.rating} ({sentiment.score:.2f}%)", ""]
        if signal.entry_price:
            lines.append(f"📈 Entry Price: ${signal.entry_price:.2f}")
        if signal.sell_target:
            label = {
                ExitTrigger.BOLLINGER_UPPER: "Sell Target (BB Upper)",
                ExitTrigger.ALL_TIME_HIGH: "Sell Target (ATH)",
            }.get(signal.exit_trigger, "Sell Target")
            lines.append(f"🎯 {label}: ${signal.sell_target:.2f}")
        if signal.bollinger_sell_target and signal.bollinger_sell_target != signal.sell_target:
            lines.append(f"🎯 BB Upper Target: ${signal.bollinger_sell_target:.2f}")

    lines.append(f"\n*Reasoning:* {signal.reasoning}")
    return "\n".join(lines)


class MarketDataSource(Protocol):
    async def get_market_data(self, ticker: str) -> MarketData: ...


class PositionSource(Protocol):
    async def get(self, chat_id: int | str) -> OpenPosition | None: ...


class SignalService:
    """Fetches market data and the user's position, then evaluates a signal."""

    def __init__(self, market_data: MarketDataSource, positions: PositionSource) -> None:
        self._market_data = market_data
        self._positions = positions

    async def evaluate_for_user(
        self,
        sentiment: SentimentReading,
        ticker: str = DEFAULT_TICKER,
        chat_id: int | str | None = None,
    ) -> TradingSignal:
        """Evaluate one ticker; raises if market data cannot be fetched."""
        symbol = normalize_ticker(ticker)
        data = await self._market_data.get_market_data(symbol)
        indicators = calculate_indicators(data.bars)

        position = None
        if chat_id is not None:
            position = await self._positions.get(chat_id)
            if position is not None and normalize_ticker(position.ticker) != symbol:
                position = None

        all_time_high = calculate_all_time_high(data.bars) if position else None
        return evaluate_signal(
            symbol,
            sentiment,
            data.current_price,
            indicators,
            position,
            all_time_high=all_time_high,
        )
