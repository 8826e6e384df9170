"""Technical indicators computed from daily price bars.

Pure functions: moving averages degrade to the bars available when the
history is shorter than the window, and an empty history yields zeros.
"""
import math
from collections.abc import Sequence

from fear_greed_bot.constants import BOLLINGER_PERIOD, BOLLINGER_STDDEV
from fear_greed_bot.schemas import PriceBar, TechnicalIndicators


def sma(closes: Sequence[float], period: int) -> float:
    """Simple moving average of the trailing `period` closes (or all of them)."""
    if not closes:
        return 0.0
    window = closes[-period:]
    return sum(window) / len(window)


def bollinger_bands(
    closes: Sequence[float],
    period: int = BOLLINGER_PERIOD,
    num_std: float = BOLLINGER_STDDEV,
) -> tuple[float, float, float]:
    """(upper, middle, lower) using the population standard deviation."""
    if not closes:
        return 0.0, 0.0, 0.0
    window = closes[-period:]
    middle = sum(window) / len(window)
    variance = sum((c - middle) ** 2 for c in window) / len(window)
    std = math.sqrt(variance)
    return middle + num_std * std, middle, middle - num_std * std


def calculate_indicators(bars: Sequence[PriceBar]) -> TechnicalIndicators:
    """Compute SMA20/50/100/200 and Bollinger Bands from ascending bars."""
    closes = [bar.close for bar in bars]
    upper, middle, lower = bollinger_bands(closes)
    return TechnicalIndicators(
        sma20=sma(closes, 20),
        sma50=sma(closes, 50),
        sma100=sma(closes, 100),
        sma200=sma(closes, 200),
        bollinger_upper=upper,
        bollinger_middle=middle,
        bollinger_lower=lower,
    )


def calculate_all_time_high(bars: Sequence[PriceBar]) -> float:
    """Maximum high across the history. Raises ValueError when there is none."""
    if not bars:
        raise ValueError("Cannot calculate all-time high: no historical data available")
    return max(bar.high for bar in bars)
