"""Market data schemas: sentiment readings, price bars and indicators."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from fear_greed_bot.constants import FEAR_RATINGS


class SentimentReading(BaseModel):
    """Fear & Greed Index reading. Numeric strings are coerced to floats."""

    model_config = ConfigDict(extra="ignore")

    score: float
    rating: str
    timestamp: int | float | str | None = None
    previous_close: float | None = None
    previous_1_week: float | None = None
    previous_1_month: float | None = None
    previous_1_year: float | None = None

    @field_validator("rating")
    @classmethod
    def _rating_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("rating must not be empty")
        return value.strip()

    @property
    def normalized_rating(self) -> str:
        return self.rating.lower()

    @property
    def is_fear(self) -> bool:
        """True when the rating is fear or extreme fear."""
        return self.normalized_rating in FEAR_RATINGS


class PriceBar(BaseModel):
    """One daily OHLCV bar."""

    date: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float | None = None


class MarketData(BaseModel):
    """Current price plus ascending daily history for one ticker."""

    ticker: str
    current_price: float
    bars: list[PriceBar]


class TechnicalIndicators(BaseModel):
    sma20: float = 0.0
    sma50: float = 0.0
    sma100: float = 0.0
    sma200: float = 0.0
    bollinger_upper: float = 0.0
    bollinger_middle: float = 0.0
    bollinger_lower: float = 0.0

    @property
    def is_empty(self) -> bool:
        """True for the zeroed placeholder used when data is unavailable."""
        return not any((self.sma20, self.sma50, self.sma100, self.sma200))
