"""Shared utilities for the bot."""
import time
from datetime import date, datetime, timezone


def now_ms() -> int:
    """Current time as Unix epoch milliseconds."""
    return int(time.time() * 1000)


def to_ms(dt: datetime) -> int:
    """Convert a datetime to Unix epoch milliseconds; naive values are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def from_ms(ms: int) -> datetime:
    """Convert Unix epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def utc_date(value: date | datetime) -> date:
    """Calendar date of a value in UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def normalize_ticker(ticker: str) -> str:
    """Normalize a ticker symbol (trimmed, uppercase)."""
    return ticker.strip().upper()
