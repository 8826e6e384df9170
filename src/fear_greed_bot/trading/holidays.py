"""US stock market holiday calendar (UTC dates).

Fixed-date holidays move to Friday when they fall on a Saturday and to
Monday when they fall on a Sunday. Floating holidays and Good Friday are
weekdays by construction and never move.
"""
import calendar
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from fear_greed_bot.utils import utc_date

MONDAY, THURSDAY, SATURDAY, SUNDAY = 0, 3, 5, 6


@dataclass(frozen=True)
class HolidayInfo:
    name: str
    date: date
    is_observed: bool  # shifted off a weekend


@dataclass(frozen=True)
class _HolidayRule:
    name: str
    calculate: Callable[[int], date]
    observe_weekend: bool
    first_year: int | None = None


def easter_sunday(year: int) -> date:
    """Easter Sunday via the anonymous Gregorian Computus."""
    a = year % 19
    b = year // 100
    c = year % 100
    d = b // 4
    e = b % 4
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i = c // 4
    k = c % 4
    l = (32 + 2 * e + 2 * i - h - k) % 7  # noqa: E741
    m = (a + 11 * h + 22 * l) // 451
    month = (h + l - 7 * m + 114) // 31
    day = ((h + l - 7 * m + 114) % 31) + 1
    return date(year, month, day)


def nth_weekday(year: int, month: int, weekday: int, occurrence: int) -> date:
    """The nth given weekday of a month; occurrence -1 means the last one."""
    if occurrence == -1:
        last = date(year, month, calendar.monthrange(year, month)[1])
        return last - timedelta(days=(last.weekday() - weekday) % 7)
    first = date(year, month, 1)
    offset = (weekday - first.weekday()) % 7
    return first + timedelta(days=offset + (occurrence - 1) * 7)


def observed_date(day: date) -> date:
    if day.weekday() == SATURDAY:
        return day - timedelta(days=1)
    if day.weekday() == SUNDAY:
        return day + timedelta(days=1)
    return day


HOLIDAY_RULES: tuple[_HolidayRule, ...] = (
    _HolidayRule("New Year's Day", lambda y: date(y, 1, 1), True),
    _HolidayRule("Martin Luther King Jr. Day", lambda y: nth_weekday(y, 1, MONDAY, 3), False),
    _HolidayRule("Presidents' Day", lambda y: nth_weekday(y, 2, MONDAY, 3), False),
    _HolidayRule("Good Friday", lambda y: easter_sunday(y) - timedelta(days=2), False),
    _HolidayRule("Memorial Day", lambda y: nth_weekday(y, 5, MONDAY, -1), False),
    _HolidayRule("Juneteenth", lambda y: date(y, 6, 19), True, first_year=2021),
    _HolidayRule("Independence Day", lambda y: date(y, 7, 4), True),
    _HolidayRule("Labor Day", lambda y: nth_weekday(y, 9, MONDAY, 1), False),
    _HolidayRule("Thanksgiving Day", lambda y: nth_weekday(y, 11, THURSDAY, 4), False),
    _HolidayRule("Christmas Day", lambda y: date(y, 12, 25), True),
)


class HolidayCalendar:
    """Answers holiday and trading-day questions, memoizing holidays per year.

    The cache is owned by the instance; pass one in to share it between
    calendars or to inspect it in tests.
    """

    def __init__(self, cache: MutableMapping[int, list[HolidayInfo]] | None = None) -> None:
        self._cache: MutableMapping[int, list[HolidayInfo]] = cache if cache is not None else {}

    def holidays_for_year(self, year: int) -> list[HolidayInfo]:
        if year in self._cache:
            return self._cache[year]
        holidays: list[HolidayInfo] = []
        for rule in HOLIDAY_RULES:
            if rule.first_year is not None and year < rule.first_year:
                continue
            actual = rule.calculate(year)
            observed = observed_date(actual) if rule.observe_weekend else actual
            holidays.append(HolidayInfo(rule.name, observed, observed != actual))
        self._cache[year] = holidays
        return holidays

    def is_bank_holiday(self, value: date | datetime) -> HolidayInfo | None:
        """The holiday observed on this UTC date, if any."""
        day = utc_date(value)
        for holiday in self.holidays_for_year(day.year):
            if holiday.date == day:
                return holiday
        return None

    def is_trading_day(self, value: date | datetime) -> bool:
        """Weekday and not a holiday."""
        day = utc_date(value)
        if day.weekday() in (SATURDAY, SUNDAY):
            return False
        return self.is_bank_holiday(day) is None
