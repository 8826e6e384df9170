from datetime import date, datetime, timedelta, timezone

import pytest

from fear_greed_bot.trading.holidays import (HolidayCalendar, easter_sunday,
                                             nth_weekday, observed_date)


@pytest.fixture
def cal():
    return HolidayCalendar()


def test_independence_day_on_saturday_is_observed_friday(cal):
    holiday = cal.is_bank_holiday(date(2026, 7, 3))
    assert holiday is not None
    assert holiday.name == "Independence Day"
    assert holiday.is_observed
    assert cal.is_bank_holiday(date(2026, 7, 4)) is None


def test_christmas_on_weekday_is_not_observed(cal):
    holiday = cal.is_bank_holiday(date(2024, 12, 25))
    assert holiday is not None
    assert holiday.name == "Christmas Day"
    assert not holiday.is_observed


def test_sunday_holiday_moves_to_monday():
    # New Year's Day 2023 was a Sunday
    assert observed_date(date(2023, 1, 1)) == date(2023, 1, 2)


@pytest.mark.parametrize(
    "year, expected",
    [(2024, date(2024, 3, 31)), (2025, date(2025, 4, 20)), (2026, date(2026, 4, 5))],
)
def test_easter_sunday(year, expected):
    assert easter_sunday(year) == expected


def test_good_friday_is_a_holiday(cal):
    holiday = cal.is_bank_holiday(date(2026, 4, 3))
    assert holiday is not None and holiday.name == "Good Friday"


def test_floating_holidays(cal):
    assert nth_weekday(2026, 11, 3, 4) == date(2026, 11, 26)  # Thanksgiving
    assert nth_weekday(2026, 5, 0, -1) == date(2026, 5, 25)  # Memorial Day
    assert cal.is_bank_holiday(date(2026, 9, 7)).name == "Labor Day"


def test_juneteenth_only_from_2021(cal):
    assert cal.is_bank_holiday(date(2020, 6, 19)) is None
    assert cal.is_bank_holiday(date(2025, 6, 19)).name == "Juneteenth"


def test_trading_day_excludes_weekends_and_holidays(cal):
    assert cal.is_trading_day(date(2026, 7, 6))
    assert not cal.is_trading_day(date(2026, 7, 3))
    assert not cal.is_trading_day(date(2026, 7, 5))


def test_datetimes_are_judged_by_utc_date(cal):
    # 2026-07-02 22:00 in UTC-5 is already July 3 in UTC
    eastern = timezone(timedelta(hours=-5))
    assert not cal.is_trading_day(datetime(2026, 7, 2, 22, 0, tzinfo=eastern))


def test_holidays_are_memoized_in_the_owned_cache():
    cache: dict = {}
    cal = HolidayCalendar(cache)
    first = cal.holidays_for_year(2026)
    assert 2026 in cache
    assert cal.holidays_for_year(2026) is first
    assert len(first) == 10
