"""
Unit tests for DD/MM/YYYY date handling
"""
import pytest
from datetime import date, datetime

from cardroid.exceptions import DateFormatError
from cardroid.utils.dates import (
    FixedClock,
    add_days,
    add_years,
    format_date,
    from_store,
    parse_date,
    store_match,
    to_store,
)


@pytest.mark.unit
@pytest.mark.parametrize("text", ["01/01/2025", "29/02/2024", "31/12/1999", "15/06/2030"])
def test_parse_format_round_trip(text):
    assert format_date(parse_date(text)) == text


@pytest.mark.unit
def test_parse_accepts_short_fields_and_two_digit_years():
    assert parse_date("5/3/25") == date(2025, 3, 5)
    assert parse_date(" 07/08/2026 ") == date(2026, 8, 7)


@pytest.mark.unit
@pytest.mark.parametrize("text", ["", "2025-01-01", "31/02/2025", "aa/bb/cccc", "01/13/2025", "1/1"])
def test_parse_rejects_invalid_dates(text):
    with pytest.raises(DateFormatError) as exc_info:
        parse_date(text)
    assert exc_info.value.status_code == 400


@pytest.mark.unit
def test_add_days_crosses_months():
    assert add_days(date(2025, 1, 1), 30) == date(2025, 1, 31)
    assert add_days(date(2025, 1, 1), 60) == date(2025, 3, 2)


@pytest.mark.unit
def test_add_years_rolls_leap_day_to_march_first():
    assert add_years(date(2024, 2, 29), 1) == date(2025, 3, 1)
    assert add_years(date(2024, 5, 10), 1) == date(2025, 5, 10)


@pytest.mark.unit
def test_store_representations():
    day = date(2025, 6, 8)
    assert to_store(day) == datetime(2025, 6, 8)
    assert from_store(datetime(2025, 6, 8, 0, 0)) == day
    assert from_store("08/06/2025") == day
    assert from_store(day) == day
    assert from_store(None) is None
    assert store_match(day) == {"$in": [datetime(2025, 6, 8), "08/06/2025"]}


@pytest.mark.unit
def test_fixed_clock_uses_business_timezone():
    clock = FixedClock(date(2025, 1, 1))
    assert clock.today() == date(2025, 1, 1)
    assert clock.now().tzinfo is not None
    assert str(clock.now().tzinfo) == "America/Lima"
