"""
Date helpers for the DD/MM/YYYY business format.

Dates live as ``datetime.date`` values inside the application. The textual
form is only produced or consumed at the edges (forms, PDFs, messages,
ledger), and the store keeps them as midnight datetimes.
"""
from datetime import date, datetime, timedelta
from typing import Any, Optional
from zoneinfo import ZoneInfo

from cardroid.exceptions import DateFormatError

DATE_FORMAT = "%d/%m/%Y"


def parse_date(value: str) -> date:
    """
    Parse a ``DD/MM/YYYY`` (or ``DD/MM/YY``) string.

    Two-digit years are read as 20YY.

    Raises:
        DateFormatError: if the value is empty or not a valid calendar date
    """
    if not value or not isinstance(value, str):
        raise DateFormatError(value)

    parts = value.strip().split("/")
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        raise DateFormatError(value)

    day, month, year = parts
    if len(year) == 2:
        year = "20" + year
    try:
        return date(int(year), int(month), int(day))
    except ValueError as e:
        raise DateFormatError(value) from e


def format_date(value: date) -> str:
    """Format a date as ``DD/MM/YYYY``."""
    return value.strftime(DATE_FORMAT)


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def add_years(value: date, years: int) -> date:
    """Shift by calendar years; 29 February rolls over to 1 March."""
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        return date(value.year + years, 3, 1)


def to_store(value: date) -> datetime:
    """Convert a date to the midnight datetime stored in MongoDB."""
    return datetime(value.year, value.month, value.day)


def from_store(value: Any) -> Optional[date]:
    """
    Read a date field from a stored document.

    Accepts BSON datetimes as well as legacy ``DD/MM/YYYY`` strings.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date(str(value))


def store_match(value: date) -> dict:
    """Query fragment matching a date stored in either representation."""
    return {"$in": [to_store(value), format_date(value)]}


class BusinessClock:
    """
    Wall clock pinned to the business timezone.

    Jobs and handlers take the clock as a dependency so tests can pin
    ``today()`` without patching ``datetime``.
    """

    def __init__(self, timezone: str = "America/Lima"):
        self.tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock(BusinessClock):
    """Clock frozen at a given date, for tests and backfills."""

    def __init__(self, today: date, timezone: str = "America/Lima"):
        super().__init__(timezone)
        self._today = today

    def now(self) -> datetime:
        return datetime(self._today.year, self._today.month, self._today.day, 8, 0, tzinfo=self.tz)

    def today(self) -> date:
        return self._today
