"""
Calendar date helpers.

Dates coming out of the database as `YYYY-MM-DD` strings are calendar days
in the shop's local zone. They are built from their year/month/day
components and never go through a timezone-aware parser, which would shift
them by a day for callers west of UTC.
"""

from collections.abc import Iterator
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo


class InvalidDateError(ValueError):
    """Raised when a source record carries a date that is not YYYY-MM-DD."""

    def __init__(self, value: object):
        super().__init__(f"Invalid calendar date: {value!r}")
        self.value = value


def parse_date_local(value: str | date) -> date:
    """
    Parse a `YYYY-MM-DD` string as a local calendar date.

    A full ISO timestamp is accepted as long as it starts with the date part;
    only the first ten characters are used. `date` objects pass through
    (psycopg returns DATE columns that way).
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateError(value)

    text = value.strip()
    # Anything after the date must start a time component.
    if len(text) > 10 and text[10] not in ("T", " "):
        raise InvalidDateError(value)

    parts = text[:10].split("-")
    if len(parts) != 3 or len(parts[0]) != 4 or len(parts[1]) != 2 or len(parts[2]) != 2:
        raise InvalidDateError(value)

    try:
        year, month, day = (int(part) for part in parts)
        return date(year, month, day)
    except ValueError as e:
        raise InvalidDateError(value) from e


def format_date_local(value: date | datetime) -> str:
    """Format as `YYYY-MM-DD` from local components (no UTC conversion)."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def local_today(as_of: datetime | date | None = None, tz: ZoneInfo | None = None) -> date:
    """
    The local calendar day containing `as_of`.

    Aware datetimes are converted into `tz` first. Naive datetimes are taken
    as local wall-clock time already. `None` means now.
    """
    if as_of is None:
        return datetime.now(tz).date()
    if isinstance(as_of, datetime):
        if as_of.tzinfo is not None and tz is not None:
            as_of = as_of.astimezone(tz)
        return as_of.date()
    return as_of


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every day from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
