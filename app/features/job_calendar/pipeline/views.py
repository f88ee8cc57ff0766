"""
Presentation views over an aggregated event list.

Pure functions: they take the flat list the aggregation service produced
and reshape it for the month grid, the agenda panel and the stat cards.
None of them touch the database.
"""

from __future__ import annotations

import calendar
from collections import Counter, defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta

from app.features.job_calendar.domain.models import (
    EVENT_TYPES,
    PRIORITIES,
    UnavailableDateRow,
    UnifiedEvent,
)
from app.infrastructure.observability.logging import get_logger
from app.utils.date_utils import InvalidDateError, format_date_local, parse_date_local

logger = get_logger(__name__)

DEFAULT_AGENDA_DAYS = 30


@dataclass(slots=True)
class DayCell:
    date: str
    day: int
    is_today: bool = False
    events: list[UnifiedEvent] = field(default_factory=list)
    # Usernames off on this day
    unavailable_users: list[str] = field(default_factory=list)


@dataclass(slots=True)
class MonthGrid:
    year: int
    month: int
    # Sunday-first rows of seven; None pads days outside the month
    weeks: list[list[DayCell | None]]

    def days_with_events(self) -> list[DayCell]:
        return [cell for week in self.weeks for cell in week if cell is not None and cell.events]


def group_by_date(events: Iterable[UnifiedEvent]) -> dict[str, list[UnifiedEvent]]:
    grouped: dict[str, list[UnifiedEvent]] = defaultdict(list)
    for event in events:
        grouped[event.date].append(event)
    return dict(grouped)


def _unavailable_ranges(
    unavailable: Iterable[UnavailableDateRow],
) -> list[tuple[date, date, str]]:
    ranges: list[tuple[date, date, str]] = []
    for row in unavailable:
        try:
            start = parse_date_local(row.start_date)
            end = parse_date_local(row.end_date) if row.end_date else start
        except InvalidDateError as e:
            logger.warning(
                "Skipping unavailable date range with malformed date",
                record_id=row.id,
                value=str(e.value),
            )
            continue
        ranges.append((start, end, row.username))
    return ranges


def unavailable_users_on(ranges: Iterable[tuple[date, date, str]], day: date) -> list[str]:
    """Usernames whose range covers day, both ends inclusive."""
    return [username for start, end, username in ranges if start <= day <= end]


def build_month_grid(
    events: Iterable[UnifiedEvent],
    year: int,
    month: int,
    today: date | None = None,
    unavailable: Iterable[UnavailableDateRow] = (),
) -> MonthGrid:
    """
    Lay the month out in 7-column weeks, events keyed by exact date.

    Each cell also lists the staff marked unavailable that day.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1-12, got {month}")

    by_date = group_by_date(events)
    ranges = _unavailable_ranges(unavailable)
    month_calendar = calendar.Calendar(firstweekday=calendar.SUNDAY)

    weeks: list[list[DayCell | None]] = []
    for week in month_calendar.monthdayscalendar(year, month):
        row: list[DayCell | None] = []
        for day_number in week:
            if day_number == 0:
                row.append(None)
                continue
            day = date(year, month, day_number)
            key = format_date_local(day)
            row.append(
                DayCell(
                    date=key,
                    day=day_number,
                    is_today=today == day,
                    events=list(by_date.get(key, [])),
                    unavailable_users=unavailable_users_on(ranges, day),
                )
            )
        weeks.append(row)

    return MonthGrid(year=year, month=month, weeks=weeks)


def events_in_month(events: Iterable[UnifiedEvent], year: int, month: int) -> list[UnifiedEvent]:
    prefix = f"{year:04d}-{month:02d}-"
    return [event for event in events if event.date.startswith(prefix)]


def build_agenda(
    events: Iterable[UnifiedEvent], today: date, days: int = DEFAULT_AGENDA_DAYS
) -> list[UnifiedEvent]:
    """Events from today through today + days, earliest first."""
    horizon = today + timedelta(days=days)
    upcoming = [event for event in events if today <= parse_date_local(event.date) <= horizon]
    return sorted(upcoming, key=lambda e: parse_date_local(e.date))


def filter_by_trade(events: Iterable[UnifiedEvent], trade: str) -> list[UnifiedEvent]:
    """Only subcontractor days whose crew covers the trade (case-insensitive)."""
    wanted = trade.strip().lower()
    return [
        event
        for event in events
        if event.type == "subcontractor"
        and any(t.strip().lower() == wanted for t in event.contractor_trades)
    ]


def summarize(events: Iterable[UnifiedEvent]) -> dict[str, dict[str, int] | int]:
    events = list(events)
    by_type = Counter(event.type for event in events)
    by_priority = Counter(event.priority for event in events)
    return {
        "total": len(events),
        "by_type": {event_type: by_type.get(event_type, 0) for event_type in EVENT_TYPES},
        "by_priority": {priority: by_priority.get(priority, 0) for priority in PRIORITIES},
    }
