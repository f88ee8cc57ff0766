"""
Urgency classification for calendar events.

Priority is derived from the event's calendar day relative to a local
"today" that the caller supplies. It is never persisted, so the same row
can move from low to medium to high across loads without any write.
"""

from datetime import date, timedelta

from .models import Priority

DEFAULT_UPCOMING_DAYS = 7


def is_past_due(event_date: date, today: date) -> bool:
    """Overdue means strictly before today, never on today."""
    return event_date < today


def is_upcoming(event_date: date, today: date, days: int = DEFAULT_UPCOMING_DAYS) -> bool:
    """True when event_date falls within today .. today + days, inclusive."""
    return today <= event_date <= today + timedelta(days=days)


def classify_by_date(
    event_date: date, today: date, upcoming_days: int = DEFAULT_UPCOMING_DAYS
) -> Priority:
    if is_past_due(event_date, today):
        return "high"
    if is_upcoming(event_date, today, upcoming_days):
        return "medium"
    return "low"


def classify_priority(
    event_date: date,
    today: date,
    *,
    event_type: str,
    status: str | None = None,
    start_date: date | None = None,
    upcoming_days: int = DEFAULT_UPCOMING_DAYS,
) -> Priority:
    """
    Classify one event.

    Args:
        event_date: The event's own calendar day
        today: Local midnight's date for the aggregation instant
        event_type: Unified event type
        status: Source status, used by subcontractor events
        start_date: First day of a subcontractor schedule
        upcoming_days: Width of the "upcoming" window after today

    Returns:
        "low", "medium" or "high"
    """
    # A completed task is history, never overdue
    if event_type == "task_completed":
        return "low"

    if event_type == "subcontractor":
        if status == "cancelled":
            return "low"
        # Crew never showed: every day of the schedule is urgent
        if status == "scheduled" and start_date is not None and start_date < today:
            return "high"

    return classify_by_date(event_date, today, upcoming_days)
