"""
Calendar event sources.

Each table that feeds the calendar is one `EventSource`: an async fetch
against the data layer and a pure builder turning one row into zero or
more `UnifiedEvent`s. The aggregation service runs them side by side and
never needs to know which tables exist.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from app.features.job_calendar.domain.models import (
    AdHocCalendarRow,
    CalendarQuery,
    CompletedTaskRow,
    EventType,
    JobRef,
    MaterialDeadlineRow,
    SkippedRecord,
    SubcontractorScheduleRow,
    TaskDeadlineRow,
    UnifiedEvent,
    UserCalendarEventRow,
)
from app.features.job_calendar.domain.priority import (
    DEFAULT_UPCOMING_DAYS,
    classify_priority,
)
from app.features.job_calendar.repository import CalendarSourceRepository
from app.infrastructure.observability.logging import get_logger
from app.utils.date_utils import InvalidDateError, format_date_local, iter_days, parse_date_local

logger = get_logger(__name__)

JOB_COLORS: tuple[str, ...] = (
    "#ef4444",  # red
    "#f97316",  # orange
    "#eab308",  # yellow
    "#22c55e",  # green
    "#06b6d4",  # cyan
    "#3b82f6",  # blue
    "#8b5cf6",  # purple
    "#ec4899",  # pink
)

# (date field, status that makes it live, event type, id prefix, title prefix, blurb)
MATERIAL_DEADLINES: tuple[tuple[str, str, EventType, str, str, str], ...] = (
    ("order_by_date", "not_ordered", "material_order", "order", "Order", "Must order by this date"),
    ("delivery_date", "ordered", "material_delivery", "delivery", "Delivery", "Expected delivery to shop"),
    ("pull_by_date", "at_shop", "material_pull", "pull", "Pull", "Pull from shop for delivery"),
)

AD_HOC_TYPE_MAP: dict[str, EventType] = {
    "material_pickup": "material_pickup",
    "material_delivery": "material_delivery",
    "material_order_reminder": "material_order",
    "pickup": "material_pickup",
    "delivery": "material_delivery",
    "order_reminder": "material_order",
}


@dataclass(slots=True)
class BuildContext:
    today: date
    upcoming_days: int = DEFAULT_UPCOMING_DAYS

    def priority(
        self,
        event_date: date,
        event_type: EventType,
        status: str | None = None,
        start_date: date | None = None,
    ):
        return classify_priority(
            event_date,
            self.today,
            event_type=event_type,
            status=status,
            start_date=start_date,
            upcoming_days=self.upcoming_days,
        )


RowFetcher = Callable[[CalendarQuery], Awaitable[Sequence[Any]]]
EventBuilder = Callable[[Any, BuildContext], list[UnifiedEvent]]


@dataclass(slots=True)
class SourceLoad:
    """Output of one source for one aggregation pass."""

    source: str
    events: list[UnifiedEvent] = field(default_factory=list)
    skipped: list[SkippedRecord] = field(default_factory=list)


@dataclass(slots=True)
class EventSource:
    """One table's contribution to the calendar."""

    name: str
    fetch: RowFetcher
    build: EventBuilder

    async def load(self, query: CalendarQuery, context: BuildContext) -> SourceLoad:
        """
        Fetch rows and build events. Fetch errors propagate to the caller;
        a row with an unreadable date is skipped and logged.
        """
        rows = await self.fetch(query)
        result = SourceLoad(source=self.name)
        for row in rows:
            try:
                result.events.extend(self.build(row, context))
            except InvalidDateError as e:
                record_id = getattr(row, "id", None)
                logger.warning(
                    "Skipping calendar record with malformed date",
                    source=self.name,
                    record_id=record_id,
                    value=e.value,
                )
                result.skipped.append(
                    SkippedRecord(source=self.name, record_id=record_id, reason=str(e))
                )
        return result


def job_color(job_name: str) -> str:
    """Stable colour for a job, so every view paints a job the same way."""
    value = 0
    for char in job_name:
        value = (ord(char) + ((value << 5) - value)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return JOB_COLORS[abs(value) % len(JOB_COLORS)]


def _job_fields(job: JobRef | None) -> dict[str, Any]:
    if job is None:
        return {"job_id": None, "job_name": None, "job_color": None}
    return {"job_id": job.id, "job_name": job.name, "job_color": job_color(job.name)}


def _short_day(value: date) -> str:
    return f"{value:%b} {value.day}"


# Builders


def build_material_events(row: MaterialDeadlineRow, context: BuildContext) -> list[UnifiedEvent]:
    """
    Each of the three deadlines is checked on its own. In normal workflow
    only one is live at a time, but nothing here relies on that.
    """
    events = []
    for date_field, live_status, event_type, prefix, title_prefix, blurb in MATERIAL_DEADLINES:
        raw = getattr(row, date_field)
        if not raw or row.status != live_status:
            continue
        day = parse_date_local(raw)
        events.append(
            UnifiedEvent(
                id=f"{prefix}-{row.id}",
                type=event_type,
                date=format_date_local(day),
                title=f"{title_prefix}: {row.name}",
                description=f"{row.job.name} - {blurb}",
                status=row.status,
                priority=context.priority(day, event_type),
                material_id=row.id,
                **_job_fields(row.job),
            )
        )
    return events


def build_completed_task_events(
    row: CompletedTaskRow, context: BuildContext
) -> list[UnifiedEvent]:
    day = parse_date_local(row.completed_date)
    return [
        UnifiedEvent(
            id=f"task-{row.id}",
            type="task_completed",
            date=format_date_local(day),
            title=f"Completed: {row.component_name}",
            description=row.notes or "Task completed",
            priority=context.priority(day, "task_completed"),
            **_job_fields(row.job),
        )
    ]


def build_subcontractor_events(
    row: SubcontractorScheduleRow, context: BuildContext
) -> list[UnifiedEvent]:
    """One event per on-site day, so a date-keyed grid needs no range logic."""
    start = parse_date_local(row.start_date)
    end = parse_date_local(row.end_date) if row.end_date else start
    if end < start:
        logger.warning(
            "Subcontractor schedule ends before it starts, treating as single day",
            schedule_id=row.id,
            start_date=row.start_date,
            end_date=row.end_date,
        )
        end = start

    range_label = f" ({_short_day(start)} - {_short_day(end)})" if end != start else ""
    trades = ", ".join(row.subcontractor_trades) if row.subcontractor_trades else "Subcontractor"
    description = f"{trades}: {row.work_description or 'Scheduled work'}"

    events = []
    for day in iter_days(start, end):
        day_str = format_date_local(day)
        events.append(
            UnifiedEvent(
                id=f"sub-{row.id}-{day_str}",
                type="subcontractor",
                date=day_str,
                title=f"{row.subcontractor_name}{range_label}",
                description=description,
                status=row.status,
                priority=context.priority(day, "subcontractor", row.status, start),
                contractor_name=row.subcontractor_name,
                contractor_phone=row.subcontractor_phone,
                contractor_trades=list(row.subcontractor_trades),
                **_job_fields(row.job),
            )
        )
    return events


def build_ad_hoc_events(row: AdHocCalendarRow, context: BuildContext) -> list[UnifiedEvent]:
    event_type = AD_HOC_TYPE_MAP.get(row.event_type, "material_pickup")
    day = parse_date_local(row.event_date)
    return [
        UnifiedEvent(
            id=f"calendar-{row.id}",
            type=event_type,
            date=format_date_local(day),
            title=row.title,
            description=row.description or "",
            priority=context.priority(day, event_type),
            source_event_type=row.event_type,
            **_job_fields(row.job),
        )
    ]


def build_user_events(row: UserCalendarEventRow, context: BuildContext) -> list[UnifiedEvent]:
    # meeting / inspection / deadline / other all read as something due that day
    event_type = AD_HOC_TYPE_MAP.get(row.event_type, "task_deadline")
    day = parse_date_local(row.event_date)
    return [
        UnifiedEvent(
            id=f"event-{row.id}",
            type=event_type,
            date=format_date_local(day),
            title=row.title,
            description=row.description or "",
            status="completed" if row.completed_at else None,
            priority=context.priority(day, event_type),
            source_event_type=row.event_type,
            all_day=row.all_day,
            start_time=None if row.all_day else row.start_time,
            end_time=None if row.all_day else row.end_time,
            completed_at=row.completed_at,
            completed_by=row.completed_by,
            **_job_fields(row.job),
        )
    ]


def build_task_deadline_events(
    row: TaskDeadlineRow, context: BuildContext
) -> list[UnifiedEvent]:
    day = parse_date_local(row.due_date)
    return [
        UnifiedEvent(
            id=f"deadline-{row.id}",
            type="task_deadline",
            date=format_date_local(day),
            title=row.title,
            description=row.description or f"{row.task_type or 'General'} task",
            status=row.status,
            priority=context.priority(day, "task_deadline"),
            assigned_user_name=row.assigned_user_name,
            **_job_fields(row.job),
        )
    ]


# Default wiring against the repository


def default_sources() -> list[EventSource]:
    repo = CalendarSourceRepository
    return [
        EventSource(
            name="materials",
            fetch=lambda q: repo.fetch_material_deadlines(job_id=q.job_id),
            build=build_material_events,
        ),
        EventSource(
            name="completed_tasks",
            fetch=lambda q: repo.fetch_completed_tasks(job_id=q.job_id),
            build=build_completed_task_events,
        ),
        EventSource(
            name="subcontractor_schedules",
            fetch=lambda q: repo.fetch_subcontractor_schedules(job_id=q.job_id),
            build=build_subcontractor_events,
        ),
        EventSource(
            name="user_events",
            fetch=lambda q: repo.fetch_user_events(start=q.start, end=q.end, job_id=q.job_id),
            build=build_user_events,
        ),
        EventSource(
            name="ad_hoc_events",
            fetch=lambda q: repo.fetch_ad_hoc_rows(job_id=q.job_id),
            build=build_ad_hoc_events,
        ),
        EventSource(
            name="task_deadlines",
            fetch=lambda q: repo.fetch_task_deadlines(job_id=q.job_id),
            build=build_task_deadline_events,
        ),
    ]
