"""
Domain models for the job calendar.

Source rows mirror what the data layer hands back for each table the
calendar reads. `UnifiedEvent` is the single shape every source is
normalized into before the calendar UI sees it.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Literal

EventType = Literal[
    "material_order",
    "material_delivery",
    "material_pull",
    "material_pickup",
    "task_completed",
    "task_deadline",
    "subcontractor",
]
Priority = Literal["low", "medium", "high"]

EVENT_TYPES: tuple[str, ...] = (
    "material_order",
    "material_delivery",
    "material_pull",
    "material_pickup",
    "task_completed",
    "task_deadline",
    "subcontractor",
)
PRIORITIES: tuple[str, ...] = ("low", "medium", "high")

FAILED_LOAD_NOTICE = "Failed to load calendar events"


@dataclass(slots=True)
class JobRef:
    """The joined job columns every source row carries."""

    id: str
    name: str
    client_name: str | None = None


@dataclass(slots=True)
class MaterialDeadlineRow:
    """A materials row with at least one of its three deadline dates set."""

    id: str
    name: str
    job: JobRef
    status: str
    order_by_date: str | None = None
    delivery_date: str | None = None
    pull_by_date: str | None = None


@dataclass(slots=True)
class CompletedTaskRow:
    """A completed_tasks row joined to its component."""

    id: str
    job: JobRef
    component_name: str
    completed_date: str
    notes: str | None = None


@dataclass(slots=True)
class SubcontractorScheduleRow:
    """A subcontractor_schedules row joined to the subcontractor."""

    id: str
    job: JobRef
    subcontractor_name: str
    start_date: str
    status: str
    end_date: str | None = None
    work_description: str | None = None
    subcontractor_phone: str | None = None
    subcontractor_trades: list[str] = field(default_factory=list)


@dataclass(slots=True)
class UserCalendarEventRow:
    """A free-form event created by someone in the office."""

    id: str
    title: str
    event_date: str
    event_type: str
    job: JobRef | None = None
    description: str | None = None
    all_day: bool = True
    start_time: str | None = None
    end_time: str | None = None
    completed_at: datetime | None = None
    completed_by: str | None = None


@dataclass(slots=True)
class AdHocCalendarRow:
    """Pickup / delivery / order reminder rows not tied to material status."""

    id: str
    title: str
    event_date: str
    event_type: str
    job: JobRef
    description: str | None = None


@dataclass(slots=True)
class TaskDeadlineRow:
    """An open job_tasks row with a due date."""

    id: str
    title: str
    due_date: str
    status: str
    job: JobRef
    description: str | None = None
    task_type: str | None = None
    assigned_user_name: str | None = None


@dataclass(slots=True)
class UnavailableDateRow:
    """A staff member's day-off range. A missing end_date means a single day."""

    id: str
    user_id: str
    username: str
    start_date: str
    end_date: str | None = None


@dataclass(slots=True)
class UnifiedEvent:
    """One dated item on the calendar, whatever table it came from."""

    id: str
    type: EventType
    date: str
    job_id: str | None
    job_name: str | None
    title: str
    description: str
    priority: Priority
    status: str | None = None
    job_color: str | None = None
    material_id: str | None = None
    contractor_name: str | None = None
    contractor_phone: str | None = None
    contractor_trades: list[str] = field(default_factory=list)
    source_event_type: str | None = None
    all_day: bool = True
    start_time: str | None = None
    end_time: str | None = None
    completed_at: datetime | None = None
    completed_by: str | None = None
    assigned_user_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return asdict(self)


@dataclass(slots=True)
class CalendarQuery:
    """What the caller wants aggregated, and the instant it is "now"."""

    as_of: datetime | None = None
    job_id: str | None = None
    start: date | None = None
    end: date | None = None
    trade: str | None = None


@dataclass(slots=True)
class SkippedRecord:
    """A source row that could not be turned into events."""

    source: str
    record_id: str | None
    reason: str


@dataclass(slots=True)
class AggregationResult:
    """Everything one aggregation pass produced."""

    events: list[UnifiedEvent]
    as_of: datetime
    today: date
    failed_sources: list[str] = field(default_factory=list)
    skipped_records: list[SkippedRecord] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failed_sources)

    @property
    def notice(self) -> str | None:
        """Single user-facing message when any source failed."""
        return FAILED_LOAD_NOTICE if self.failed_sources else None

    @property
    def is_empty(self) -> bool:
        return not self.events
