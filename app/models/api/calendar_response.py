# app/models/api/calendar_response.py
"""
Calendar API response models.
Used by routes for output formatting.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field


class CalendarEventResponse(BaseModel):
    """Response model for one unified calendar event."""

    id: str = Field(..., description="Unique event ID, prefixed by source")
    type: str = Field(..., description="Event type")
    date: str = Field(..., description="Local calendar day (YYYY-MM-DD)")
    job_id: str | None = Field(None, description="Owning job ID")
    job_name: str | None = Field(None, description="Owning job name")
    job_color: str | None = Field(None, description="Display colour for the job")
    title: str = Field(..., description="Event title")
    description: str = Field(default="", description="Event description")
    priority: str = Field(..., description="Urgency: low, medium or high")
    status: str | None = Field(None, description="Source record status")
    material_id: str | None = Field(None, description="Material ID for material events")
    contractor_name: str | None = Field(None, description="Subcontractor name")
    contractor_phone: str | None = Field(None, description="Subcontractor phone")
    contractor_trades: list[str] = Field(default_factory=list, description="Subcontractor trades")
    source_event_type: str | None = Field(None, description="Raw event_type of calendar rows")
    all_day: bool = Field(default=True, description="Is this an all-day event")
    start_time: str | None = Field(None, description="Start time for timed events")
    end_time: str | None = Field(None, description="End time for timed events")
    completed_at: datetime | None = Field(None, description="When the event was completed")
    completed_by: str | None = Field(None, description="Who completed the event")
    assigned_user_name: str | None = Field(None, description="Assignee for task deadlines")


class SkippedRecordResponse(BaseModel):
    """A source row left off the calendar because its date was unreadable."""

    source: str
    record_id: str | None = None
    reason: str


class EventsListResponse(BaseModel):
    """Response for the flat aggregated event list."""

    events: list[CalendarEventResponse] = Field(..., description="Events sorted by date")
    total_count: int = Field(..., description="Total number of events")
    today: date = Field(..., description="Local day used for urgency")
    as_of: datetime = Field(..., description="Instant the aggregation was computed for")
    failed_sources: list[str] = Field(default_factory=list, description="Sources that failed")
    skipped_records: list[SkippedRecordResponse] = Field(
        default_factory=list, description="Rows skipped for malformed dates"
    )
    notice: str | None = Field(None, description="User-facing message on partial results")


class DayCellResponse(BaseModel):
    """One day in the month grid."""

    date: str
    day: int
    is_today: bool = False
    events: list[CalendarEventResponse] = Field(default_factory=list)
    unavailable_users: list[str] = Field(default_factory=list)


class MonthGridResponse(BaseModel):
    """Response for the month view."""

    year: int
    month: int
    weeks: list[list[DayCellResponse | None]] = Field(
        ..., description="Sunday-first weeks; null pads days outside the month"
    )
    today: date
    failed_sources: list[str] = Field(default_factory=list)
    notice: str | None = None


class AgendaResponse(BaseModel):
    """Response for the upcoming agenda panel."""

    events: list[CalendarEventResponse]
    days: int = Field(..., description="Days ahead included")
    today: date
    failed_sources: list[str] = Field(default_factory=list)
    notice: str | None = None


class CalendarSummaryResponse(BaseModel):
    """Event counts behind the dashboard stat cards."""

    total: int
    by_type: dict[str, int]
    by_priority: dict[str, int]
    today: date
    failed_sources: list[str] = Field(default_factory=list)
    notice: str | None = None


class EventActionResponse(BaseModel):
    """Response for reschedule / complete actions."""

    success: bool = Field(..., description="Whether the write was applied")
    event_id: str = Field(..., description="Event that was changed")
    action: str = Field(..., description="reschedule or complete")
    new_date: date | None = Field(None, description="New day for reschedule actions")
    message: str = Field(..., description="Human-readable result")
