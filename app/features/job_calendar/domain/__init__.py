"""
Domain subpackage for the job calendar feature.
"""

from .models import (
    EVENT_TYPES,
    FAILED_LOAD_NOTICE,
    PRIORITIES,
    AdHocCalendarRow,
    AggregationResult,
    CalendarQuery,
    CompletedTaskRow,
    EventType,
    JobRef,
    MaterialDeadlineRow,
    Priority,
    SkippedRecord,
    SubcontractorScheduleRow,
    TaskDeadlineRow,
    UnavailableDateRow,
    UnifiedEvent,
    UserCalendarEventRow,
)
from .priority import classify_by_date, classify_priority, is_past_due, is_upcoming

__all__ = [
    "EVENT_TYPES",
    "FAILED_LOAD_NOTICE",
    "PRIORITIES",
    "AdHocCalendarRow",
    "AggregationResult",
    "CalendarQuery",
    "CompletedTaskRow",
    "EventType",
    "JobRef",
    "MaterialDeadlineRow",
    "Priority",
    "SkippedRecord",
    "SubcontractorScheduleRow",
    "TaskDeadlineRow",
    "UnavailableDateRow",
    "UnifiedEvent",
    "UserCalendarEventRow",
    "classify_by_date",
    "classify_priority",
    "is_past_due",
    "is_upcoming",
]
