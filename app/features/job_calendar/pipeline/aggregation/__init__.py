"""
Aggregation package for the job calendar.

Runs every event source for a request and merges the results into one
sorted, de-duplicated list.
"""

from .service import (
    CalendarAggregationError,
    CalendarAggregationService,
    calendar_aggregation_service,
)

__all__ = [
    "CalendarAggregationError",
    "CalendarAggregationService",
    "calendar_aggregation_service",
]
