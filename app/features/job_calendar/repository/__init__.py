"""
Repository subpackage for the job calendar feature.
"""

from .calendar_source_repository import (
    AD_HOC_EVENT_TYPES,
    MATERIAL_DATE_COLUMNS,
    CalendarSourceRepository,
)

__all__ = ["AD_HOC_EVENT_TYPES", "MATERIAL_DATE_COLUMNS", "CalendarSourceRepository"]
