"""
Service layer for the job calendar feature.
"""

from .event_actions_service import (
    EventActionError,
    EventActionsService,
    EventNotFoundError,
    EventRef,
    complete_event,
    event_actions_service,
    parse_event_id,
    reschedule_event,
)

__all__ = [
    "EventActionError",
    "EventActionsService",
    "EventNotFoundError",
    "EventRef",
    "complete_event",
    "event_actions_service",
    "parse_event_id",
    "reschedule_event",
]
