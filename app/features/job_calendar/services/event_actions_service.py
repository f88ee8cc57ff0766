"""
Event actions behind the calendar's reschedule and complete buttons.

Each action is a single-row write routed by the event id prefix. Clients
re-aggregate afterwards; nothing here touches the aggregated view.
"""

import re
from dataclasses import dataclass
from datetime import date

from app.db.helpers import DatabaseError
from app.features.job_calendar.repository import (
    MATERIAL_DATE_COLUMNS,
    CalendarSourceRepository,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

_SUBCONTRACTOR_ID = re.compile(r"^sub-(?P<record_id>.+)-(?P<day>\d{4}-\d{2}-\d{2})$")


class EventActionError(Exception):
    """Custom exception for calendar event actions."""

    def __init__(self, message: str, event_id: str | None = None, recoverable: bool = False):
        super().__init__(message)
        self.event_id = event_id
        self.recoverable = recoverable


class EventNotFoundError(EventActionError):
    """The id parsed fine but no row matched it."""


@dataclass(slots=True, frozen=True)
class EventRef:
    """A parsed event id: which table the event came from and its row id."""

    kind: str
    record_id: str


def parse_event_id(event_id: str) -> EventRef:
    """
    Split a unified event id into its kind and source row id.

    Subcontractor ids carry the expanded day as a suffix; it is dropped
    since every day of a schedule points at the same row.
    """
    if not event_id:
        raise EventActionError("Event id is required", event_id=event_id)

    match = _SUBCONTRACTOR_ID.match(event_id)
    if match:
        return EventRef(kind="sub", record_id=match.group("record_id"))

    kind, sep, record_id = event_id.partition("-")
    known = {"calendar", "event", "task", "deadline", *MATERIAL_DATE_COLUMNS}
    if not sep or not record_id or kind not in known:
        raise EventActionError(f"Unrecognized event id: {event_id}", event_id=event_id)
    return EventRef(kind=kind, record_id=record_id)


class EventActionsService:
    """Routes reschedule / complete requests to the owning table."""

    def __init__(self, repository=CalendarSourceRepository):
        self.repository = repository

    async def reschedule_event(self, event_id: str, new_date: date) -> EventRef:
        ref = parse_event_id(event_id)
        repo = self.repository

        if ref.kind in ("calendar", "event"):
            write = repo.update_calendar_event_date(ref.record_id, new_date)
        elif ref.kind in MATERIAL_DATE_COLUMNS:
            write = repo.update_material_date(
                ref.record_id, MATERIAL_DATE_COLUMNS[ref.kind], new_date
            )
        elif ref.kind == "deadline":
            write = repo.update_task_due_date(ref.record_id, new_date)
        elif ref.kind == "sub":
            write = repo.update_subcontractor_start_date(ref.record_id, new_date)
        else:
            raise EventActionError("Completed tasks cannot be rescheduled", event_id=event_id)

        await self._apply(write, event_id, action="reschedule")
        logger.info(
            "Calendar event rescheduled",
            event_id=event_id,
            kind=ref.kind,
            new_date=new_date.isoformat(),
        )
        return ref

    async def complete_event(self, event_id: str, user_id: str | None = None) -> EventRef:
        ref = parse_event_id(event_id)
        repo = self.repository

        if ref.kind in ("calendar", "event"):
            write = repo.mark_calendar_event_completed(ref.record_id, user_id)
        elif ref.kind == "deadline":
            write = repo.mark_task_completed(ref.record_id)
        else:
            raise EventActionError(
                f"Events of kind '{ref.kind}' cannot be marked complete", event_id=event_id
            )

        await self._apply(write, event_id, action="complete")
        logger.info("Calendar event completed", event_id=event_id, kind=ref.kind, user_id=user_id)
        return ref

    async def _apply(self, write, event_id: str, action: str) -> None:
        try:
            affected = await write
        except DatabaseError as e:
            logger.error(
                "Calendar event write failed", event_id=event_id, action=action, error=str(e)
            )
            raise EventActionError(
                f"Failed to {action} event", event_id=event_id, recoverable=e.recoverable
            ) from e

        if not affected:
            raise EventNotFoundError(f"Event not found: {event_id}", event_id=event_id)


event_actions_service = EventActionsService()


async def reschedule_event(event_id: str, new_date: date) -> EventRef:
    return await event_actions_service.reschedule_event(event_id, new_date)


async def complete_event(event_id: str, user_id: str | None = None) -> EventRef:
    return await event_actions_service.complete_event(event_id, user_id)
