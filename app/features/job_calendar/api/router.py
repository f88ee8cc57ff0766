"""
Job calendar routes.

Read endpoints aggregate on every request; a failing source yields a
partial result with a notice rather than an error. Write endpoints route
a single reschedule / complete to the owning table.
"""

from calendar import monthrange
from datetime import UTC, date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.auth.verify import auth_dependency
from app.config import settings
from app.features.job_calendar.domain import (
    FAILED_LOAD_NOTICE,
    AggregationResult,
    CalendarQuery,
    UnavailableDateRow,
    UnifiedEvent,
)
from app.features.job_calendar.pipeline.aggregation import (
    calendar_aggregation_service,
)
from app.features.job_calendar.pipeline.views import (
    build_agenda,
    build_month_grid,
    events_in_month,
    summarize,
)
from app.features.job_calendar.repository import CalendarSourceRepository
from app.features.job_calendar.services import (
    EventActionError,
    EventNotFoundError,
    complete_event,
    reschedule_event,
)
from app.infrastructure.observability.logging import get_logger, log_source_failure
from app.models.api.calendar_request import RescheduleEventRequest
from app.models.api.calendar_response import (
    AgendaResponse,
    CalendarEventResponse,
    CalendarSummaryResponse,
    DayCellResponse,
    EventActionResponse,
    EventsListResponse,
    MonthGridResponse,
    SkippedRecordResponse,
)
from app.utils.date_utils import local_today

logger = get_logger(__name__)

router = APIRouter(prefix="/calendar", tags=["calendar"])

# Reported in failed_sources when the day-off overlay cannot be loaded
UNAVAILABLE_DATES_SOURCE = "unavailable_dates"


def _event_response(event: UnifiedEvent) -> CalendarEventResponse:
    return CalendarEventResponse(**event.to_dict())


async def _aggregate(query: CalendarQuery, user_id: str | None) -> AggregationResult:
    try:
        return await calendar_aggregation_service.aggregate(query)
    except Exception as e:
        logger.error("Error aggregating calendar", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load calendar events",
        )


@router.get("/events", response_model=EventsListResponse)
async def list_calendar_events(
    claims: dict = Depends(auth_dependency),
    as_of: datetime | None = Query(default=None, description="Evaluate urgency as of this instant"),
    job_id: str | None = Query(default=None, description="Only events for this job"),
    trade: str | None = Query(default=None, description="Only subcontractor days for this trade"),
):
    """Get every calendar event, classified by urgency."""
    result = await _aggregate(
        CalendarQuery(as_of=as_of, job_id=job_id, trade=trade), claims.get("sub")
    )

    return EventsListResponse(
        events=[_event_response(event) for event in result.events],
        total_count=len(result.events),
        today=result.today,
        as_of=result.as_of,
        failed_sources=result.failed_sources,
        skipped_records=[
            SkippedRecordResponse(
                source=skipped.source, record_id=skipped.record_id, reason=skipped.reason
            )
            for skipped in result.skipped_records
        ],
        notice=result.notice,
    )


@router.get("/month", response_model=MonthGridResponse)
async def get_month_grid(
    claims: dict = Depends(auth_dependency),
    year: int | None = Query(default=None, ge=1900, le=2200, description="Defaults to this year"),
    month: int | None = Query(default=None, ge=1, le=12, description="Defaults to this month"),
    as_of: datetime | None = Query(default=None),
    job_id: str | None = Query(default=None),
    trade: str | None = Query(default=None),
    include_unavailable: bool = Query(
        default=False, description="List staff marked unavailable on each day"
    ),
):
    """Get the month view laid out in Sunday-first weeks."""
    user_id = claims.get("sub")
    if year is None or month is None:
        today = local_today(as_of or datetime.now(UTC), settings.calendar_tz())
        year = year or today.year
        month = month or today.month
    first_day = date(year, month, 1)
    last_day = date(year, month, monthrange(year, month)[1])

    result = await _aggregate(
        CalendarQuery(as_of=as_of, job_id=job_id, start=first_day, end=last_day, trade=trade),
        user_id,
    )

    failed_sources = list(result.failed_sources)
    unavailable: list[UnavailableDateRow] = []
    if include_unavailable:
        try:
            unavailable = await CalendarSourceRepository.fetch_unavailable_dates(
                first_day, last_day
            )
        except Exception as e:
            log_source_failure(UNAVAILABLE_DATES_SOURCE, e, user_id=user_id)
            failed_sources.append(UNAVAILABLE_DATES_SOURCE)

    grid = build_month_grid(
        events_in_month(result.events, year, month),
        year,
        month,
        today=result.today,
        unavailable=unavailable,
    )

    return MonthGridResponse(
        year=grid.year,
        month=grid.month,
        weeks=[
            [
                DayCellResponse(
                    date=cell.date,
                    day=cell.day,
                    is_today=cell.is_today,
                    events=[_event_response(event) for event in cell.events],
                    unavailable_users=cell.unavailable_users,
                )
                if cell is not None
                else None
                for cell in week
            ]
            for week in grid.weeks
        ],
        today=result.today,
        failed_sources=failed_sources,
        notice=FAILED_LOAD_NOTICE if failed_sources else None,
    )


@router.get("/agenda", response_model=AgendaResponse)
async def get_agenda(
    claims: dict = Depends(auth_dependency),
    days: int = Query(
        default=settings.CALENDAR_AGENDA_DAYS, ge=1, le=365, description="Days ahead (1-365)"
    ),
    as_of: datetime | None = Query(default=None),
    job_id: str | None = Query(default=None),
):
    """Get upcoming events from today forward."""
    result = await _aggregate(CalendarQuery(as_of=as_of, job_id=job_id), claims.get("sub"))
    agenda = build_agenda(result.events, result.today, days=days)

    return AgendaResponse(
        events=[_event_response(event) for event in agenda],
        days=days,
        today=result.today,
        failed_sources=result.failed_sources,
        notice=result.notice,
    )


@router.get("/summary", response_model=CalendarSummaryResponse)
async def get_summary(
    claims: dict = Depends(auth_dependency),
    as_of: datetime | None = Query(default=None),
    job_id: str | None = Query(default=None),
):
    """Get event counts per type and per priority."""
    result = await _aggregate(CalendarQuery(as_of=as_of, job_id=job_id), claims.get("sub"))
    counts = summarize(result.events)

    return CalendarSummaryResponse(
        total=counts["total"],
        by_type=counts["by_type"],
        by_priority=counts["by_priority"],
        today=result.today,
        failed_sources=result.failed_sources,
        notice=result.notice,
    )


@router.post("/events/{event_id}/reschedule", response_model=EventActionResponse)
async def reschedule_calendar_event(
    event_id: str,
    request: RescheduleEventRequest,
    claims: dict = Depends(auth_dependency),
):
    """Move an event to another day."""
    user_id = claims.get("sub")

    try:
        await reschedule_event(event_id, request.new_date)
    except EventNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except EventActionError as e:
        logger.warning("Reschedule rejected", user_id=user_id, event_id=event_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error("Error rescheduling event", user_id=user_id, event_id=event_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to reschedule event",
        )

    return EventActionResponse(
        success=True,
        event_id=event_id,
        action="reschedule",
        new_date=request.new_date,
        message=f"Event moved to {request.new_date.isoformat()}",
    )


@router.post("/events/{event_id}/complete", response_model=EventActionResponse)
async def complete_calendar_event(event_id: str, claims: dict = Depends(auth_dependency)):
    """Mark an event or task deadline as done."""
    user_id = claims.get("sub")

    try:
        await complete_event(event_id, user_id)
    except EventNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except EventActionError as e:
        logger.warning("Completion rejected", user_id=user_id, event_id=event_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error("Error completing event", user_id=user_id, event_id=event_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to complete event",
        )

    return EventActionResponse(
        success=True,
        event_id=event_id,
        action="complete",
        message="Event marked complete",
    )
