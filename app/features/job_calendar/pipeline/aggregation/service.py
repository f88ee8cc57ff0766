"""
Calendar aggregation service.

Collects every dated item the office tracks (material deadlines, completed
tasks, subcontractor days, office events, reminders, task due dates) into
one flat list of `UnifiedEvent`s classified by urgency. The list is rebuilt
from scratch on every call; nothing is cached and nothing is written.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import UTC, datetime

from app.config import settings
from app.features.job_calendar.domain.models import (
    AggregationResult,
    CalendarQuery,
    UnifiedEvent,
)
from app.features.job_calendar.pipeline.sources import (
    BuildContext,
    EventSource,
    SourceLoad,
    default_sources,
)
from app.features.job_calendar.pipeline.views import filter_by_trade
from app.infrastructure.observability.logging import get_logger, log_source_failure
from app.utils.date_utils import local_today

logger = get_logger(__name__)


class CalendarAggregationError(Exception):
    """Raised only when the aggregation itself is misconfigured."""

    def __init__(self, message: str, recoverable: bool = False):
        super().__init__(message)
        self.recoverable = recoverable


class CalendarAggregationService:
    """Runs every event source concurrently and merges what comes back."""

    def __init__(
        self,
        sources: Sequence[EventSource] | None = None,
        upcoming_days: int | None = None,
    ):
        self._sources = list(sources) if sources is not None else None
        self.upcoming_days = (
            upcoming_days if upcoming_days is not None else settings.CALENDAR_UPCOMING_DAYS
        )

    @property
    def sources(self) -> list[EventSource]:
        if self._sources is None:
            self._sources = default_sources()
        return self._sources

    async def aggregate(self, query: CalendarQuery | None = None) -> AggregationResult:
        query = query or CalendarQuery()
        as_of = query.as_of or datetime.now(UTC)
        today = local_today(as_of, settings.calendar_tz())
        context = BuildContext(today=today, upcoming_days=self.upcoming_days)

        names = [source.name for source in self.sources]
        if len(set(names)) != len(names):
            raise CalendarAggregationError(f"Duplicate calendar source names: {names}")

        outcomes = await asyncio.gather(
            *(source.load(query, context) for source in self.sources),
            return_exceptions=True,
        )

        loads: list[SourceLoad] = []
        failed_sources: list[str] = []
        for source, outcome in zip(self.sources, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    # CancelledError and friends are not source failures
                    raise outcome
                log_source_failure(source.name, outcome, job_id=query.job_id)
                failed_sources.append(source.name)
                continue
            loads.append(outcome)

        events = self._merge(loads)
        if query.trade:
            events = filter_by_trade(events, query.trade)

        result = AggregationResult(
            events=events,
            as_of=as_of,
            today=today,
            failed_sources=failed_sources,
            skipped_records=[skipped for load in loads for skipped in load.skipped],
        )

        logger.info(
            "Calendar aggregated",
            event_count=len(result.events),
            failed_sources=failed_sources or None,
            skipped_count=len(result.skipped_records),
            today=today.isoformat(),
            job_id=query.job_id,
        )
        return result

    def _merge(self, loads: list[SourceLoad]) -> list[UnifiedEvent]:
        merged: dict[str, UnifiedEvent] = {}
        for load in loads:
            for event in load.events:
                if event.id in merged:
                    logger.warning(
                        "Duplicate calendar event id dropped",
                        event_id=event.id,
                        source=load.source,
                    )
                    continue
                merged[event.id] = event

        return sorted(merged.values(), key=lambda e: (e.date, e.type, e.id))


calendar_aggregation_service = CalendarAggregationService()
