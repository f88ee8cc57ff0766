from datetime import UTC, date, datetime
from unittest.mock import AsyncMock

import pytest

from app.features.job_calendar.domain import (
    FAILED_LOAD_NOTICE,
    CalendarQuery,
    CompletedTaskRow,
    MaterialDeadlineRow,
    SubcontractorScheduleRow,
    UnifiedEvent,
)
from app.features.job_calendar.pipeline.aggregation import (
    CalendarAggregationError,
    CalendarAggregationService,
)
from app.features.job_calendar.pipeline.sources import (
    EventSource,
    build_completed_task_events,
    build_material_events,
    build_subcontractor_events,
)
from app.features.job_calendar.pipeline.views import build_agenda, build_month_grid

# Noon in Chicago on 2024-06-10
AS_OF = datetime(2024, 6, 10, 17, 0, tzinfo=UTC)


def _source(name, rows, build):
    return EventSource(name=name, fetch=AsyncMock(return_value=rows), build=build)


def _failing_source(name, build=build_material_events):
    return EventSource(
        name=name, fetch=AsyncMock(side_effect=RuntimeError("connection reset")), build=build
    )


def _service(*sources):
    return CalendarAggregationService(sources=list(sources))


@pytest.mark.asyncio
async def test_empty_sources_give_empty_result():
    service = _service(
        _source("materials", [], build_material_events),
        _source("subcontractor_schedules", [], build_subcontractor_events),
    )

    result = await service.aggregate(CalendarQuery(as_of=AS_OF))

    assert result.events == []
    assert result.is_empty
    assert result.failed_sources == []
    assert result.notice is None
    assert result.today == date(2024, 6, 10)
    assert build_agenda(result.events, result.today) == []
    assert build_month_grid(result.events, 2024, 6, today=result.today).days_with_events() == []


@pytest.mark.asyncio
async def test_today_is_local_not_utc():
    service = _service()
    # 02:00 UTC on the 11th is still the 10th in Chicago
    result = await service.aggregate(CalendarQuery(as_of=datetime(2024, 6, 11, 2, 0, tzinfo=UTC)))

    assert result.today == date(2024, 6, 10)


@pytest.mark.asyncio
async def test_overdue_material_order(job):
    material = MaterialDeadlineRow(
        id="m1", name="Cabinets", job=job, status="not_ordered", order_by_date="2024-06-09"
    )
    service = _service(_source("materials", [material], build_material_events))

    result = await service.aggregate(CalendarQuery(as_of=AS_OF))

    [event] = result.events
    assert event.id == "order-m1"
    assert event.type == "material_order"
    assert event.date == "2024-06-09"
    assert event.priority == "high"
    assert event.material_id == "m1"


@pytest.mark.asyncio
async def test_multi_day_subcontractor_expansion(job):
    schedule = SubcontractorScheduleRow(
        id="s1",
        job=job,
        subcontractor_name="Ace Electric",
        start_date="2024-06-10",
        end_date="2024-06-12",
        status="confirmed",
    )
    service = _service(_source("subcontractor_schedules", [schedule], build_subcontractor_events))

    result = await service.aggregate(CalendarQuery(as_of=AS_OF))

    assert [e.date for e in result.events] == ["2024-06-10", "2024-06-11", "2024-06-12"]
    assert {e.priority for e in result.events} == {"medium"}
    assert len({e.id for e in result.events}) == 3


@pytest.mark.asyncio
async def test_failing_source_yields_partial_result(job):
    completed = CompletedTaskRow(
        id="c1", job=job, component_name="Demo", completed_date="2024-06-01"
    )
    service = _service(
        _failing_source("materials"),
        _source("completed_tasks", [completed], build_completed_task_events),
    )

    result = await service.aggregate(CalendarQuery(as_of=AS_OF))

    assert [e.id for e in result.events] == ["task-c1"]
    assert result.failed_sources == ["materials"]
    assert result.partial
    assert result.notice == FAILED_LOAD_NOTICE


@pytest.mark.asyncio
async def test_every_source_failing_still_returns():
    service = _service(_failing_source("materials"), _failing_source("task_deadlines"))

    result = await service.aggregate(CalendarQuery(as_of=AS_OF))

    assert result.events == []
    assert sorted(result.failed_sources) == ["materials", "task_deadlines"]
    assert result.notice == FAILED_LOAD_NOTICE


@pytest.mark.asyncio
async def test_malformed_record_is_skipped_without_failing_source(job):
    rows = [
        MaterialDeadlineRow(
            id="m1", name="Tile", job=job, status="not_ordered", order_by_date="06/09/2024"
        ),
        MaterialDeadlineRow(
            id="m2", name="Grout", job=job, status="not_ordered", order_by_date="2024-06-12"
        ),
    ]
    service = _service(_source("materials", rows, build_material_events))

    result = await service.aggregate(CalendarQuery(as_of=AS_OF))

    assert [e.id for e in result.events] == ["order-m2"]
    assert result.failed_sources == []
    assert [s.record_id for s in result.skipped_records] == ["m1"]


@pytest.mark.asyncio
async def test_output_sorted_and_idempotent(job):
    rows = [
        MaterialDeadlineRow(
            id="m2", name="Grout", job=job, status="not_ordered", order_by_date="2024-06-20"
        ),
        MaterialDeadlineRow(
            id="m1", name="Tile", job=job, status="ordered", delivery_date="2024-06-05"
        ),
    ]
    completed = CompletedTaskRow(
        id="c1", job=job, component_name="Demo", completed_date="2024-06-05"
    )
    service = _service(
        _source("materials", rows, build_material_events),
        _source("completed_tasks", [completed], build_completed_task_events),
    )
    query = CalendarQuery(as_of=AS_OF)

    first = await service.aggregate(query)
    second = await service.aggregate(query)

    assert [e.id for e in first.events] == ["delivery-m1", "task-c1", "order-m2"]
    assert [e.to_dict() for e in first.events] == [e.to_dict() for e in second.events]


@pytest.mark.asyncio
async def test_duplicate_ids_are_dropped():
    def build_fixed(row, context):
        return [
            UnifiedEvent(
                id="event-1",
                type="task_deadline",
                date="2024-06-10",
                job_id=None,
                job_name=None,
                title=row,
                description="",
                priority="medium",
            )
        ]

    service = _service(
        _source("user_events", ["first"], build_fixed),
        _source("ad_hoc_events", ["second"], build_fixed),
    )

    result = await service.aggregate(CalendarQuery(as_of=AS_OF))

    assert len(result.events) == 1
    assert result.events[0].title == "first"


@pytest.mark.asyncio
async def test_trade_filter_keeps_matching_subcontractor_days(job):
    schedules = [
        SubcontractorScheduleRow(
            id="s1",
            job=job,
            subcontractor_name="Ace Electric",
            start_date="2024-06-11",
            status="confirmed",
            subcontractor_trades=["Electrical"],
        ),
        SubcontractorScheduleRow(
            id="s2",
            job=job,
            subcontractor_name="Pipe Pros",
            start_date="2024-06-11",
            status="confirmed",
            subcontractor_trades=["Plumbing"],
        ),
    ]
    service = _service(_source("subcontractor_schedules", schedules, build_subcontractor_events))

    result = await service.aggregate(CalendarQuery(as_of=AS_OF, trade="electrical"))

    assert [e.contractor_name for e in result.events] == ["Ace Electric"]


@pytest.mark.asyncio
async def test_duplicate_source_names_are_rejected():
    service = _service(
        _source("materials", [], build_material_events),
        _source("materials", [], build_material_events),
    )

    with pytest.raises(CalendarAggregationError):
        await service.aggregate(CalendarQuery(as_of=AS_OF))
