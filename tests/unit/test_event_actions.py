from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.db.helpers import DatabaseError
from app.features.job_calendar.services import (
    EventActionError,
    EventActionsService,
    EventNotFoundError,
    parse_event_id,
)

NEW_DATE = date(2024, 7, 1)


@pytest.fixture
def repo():
    repo = MagicMock()
    for name in (
        "update_calendar_event_date",
        "update_material_date",
        "update_task_due_date",
        "update_subcontractor_start_date",
        "mark_calendar_event_completed",
        "mark_task_completed",
    ):
        setattr(repo, name, AsyncMock(return_value=1))
    return repo


@pytest.fixture
def service(repo):
    return EventActionsService(repository=repo)


class TestParseEventId:
    def test_subcontractor_id_drops_day_suffix(self):
        ref = parse_event_id("sub-3f2a-9c1e-2024-06-11")

        assert (ref.kind, ref.record_id) == ("sub", "3f2a-9c1e")

    def test_uuid_record_id_kept_whole(self):
        ref = parse_event_id("order-0b8e3c1a-1111-2222-3333-444455556666")

        assert ref.kind == "order"
        assert ref.record_id == "0b8e3c1a-1111-2222-3333-444455556666"

    @pytest.mark.parametrize("event_id", ["", "order", "order-", "mystery-1", "sub-"])
    def test_malformed_ids(self, event_id):
        with pytest.raises(EventActionError):
            parse_event_id(event_id)


class TestReschedule:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("prefix", ["calendar", "event"])
    async def test_calendar_rows(self, service, repo, prefix):
        await service.reschedule_event(f"{prefix}-7", NEW_DATE)

        repo.update_calendar_event_date.assert_awaited_once_with("7", NEW_DATE)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("prefix", "column"),
        [("order", "order_by_date"), ("delivery", "delivery_date"), ("pull", "pull_by_date")],
    )
    async def test_material_columns(self, service, repo, prefix, column):
        await service.reschedule_event(f"{prefix}-m1", NEW_DATE)

        repo.update_material_date.assert_awaited_once_with("m1", column, NEW_DATE)

    @pytest.mark.asyncio
    async def test_task_deadline(self, service, repo):
        await service.reschedule_event("deadline-t1", NEW_DATE)

        repo.update_task_due_date.assert_awaited_once_with("t1", NEW_DATE)

    @pytest.mark.asyncio
    async def test_subcontractor(self, service, repo):
        await service.reschedule_event("sub-s1-2024-06-11", NEW_DATE)

        repo.update_subcontractor_start_date.assert_awaited_once_with("s1", NEW_DATE)

    @pytest.mark.asyncio
    async def test_completed_task_cannot_move(self, service, repo):
        with pytest.raises(EventActionError):
            await service.reschedule_event("task-c1", NEW_DATE)

    @pytest.mark.asyncio
    async def test_no_rows_updated_is_not_found(self, service, repo):
        repo.update_task_due_date.return_value = 0

        with pytest.raises(EventNotFoundError):
            await service.reschedule_event("deadline-missing", NEW_DATE)

    @pytest.mark.asyncio
    async def test_database_error_is_wrapped(self, service, repo):
        repo.update_calendar_event_date.side_effect = DatabaseError("down", recoverable=True)

        with pytest.raises(EventActionError) as exc:
            await service.reschedule_event("event-7", NEW_DATE)

        assert not isinstance(exc.value, EventNotFoundError)
        assert exc.value.recoverable is True


class TestComplete:
    @pytest.mark.asyncio
    async def test_user_event_records_who(self, service, repo):
        await service.complete_event("event-7", "user-123")

        repo.mark_calendar_event_completed.assert_awaited_once_with("7", "user-123")

    @pytest.mark.asyncio
    async def test_task_deadline(self, service, repo):
        await service.complete_event("deadline-t1", "user-123")

        repo.mark_task_completed.assert_awaited_once_with("t1")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("event_id", ["order-m1", "task-c1", "sub-s1-2024-06-11"])
    async def test_other_kinds_rejected(self, service, event_id):
        with pytest.raises(EventActionError):
            await service.complete_event(event_id, "user-123")

    @pytest.mark.asyncio
    async def test_missing_row(self, service, repo):
        repo.mark_calendar_event_completed.return_value = 0

        with pytest.raises(EventNotFoundError):
            await service.complete_event("calendar-404", "user-123")
