"""
Repository helpers for the job calendar.

Read-only SQL for every table that feeds the calendar, plus the handful of
single-row writes the calendar screen offers (reschedule, mark complete).
Date columns are selected as text so the domain layer sees the same
`YYYY-MM-DD` strings the rest of the app works with.
"""

from datetime import date
from typing import Any

from app.config import settings
from app.db.helpers import execute_query, fetch_all, with_db_retry
from app.features.job_calendar.domain.models import (
    AdHocCalendarRow,
    CompletedTaskRow,
    JobRef,
    MaterialDeadlineRow,
    SubcontractorScheduleRow,
    TaskDeadlineRow,
    UnavailableDateRow,
    UserCalendarEventRow,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

# Event types stored in calendar_events that behave like material reminders
AD_HOC_EVENT_TYPES: tuple[str, ...] = (
    "material_pickup",
    "material_delivery",
    "material_order_reminder",
    "pickup",
    "delivery",
    "order_reminder",
)

# Columns the calendar is allowed to move, keyed by id prefix
MATERIAL_DATE_COLUMNS: dict[str, str] = {
    "order": "order_by_date",
    "delivery": "delivery_date",
    "pull": "pull_by_date",
}


def _job_from_row(row: dict[str, Any]) -> JobRef:
    return JobRef(
        id=str(row["job_id"]),
        name=row.get("job_name") or "",
        client_name=row.get("job_client_name"),
    )


def _job_filter(job_id: str | None, column: str = "j.id") -> tuple[str, tuple]:
    if not job_id:
        return "", ()
    return f" AND {column} = %s", (job_id,)


class CalendarSourceRepository:
    """Raw SQL helpers for calendar sources."""

    @classmethod
    @with_db_retry()
    async def fetch_material_deadlines(
        cls, job_id: str | None = None
    ) -> list[MaterialDeadlineRow]:
        job_clause, job_params = _job_filter(job_id)
        query = f"""
            SELECT
                m.id,
                m.name,
                m.status,
                m.order_by_date::text AS order_by_date,
                m.delivery_date::text AS delivery_date,
                m.pull_by_date::text AS pull_by_date,
                j.id AS job_id,
                j.name AS job_name,
                j.client_name AS job_client_name
            FROM materials m
            JOIN jobs j ON j.id = m.job_id
            WHERE j.status = ANY(%s)
              AND COALESCE(j.is_internal, false) = false
              AND (
                  m.order_by_date IS NOT NULL
                  OR m.delivery_date IS NOT NULL
                  OR m.pull_by_date IS NOT NULL
              ){job_clause}
        """

        rows = await fetch_all(query, (settings.CALENDAR_ACTIVE_JOB_STATUSES, *job_params))
        return [
            MaterialDeadlineRow(
                id=str(row["id"]),
                name=row["name"],
                job=_job_from_row(row),
                status=row["status"],
                order_by_date=row.get("order_by_date"),
                delivery_date=row.get("delivery_date"),
                pull_by_date=row.get("pull_by_date"),
            )
            for row in rows
        ]

    @classmethod
    @with_db_retry()
    async def fetch_completed_tasks(cls, job_id: str | None = None) -> list[CompletedTaskRow]:
        job_clause, job_params = _job_filter(job_id)
        query = f"""
            SELECT
                ct.id,
                ct.completed_date::text AS completed_date,
                ct.notes,
                c.name AS component_name,
                j.id AS job_id,
                j.name AS job_name,
                j.client_name AS job_client_name
            FROM completed_tasks ct
            JOIN components c ON c.id = ct.component_id
            JOIN jobs j ON j.id = ct.job_id
            WHERE ct.completed_date IS NOT NULL{job_clause}
        """

        rows = await fetch_all(query, job_params)
        return [
            CompletedTaskRow(
                id=str(row["id"]),
                job=_job_from_row(row),
                component_name=row["component_name"],
                completed_date=row["completed_date"],
                notes=row.get("notes"),
            )
            for row in rows
        ]

    @classmethod
    @with_db_retry()
    async def fetch_subcontractor_schedules(
        cls, job_id: str | None = None
    ) -> list[SubcontractorScheduleRow]:
        job_clause, job_params = _job_filter(job_id)
        query = f"""
            SELECT
                ss.id,
                ss.start_date::text AS start_date,
                ss.end_date::text AS end_date,
                ss.work_description,
                ss.status,
                s.name AS subcontractor_name,
                s.phone AS subcontractor_phone,
                COALESCE(s.trades, '{{}}'::text[]) AS subcontractor_trades,
                j.id AS job_id,
                j.name AS job_name,
                j.client_name AS job_client_name
            FROM subcontractor_schedules ss
            JOIN subcontractors s ON s.id = ss.subcontractor_id
            JOIN jobs j ON j.id = ss.job_id
            WHERE ss.start_date IS NOT NULL{job_clause}
        """

        rows = await fetch_all(query, job_params)
        return [
            SubcontractorScheduleRow(
                id=str(row["id"]),
                job=_job_from_row(row),
                subcontractor_name=row["subcontractor_name"],
                start_date=row["start_date"],
                end_date=row.get("end_date"),
                status=row["status"],
                work_description=row.get("work_description"),
                subcontractor_phone=row.get("subcontractor_phone"),
                subcontractor_trades=list(row.get("subcontractor_trades") or []),
            )
            for row in rows
        ]

    @classmethod
    @with_db_retry()
    async def fetch_user_events(
        cls,
        start: date | None = None,
        end: date | None = None,
        job_id: str | None = None,
    ) -> list[UserCalendarEventRow]:
        """
        Free-form events. Rows that qualify as ad-hoc reminders (a reminder
        type on a job) are left to fetch_ad_hoc_rows so no row appears twice.
        """
        clauses = ["NOT (ce.event_type = ANY(%s) AND ce.job_id IS NOT NULL)"]
        params: list[Any] = [list(AD_HOC_EVENT_TYPES)]
        if start is not None:
            clauses.append("ce.event_date >= %s")
            params.append(start)
        if end is not None:
            clauses.append("ce.event_date <= %s")
            params.append(end)
        if job_id:
            clauses.append("ce.job_id = %s")
            params.append(job_id)

        query = f"""
            SELECT
                ce.id,
                ce.title,
                ce.description,
                ce.event_date::text AS event_date,
                ce.event_type,
                ce.all_day,
                ce.start_time::text AS start_time,
                ce.end_time::text AS end_time,
                ce.completed_at,
                ce.completed_by,
                j.id AS job_id,
                j.name AS job_name,
                j.client_name AS job_client_name
            FROM calendar_events ce
            LEFT JOIN jobs j ON j.id = ce.job_id
            WHERE {" AND ".join(clauses)}
        """

        rows = await fetch_all(query, tuple(params))
        return [
            UserCalendarEventRow(
                id=str(row["id"]),
                title=row["title"],
                event_date=row["event_date"],
                event_type=row["event_type"],
                job=_job_from_row(row) if row.get("job_id") else None,
                description=row.get("description"),
                all_day=bool(row.get("all_day", True)),
                start_time=row.get("start_time"),
                end_time=row.get("end_time"),
                completed_at=row.get("completed_at"),
                completed_by=(str(row["completed_by"]) if row.get("completed_by") else None),
            )
            for row in rows
        ]

    @classmethod
    @with_db_retry()
    async def fetch_ad_hoc_rows(cls, job_id: str | None = None) -> list[AdHocCalendarRow]:
        job_clause, job_params = _job_filter(job_id)
        query = f"""
            SELECT
                ce.id,
                ce.title,
                ce.description,
                ce.event_date::text AS event_date,
                ce.event_type,
                j.id AS job_id,
                j.name AS job_name,
                j.client_name AS job_client_name
            FROM calendar_events ce
            JOIN jobs j ON j.id = ce.job_id
            WHERE ce.event_type = ANY(%s)
              AND j.status = ANY(%s)
              AND COALESCE(j.is_internal, false) = false{job_clause}
        """

        rows = await fetch_all(
            query,
            (list(AD_HOC_EVENT_TYPES), settings.CALENDAR_ACTIVE_JOB_STATUSES, *job_params),
        )
        return [
            AdHocCalendarRow(
                id=str(row["id"]),
                title=row["title"],
                event_date=row["event_date"],
                event_type=row["event_type"],
                job=_job_from_row(row),
                description=row.get("description"),
            )
            for row in rows
        ]

    @classmethod
    @with_db_retry()
    async def fetch_task_deadlines(cls, job_id: str | None = None) -> list[TaskDeadlineRow]:
        job_clause, job_params = _job_filter(job_id)
        query = f"""
            SELECT
                t.id,
                t.title,
                t.description,
                t.due_date::text AS due_date,
                t.status,
                t.task_type,
                COALESCE(u.username, u.email) AS assigned_user_name,
                j.id AS job_id,
                j.name AS job_name,
                j.client_name AS job_client_name
            FROM job_tasks t
            JOIN jobs j ON j.id = t.job_id
            LEFT JOIN user_profiles u ON u.id = t.assigned_to
            WHERE t.due_date IS NOT NULL
              AND t.status <> 'completed'
              AND j.status = ANY(%s)
              AND COALESCE(j.is_internal, false) = false{job_clause}
        """

        rows = await fetch_all(query, (settings.CALENDAR_ACTIVE_JOB_STATUSES, *job_params))
        return [
            TaskDeadlineRow(
                id=str(row["id"]),
                title=row["title"],
                due_date=row["due_date"],
                status=row["status"],
                job=_job_from_row(row),
                description=row.get("description"),
                task_type=row.get("task_type"),
                assigned_user_name=row.get("assigned_user_name"),
            )
            for row in rows
        ]

    @classmethod
    @with_db_retry()
    async def fetch_unavailable_dates(
        cls, start: date | None = None, end: date | None = None
    ) -> list[UnavailableDateRow]:
        """Staff day-off ranges overlapping [start, end], earliest first."""
        clauses = ["ud.start_date IS NOT NULL"]
        params: list[Any] = []
        if start is not None:
            clauses.append("COALESCE(ud.end_date, ud.start_date) >= %s")
            params.append(start)
        if end is not None:
            clauses.append("ud.start_date <= %s")
            params.append(end)

        query = f"""
            SELECT
                ud.id,
                ud.user_id,
                ud.start_date::text AS start_date,
                ud.end_date::text AS end_date,
                COALESCE(up.username, 'Unknown') AS username
            FROM user_unavailable_dates ud
            JOIN user_profiles up ON up.id = ud.user_id
            WHERE {" AND ".join(clauses)}
            ORDER BY ud.start_date
        """

        rows = await fetch_all(query, tuple(params))
        return [
            UnavailableDateRow(
                id=str(row["id"]),
                user_id=str(row["user_id"]),
                username=row.get("username") or "Unknown",
                start_date=row["start_date"],
                end_date=row.get("end_date"),
            )
            for row in rows
        ]

    # Single-row writes behind the calendar's reschedule / complete buttons

    @classmethod
    async def update_calendar_event_date(cls, event_id: str, new_date: date) -> int:
        query = """
            UPDATE calendar_events
            SET event_date = %s, updated_at = NOW()
            WHERE id = %s
        """
        return await execute_query(query, (new_date, event_id))

    @classmethod
    async def update_material_date(cls, material_id: str, column: str, new_date: date) -> int:
        if column not in MATERIAL_DATE_COLUMNS.values():
            raise ValueError(f"Unknown material date column: {column}")
        # column is whitelisted above
        query = f"UPDATE materials SET {column} = %s WHERE id = %s"
        return await execute_query(query, (new_date, material_id))

    @classmethod
    async def update_task_due_date(cls, task_id: str, new_date: date) -> int:
        query = "UPDATE job_tasks SET due_date = %s WHERE id = %s"
        return await execute_query(query, (new_date, task_id))

    @classmethod
    async def update_subcontractor_start_date(cls, schedule_id: str, new_date: date) -> int:
        """
        Move a schedule to start on new_date. An end date that would fall
        before the new start is pulled forward with it.
        """
        query = """
            UPDATE subcontractor_schedules
            SET start_date = %s,
                end_date = CASE
                    WHEN end_date IS NOT NULL AND end_date < %s THEN %s
                    ELSE end_date
                END
            WHERE id = %s
        """
        return await execute_query(query, (new_date, new_date, new_date, schedule_id))

    @classmethod
    async def mark_calendar_event_completed(cls, event_id: str, user_id: str | None) -> int:
        query = """
            UPDATE calendar_events
            SET completed_at = NOW(), completed_by = %s, updated_at = NOW()
            WHERE id = %s
        """
        return await execute_query(query, (user_id, event_id))

    @classmethod
    async def mark_task_completed(cls, task_id: str) -> int:
        query = """
            UPDATE job_tasks
            SET status = 'completed', completed_at = NOW()
            WHERE id = %s
        """
        return await execute_query(query, (task_id,))
