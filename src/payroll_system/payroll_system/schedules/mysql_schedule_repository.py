from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Sequence

from ..core.constants import WEEKDAYS
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import DayHours, NewWorkSchedule, WorkSchedule
from .repository import WorkScheduleRepository

_DAY_COLUMNS = [f"{day}_{edge}" for day in WEEKDAYS for edge in ("start", "end")]

_COLUMNS = ", ".join(
    [
        "schedule_id",
        "business_id",
        "employee_id",
        "schedule_name",
        "effective_from",
        "effective_to",
        *_DAY_COLUMNS,
        "break_duration",
        "weekly_hours",
        "is_active",
    ]
)

UPDATABLE_COLUMNS = ("schedule_name", "effective_from", "effective_to", "break_duration", "weekly_hours")


def _row_to_schedule(r: dict) -> WorkSchedule:
    days = {
        day: DayHours(
            start=normalize_mysql_time(r.get(f"{day}_start")),
            end=normalize_mysql_time(r.get(f"{day}_end")),
        )
        for day in WEEKDAYS
    }
    return WorkSchedule(
        schedule_id=int(r["schedule_id"]),
        business_id=int(r["business_id"]),
        employee_id=int(r["employee_id"]),
        schedule_name=r["schedule_name"],
        effective_from=r["effective_from"],
        effective_to=r.get("effective_to"),
        days=days,
        break_duration=int(r.get("break_duration") or 0),
        weekly_hours=as_decimal(r.get("weekly_hours")),
        is_active=bool(r.get("is_active")),
    )


def _day_params(days: Mapping[str, DayHours]) -> list[object]:
    params: list[object] = []
    for day in WEEKDAYS:
        hours = days.get(day) or DayHours()
        params.extend([hours.start, hours.end])
    return params


class MySQLWorkScheduleRepository(WorkScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, business_id: int, schedule_id: int) -> Optional[WorkSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM work_schedules WHERE schedule_id=%s AND business_id=%s",
                (int(schedule_id), int(business_id)),
            )
            r = fetchone(cur)
            return _row_to_schedule(r) if r else None

    def list_schedules(
        self,
        business_id: int,
        *,
        employee_id: Optional[int] = None,
        is_active: Optional[bool] = None,
    ) -> Sequence[WorkSchedule]:
        clauses = ["business_id=%s"]
        params: list[object] = [int(business_id)]
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))
        if is_active is not None:
            clauses.append("is_active=%s")
            params.append(1 if is_active else 0)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM work_schedules WHERE {where} ORDER BY effective_from DESC, schedule_id DESC",
                tuple(params),
            )
            return [_row_to_schedule(r) for r in fetchall(cur)]

    def find_effective(self, employee_id: int, work_date: date) -> Optional[WorkSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM work_schedules
                WHERE employee_id=%s
                  AND effective_from <= %s
                  AND (effective_to IS NULL OR effective_to >= %s)
                ORDER BY effective_from DESC, schedule_id DESC
                LIMIT 1
                """,
                (int(employee_id), work_date, work_date),
            )
            r = fetchone(cur)
            return _row_to_schedule(r) if r else None

    def create(self, new: NewWorkSchedule) -> int:
        placeholders = ",".join(["%s"] * (len(_DAY_COLUMNS) + 8))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO work_schedules(
                    business_id, employee_id, schedule_name, effective_from, effective_to,
                    {", ".join(_DAY_COLUMNS)}, break_duration, weekly_hours, is_active
                )
                VALUES({placeholders})
                """,
                (
                    new.business_id,
                    new.employee_id,
                    new.schedule_name,
                    new.effective_from,
                    new.effective_to,
                    *_day_params(new.days),
                    int(new.break_duration),
                    new.weekly_hours,
                    0,
                ),
            )
            return int(cur.lastrowid)

    def update(self, business_id: int, schedule_id: int, changes: Mapping[str, Any]) -> bool:
        columns = [c for c in UPDATABLE_COLUMNS if c in changes]
        params: list[object] = [changes[c] for c in columns]
        if "days" in changes:
            columns.extend(_DAY_COLUMNS)
            params.extend(_day_params(changes["days"]))
        if not columns:
            return True

        assignments = ", ".join(f"{c}=%s" for c in columns)
        params.extend([int(schedule_id), int(business_id)])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE work_schedules SET {assignments} WHERE schedule_id=%s AND business_id=%s",
                tuple(params),
            )
            return cur.rowcount > 0

    def activate(self, business_id: int, employee_id: int, schedule_id: int) -> None:
        # Rows are visited active-first so the unique key on the generated
        # active column never sees two active schedules.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE work_schedules
                SET is_active = (schedule_id = %s)
                WHERE employee_id=%s AND business_id=%s
                ORDER BY is_active DESC
                """,
                (int(schedule_id), int(employee_id), int(business_id)),
            )

    def deactivate(self, business_id: int, schedule_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE work_schedules SET is_active=0 WHERE schedule_id=%s AND business_id=%s",
                (int(schedule_id), int(business_id)),
            )
            return cur.rowcount > 0

    def delete(self, business_id: int, schedule_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM work_schedules WHERE schedule_id=%s AND business_id=%s",
                (int(schedule_id), int(business_id)),
            )
            return cur.rowcount > 0
