from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus, AttendanceType, EntryMethod
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    as_decimal,
    as_optional_decimal,
    db_cursor,
    fetchall,
    fetchone,
    is_duplicate_key,
    normalize_mysql_time,
)
from .model import AttendanceRecord, AttendanceSummary, AttendanceValues, MonthlyAttendanceStats
from .repository import AttendanceRepository

_COLUMNS = """
    a.attendance_id, a.employee_id, a.work_date, a.clock_in_time, a.clock_out_time,
    a.break_start_time, a.break_end_time, a.total_hours, a.overtime_hours, a.late_minutes,
    a.early_departure_minutes, a.status, a.attendance_type, a.entry_method, a.notes,
    a.location_latitude, a.location_longitude,
    e.employee_code, CONCAT(e.first_name, ' ', e.last_name) AS employee_name
"""


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        clock_in_time=normalize_mysql_time(r.get("clock_in_time")),
        clock_out_time=normalize_mysql_time(r.get("clock_out_time")),
        break_start_time=normalize_mysql_time(r.get("break_start_time")),
        break_end_time=normalize_mysql_time(r.get("break_end_time")),
        total_hours=as_decimal(r.get("total_hours")),
        overtime_hours=as_decimal(r.get("overtime_hours")),
        late_minutes=int(r.get("late_minutes") or 0),
        early_departure_minutes=int(r.get("early_departure_minutes") or 0),
        status=AttendanceStatus(r["status"]),
        attendance_type=AttendanceType(r["attendance_type"]),
        entry_method=EntryMethod(r["entry_method"]),
        notes=r.get("notes"),
        location_latitude=as_optional_decimal(r.get("location_latitude")),
        location_longitude=as_optional_decimal(r.get("location_longitude")),
        employee_code=r.get("employee_code"),
        employee_name=r.get("employee_name"),
    )


def _values_params(v: AttendanceValues) -> tuple:
    return (
        v.employee_id,
        v.work_date,
        v.clock_in_time,
        v.clock_out_time,
        v.break_start_time,
        v.break_end_time,
        v.total_hours,
        v.overtime_hours,
        v.late_minutes,
        v.early_departure_minutes,
        v.status.value,
        v.attendance_type.value,
        v.entry_method.value,
        v.notes,
        v.location_latitude,
        v.location_longitude,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, business_id: int, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance a
                JOIN employees e ON e.employee_id = a.employee_id
                WHERE a.attendance_id=%s AND e.business_id=%s
                """,
                (int(attendance_id), int(business_id)),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance a
                JOIN employees e ON e.employee_id = a.employee_id
                WHERE a.employee_id=%s AND a.work_date=%s
                """,
                (int(employee_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def create(self, values: AttendanceValues) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO attendance(
                        employee_id, work_date, clock_in_time, clock_out_time, break_start_time,
                        break_end_time, total_hours, overtime_hours, late_minutes,
                        early_departure_minutes, status, attendance_type, entry_method, notes,
                        location_latitude, location_longitude
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    _values_params(values),
                )
            except mysql.connector.Error as e:
                if is_duplicate_key(e):
                    raise ConflictError("Attendance already recorded for this employee and date") from e
                raise
            return int(cur.lastrowid)

    def complete_clock_out(
        self,
        *,
        attendance_id: int,
        clock_out_time: time,
        break_start_time: Optional[time],
        break_end_time: Optional[time],
        total_hours: Decimal,
        overtime_hours: Decimal,
        early_departure_minutes: int,
        status: AttendanceStatus,
        notes: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET clock_out_time=%s, break_start_time=%s, break_end_time=%s, total_hours=%s,
                    overtime_hours=%s, early_departure_minutes=%s, status=%s, notes=%s
                WHERE attendance_id=%s AND clock_out_time IS NULL
                """,
                (
                    clock_out_time,
                    break_start_time,
                    break_end_time,
                    total_hours,
                    overtime_hours,
                    int(early_departure_minutes),
                    status.value,
                    notes,
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    def replace(self, attendance_id: int, values: AttendanceValues) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    UPDATE attendance
                    SET employee_id=%s, work_date=%s, clock_in_time=%s, clock_out_time=%s,
                        break_start_time=%s, break_end_time=%s, total_hours=%s, overtime_hours=%s,
                        late_minutes=%s, early_departure_minutes=%s, status=%s, attendance_type=%s,
                        entry_method=%s, notes=%s, location_latitude=%s, location_longitude=%s
                    WHERE attendance_id=%s
                    """,
                    (*_values_params(values), int(attendance_id)),
                )
            except mysql.connector.Error as e:
                if is_duplicate_key(e):
                    raise ConflictError("Attendance already recorded for this employee and date") from e
                raise
            return cur.rowcount > 0

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def list_records(
        self,
        business_id: int,
        *,
        employee_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["e.business_id=%s"]
        params: list[object] = [int(business_id)]

        if employee_id is not None:
            clauses.append("a.employee_id=%s")
            params.append(int(employee_id))
        if start_date is not None:
            clauses.append("a.work_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("a.work_date <= %s")
            params.append(end_date)
        if status is not None:
            clauses.append("a.status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)
        params.extend([int(limit), int(offset)])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance a
                JOIN employees e ON e.employee_id = a.employee_id
                WHERE {where}
                ORDER BY a.work_date DESC, a.clock_in_time DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_period(self, employee_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance a
                JOIN employees e ON e.employee_id = a.employee_id
                WHERE a.employee_id=%s AND a.work_date BETWEEN %s AND %s
                ORDER BY a.work_date ASC
                """,
                (int(employee_id), start_date, end_date),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def monthly_stats(
        self,
        business_id: int,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[int] = None,
    ) -> Sequence[MonthlyAttendanceStats]:
        clauses = ["e.business_id=%s", "e.status='active'"]
        params: list[object] = [start_date, end_date, int(business_id)]
        if employee_id is not None:
            clauses.append("e.employee_id=%s")
            params.append(int(employee_id))
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    e.employee_id, e.employee_code, e.first_name, e.last_name,
                    COUNT(a.attendance_id) AS total_days,
                    COALESCE(SUM(a.status='present'), 0) AS present_days,
                    COALESCE(SUM(a.status='late'), 0) AS late_days,
                    COALESCE(SUM(a.status='half_day'), 0) AS half_days,
                    COALESCE(SUM(a.status='absent'), 0) AS absent_days,
                    COALESCE(SUM(a.status='on_leave'), 0) AS leave_days,
                    COALESCE(SUM(a.total_hours), 0) AS total_hours,
                    COALESCE(SUM(a.overtime_hours), 0) AS total_overtime_hours
                FROM employees e
                LEFT JOIN attendance a
                    ON a.employee_id = e.employee_id AND a.work_date BETWEEN %s AND %s
                WHERE {where}
                GROUP BY e.employee_id, e.employee_code, e.first_name, e.last_name
                ORDER BY e.first_name, e.last_name
                """,
                tuple(params),
            )
            return [
                MonthlyAttendanceStats(
                    employee_id=int(r["employee_id"]),
                    employee_code=r["employee_code"],
                    first_name=r["first_name"],
                    last_name=r["last_name"],
                    total_days=int(r["total_days"] or 0),
                    present_days=int(r["present_days"] or 0),
                    late_days=int(r["late_days"] or 0),
                    half_days=int(r["half_days"] or 0),
                    absent_days=int(r["absent_days"] or 0),
                    leave_days=int(r["leave_days"] or 0),
                    total_hours=as_decimal(r.get("total_hours")),
                    total_overtime_hours=as_decimal(r.get("total_overtime_hours")),
                )
                for r in fetchall(cur)
            ]

    def summary(
        self,
        business_id: int,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[int] = None,
    ) -> AttendanceSummary:
        clauses = ["e.business_id=%s", "a.work_date BETWEEN %s AND %s"]
        params: list[object] = [int(business_id), start_date, end_date]
        if employee_id is not None:
            clauses.append("a.employee_id=%s")
            params.append(int(employee_id))
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    COUNT(DISTINCT a.employee_id) AS employees_with_attendance,
                    COUNT(a.attendance_id) AS total_records,
                    COALESCE(SUM(a.status='present'), 0) AS present_count,
                    COALESCE(SUM(a.status='late'), 0) AS late_count,
                    COALESCE(SUM(a.status='half_day'), 0) AS half_day_count,
                    COALESCE(SUM(a.status='absent'), 0) AS absent_count,
                    COALESCE(ROUND(AVG(NULLIF(a.total_hours, 0)), 2), 0) AS avg_working_hours,
                    COALESCE(SUM(a.overtime_hours), 0) AS total_overtime_hours
                FROM attendance a
                JOIN employees e ON e.employee_id = a.employee_id
                WHERE {where}
                """,
                tuple(params),
            )
            r = fetchone(cur) or {}

            cur.execute(
                "SELECT COUNT(*) AS total FROM employees WHERE business_id=%s AND status='active'",
                (int(business_id),),
            )
            active = fetchone(cur) or {}

        return AttendanceSummary(
            start_date=start_date,
            end_date=end_date,
            employees_with_attendance=int(r.get("employees_with_attendance") or 0),
            total_records=int(r.get("total_records") or 0),
            present_count=int(r.get("present_count") or 0),
            late_count=int(r.get("late_count") or 0),
            half_day_count=int(r.get("half_day_count") or 0),
            absent_count=int(r.get("absent_count") or 0),
            avg_working_hours=as_decimal(r.get("avg_working_hours")),
            total_overtime_hours=as_decimal(r.get("total_overtime_hours")),
            total_active_employees=int(active.get("total") or 0),
        )
