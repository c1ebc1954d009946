from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, AttendanceSummary, AttendanceValues, MonthlyAttendanceStats


class AttendanceRepository(Protocol):
    def get_by_id(self, business_id: int, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(self, values: AttendanceValues) -> int:
        """Insert a record; ConflictError if the employee already has one that day."""

        raise NotImplementedError

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
        """Set clock-out fields only if the record is still open."""

        raise NotImplementedError

    def replace(self, attendance_id: int, values: AttendanceValues) -> bool:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

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
        raise NotImplementedError

    def list_for_period(self, employee_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def monthly_stats(
        self,
        business_id: int,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[int] = None,
    ) -> Sequence[MonthlyAttendanceStats]:
        raise NotImplementedError

    def summary(
        self,
        business_id: int,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[int] = None,
    ) -> AttendanceSummary:
        raise NotImplementedError
