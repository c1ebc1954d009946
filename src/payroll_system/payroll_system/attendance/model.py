from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import Optional

from ..core.enums import AttendanceStatus, AttendanceType, EntryMethod


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance on one calendar date."""

    attendance_id: int
    employee_id: int
    work_date: date
    clock_in_time: Optional[time]
    clock_out_time: Optional[time]
    status: AttendanceStatus
    attendance_type: AttendanceType = AttendanceType.REGULAR
    entry_method: EntryMethod = EntryMethod.WEB
    break_start_time: Optional[time] = None
    break_end_time: Optional[time] = None
    total_hours: Decimal = Decimal("0")
    overtime_hours: Decimal = Decimal("0")
    late_minutes: int = 0
    early_departure_minutes: int = 0
    notes: Optional[str] = None
    location_latitude: Optional[Decimal] = None
    location_longitude: Optional[Decimal] = None
    # Filled by list/report queries joining employees.
    employee_code: Optional[str] = None
    employee_name: Optional[str] = None


@dataclass(frozen=True)
class AttendanceValues:
    """Column values written on insert or full update."""

    employee_id: int
    work_date: date
    clock_in_time: Optional[time]
    clock_out_time: Optional[time]
    break_start_time: Optional[time]
    break_end_time: Optional[time]
    total_hours: Decimal
    overtime_hours: Decimal
    late_minutes: int
    early_departure_minutes: int
    status: AttendanceStatus
    attendance_type: AttendanceType
    entry_method: EntryMethod
    notes: Optional[str] = None
    location_latitude: Optional[Decimal] = None
    location_longitude: Optional[Decimal] = None


@dataclass(frozen=True)
class MonthlyAttendanceStats:
    employee_id: int
    employee_code: str
    first_name: str
    last_name: str
    total_days: int
    present_days: int
    late_days: int
    half_days: int
    absent_days: int
    leave_days: int
    total_hours: Decimal
    total_overtime_hours: Decimal


@dataclass(frozen=True)
class AttendanceSummary:
    start_date: date
    end_date: date
    employees_with_attendance: int
    total_records: int
    present_count: int
    late_count: int
    half_day_count: int
    absent_count: int
    avg_working_hours: Decimal
    total_overtime_hours: Decimal
    total_active_employees: int
