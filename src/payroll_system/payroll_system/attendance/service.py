from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable, ContextManager, Optional

from ..common.auth import CallerContext
from ..common.datetime_utils import days_in_month
from ..common.validators import (
    optional_choice,
    optional_date,
    optional_decimal,
    optional_int,
    optional_str,
    optional_time,
    require_choice,
    require_date,
)
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_REPORT_ROWS
from ..core.enums import AttendanceStatus, AttendanceType, EmployeeStatus, EntryMethod
from ..core.exceptions import ConflictError, NotFoundError, StateError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, AttendanceSummary, AttendanceValues, MonthlyAttendanceStats
from .policy import AttendancePolicyResolver, ShiftPolicy
from .repository import AttendanceRepository
from .time_calc import as_hours, early_departure_minutes, late_minutes, working_hours

logger = logging.getLogger(__name__)

# Statuses a manager sets directly; never derived from clock times.
CALLER_ASSIGNED_STATUSES = frozenset({AttendanceStatus.ABSENT, AttendanceStatus.ON_LEAVE, AttendanceStatus.HOLIDAY})


@dataclass(frozen=True)
class DerivedAttendance:
    total_hours: Decimal
    overtime_hours: Decimal
    late_minutes: int
    early_departure_minutes: int
    status: AttendanceStatus


def _coordinate(value: Any, field_name: str, limit: int) -> Optional[Decimal]:
    out = optional_decimal(value, field_name)
    if out is not None and not (-limit <= out <= limit):
        raise ValidationError(f"{field_name} must be between -{limit} and {limit}", field=field_name)
    return out


def _break_window(
    payload: dict,
    *,
    current_start: Optional[time] = None,
    current_end: Optional[time] = None,
) -> tuple[Optional[time], Optional[time]]:
    start = optional_time(payload["break_start_time"], "break_start_time") if "break_start_time" in payload else current_start
    end = optional_time(payload["break_end_time"], "break_end_time") if "break_end_time" in payload else current_end
    if (start is None) != (end is None):
        raise ValidationError("break_start_time and break_end_time must be given together", field="break_end_time")
    if start is not None and end is not None and end < start:
        raise ValidationError("break_end_time cannot be before break_start_time", field="break_end_time")
    return start, end


class AttendanceService:
    """Use case: clock events and attendance bookkeeping."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        resolver: AttendancePolicyResolver,
        *,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
        tx: Optional[Callable[[], ContextManager]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._resolver = resolver
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._tx = tx or nullcontext
        self._clock = clock or datetime.now

    def _now(self) -> datetime:
        return self._clock().replace(microsecond=0)

    def _target_employee_id(self, caller: CallerContext, requested: Any) -> int:
        employee_id = caller.scope_employee_id(optional_int(requested, "employee_id"))
        if employee_id is None:
            raise ValidationError("employee_id is required", field="employee_id")
        return int(employee_id)

    def _require_employee(self, business_id: int, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(business_id, employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def _get(self, business_id: int, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(business_id, attendance_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def _derive(
        self,
        policy: ShiftPolicy,
        *,
        clock_in: Optional[time],
        clock_out: Optional[time],
        break_start: Optional[time],
        break_end: Optional[time],
        attendance_type: AttendanceType,
        requested_status: Optional[AttendanceStatus],
    ) -> DerivedAttendance:
        strategy = self._factory.for_rule(policy.rule)
        late = late_minutes(clock_in, policy.expected_start)
        hours = 0.0
        overtime = 0.0
        early = 0

        if clock_in is not None and clock_out is not None:
            hours = working_hours(clock_in, clock_out, break_start, break_end)
            early = early_departure_minutes(clock_out, policy.expected_end)
            decision = strategy.decide_clock_out(
                late_minutes=late,
                total_hours=hours,
                is_weekend=policy.is_weekend,
                is_holiday=attendance_type == AttendanceType.HOLIDAY,
            )
            status = decision.status
            overtime = decision.overtime_hours
        elif clock_in is not None:
            status = strategy.decide_clock_in(late_minutes=late).status
        elif requested_status is not None:
            status = requested_status
        else:
            raise ValidationError("status is required when no clock times are given", field="status")

        if requested_status in CALLER_ASSIGNED_STATUSES:
            status = requested_status
        elif requested_status is not None and requested_status != status:
            raise ValidationError(
                f"status '{requested_status.value}' contradicts the clock times (computed '{status.value}')",
                field="status",
            )

        return DerivedAttendance(
            total_hours=as_hours(hours),
            overtime_hours=as_hours(overtime),
            late_minutes=late,
            early_departure_minutes=early,
            status=status,
        )

    def clock_in(self, *, caller: CallerContext, payload: dict) -> AttendanceRecord:
        employee_id = self._target_employee_id(caller, payload.get("employee_id"))
        employee = self._require_employee(caller.business_id, employee_id)
        if employee.status != EmployeeStatus.ACTIVE:
            raise ValidationError("Only active employees can clock in", field="employee_id")

        entry_method = optional_choice(payload.get("entry_method"), EntryMethod, "entry_method", default=EntryMethod.WEB)
        latitude = _coordinate(payload.get("location_latitude"), "location_latitude", 90)
        longitude = _coordinate(payload.get("location_longitude"), "location_longitude", 180)

        now = self._now()
        work_date, at = now.date(), now.time()

        with self._tx():
            if self._attendance.get_for_employee_and_date(employee_id, work_date):
                raise ConflictError("Already clocked in today")

            policy = self._resolver.resolve(caller.business_id, employee_id, work_date)
            late = late_minutes(at, policy.expected_start)
            decision = self._factory.for_rule(policy.rule).decide_clock_in(late_minutes=late)

            attendance_id = self._attendance.create(
                AttendanceValues(
                    employee_id=employee_id,
                    work_date=work_date,
                    clock_in_time=at,
                    clock_out_time=None,
                    break_start_time=None,
                    break_end_time=None,
                    total_hours=Decimal("0"),
                    overtime_hours=Decimal("0"),
                    late_minutes=late,
                    early_departure_minutes=0,
                    status=decision.status,
                    attendance_type=AttendanceType.WEEKEND if policy.is_weekend else AttendanceType.REGULAR,
                    entry_method=entry_method,
                    notes=optional_str(payload.get("notes")),
                    location_latitude=latitude,
                    location_longitude=longitude,
                )
            )

        logger.info("employee %s clocked in at %s (late %s min)", employee_id, at, late)
        return self._get(caller.business_id, attendance_id)

    def clock_out(self, *, caller: CallerContext, payload: dict) -> AttendanceRecord:
        employee_id = self._target_employee_id(caller, payload.get("employee_id"))
        self._require_employee(caller.business_id, employee_id)
        break_start, break_end = _break_window(payload)

        now = self._now()
        work_date, at = now.date(), now.time()

        with self._tx():
            record = self._attendance.get_for_employee_and_date(employee_id, work_date)
            if not record:
                raise NotFoundError("No clock-in found for today")
            if record.clock_out_time is not None:
                raise StateError("Already clocked out today")
            if record.clock_in_time is None:
                raise StateError("Today's record has no clock-in time")

            policy = self._resolver.resolve(caller.business_id, employee_id, work_date)
            hours = working_hours(record.clock_in_time, at, break_start, break_end)
            decision = self._factory.for_rule(policy.rule).decide_clock_out(
                late_minutes=record.late_minutes,
                total_hours=hours,
                is_weekend=policy.is_weekend,
                is_holiday=record.attendance_type == AttendanceType.HOLIDAY,
            )

            updated = self._attendance.complete_clock_out(
                attendance_id=record.attendance_id,
                clock_out_time=at,
                break_start_time=break_start,
                break_end_time=break_end,
                total_hours=as_hours(hours),
                overtime_hours=as_hours(decision.overtime_hours),
                early_departure_minutes=early_departure_minutes(at, policy.expected_end),
                status=decision.status,
                notes=optional_str(payload.get("notes")) or record.notes,
            )
            if not updated:
                raise StateError("Already clocked out today")

        logger.info("employee %s clocked out at %s (%.2f h, %s)", employee_id, at, hours, decision.status.value)
        return self._get(caller.business_id, record.attendance_id)

    def record_manual(self, *, caller: CallerContext, payload: dict) -> AttendanceRecord:
        """Administrator entry for any date, e.g. absences or forgotten clock events."""
        caller.require_manager()
        employee_id = self._target_employee_id(caller, payload.get("employee_id"))
        self._require_employee(caller.business_id, employee_id)

        work_date = require_date(payload.get("date") or payload.get("work_date"), "date")
        clock_in = optional_time(payload.get("clock_in_time"), "clock_in_time")
        clock_out = optional_time(payload.get("clock_out_time"), "clock_out_time")
        if clock_out is not None and clock_in is None:
            raise ValidationError("clock_out_time requires clock_in_time", field="clock_in_time")
        break_start, break_end = _break_window(payload)
        requested_status = optional_choice(payload.get("status"), AttendanceStatus, "status")

        with self._tx():
            policy = self._resolver.resolve(caller.business_id, employee_id, work_date)
            attendance_type = optional_choice(
                payload.get("attendance_type"),
                AttendanceType,
                "attendance_type",
                default=AttendanceType.WEEKEND if policy.is_weekend else AttendanceType.REGULAR,
            )
            derived = self._derive(
                policy,
                clock_in=clock_in,
                clock_out=clock_out,
                break_start=break_start,
                break_end=break_end,
                attendance_type=attendance_type,
                requested_status=requested_status,
            )
            attendance_id = self._attendance.create(
                AttendanceValues(
                    employee_id=employee_id,
                    work_date=work_date,
                    clock_in_time=clock_in,
                    clock_out_time=clock_out,
                    break_start_time=break_start,
                    break_end_time=break_end,
                    total_hours=derived.total_hours,
                    overtime_hours=derived.overtime_hours,
                    late_minutes=derived.late_minutes,
                    early_departure_minutes=derived.early_departure_minutes,
                    status=derived.status,
                    attendance_type=attendance_type,
                    entry_method=optional_choice(
                        payload.get("entry_method"), EntryMethod, "entry_method", default=EntryMethod.MANUAL
                    ),
                    notes=optional_str(payload.get("notes")),
                )
            )

        logger.info("manual attendance %s recorded for employee %s on %s", attendance_id, employee_id, work_date)
        return self._get(caller.business_id, attendance_id)

    def update_record(self, *, caller: CallerContext, attendance_id: int, payload: dict) -> AttendanceRecord:
        caller.require_manager()
        current = self._get(caller.business_id, int(attendance_id))

        work_date = require_date(payload["date"], "date") if payload.get("date") else current.work_date
        clock_in = optional_time(payload["clock_in_time"], "clock_in_time") if "clock_in_time" in payload else current.clock_in_time
        clock_out = (
            optional_time(payload["clock_out_time"], "clock_out_time") if "clock_out_time" in payload else current.clock_out_time
        )
        if clock_out is not None and clock_in is None:
            raise ValidationError("clock_out_time requires clock_in_time", field="clock_in_time")
        break_start, break_end = _break_window(
            payload, current_start=current.break_start_time, current_end=current.break_end_time
        )
        attendance_type = (
            require_choice(payload["attendance_type"], AttendanceType, "attendance_type")
            if payload.get("attendance_type")
            else current.attendance_type
        )
        if payload.get("status"):
            requested_status: Optional[AttendanceStatus] = require_choice(payload["status"], AttendanceStatus, "status")
        elif current.status in CALLER_ASSIGNED_STATUSES or clock_in is None:
            requested_status = current.status
        else:
            requested_status = None

        with self._tx():
            policy = self._resolver.resolve(caller.business_id, current.employee_id, work_date)
            derived = self._derive(
                policy,
                clock_in=clock_in,
                clock_out=clock_out,
                break_start=break_start,
                break_end=break_end,
                attendance_type=attendance_type,
                requested_status=requested_status,
            )
            self._attendance.replace(
                current.attendance_id,
                AttendanceValues(
                    employee_id=current.employee_id,
                    work_date=work_date,
                    clock_in_time=clock_in,
                    clock_out_time=clock_out,
                    break_start_time=break_start,
                    break_end_time=break_end,
                    total_hours=derived.total_hours,
                    overtime_hours=derived.overtime_hours,
                    late_minutes=derived.late_minutes,
                    early_departure_minutes=derived.early_departure_minutes,
                    status=derived.status,
                    attendance_type=attendance_type,
                    entry_method=current.entry_method,
                    notes=optional_str(payload["notes"]) if "notes" in payload else current.notes,
                    location_latitude=current.location_latitude,
                    location_longitude=current.location_longitude,
                ),
            )

        return self._get(caller.business_id, current.attendance_id)

    def delete_record(self, *, caller: CallerContext, attendance_id: int) -> None:
        caller.require_manager()
        record = self._get(caller.business_id, int(attendance_id))
        self._attendance.delete(record.attendance_id)
        logger.info("attendance %s deleted", record.attendance_id)

    def get_record(self, *, caller: CallerContext, attendance_id: int) -> AttendanceRecord:
        record = self._get(caller.business_id, int(attendance_id))
        caller.scope_employee_id(record.employee_id)
        return record

    def today(self, *, caller: CallerContext, employee_id: Any = None) -> Optional[AttendanceRecord]:
        target = self._target_employee_id(caller, employee_id)
        return self._attendance.get_for_employee_and_date(target, self._now().date())

    def list_records(
        self,
        *,
        caller: CallerContext,
        employee_id: Any = None,
        start_date: Any = None,
        end_date: Any = None,
        month: Any = None,
        year: Any = None,
        status: Any = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[AttendanceRecord]:
        scoped = caller.scope_employee_id(optional_int(employee_id, "employee_id"))
        start = optional_date(start_date, "start_date")
        end = optional_date(end_date, "end_date")
        if month or year:
            start, end = self._month_range(month, year)
        if start and end and end < start:
            raise ValidationError("end_date cannot be before start_date", field="end_date")

        return list(
            self._attendance.list_records(
                caller.business_id,
                employee_id=scoped,
                start_date=start,
                end_date=end,
                status=optional_choice(status, AttendanceStatus, "status"),
                limit=limit,
                offset=offset,
            )
        )

    def _month_range(self, month: Any, year: Any) -> tuple[date, date]:
        today = self._now().date()
        m = optional_int(month, "month") or today.month
        y = optional_int(year, "year") or today.year
        if not 1 <= m <= 12:
            raise ValidationError("month must be between 1 and 12", field="month")
        first = date(y, m, 1)
        return first, date(y, m, days_in_month(first))

    def monthly_stats(
        self,
        *,
        caller: CallerContext,
        month: Any = None,
        year: Any = None,
        employee_id: Any = None,
    ) -> dict:
        scoped = caller.scope_employee_id(optional_int(employee_id, "employee_id"))
        start, end = self._month_range(month, year)
        rows: list[MonthlyAttendanceStats] = list(
            self._attendance.monthly_stats(caller.business_id, start_date=start, end_date=end, employee_id=scoped)
        )
        return {"month": start.month, "year": start.year, "employees": rows}

    def summary(self, *, caller: CallerContext, start_date: Any = None, end_date: Any = None) -> AttendanceSummary:
        today = self._now().date()
        start = optional_date(start_date, "date_from") or today
        end = optional_date(end_date, "date_to") or today
        if end < start:
            raise ValidationError("date_to cannot be before date_from", field="date_to")
        scoped = caller.scope_employee_id(None)
        return self._attendance.summary(caller.business_id, start_date=start, end_date=end, employee_id=scoped)

    def report_rows(
        self,
        *,
        caller: CallerContext,
        start_date: Any,
        end_date: Any,
        employee_id: Any = None,
    ) -> list[AttendanceRecord]:
        start = require_date(start_date, "start_date")
        end = require_date(end_date, "end_date")
        if end < start:
            raise ValidationError("end_date cannot be before start_date", field="end_date")
        rows = self.list_records(
            caller=caller,
            employee_id=employee_id,
            start_date=start,
            end_date=end,
            limit=MAX_REPORT_ROWS + 1,
        )
        if len(rows) > MAX_REPORT_ROWS:
            raise ValidationError(
                f"Report is limited to {MAX_REPORT_ROWS} rows; narrow the date range", field="end_date"
            )
        return rows
