from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import date
from decimal import Decimal
from typing import Any, Callable, ContextManager, Optional

from ..common.auth import CallerContext
from ..common.validators import (
    optional_bool,
    optional_date,
    optional_decimal,
    optional_non_negative_int,
    optional_time,
    require_date,
    require_int,
    require_non_empty,
)
from ..core.constants import DEFAULT_BREAK_MINUTES, DEFAULT_WEEKLY_HOURS, WEEKDAYS
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from .model import DayHours, NewWorkSchedule, WorkSchedule
from .repository import WorkScheduleRepository

logger = logging.getLogger(__name__)


def parse_week(payload: dict, current: Optional[dict[str, DayHours]] = None) -> dict[str, DayHours]:
    """Read `<weekday>_start` / `<weekday>_end` keys; absent keys keep `current`."""
    week: dict[str, DayHours] = {}
    for day in WEEKDAYS:
        base = (current or {}).get(day) or DayHours()
        start = optional_time(payload[f"{day}_start"], f"{day}_start") if f"{day}_start" in payload else base.start
        end = optional_time(payload[f"{day}_end"], f"{day}_end") if f"{day}_end" in payload else base.end
        if start and end and end <= start:
            raise ValidationError(f"{day}_end must be after {day}_start", field=f"{day}_end")
        week[day] = DayHours(start=start, end=end)
    return week


def _check_range(effective_from: date, effective_to: Optional[date]) -> None:
    if effective_to is not None and effective_to < effective_from:
        raise ValidationError("effective_to cannot be before effective_from", field="effective_to")


def _weekly_hours(value, *, default: Optional[Decimal] = None) -> Decimal:
    hours = optional_decimal(value, "weekly_hours", default=default)
    if hours is None:
        raise ValidationError("weekly_hours cannot be empty", field="weekly_hours")
    if hours <= 0 or hours > 168:
        raise ValidationError("weekly_hours must be between 0 and 168", field="weekly_hours")
    return hours


class WorkScheduleService:
    """Use case: maintain versioned work schedules per employee."""

    def __init__(
        self,
        schedules: WorkScheduleRepository,
        employees: EmployeeRepository,
        *,
        tx: Optional[Callable[[], ContextManager]] = None,
    ):
        self._schedules = schedules
        self._employees = employees
        self._tx = tx or nullcontext

    def create_schedule(self, *, caller: CallerContext, payload: dict) -> WorkSchedule:
        caller.require_manager()

        employee_id = require_int(payload.get("employee_id"), "employee_id")
        if not self._employees.get_by_id(caller.business_id, employee_id):
            raise NotFoundError("Employee not found")

        effective_from = require_date(payload.get("effective_from"), "effective_from")
        effective_to = optional_date(payload.get("effective_to"), "effective_to")
        _check_range(effective_from, effective_to)

        new = NewWorkSchedule(
            business_id=caller.business_id,
            employee_id=employee_id,
            schedule_name=require_non_empty(payload.get("schedule_name"), "schedule_name"),
            effective_from=effective_from,
            effective_to=effective_to,
            days=parse_week(payload),
            break_duration=optional_non_negative_int(payload.get("break_duration"), "break_duration", default=DEFAULT_BREAK_MINUTES),
            weekly_hours=_weekly_hours(payload.get("weekly_hours"), default=Decimal(DEFAULT_WEEKLY_HOURS)),
        )
        is_active = optional_bool(payload.get("is_active"), default=True)

        with self._tx():
            schedule_id = self._schedules.create(new)
            if is_active:
                self._schedules.activate(caller.business_id, employee_id, schedule_id)

        logger.info("work schedule %s created for employee %s", schedule_id, employee_id)
        return self.get_schedule(caller=caller, schedule_id=schedule_id)

    def list_schedules(
        self,
        *,
        caller: CallerContext,
        employee_id: Optional[int] = None,
        is_active: Optional[bool] = None,
    ) -> list[WorkSchedule]:
        scoped = caller.scope_employee_id(employee_id)
        return list(self._schedules.list_schedules(caller.business_id, employee_id=scoped, is_active=is_active))

    def get_schedule(self, *, caller: CallerContext, schedule_id: int) -> WorkSchedule:
        schedule = self._schedules.get_by_id(caller.business_id, int(schedule_id))
        if not schedule:
            raise NotFoundError("Work schedule not found")
        caller.scope_employee_id(schedule.employee_id)
        return schedule

    def update_schedule(self, *, caller: CallerContext, schedule_id: int, payload: dict) -> WorkSchedule:
        caller.require_manager()
        current = self.get_schedule(caller=caller, schedule_id=schedule_id)

        changes: dict[str, Any] = {}
        if "schedule_name" in payload:
            changes["schedule_name"] = require_non_empty(payload.get("schedule_name"), "schedule_name")
        effective_from = current.effective_from
        effective_to = current.effective_to
        if "effective_from" in payload:
            effective_from = changes["effective_from"] = require_date(payload.get("effective_from"), "effective_from")
        if "effective_to" in payload:
            effective_to = changes["effective_to"] = optional_date(payload.get("effective_to"), "effective_to")
        _check_range(effective_from, effective_to)
        if "break_duration" in payload:
            changes["break_duration"] = optional_non_negative_int(
                payload.get("break_duration"), "break_duration", default=DEFAULT_BREAK_MINUTES
            )
        if "weekly_hours" in payload:
            changes["weekly_hours"] = _weekly_hours(payload.get("weekly_hours"))
        if any(f"{day}_{edge}" in payload for day in WEEKDAYS for edge in ("start", "end")):
            changes["days"] = parse_week(payload, current.days)

        with self._tx():
            self._schedules.update(caller.business_id, current.schedule_id, changes)
            if "is_active" in payload:
                if optional_bool(payload.get("is_active")):
                    self._schedules.activate(caller.business_id, current.employee_id, current.schedule_id)
                else:
                    self._schedules.deactivate(caller.business_id, current.schedule_id)

        return self.get_schedule(caller=caller, schedule_id=current.schedule_id)

    def delete_schedule(self, *, caller: CallerContext, schedule_id: int) -> None:
        caller.require_manager()
        current = self.get_schedule(caller=caller, schedule_id=schedule_id)
        self._schedules.delete(caller.business_id, current.schedule_id)

    def current_schedule(self, *, caller: CallerContext, employee_id: int, on_date: date) -> Optional[WorkSchedule]:
        """Schedule in force on `on_date`, picked the same way attendance is classified."""
        scoped = caller.scope_employee_id(int(employee_id))
        if not self._employees.get_by_id(caller.business_id, scoped):
            raise NotFoundError("Employee not found")
        return self._schedules.find_effective(scoped, on_date)
