from __future__ import annotations

import dataclasses
from datetime import date, time
from decimal import Decimal
from typing import Any, Mapping, Optional

import pytest

from src.payroll_system.payroll_system.attendance.policy import AttendancePolicyResolver
from src.payroll_system.payroll_system.common.auth import CallerContext
from src.payroll_system.payroll_system.core.enums import EmploymentType, Role, SalaryType
from src.payroll_system.payroll_system.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.payroll_system.payroll_system.employees.model import Employee
from src.payroll_system.payroll_system.schedules.model import DayHours, NewWorkSchedule, WorkSchedule
from src.payroll_system.payroll_system.schedules.service import WorkScheduleService


class InMemorySchedules:
    def __init__(self):
        self.rows: dict[int, WorkSchedule] = {}

    def get_by_id(self, business_id: int, schedule_id: int) -> Optional[WorkSchedule]:
        row = self.rows.get(schedule_id)
        return row if row and row.business_id == business_id else None

    def list_schedules(self, business_id: int, *, employee_id: Optional[int] = None, is_active: Optional[bool] = None):
        return [
            s
            for s in self.rows.values()
            if s.business_id == business_id
            and (employee_id is None or s.employee_id == employee_id)
            and (is_active is None or s.is_active == is_active)
        ]

    def find_effective(self, employee_id: int, work_date: date) -> Optional[WorkSchedule]:
        matches = [
            s
            for s in self.rows.values()
            if s.employee_id == employee_id
            and s.effective_from <= work_date
            and (s.effective_to is None or s.effective_to >= work_date)
        ]
        return max(matches, key=lambda s: (s.effective_from, s.schedule_id)) if matches else None

    def create(self, new: NewWorkSchedule) -> int:
        schedule_id = len(self.rows) + 1
        data = {f.name: getattr(new, f.name) for f in dataclasses.fields(new)}
        self.rows[schedule_id] = WorkSchedule(schedule_id=schedule_id, is_active=False, **data)
        return schedule_id

    def update(self, business_id: int, schedule_id: int, changes: Mapping[str, Any]) -> bool:
        self.rows[schedule_id] = dataclasses.replace(self.rows[schedule_id], **changes)
        return True

    def activate(self, business_id: int, employee_id: int, schedule_id: int) -> None:
        for s in self.list_schedules(business_id, employee_id=employee_id):
            self.rows[s.schedule_id] = dataclasses.replace(s, is_active=s.schedule_id == schedule_id)

    def deactivate(self, business_id: int, schedule_id: int) -> bool:
        self.rows[schedule_id] = dataclasses.replace(self.rows[schedule_id], is_active=False)
        return True

    def delete(self, business_id: int, schedule_id: int) -> bool:
        return self.rows.pop(schedule_id, None) is not None


class InMemoryEmployees:
    def __init__(self, *employees: Employee):
        self._by_id = {e.employee_id: e for e in employees}

    def get_by_id(self, business_id: int, employee_id: int) -> Optional[Employee]:
        e = self._by_id.get(employee_id)
        return e if e and e.business_id == business_id else None


class NoActiveRule:
    def get_active(self, business_id: int):
        return None


def _employee(employee_id: int) -> Employee:
    return Employee(
        employee_id=employee_id,
        business_id=1,
        employee_code=f"EMP26000{employee_id}",
        first_name="Minh",
        last_name="Pham",
        email=f"e{employee_id}@example.com",
        password_hash="x",
        hire_date=date(2025, 1, 6),
        employment_type=EmploymentType.FULL_TIME,
        salary_type=SalaryType.MONTHLY,
        base_salary=Decimal("3000"),
    )


OWNER = CallerContext(business_id=1, role=Role.BUSINESS_OWNER, user_id=1)
EMPLOYEE_CALLER = CallerContext(business_id=1, role=Role.EMPLOYEE, employee_id=7)

# 2026-10-19 is a Monday.
TODAY = date(2026, 10, 19)


def _service():
    repo = InMemorySchedules()
    return WorkScheduleService(repo, InMemoryEmployees(_employee(7), _employee(8))), repo


def _payload(**overrides) -> dict:
    payload = {
        "employee_id": 7,
        "schedule_name": "Office hours",
        "effective_from": "2026-01-01",
        "monday_start": "09:00",
        "monday_end": "17:00",
        "tuesday_start": "09:00",
        "tuesday_end": "17:00",
    }
    payload.update(overrides)
    return payload


def test_create_activates_and_leaves_one_active_schedule():
    service, repo = _service()
    first = service.create_schedule(caller=OWNER, payload=_payload())
    assert first.is_active is True
    assert first.break_duration == 60
    assert first.weekly_hours == Decimal("40")

    second = service.create_schedule(caller=OWNER, payload=_payload(schedule_name="Late shift"))

    assert [s.schedule_id for s in repo.rows.values() if s.is_active] == [second.schedule_id]


def test_create_inactive_keeps_existing_active_schedule():
    service, repo = _service()
    first = service.create_schedule(caller=OWNER, payload=_payload())
    draft = service.create_schedule(caller=OWNER, payload=_payload(schedule_name="Draft", is_active=False))

    assert draft.is_active is False
    assert repo.rows[first.schedule_id].is_active is True


def test_future_version_does_not_change_todays_schedule():
    service, repo = _service()
    current = service.create_schedule(caller=OWNER, payload=_payload())
    upcoming = service.create_schedule(
        caller=OWNER,
        payload=_payload(schedule_name="Winter", effective_from="2026-11-01", monday_start="08:00", monday_end="16:00"),
    )
    assert repo.rows[current.schedule_id].is_active is False

    today = service.current_schedule(caller=OWNER, employee_id=7, on_date=TODAY)
    assert today.schedule_id == current.schedule_id

    policy = AttendancePolicyResolver(repo, NoActiveRule()).resolve(1, 7, TODAY)
    assert policy.expected_start == today.hours_for(TODAY).start == time(9, 0)

    later = service.current_schedule(caller=OWNER, employee_id=7, on_date=date(2026, 11, 2))
    assert later.schedule_id == upcoming.schedule_id


def test_current_schedule_for_unknown_employee_is_not_found():
    service, _ = _service()
    with pytest.raises(NotFoundError):
        service.current_schedule(caller=OWNER, employee_id=99, on_date=TODAY)


def test_effective_to_before_effective_from_is_rejected():
    service, repo = _service()
    with pytest.raises(ValidationError) as exc:
        service.create_schedule(caller=OWNER, payload=_payload(effective_to="2025-12-31"))
    assert exc.value.field == "effective_to"
    assert repo.rows == {}

    schedule = service.create_schedule(caller=OWNER, payload=_payload(effective_to="2026-06-30"))
    with pytest.raises(ValidationError):
        service.update_schedule(caller=OWNER, schedule_id=schedule.schedule_id, payload={"effective_from": "2026-07-01"})


def test_day_end_must_follow_day_start():
    service, _ = _service()
    with pytest.raises(ValidationError) as exc:
        service.create_schedule(caller=OWNER, payload=_payload(monday_start="17:00", monday_end="09:00"))
    assert exc.value.field == "monday_end"


def test_partial_week_update_keeps_other_days():
    service, _ = _service()
    schedule = service.create_schedule(caller=OWNER, payload=_payload())

    updated = service.update_schedule(
        caller=OWNER,
        schedule_id=schedule.schedule_id,
        payload={"monday_start": "10:00", "wednesday_start": "08:00", "wednesday_end": "12:00"},
    )

    assert updated.days["monday"] == DayHours(time(10, 0), time(17, 0))
    assert updated.days["tuesday"] == DayHours(time(9, 0), time(17, 0))
    assert updated.days["wednesday"] == DayHours(time(8, 0), time(12, 0))
    assert updated.days["friday"] == DayHours()
    assert updated.schedule_name == "Office hours"


def test_employee_sees_only_own_schedules():
    service, _ = _service()
    own = service.create_schedule(caller=OWNER, payload=_payload())
    other = service.create_schedule(caller=OWNER, payload=_payload(employee_id=8))

    listed = service.list_schedules(caller=EMPLOYEE_CALLER)
    assert [s.schedule_id for s in listed] == [own.schedule_id]

    with pytest.raises(AuthorizationError):
        service.get_schedule(caller=EMPLOYEE_CALLER, schedule_id=other.schedule_id)
    with pytest.raises(AuthorizationError):
        service.current_schedule(caller=EMPLOYEE_CALLER, employee_id=8, on_date=TODAY)


def test_employee_cannot_create_schedules():
    service, _ = _service()
    with pytest.raises(AuthorizationError):
        service.create_schedule(caller=EMPLOYEE_CALLER, payload=_payload())
