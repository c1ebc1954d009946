from __future__ import annotations

import dataclasses
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

import pytest

from src.payroll_system.payroll_system.attendance.model import AttendanceRecord
from src.payroll_system.payroll_system.common.auth import CallerContext
from src.payroll_system.payroll_system.core.enums import (
    AttendanceStatus,
    EmploymentType,
    PayrollStatus,
    Role,
    SalaryType,
)
from src.payroll_system.payroll_system.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StateError,
    ValidationError,
)
from src.payroll_system.payroll_system.employees.model import Employee
from src.payroll_system.payroll_system.payroll.model import PayrollRecord, PayrollValues
from src.payroll_system.payroll_system.payroll.service import PayrollService


class InMemoryEmployees:
    def __init__(self, *employees: Employee):
        self._by_id = {e.employee_id: e for e in employees}

    def get_by_id(self, business_id: int, employee_id: int) -> Optional[Employee]:
        e = self._by_id.get(employee_id)
        return e if e and e.business_id == business_id else None


class InMemoryAttendance:
    def __init__(self, records: list[AttendanceRecord]):
        self._records = records

    def list_for_period(self, employee_id: int, start_date: date, end_date: date) -> list[AttendanceRecord]:
        return [r for r in self._records if r.employee_id == employee_id and start_date <= r.work_date <= end_date]


class InMemoryPayrolls:
    def __init__(self):
        self.rows: dict[int, PayrollRecord] = {}
        self._id = 0

    def get_by_id(self, business_id: int, payroll_id: int) -> Optional[PayrollRecord]:
        row = self.rows.get(payroll_id)
        return row if row and row.business_id == business_id else None

    def _record(self, payroll_id: int, v: PayrollValues, status: PayrollStatus) -> PayrollRecord:
        a = v.amounts
        return PayrollRecord(
            payroll_id=payroll_id,
            business_id=v.business_id,
            employee_id=v.employee_id,
            pay_period_start=v.pay_period_start,
            pay_period_end=v.pay_period_end,
            basic_salary=a.basic_salary,
            overtime_amount=a.overtime_amount,
            bonus=a.bonus,
            allowances=a.allowances,
            gross_salary=a.gross_salary,
            tax_deduction=a.tax_deduction,
            insurance_deduction=a.insurance_deduction,
            loan_deduction=a.loan_deduction,
            leave_deduction=a.leave_deduction,
            other_deductions=a.other_deductions,
            total_deductions=a.total_deductions,
            net_salary=a.net_salary,
            total_working_days=v.total_working_days,
            total_present_days=v.total_present_days,
            total_overtime_hours=v.total_overtime_hours,
            status=status,
            pay_method=v.pay_method,
            notes=v.notes,
        )

    def create(self, values: PayrollValues) -> int:
        for r in self.rows.values():
            if (r.employee_id, r.pay_period_start, r.pay_period_end) == (
                values.employee_id,
                values.pay_period_start,
                values.pay_period_end,
            ):
                raise ConflictError("Payroll already exists for this period")
        self._id += 1
        self.rows[self._id] = self._record(self._id, values, PayrollStatus.DRAFT)
        return self._id

    def update_unpaid(self, payroll_id: int, values: PayrollValues) -> bool:
        current = self.rows[payroll_id]
        if current.status == PayrollStatus.PAID:
            return False
        self.rows[payroll_id] = self._record(payroll_id, values, current.status)
        return True

    def set_status(self, payroll_id: int, *, from_status, to_status, payment_date=None, pay_method=None) -> bool:
        current = self.rows[payroll_id]
        if current.status != from_status:
            return False
        self.rows[payroll_id] = dataclasses.replace(
            current,
            status=to_status,
            payment_date=payment_date or current.payment_date,
            pay_method=pay_method or current.pay_method,
        )
        return True

    def delete_unpaid(self, payroll_id: int) -> bool:
        if self.rows[payroll_id].status == PayrollStatus.PAID:
            return False
        del self.rows[payroll_id]
        return True

    def list_payrolls(self, business_id: int, *, employee_id=None, **_filters) -> list[PayrollRecord]:
        return [
            r for r in self.rows.values() if r.business_id == business_id and employee_id in (None, r.employee_id)
        ]


EMPLOYEE = Employee(
    employee_id=1,
    business_id=1,
    employee_code="EMP260001",
    first_name="Minh",
    last_name="Ngo",
    email="minh@example.com",
    password_hash="x",
    hire_date=date(2025, 1, 1),
    employment_type=EmploymentType.FULL_TIME,
    salary_type=SalaryType.MONTHLY,
    base_salary=Decimal("3000"),
)

OTHER = dataclasses.replace(EMPLOYEE, employee_id=2, employee_code="EMP260002", email="other@example.com")

MANAGER = CallerContext(business_id=1, role=Role.BUSINESS_OWNER, user_id=1)
EMPLOYEE_CALLER = CallerContext(business_id=1, role=Role.EMPLOYEE, employee_id=1)

PERIOD = {"pay_period_start": "2026-04-01", "pay_period_end": "2026-04-30"}


def _attendance() -> list[AttendanceRecord]:
    start = date(2026, 4, 1)
    statuses = [AttendanceStatus.PRESENT] * 18 + [AttendanceStatus.LATE] * 2
    return [
        AttendanceRecord(
            attendance_id=i + 1,
            employee_id=1,
            work_date=start + timedelta(days=i),
            clock_in_time=None,
            clock_out_time=None,
            status=s,
            total_hours=Decimal("8.00"),
            overtime_hours=Decimal("0.50") if i < 4 else Decimal("0"),
        )
        for i, s in enumerate(statuses)
    ]


def _service():
    payrolls = InMemoryPayrolls()
    service = PayrollService(payrolls, InMemoryEmployees(EMPLOYEE, OTHER), InMemoryAttendance(_attendance()))
    return service, payrolls


def test_create_auto_calculates_from_attendance():
    service, _ = _service()
    record = service.create_payroll(
        caller=MANAGER,
        payload={
            "employee_id": 1,
            **PERIOD,
            "bonus": "100",
            "allowances": "50.50",
            "tax_deduction": "120.25",
            "insurance_deduction": "30",
        },
    )

    assert record.status == PayrollStatus.DRAFT
    assert record.basic_salary == Decimal("1800.00")
    assert record.total_working_days == 20
    assert record.total_present_days == 18
    assert record.total_overtime_hours == Decimal("2.00")
    assert record.overtime_amount == Decimal("56.25")
    assert record.gross_salary == record.basic_salary + record.overtime_amount + record.bonus + record.allowances
    assert record.net_salary == record.gross_salary - record.total_deductions
    assert record.gross_salary == Decimal("2006.75")
    assert record.net_salary == Decimal("1856.50")


def test_manual_amounts_when_auto_calculate_is_off():
    service, _ = _service()
    record = service.create_payroll(
        caller=MANAGER,
        payload={"employee_id": 1, **PERIOD, "auto_calculate": False, "basic_salary": "2500", "other_deductions": "10"},
    )

    assert record.basic_salary == Decimal("2500.00")
    assert record.overtime_amount == Decimal("0.00")
    assert record.net_salary == Decimal("2490.00")


def test_duplicate_period_conflicts():
    service, payrolls = _service()
    service.create_payroll(caller=MANAGER, payload={"employee_id": 1, **PERIOD})

    with pytest.raises(ConflictError):
        service.create_payroll(caller=MANAGER, payload={"employee_id": 1, **PERIOD})
    assert len(payrolls.rows) == 1


def test_negative_bonus_is_rejected():
    service, _ = _service()
    with pytest.raises(ValidationError):
        service.create_payroll(caller=MANAGER, payload={"employee_id": 1, **PERIOD, "bonus": "-5"})


def test_unknown_employee_is_not_found():
    service, _ = _service()
    with pytest.raises(NotFoundError):
        service.create_payroll(caller=MANAGER, payload={"employee_id": 99, **PERIOD})


def test_lifecycle_draft_approved_paid():
    service, _ = _service()
    record = service.create_payroll(caller=MANAGER, payload={"employee_id": 1, **PERIOD})

    approved = service.transition(caller=MANAGER, payroll_id=record.payroll_id, payload={"status": "approved"})
    assert approved.status == PayrollStatus.APPROVED

    with pytest.raises(ValidationError):
        service.transition(caller=MANAGER, payroll_id=record.payroll_id, payload={"status": "paid"})

    paid = service.transition(
        caller=MANAGER,
        payroll_id=record.payroll_id,
        payload={"status": "paid", "payment_date": "2026-05-05", "pay_method": "bank_transfer"},
    )
    assert paid.status == PayrollStatus.PAID
    assert paid.payment_date == date(2026, 5, 5)


def test_skipping_approval_is_state_error():
    service, _ = _service()
    record = service.create_payroll(caller=MANAGER, payload={"employee_id": 1, **PERIOD})
    with pytest.raises(StateError):
        service.transition(
            caller=MANAGER, payroll_id=record.payroll_id, payload={"status": "paid", "payment_date": "2026-05-05"}
        )


def test_paid_payroll_is_immutable():
    service, payrolls = _service()
    record = service.create_payroll(caller=MANAGER, payload={"employee_id": 1, **PERIOD})
    service.transition(caller=MANAGER, payroll_id=record.payroll_id, payload={"status": "approved"})
    service.transition(
        caller=MANAGER, payroll_id=record.payroll_id, payload={"status": "paid", "payment_date": "2026-05-05"}
    )

    with pytest.raises(StateError):
        service.transition(caller=MANAGER, payroll_id=record.payroll_id, payload={"status": "draft"})
    with pytest.raises(StateError):
        service.update_payroll(caller=MANAGER, payroll_id=record.payroll_id, payload={"bonus": "500"})
    with pytest.raises(StateError):
        service.delete_payroll(caller=MANAGER, payroll_id=record.payroll_id)
    assert payrolls.rows[record.payroll_id].bonus == Decimal("0.00")


def test_update_recomputes_totals():
    service, _ = _service()
    record = service.create_payroll(caller=MANAGER, payload={"employee_id": 1, **PERIOD})

    updated = service.update_payroll(
        caller=MANAGER,
        payroll_id=record.payroll_id,
        payload={"bonus": "200", "loan_deduction": "75.5", "notes": "April"},
    )

    assert updated.gross_salary == record.gross_salary + Decimal("200.00")
    assert updated.total_deductions == Decimal("75.50")
    assert updated.net_salary == updated.gross_salary - updated.total_deductions
    assert updated.notes == "April"


def test_bulk_create_collects_per_employee_errors():
    service, _ = _service()
    service.create_payroll(caller=MANAGER, payload={"employee_id": 2, **PERIOD})

    outcome = service.bulk_create(caller=MANAGER, payload={**PERIOD, "employee_ids": [1, 2, 99]})

    assert [r.employee_id for r in outcome["results"]] == [1]
    assert {e["employee_id"] for e in outcome["errors"]} == {2, 99}
    assert {e["type"] for e in outcome["errors"]} == {"conflict", "not_found"}


def test_calculate_preview_does_not_persist():
    service, payrolls = _service()
    calc = service.calculate(caller=MANAGER, payload={"employee_id": 1, **PERIOD})

    assert calc.basic_salary == Decimal("1800.00")
    assert payrolls.rows == {}


def test_employee_sees_only_own_payroll():
    service, _ = _service()
    own = service.create_payroll(caller=MANAGER, payload={"employee_id": 1, **PERIOD})
    other = service.create_payroll(caller=MANAGER, payload={"employee_id": 2, **PERIOD})

    assert [r.payroll_id for r in service.list_payrolls(caller=EMPLOYEE_CALLER)] == [own.payroll_id]
    with pytest.raises(AuthorizationError):
        service.get_payroll(caller=EMPLOYEE_CALLER, payroll_id=other.payroll_id)
    with pytest.raises(AuthorizationError):
        service.create_payroll(caller=EMPLOYEE_CALLER, payload={"employee_id": 1, **PERIOD})
