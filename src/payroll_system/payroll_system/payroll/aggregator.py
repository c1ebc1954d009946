from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ..attendance.model import AttendanceRecord
from ..core.enums import AttendanceStatus
from ..employees.model import Employee
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import calculator_for
from .model import PayrollCalculation, money


def calculate_payroll(
    employee: Employee,
    records: Iterable[AttendanceRecord],
    period_start: date,
    period_end: date,
    *,
    calculator: Optional[PayrollCalculator] = None,
) -> PayrollCalculation:
    """Fold an employee's attendance in [period_start, period_end] into pay.

    Only `present` days count toward day-based pay; hourly pay uses total hours.
    """
    calculator = calculator or calculator_for(employee.salary_type)

    working_days = 0
    present_days = 0
    total_hours = Decimal("0")
    overtime_hours = Decimal("0")
    for r in records:
        if not (period_start <= r.work_date <= period_end):
            continue
        working_days += 1
        if r.status == AttendanceStatus.PRESENT:
            present_days += 1
        total_hours += r.total_hours
        overtime_hours += r.overtime_hours

    basic = calculator.basic_salary(
        employee,
        present_days=present_days,
        total_hours=total_hours,
        period_end=period_end,
    )
    overtime = calculator.overtime_amount(employee, overtime_hours=overtime_hours)

    return PayrollCalculation(
        basic_salary=money(basic),
        overtime_amount=money(overtime),
        total_working_days=working_days,
        total_present_days=present_days,
        total_overtime_hours=money(overtime_hours),
        total_hours=money(total_hours),
    )
