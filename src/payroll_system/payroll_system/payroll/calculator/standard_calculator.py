from __future__ import annotations

from datetime import date
from decimal import Decimal

from ...common.datetime_utils import days_in_month
from ...core.enums import SalaryType
from ...employees.model import Employee
from .base import PayrollCalculator


class MonthlyPayrollCalculator(PayrollCalculator):
    """Base salary pro-rated by present days over the length of the closing month."""

    def basic_salary(self, employee: Employee, *, present_days: int, total_hours: Decimal, period_end: date) -> Decimal:
        return employee.base_salary / Decimal(days_in_month(period_end)) * present_days


class DailyPayrollCalculator(PayrollCalculator):
    def basic_salary(self, employee: Employee, *, present_days: int, total_hours: Decimal, period_end: date) -> Decimal:
        return (employee.daily_wage or employee.base_salary) * present_days


class HourlyPayrollCalculator(PayrollCalculator):
    def basic_salary(self, employee: Employee, *, present_days: int, total_hours: Decimal, period_end: date) -> Decimal:
        return self.hourly_rate(employee) * total_hours

    def hourly_rate(self, employee: Employee) -> Decimal:
        return employee.hourly_rate or employee.base_salary


_CALCULATORS = {
    SalaryType.MONTHLY: MonthlyPayrollCalculator,
    SalaryType.DAILY: DailyPayrollCalculator,
    SalaryType.HOURLY: HourlyPayrollCalculator,
}


def calculator_for(salary_type: SalaryType) -> PayrollCalculator:
    return _CALCULATORS[SalaryType(salary_type)]()
