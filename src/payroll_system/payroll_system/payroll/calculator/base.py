from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal

from ...core.constants import IMPLIED_MONTHLY_HOURS, OVERTIME_PAY_MULTIPLIER
from ...employees.model import Employee


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for pay bases)."""

    @abstractmethod
    def basic_salary(self, employee: Employee, *, present_days: int, total_hours: Decimal, period_end: date) -> Decimal:
        raise NotImplementedError

    def hourly_rate(self, employee: Employee) -> Decimal:
        """Rate overtime is paid from; salaried staff get an implied rate."""
        if employee.hourly_rate:
            return employee.hourly_rate
        return employee.base_salary / IMPLIED_MONTHLY_HOURS

    def overtime_amount(self, employee: Employee, *, overtime_hours: Decimal) -> Decimal:
        return self.hourly_rate(employee) * OVERTIME_PAY_MULTIPLIER * overtime_hours
