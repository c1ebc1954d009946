from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..core.enums import PayrollStatus

CENTS = Decimal("0.01")


def money(value: Decimal) -> Decimal:
    """Round half-up to 2 decimal places."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PayrollCalculation:
    """Attendance-derived part of a payroll."""

    basic_salary: Decimal
    overtime_amount: Decimal
    total_working_days: int
    total_present_days: int
    total_overtime_hours: Decimal
    total_hours: Decimal = Decimal("0")


@dataclass(frozen=True)
class PayrollAmounts:
    basic_salary: Decimal = Decimal("0")
    overtime_amount: Decimal = Decimal("0")
    bonus: Decimal = Decimal("0")
    allowances: Decimal = Decimal("0")
    tax_deduction: Decimal = Decimal("0")
    insurance_deduction: Decimal = Decimal("0")
    loan_deduction: Decimal = Decimal("0")
    leave_deduction: Decimal = Decimal("0")
    other_deductions: Decimal = Decimal("0")

    @property
    def gross_salary(self) -> Decimal:
        return money(self.basic_salary + self.overtime_amount + self.bonus + self.allowances)

    @property
    def total_deductions(self) -> Decimal:
        return money(
            self.tax_deduction
            + self.insurance_deduction
            + self.loan_deduction
            + self.leave_deduction
            + self.other_deductions
        )

    @property
    def net_salary(self) -> Decimal:
        return self.gross_salary - self.total_deductions


@dataclass(frozen=True)
class PayrollValues:
    """Column values written on insert or update."""

    business_id: int
    employee_id: int
    pay_period_start: date
    pay_period_end: date
    amounts: PayrollAmounts
    total_working_days: int = 0
    total_present_days: int = 0
    total_overtime_hours: Decimal = Decimal("0")
    pay_method: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class PayrollRecord:
    payroll_id: int
    business_id: int
    employee_id: int
    pay_period_start: date
    pay_period_end: date
    basic_salary: Decimal
    overtime_amount: Decimal
    bonus: Decimal
    allowances: Decimal
    gross_salary: Decimal
    tax_deduction: Decimal
    insurance_deduction: Decimal
    loan_deduction: Decimal
    leave_deduction: Decimal
    other_deductions: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    total_working_days: int
    total_present_days: int
    total_overtime_hours: Decimal
    status: PayrollStatus
    payment_date: Optional[date] = None
    pay_method: Optional[str] = None
    notes: Optional[str] = None
    employee_code: Optional[str] = None
    employee_name: Optional[str] = None

    @property
    def amounts(self) -> PayrollAmounts:
        return PayrollAmounts(
            basic_salary=self.basic_salary,
            overtime_amount=self.overtime_amount,
            bonus=self.bonus,
            allowances=self.allowances,
            tax_deduction=self.tax_deduction,
            insurance_deduction=self.insurance_deduction,
            loan_deduction=self.loan_deduction,
            leave_deduction=self.leave_deduction,
            other_deductions=self.other_deductions,
        )


@dataclass(frozen=True)
class PayrollSummary:
    total_payrolls: int
    draft_payrolls: int
    approved_payrolls: int
    paid_payrolls: int
    total_gross_salary: Decimal
    total_net_salary: Decimal
    total_deductions: Decimal
    avg_net_salary: Decimal
