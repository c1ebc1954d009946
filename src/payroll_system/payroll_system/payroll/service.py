from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any, Callable, ContextManager, Optional

from ..attendance.repository import AttendanceRepository
from ..common.auth import CallerContext
from ..common.validators import (
    optional_bool,
    optional_choice,
    optional_date,
    optional_decimal,
    optional_int,
    optional_non_negative_int,
    optional_str,
    require_choice,
    require_date,
    require_int,
    require_non_negative,
)
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import PayrollStatus
from ..core.exceptions import DomainError, NotFoundError, StateError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .aggregator import calculate_payroll
from .model import PayrollAmounts, PayrollCalculation, PayrollRecord, PayrollSummary, PayrollValues, money
from .repository import PayrollRepository

logger = logging.getLogger(__name__)

# Caller-supplied amounts; basic/overtime only when not auto-calculated.
ADJUSTMENT_FIELDS = (
    "bonus",
    "allowances",
    "tax_deduction",
    "insurance_deduction",
    "loan_deduction",
    "leave_deduction",
    "other_deductions",
)
DERIVED_FIELDS = ("basic_salary", "overtime_amount")

ALLOWED_TRANSITIONS = {
    PayrollStatus.DRAFT: PayrollStatus.APPROVED,
    PayrollStatus.APPROVED: PayrollStatus.PAID,
}


def _amount(payload: dict, name: str, current: Decimal = Decimal("0")) -> Decimal:
    value = optional_decimal(payload.get(name), name, default=current)
    require_non_negative(value, name)
    return money(value)


def _parse_period(payload: dict) -> tuple[date, date]:
    start = require_date(payload.get("pay_period_start"), "pay_period_start")
    end = require_date(payload.get("pay_period_end"), "pay_period_end")
    if end < start:
        raise ValidationError("pay_period_end cannot be before pay_period_start", field="pay_period_end")
    return start, end


class PayrollService:
    """Use case: compute payroll from attendance and move it through draft -> approved -> paid."""

    def __init__(
        self,
        payrolls: PayrollRepository,
        employees: EmployeeRepository,
        attendance: AttendanceRepository,
        *,
        tx: Optional[Callable[[], ContextManager]] = None,
    ):
        self._payrolls = payrolls
        self._employees = employees
        self._attendance = attendance
        self._tx = tx or nullcontext

    def _require_employee(self, business_id: int, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(business_id, employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def _get(self, business_id: int, payroll_id: int) -> PayrollRecord:
        record = self._payrolls.get_by_id(business_id, int(payroll_id))
        if not record:
            raise NotFoundError("Payroll record not found")
        return record

    def _calculate(self, employee: Employee, start: date, end: date) -> PayrollCalculation:
        records = self._attendance.list_for_period(employee.employee_id, start, end)
        return calculate_payroll(employee, records, start, end)

    def calculate(self, *, caller: CallerContext, payload: dict) -> PayrollCalculation:
        """Preview the attendance-derived figures without persisting anything."""
        caller.require_manager()
        employee_id = require_int(payload.get("employee_id"), "employee_id")
        start, end = _parse_period(payload)
        employee = self._require_employee(caller.business_id, employee_id)
        return self._calculate(employee, start, end)

    def _create_one(
        self,
        caller: CallerContext,
        employee_id: int,
        start: date,
        end: date,
        *,
        auto_calculate: bool,
        payload: dict,
    ) -> PayrollRecord:
        with self._tx():
            employee = self._require_employee(caller.business_id, employee_id)
            if auto_calculate:
                calc = self._calculate(employee, start, end)
            else:
                calc = PayrollCalculation(
                    basic_salary=_amount(payload, "basic_salary"),
                    overtime_amount=_amount(payload, "overtime_amount"),
                    total_working_days=optional_non_negative_int(
                        payload.get("total_working_days"), "total_working_days", default=0
                    ),
                    total_present_days=optional_non_negative_int(
                        payload.get("total_present_days"), "total_present_days", default=0
                    ),
                    total_overtime_hours=_amount(payload, "total_overtime_hours"),
                )

            amounts = PayrollAmounts(
                basic_salary=calc.basic_salary,
                overtime_amount=calc.overtime_amount,
                **{name: _amount(payload, name) for name in ADJUSTMENT_FIELDS},
            )
            payroll_id = self._payrolls.create(
                PayrollValues(
                    business_id=caller.business_id,
                    employee_id=employee.employee_id,
                    pay_period_start=start,
                    pay_period_end=end,
                    amounts=amounts,
                    total_working_days=calc.total_working_days,
                    total_present_days=calc.total_present_days,
                    total_overtime_hours=calc.total_overtime_hours,
                    pay_method=optional_str(payload.get("pay_method")),
                    notes=optional_str(payload.get("notes")),
                )
            )

        logger.info("payroll %s created for employee %s (%s..%s)", payroll_id, employee_id, start, end)
        return self._get(caller.business_id, payroll_id)

    def create_payroll(self, *, caller: CallerContext, payload: dict) -> PayrollRecord:
        caller.require_manager()
        employee_id = require_int(payload.get("employee_id"), "employee_id")
        start, end = _parse_period(payload)
        return self._create_one(
            caller,
            employee_id,
            start,
            end,
            auto_calculate=optional_bool(payload.get("auto_calculate"), default=True),
            payload=payload,
        )

    def bulk_create(self, *, caller: CallerContext, payload: dict) -> dict:
        """Create one draft per employee; failures are reported, not raised."""
        caller.require_manager()
        start, end = _parse_period(payload)
        employee_ids = payload.get("employee_ids")
        if not isinstance(employee_ids, list) or not employee_ids:
            raise ValidationError("employee_ids must be a non-empty list", field="employee_ids")
        auto_calculate = optional_bool(payload.get("auto_calculate"), default=True)

        results: list[PayrollRecord] = []
        errors: list[dict] = []
        for raw_id in employee_ids:
            try:
                employee_id = require_int(raw_id, "employee_ids")
                results.append(
                    self._create_one(caller, employee_id, start, end, auto_calculate=auto_calculate, payload={})
                )
            except DomainError as e:
                logger.warning("bulk payroll skipped employee %s: %s", raw_id, e)
                errors.append({"employee_id": raw_id, "error": str(e), "type": e.error_type})

        return {
            "message": f"Payroll created for {len(results)} employees",
            "results": results,
            "errors": errors,
        }

    def get_payroll(self, *, caller: CallerContext, payroll_id: int) -> PayrollRecord:
        record = self._get(caller.business_id, payroll_id)
        caller.scope_employee_id(record.employee_id)
        return record

    def list_payrolls(
        self,
        *,
        caller: CallerContext,
        employee_id: Any = None,
        status: Any = None,
        period_start: Any = None,
        period_end: Any = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[PayrollRecord]:
        scoped = caller.scope_employee_id(optional_int(employee_id, "employee_id"))
        return list(
            self._payrolls.list_payrolls(
                caller.business_id,
                employee_id=scoped,
                status=optional_choice(status, PayrollStatus, "status"),
                period_start=optional_date(period_start, "pay_period_start"),
                period_end=optional_date(period_end, "pay_period_end"),
                limit=limit,
                offset=offset,
            )
        )

    def summary(self, *, caller: CallerContext, period_start: Any = None, period_end: Any = None) -> PayrollSummary:
        caller.require_manager()
        return self._payrolls.summary(
            caller.business_id,
            period_start=optional_date(period_start, "pay_period_start"),
            period_end=optional_date(period_end, "pay_period_end"),
        )

    def update_payroll(self, *, caller: CallerContext, payroll_id: int, payload: dict) -> PayrollRecord:
        caller.require_manager()
        current = self._get(caller.business_id, payroll_id)
        if current.status == PayrollStatus.PAID:
            raise StateError("Cannot update payroll that has already been paid")

        base = current.amounts
        amounts = replace(
            base,
            **{name: _amount(payload, name, getattr(base, name)) for name in ADJUSTMENT_FIELDS + DERIVED_FIELDS},
        )
        values = PayrollValues(
            business_id=current.business_id,
            employee_id=current.employee_id,
            pay_period_start=current.pay_period_start,
            pay_period_end=current.pay_period_end,
            amounts=amounts,
            total_working_days=optional_non_negative_int(
                payload.get("total_working_days"), "total_working_days", default=current.total_working_days
            ),
            total_present_days=optional_non_negative_int(
                payload.get("total_present_days"), "total_present_days", default=current.total_present_days
            ),
            total_overtime_hours=_amount(payload, "total_overtime_hours", current.total_overtime_hours),
            pay_method=optional_str(payload["pay_method"]) if "pay_method" in payload else current.pay_method,
            notes=optional_str(payload["notes"]) if "notes" in payload else current.notes,
        )

        if not self._payrolls.update_unpaid(current.payroll_id, values):
            raise StateError("Cannot update payroll that has already been paid")
        return self._get(caller.business_id, current.payroll_id)

    def transition(self, *, caller: CallerContext, payroll_id: int, payload: dict) -> PayrollRecord:
        caller.require_manager()
        target = require_choice(payload.get("status"), PayrollStatus, "status")
        current = self._get(caller.business_id, payroll_id)

        if ALLOWED_TRANSITIONS.get(current.status) != target:
            raise StateError(f"Cannot change payroll status from {current.status.value} to {target.value}")

        payment_date = optional_date(payload.get("payment_date"), "payment_date")
        if target == PayrollStatus.PAID and payment_date is None:
            raise ValidationError("payment_date is required to mark payroll as paid", field="payment_date")

        changed = self._payrolls.set_status(
            current.payroll_id,
            from_status=current.status,
            to_status=target,
            payment_date=payment_date if target == PayrollStatus.PAID else None,
            pay_method=optional_str(payload.get("pay_method")),
        )
        if not changed:
            raise StateError("Payroll status was changed by another request")

        logger.info("payroll %s moved %s -> %s", current.payroll_id, current.status.value, target.value)
        return self._get(caller.business_id, current.payroll_id)

    def delete_payroll(self, *, caller: CallerContext, payroll_id: int) -> None:
        caller.require_manager()
        current = self._get(caller.business_id, payroll_id)
        if current.status == PayrollStatus.PAID:
            raise StateError("Cannot delete payroll that has already been paid")
        if not self._payrolls.delete_unpaid(current.payroll_id):
            raise StateError("Cannot delete payroll that has already been paid")
        logger.info("payroll %s deleted", current.payroll_id)
