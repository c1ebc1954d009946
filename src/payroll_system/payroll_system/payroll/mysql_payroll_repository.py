from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import PayrollStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, is_duplicate_key
from .model import PayrollRecord, PayrollSummary, PayrollValues
from .repository import PayrollRepository

_COLUMNS = """
    p.payroll_id, p.business_id, p.employee_id, p.pay_period_start, p.pay_period_end,
    p.basic_salary, p.overtime_amount, p.bonus, p.allowances, p.gross_salary,
    p.tax_deduction, p.insurance_deduction, p.loan_deduction, p.leave_deduction,
    p.other_deductions, p.total_deductions, p.net_salary, p.total_working_days,
    p.total_present_days, p.total_overtime_hours, p.status, p.payment_date, p.pay_method, p.notes,
    e.employee_code, CONCAT(e.first_name, ' ', e.last_name) AS employee_name
"""

_MONEY_FIELDS = (
    "basic_salary",
    "overtime_amount",
    "bonus",
    "allowances",
    "gross_salary",
    "tax_deduction",
    "insurance_deduction",
    "loan_deduction",
    "leave_deduction",
    "other_deductions",
    "total_deductions",
    "net_salary",
)


def _row_to_payroll(r: dict) -> PayrollRecord:
    money = {name: as_decimal(r.get(name)) for name in _MONEY_FIELDS}
    return PayrollRecord(
        payroll_id=int(r["payroll_id"]),
        business_id=int(r["business_id"]),
        employee_id=int(r["employee_id"]),
        pay_period_start=r["pay_period_start"],
        pay_period_end=r["pay_period_end"],
        total_working_days=int(r.get("total_working_days") or 0),
        total_present_days=int(r.get("total_present_days") or 0),
        total_overtime_hours=as_decimal(r.get("total_overtime_hours")),
        status=PayrollStatus(r["status"]),
        payment_date=r.get("payment_date"),
        pay_method=r.get("pay_method"),
        notes=r.get("notes"),
        employee_code=r.get("employee_code"),
        employee_name=r.get("employee_name"),
        **money,
    )


def _amount_params(v: PayrollValues) -> tuple:
    a = v.amounts
    return (
        a.basic_salary,
        a.overtime_amount,
        a.bonus,
        a.allowances,
        a.gross_salary,
        a.tax_deduction,
        a.insurance_deduction,
        a.loan_deduction,
        a.leave_deduction,
        a.other_deductions,
        a.total_deductions,
        a.net_salary,
        int(v.total_working_days),
        int(v.total_present_days),
        v.total_overtime_hours,
        v.pay_method,
        v.notes,
    )


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, business_id: int, payroll_id: int) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM payroll p
                JOIN employees e ON e.employee_id = p.employee_id
                WHERE p.payroll_id=%s AND p.business_id=%s
                """,
                (int(payroll_id), int(business_id)),
            )
            r = fetchone(cur)
            return _row_to_payroll(r) if r else None

    def create(self, values: PayrollValues) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO payroll(
                        business_id, employee_id, pay_period_start, pay_period_end,
                        basic_salary, overtime_amount, bonus, allowances, gross_salary,
                        tax_deduction, insurance_deduction, loan_deduction, leave_deduction,
                        other_deductions, total_deductions, net_salary,
                        total_working_days, total_present_days, total_overtime_hours,
                        pay_method, notes, status
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,'draft')
                    """,
                    (
                        int(values.business_id),
                        int(values.employee_id),
                        values.pay_period_start,
                        values.pay_period_end,
                        *_amount_params(values),
                    ),
                )
            except mysql.connector.Error as e:
                if is_duplicate_key(e):
                    raise ConflictError("Payroll already exists for this period") from e
                raise
            return int(cur.lastrowid)

    def update_unpaid(self, payroll_id: int, values: PayrollValues) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payroll
                SET basic_salary=%s, overtime_amount=%s, bonus=%s, allowances=%s, gross_salary=%s,
                    tax_deduction=%s, insurance_deduction=%s, loan_deduction=%s, leave_deduction=%s,
                    other_deductions=%s, total_deductions=%s, net_salary=%s,
                    total_working_days=%s, total_present_days=%s, total_overtime_hours=%s,
                    pay_method=%s, notes=%s
                WHERE payroll_id=%s AND status <> 'paid'
                """,
                (*_amount_params(values), int(payroll_id)),
            )
            return cur.rowcount > 0

    def set_status(
        self,
        payroll_id: int,
        *,
        from_status: PayrollStatus,
        to_status: PayrollStatus,
        payment_date: Optional[date] = None,
        pay_method: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payroll
                SET status=%s, payment_date=COALESCE(%s, payment_date), pay_method=COALESCE(%s, pay_method)
                WHERE payroll_id=%s AND status=%s
                """,
                (to_status.value, payment_date, pay_method, int(payroll_id), from_status.value),
            )
            return cur.rowcount > 0

    def delete_unpaid(self, payroll_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM payroll WHERE payroll_id=%s AND status <> 'paid'", (int(payroll_id),))
            return cur.rowcount > 0

    def list_payrolls(
        self,
        business_id: int,
        *,
        employee_id: Optional[int] = None,
        status: Optional[PayrollStatus] = None,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[PayrollRecord]:
        clauses = ["p.business_id=%s"]
        params: list[object] = [int(business_id)]
        if employee_id is not None:
            clauses.append("p.employee_id=%s")
            params.append(int(employee_id))
        if status is not None:
            clauses.append("p.status=%s")
            params.append(status.value)
        if period_start is not None:
            clauses.append("p.pay_period_start >= %s")
            params.append(period_start)
        if period_end is not None:
            clauses.append("p.pay_period_end <= %s")
            params.append(period_end)

        where = " AND ".join(clauses)
        params.extend([int(limit), int(offset)])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM payroll p
                JOIN employees e ON e.employee_id = p.employee_id
                WHERE {where}
                ORDER BY p.pay_period_end DESC, p.created_at DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params),
            )
            return [_row_to_payroll(r) for r in fetchall(cur)]

    def summary(
        self,
        business_id: int,
        *,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
    ) -> PayrollSummary:
        clauses = ["business_id=%s"]
        params: list[object] = [int(business_id)]
        if period_start is not None:
            clauses.append("pay_period_start >= %s")
            params.append(period_start)
        if period_end is not None:
            clauses.append("pay_period_end <= %s")
            params.append(period_end)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    COUNT(*) AS total_payrolls,
                    COALESCE(SUM(status='draft'), 0) AS draft_payrolls,
                    COALESCE(SUM(status='approved'), 0) AS approved_payrolls,
                    COALESCE(SUM(status='paid'), 0) AS paid_payrolls,
                    COALESCE(SUM(CASE WHEN status='paid' THEN gross_salary ELSE 0 END), 0) AS total_gross_salary,
                    COALESCE(SUM(CASE WHEN status='paid' THEN net_salary ELSE 0 END), 0) AS total_net_salary,
                    COALESCE(SUM(CASE WHEN status='paid' THEN total_deductions ELSE 0 END), 0) AS total_deductions,
                    COALESCE(ROUND(AVG(CASE WHEN status='paid' THEN net_salary END), 2), 0) AS avg_net_salary
                FROM payroll
                WHERE {where}
                """,
                tuple(params),
            )
            r = fetchone(cur) or {}

        return PayrollSummary(
            total_payrolls=int(r.get("total_payrolls") or 0),
            draft_payrolls=int(r.get("draft_payrolls") or 0),
            approved_payrolls=int(r.get("approved_payrolls") or 0),
            paid_payrolls=int(r.get("paid_payrolls") or 0),
            total_gross_salary=as_decimal(r.get("total_gross_salary")),
            total_net_salary=as_decimal(r.get("total_net_salary")),
            total_deductions=as_decimal(r.get("total_deductions")),
            avg_net_salary=as_decimal(r.get("avg_net_salary")),
        )
