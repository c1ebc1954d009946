from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

import mysql.connector

from ..core.enums import EmployeeStatus, EmploymentType, SalaryType
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, as_optional_decimal, db_cursor, fetchall, fetchone, is_duplicate_key
from .model import Employee, EmployeeStats, NewEmployee
from .repository import EmployeeRepository

_COLUMNS = """
    employee_id, business_id, employee_code, first_name, last_name, email, password_hash,
    phone, address, hire_date, employment_type, salary_type, base_salary, daily_wage,
    hourly_rate, department, position, status
"""

# Columns an update may touch; keys come from the service, never from raw input.
UPDATABLE_COLUMNS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "address",
    "employment_type",
    "salary_type",
    "base_salary",
    "daily_wage",
    "hourly_rate",
    "department",
    "position",
    "status",
)


def _row_to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        business_id=int(r["business_id"]),
        employee_code=r["employee_code"],
        first_name=r["first_name"],
        last_name=r["last_name"],
        email=r["email"],
        password_hash=r["password_hash"],
        phone=r.get("phone"),
        address=r.get("address"),
        hire_date=r["hire_date"],
        employment_type=EmploymentType(r["employment_type"]),
        salary_type=SalaryType(r["salary_type"]),
        base_salary=as_decimal(r.get("base_salary")),
        daily_wage=as_optional_decimal(r.get("daily_wage")),
        hourly_rate=as_optional_decimal(r.get("hourly_rate")),
        department=r.get("department"),
        position=r.get("position"),
        status=EmployeeStatus(r["status"]),
    )


def _db_value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, business_id: int, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s AND business_id=%s",
                (int(employee_id), int(business_id)),
            )
            r = fetchone(cur)
            return _row_to_employee(r) if r else None

    def list_employees(
        self,
        business_id: int,
        *,
        status: Optional[EmployeeStatus] = None,
        department: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[Employee]:
        clauses = ["business_id=%s"]
        params: list[object] = [int(business_id)]

        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if department:
            clauses.append("department=%s")
            params.append(department)
        if search:
            like = f"%{search}%"
            clauses.append("(first_name LIKE %s OR last_name LIKE %s OR email LIKE %s OR employee_code LIKE %s)")
            params.extend([like, like, like, like])

        where = " AND ".join(clauses)
        params.extend([int(limit), int(offset)])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM employees
                WHERE {where}
                ORDER BY last_name ASC, first_name ASC
                LIMIT %s OFFSET %s
                """,
                tuple(params),
            )
            return [_row_to_employee(r) for r in fetchall(cur)]

    def email_exists(self, email: str, *, exclude_employee_id: Optional[int] = None) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            if exclude_employee_id is None:
                cur.execute("SELECT 1 AS found FROM employees WHERE email=%s LIMIT 1", (email,))
            else:
                cur.execute(
                    "SELECT 1 AS found FROM employees WHERE email=%s AND employee_id<>%s LIMIT 1",
                    (email, int(exclude_employee_id)),
                )
            return fetchone(cur) is not None

    def max_code_sequence(self, prefix: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT MAX(CAST(SUBSTRING(employee_code, %s) AS UNSIGNED)) AS max_number
                FROM employees
                WHERE employee_code LIKE %s
                """,
                (len(prefix) + 1, f"{prefix}%"),
            )
            r = fetchone(cur)
            return int(r["max_number"] or 0) if r else 0

    def create(self, new: NewEmployee, *, employee_code: str, password_hash: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO employees(
                        business_id, employee_code, first_name, last_name, email, password_hash,
                        phone, address, hire_date, employment_type, salary_type, base_salary,
                        daily_wage, hourly_rate, department, position, status
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,'active')
                    """,
                    (
                        new.business_id,
                        employee_code,
                        new.first_name,
                        new.last_name,
                        new.email,
                        password_hash,
                        new.phone,
                        new.address,
                        new.hire_date,
                        new.employment_type.value,
                        new.salary_type.value,
                        new.base_salary,
                        new.daily_wage,
                        new.hourly_rate,
                        new.department,
                        new.position,
                    ),
                )
            except mysql.connector.Error as e:
                if is_duplicate_key(e):
                    raise ConflictError("Employee email or code already exists") from e
                raise
            return int(cur.lastrowid)

    def update(self, business_id: int, employee_id: int, changes: Mapping[str, Any]) -> bool:
        columns = [c for c in UPDATABLE_COLUMNS if c in changes]
        if not columns:
            return True

        assignments = ", ".join(f"{c}=%s" for c in columns)
        params = [_db_value(changes[c]) for c in columns]
        params.extend([int(employee_id), int(business_id)])

        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    f"UPDATE employees SET {assignments} WHERE employee_id=%s AND business_id=%s",
                    tuple(params),
                )
            except mysql.connector.Error as e:
                if is_duplicate_key(e):
                    raise ConflictError("Employee with this email already exists") from e
                raise
            return cur.rowcount > 0

    def set_status(self, business_id: int, employee_id: int, status: EmployeeStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employees SET status=%s WHERE employee_id=%s AND business_id=%s",
                (status.value, int(employee_id), int(business_id)),
            )
            return cur.rowcount > 0

    def set_password_hash(self, business_id: int, employee_id: int, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employees SET password_hash=%s WHERE employee_id=%s AND business_id=%s",
                (password_hash, int(employee_id), int(business_id)),
            )
            return cur.rowcount > 0

    def stats_overview(self, business_id: int) -> EmployeeStats:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    COUNT(*) AS total_employees,
                    COALESCE(SUM(status='active'), 0) AS active_employees,
                    COALESCE(SUM(status='inactive'), 0) AS inactive_employees,
                    COALESCE(SUM(employment_type='full_time'), 0) AS full_time_employees,
                    COALESCE(SUM(employment_type='part_time'), 0) AS part_time_employees,
                    COALESCE(SUM(employment_type='contract'), 0) AS contract_employees
                FROM employees
                WHERE business_id=%s
                """,
                (int(business_id),),
            )
            totals = fetchone(cur) or {}

            cur.execute(
                """
                SELECT department, COUNT(*) AS count
                FROM employees
                WHERE business_id=%s AND department IS NOT NULL
                GROUP BY department
                ORDER BY count DESC
                """,
                (int(business_id),),
            )
            departments = [{"department": r["department"], "count": int(r["count"])} for r in fetchall(cur)]

        return EmployeeStats(
            total_employees=int(totals.get("total_employees") or 0),
            active_employees=int(totals.get("active_employees") or 0),
            inactive_employees=int(totals.get("inactive_employees") or 0),
            full_time_employees=int(totals.get("full_time_employees") or 0),
            part_time_employees=int(totals.get("part_time_employees") or 0),
            contract_employees=int(totals.get("contract_employees") or 0),
            departments=departments,
        )
