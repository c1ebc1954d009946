from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from werkzeug.security import generate_password_hash

from ..common.auth import CallerContext
from ..common.validators import (
    optional_choice,
    optional_decimal,
    optional_str,
    require_choice,
    require_date,
    require_min_length,
    require_non_empty,
    require_non_negative,
)
from ..core.enums import EmployeeStatus, EmploymentType, SalaryType
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from .model import Employee, EmployeeStats, NewEmployee
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class EmployeeService:
    """Use case: manage the employees of a business."""

    def __init__(self, employees: EmployeeRepository, *, clock: Optional[Callable[[], datetime]] = None):
        self._employees = employees
        self._clock = clock or datetime.now

    def _next_employee_code(self) -> str:
        prefix = f"EMP{self._clock().strftime('%y')}"
        return f"{prefix}{self._employees.max_code_sequence(prefix) + 1:04d}"

    def create_employee(self, *, caller: CallerContext, payload: dict) -> Employee:
        caller.require_manager()

        email = require_non_empty(payload.get("email"), "email").lower()
        password = payload.get("password") or ""
        require_min_length(password, "password", MIN_PASSWORD_LENGTH)

        base_salary = optional_decimal(payload.get("base_salary"), "base_salary")
        if base_salary is None:
            raise ValidationError("base_salary is required", field="base_salary")

        new = NewEmployee(
            business_id=caller.business_id,
            first_name=require_non_empty(payload.get("first_name"), "first_name"),
            last_name=require_non_empty(payload.get("last_name"), "last_name"),
            email=email,
            hire_date=require_date(payload.get("hire_date"), "hire_date"),
            employment_type=optional_choice(
                payload.get("employment_type"), EmploymentType, "employment_type", default=EmploymentType.FULL_TIME
            ),
            salary_type=optional_choice(payload.get("salary_type"), SalaryType, "salary_type", default=SalaryType.MONTHLY),
            base_salary=require_non_negative(base_salary, "base_salary"),
            daily_wage=require_non_negative(optional_decimal(payload.get("daily_wage"), "daily_wage"), "daily_wage"),
            hourly_rate=require_non_negative(optional_decimal(payload.get("hourly_rate"), "hourly_rate"), "hourly_rate"),
            phone=optional_str(payload.get("phone")),
            address=optional_str(payload.get("address")),
            department=optional_str(payload.get("department")),
            position=optional_str(payload.get("position")),
        )

        if self._employees.email_exists(email):
            raise ConflictError("Employee with this email already exists")

        employee_id = self._employees.create(
            new,
            employee_code=self._next_employee_code(),
            password_hash=generate_password_hash(password),
        )
        logger.info("employee %s created for business %s", employee_id, caller.business_id)
        return self.get_employee(caller=caller, employee_id=employee_id)

    def list_employees(
        self,
        *,
        caller: CallerContext,
        status: Optional[str] = None,
        department: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Employee]:
        caller.require_manager()
        status_filter = None
        if status and status != "all":
            status_filter = require_choice(status, EmployeeStatus, "status")
        return list(
            self._employees.list_employees(
                caller.business_id,
                status=status_filter,
                department=optional_str(department),
                search=optional_str(search),
                limit=limit,
                offset=offset,
            )
        )

    def get_employee(self, *, caller: CallerContext, employee_id: int) -> Employee:
        employee_id = int(employee_id)
        caller.scope_employee_id(employee_id)
        employee = self._employees.get_by_id(caller.business_id, employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def get_profile(self, *, caller: CallerContext) -> Employee:
        if caller.employee_id is None:
            raise NotFoundError("No employee profile for this account")
        return self.get_employee(caller=caller, employee_id=caller.employee_id)

    def update_employee(self, *, caller: CallerContext, employee_id: int, payload: dict) -> Employee:
        caller.require_manager()
        current = self.get_employee(caller=caller, employee_id=employee_id)

        changes: dict[str, Any] = {}
        for name in ("first_name", "last_name"):
            if name in payload:
                changes[name] = require_non_empty(payload.get(name), name)
        for name in ("phone", "address", "department", "position"):
            if name in payload:
                changes[name] = optional_str(payload.get(name))
        if "email" in payload:
            email = require_non_empty(payload.get("email"), "email").lower()
            if email != current.email and self._employees.email_exists(email, exclude_employee_id=current.employee_id):
                raise ConflictError("Employee with this email already exists")
            changes["email"] = email
        if "employment_type" in payload:
            changes["employment_type"] = require_choice(payload["employment_type"], EmploymentType, "employment_type")
        if "salary_type" in payload:
            changes["salary_type"] = require_choice(payload["salary_type"], SalaryType, "salary_type")
        if "status" in payload:
            changes["status"] = require_choice(payload["status"], EmployeeStatus, "status")
        if "base_salary" in payload:
            value = optional_decimal(payload.get("base_salary"), "base_salary")
            if value is None:
                raise ValidationError("base_salary cannot be empty", field="base_salary")
            changes["base_salary"] = require_non_negative(value, "base_salary")
        for name in ("daily_wage", "hourly_rate"):
            if name in payload:
                changes[name] = require_non_negative(optional_decimal(payload.get(name), name), name)

        self._employees.update(caller.business_id, current.employee_id, changes)
        return self.get_employee(caller=caller, employee_id=current.employee_id)

    def delete_employee(self, *, caller: CallerContext, employee_id: int) -> None:
        """Soft delete: history (attendance, payroll) keeps referring to the row."""
        caller.require_manager()
        employee = self.get_employee(caller=caller, employee_id=employee_id)
        self._employees.set_status(caller.business_id, employee.employee_id, EmployeeStatus.TERMINATED)
        logger.info("employee %s terminated", employee.employee_id)

    def reset_password(self, *, caller: CallerContext, employee_id: int, password: str) -> None:
        caller.require_manager()
        employee = self.get_employee(caller=caller, employee_id=employee_id)
        require_min_length(password or "", "password", MIN_PASSWORD_LENGTH)
        self._employees.set_password_hash(caller.business_id, employee.employee_id, generate_password_hash(password))

    def stats_overview(self, *, caller: CallerContext) -> EmployeeStats:
        caller.require_manager()
        return self._employees.stats_overview(caller.business_id)
