from __future__ import annotations

import dataclasses
from datetime import datetime
from typing import Any, Mapping, Optional

import pytest
from werkzeug.security import check_password_hash

from src.payroll_system.payroll_system.common.auth import CallerContext
from src.payroll_system.payroll_system.core.enums import EmployeeStatus, Role, SalaryType
from src.payroll_system.payroll_system.core.exceptions import AuthorizationError, ConflictError, ValidationError
from src.payroll_system.payroll_system.employees.model import Employee, NewEmployee
from src.payroll_system.payroll_system.employees.service import EmployeeService


class InMemoryEmployees:
    def __init__(self):
        self.rows: dict[int, Employee] = {}

    def get_by_id(self, business_id: int, employee_id: int) -> Optional[Employee]:
        row = self.rows.get(employee_id)
        return row if row and row.business_id == business_id else None

    def email_exists(self, email: str, *, exclude_employee_id: Optional[int] = None) -> bool:
        return any(e.email == email and e.employee_id != exclude_employee_id for e in self.rows.values())

    def max_code_sequence(self, prefix: str) -> int:
        seqs = [int(e.employee_code[len(prefix):]) for e in self.rows.values() if e.employee_code.startswith(prefix)]
        return max(seqs, default=0)

    def create(self, new: NewEmployee, *, employee_code: str, password_hash: str) -> int:
        employee_id = len(self.rows) + 1
        self.rows[employee_id] = Employee(
            employee_id=employee_id,
            employee_code=employee_code,
            password_hash=password_hash,
            **dataclasses.asdict(new),
        )
        return employee_id

    def update(self, business_id: int, employee_id: int, changes: Mapping[str, Any]) -> bool:
        self.rows[employee_id] = dataclasses.replace(self.rows[employee_id], **changes)
        return True

    def set_status(self, business_id: int, employee_id: int, status: EmployeeStatus) -> bool:
        return self.update(business_id, employee_id, {"status": status})

    def set_password_hash(self, business_id: int, employee_id: int, password_hash: str) -> bool:
        return self.update(business_id, employee_id, {"password_hash": password_hash})


OWNER = CallerContext(business_id=1, role=Role.BUSINESS_OWNER, user_id=1)


def _payload(**overrides) -> dict:
    payload = {
        "first_name": "Hoa",
        "last_name": "Pham",
        "email": "Hoa@Example.com",
        "password": "secret1",
        "hire_date": "2026-01-05",
        "base_salary": "2800",
    }
    payload.update(overrides)
    return payload


def _service():
    repo = InMemoryEmployees()
    return EmployeeService(repo, clock=lambda: datetime(2026, 2, 1, 9, 0, 0)), repo


def test_create_generates_code_and_hashes_password():
    service, _ = _service()
    first = service.create_employee(caller=OWNER, payload=_payload())
    second = service.create_employee(caller=OWNER, payload=_payload(email="b@example.com"))

    assert first.employee_code == "EMP260001"
    assert second.employee_code == "EMP260002"
    assert first.email == "hoa@example.com"
    assert first.salary_type == SalaryType.MONTHLY
    assert check_password_hash(first.password_hash, "secret1")


def test_duplicate_email_conflicts():
    service, _ = _service()
    service.create_employee(caller=OWNER, payload=_payload())
    with pytest.raises(ConflictError):
        service.create_employee(caller=OWNER, payload=_payload(email="hoa@example.com"))


def test_short_password_and_missing_salary_are_rejected():
    service, _ = _service()
    with pytest.raises(ValidationError):
        service.create_employee(caller=OWNER, payload=_payload(password="123"))
    with pytest.raises(ValidationError):
        service.create_employee(caller=OWNER, payload=_payload(base_salary=None))


def test_delete_is_a_soft_delete():
    service, repo = _service()
    employee = service.create_employee(caller=OWNER, payload=_payload())
    service.delete_employee(caller=OWNER, employee_id=employee.employee_id)

    assert repo.rows[employee.employee_id].status == EmployeeStatus.TERMINATED


def test_employee_sees_own_profile_only():
    service, _ = _service()
    me = service.create_employee(caller=OWNER, payload=_payload())
    other = service.create_employee(caller=OWNER, payload=_payload(email="x@example.com"))
    caller = CallerContext(business_id=1, role=Role.EMPLOYEE, employee_id=me.employee_id)

    assert service.get_profile(caller=caller).employee_id == me.employee_id
    with pytest.raises(AuthorizationError):
        service.get_employee(caller=caller, employee_id=other.employee_id)


def test_reset_password():
    service, repo = _service()
    employee = service.create_employee(caller=OWNER, payload=_payload())
    service.reset_password(caller=OWNER, employee_id=employee.employee_id, password="newpass9")

    assert check_password_hash(repo.rows[employee.employee_id].password_hash, "newpass9")
