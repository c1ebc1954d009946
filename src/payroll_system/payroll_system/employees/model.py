from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from ..core.enums import EmployeeStatus, EmploymentType, SalaryType


@dataclass(frozen=True)
class Employee:
    """Domain entity: an employee of a business.

    Note: Plain data object (no DB access). `password_hash` never leaves the
    service layer in API responses.
    """

    employee_id: int
    business_id: int
    employee_code: str
    first_name: str
    last_name: str
    email: str
    password_hash: str
    hire_date: date
    employment_type: EmploymentType
    salary_type: SalaryType
    base_salary: Decimal
    daily_wage: Optional[Decimal] = None
    hourly_rate: Optional[Decimal] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    status: EmployeeStatus = EmployeeStatus.ACTIVE

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class NewEmployee:
    business_id: int
    first_name: str
    last_name: str
    email: str
    hire_date: date
    employment_type: EmploymentType
    salary_type: SalaryType
    base_salary: Decimal
    daily_wage: Optional[Decimal] = None
    hourly_rate: Optional[Decimal] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None


@dataclass(frozen=True)
class EmployeeStats:
    total_employees: int
    active_employees: int
    inactive_employees: int
    full_time_employees: int
    part_time_employees: int
    contract_employees: int
    departments: list[dict]
