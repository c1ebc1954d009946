from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import LeaveStatus


@dataclass(frozen=True)
class LeaveType:
    leave_type_id: int
    business_id: int
    name: str
    description: Optional[str] = None
    max_days_per_year: Decimal = Decimal("0")
    carry_forward: bool = False
    is_paid: bool = True
    requires_approval: bool = True
    is_active: bool = True


@dataclass(frozen=True)
class NewLeaveType:
    business_id: int
    name: str
    description: Optional[str]
    max_days_per_year: Decimal
    carry_forward: bool
    is_paid: bool
    requires_approval: bool


@dataclass(frozen=True)
class LeaveEntitlement:
    """Days allotted for one (employee, leave type, year).

    remaining_days is computed by the database as
    total_days + carried_forward - used_days.
    """

    entitlement_id: int
    employee_id: int
    leave_type_id: int
    year: int
    total_days: Decimal
    carried_forward: Decimal
    used_days: Decimal
    remaining_days: Decimal
    leave_type_name: Optional[str] = None
    employee_code: Optional[str] = None
    employee_name: Optional[str] = None


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    business_id: int
    employee_id: int
    leave_type_id: int
    start_date: date
    end_date: date
    total_days: Decimal
    reason: str
    status: LeaveStatus
    emergency_contact: Optional[str] = None
    handover_notes: Optional[str] = None
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    leave_type_name: Optional[str] = None
    employee_code: Optional[str] = None
    employee_name: Optional[str] = None


@dataclass(frozen=True)
class NewLeaveRequest:
    business_id: int
    employee_id: int
    leave_type_id: int
    start_date: date
    end_date: date
    total_days: Decimal
    reason: str
    emergency_contact: Optional[str] = None
    handover_notes: Optional[str] = None
