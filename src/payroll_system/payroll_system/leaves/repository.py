from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveStatus
from .model import LeaveEntitlement, LeaveRequest, LeaveType, NewLeaveRequest, NewLeaveType


class LeaveTypeRepository(Protocol):
    def get_by_id(self, business_id: int, leave_type_id: int) -> Optional[LeaveType]:
        raise NotImplementedError

    def list_types(self, business_id: int, *, include_inactive: bool = False) -> Sequence[LeaveType]:
        raise NotImplementedError

    def create(self, new: NewLeaveType) -> int:
        """ConflictError if the business already has a type with this name."""

        raise NotImplementedError


class LeaveEntitlementRepository(Protocol):
    def get(self, employee_id: int, leave_type_id: int, year: int) -> Optional[LeaveEntitlement]:
        raise NotImplementedError

    def upsert(
        self,
        *,
        employee_id: int,
        leave_type_id: int,
        year: int,
        total_days: Decimal,
        carried_forward: Decimal,
    ) -> LeaveEntitlement:
        raise NotImplementedError

    def list_entitlements(
        self,
        business_id: int,
        *,
        year: int,
        employee_id: Optional[int] = None,
    ) -> Sequence[LeaveEntitlement]:
        raise NotImplementedError

    def consume(self, employee_id: int, leave_type_id: int, year: int, days: Decimal) -> bool:
        """Add `days` to used_days only while remaining_days covers them."""

        raise NotImplementedError


class LeaveRequestRepository(Protocol):
    def get_by_id(self, business_id: int, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def has_overlap(self, employee_id: int, start_date: date, end_date: date) -> bool:
        """True if a pending or approved request intersects [start_date, end_date]."""

        raise NotImplementedError

    def create(self, new: NewLeaveRequest) -> int:
        raise NotImplementedError

    def decide(
        self,
        request_id: int,
        *,
        status: LeaveStatus,
        decided_by: Optional[int],
        decided_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        """Move a pending request to `status`; False if it is no longer pending."""

        raise NotImplementedError

    def list_requests(
        self,
        business_id: int,
        *,
        employee_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError
