from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, ContextManager, Optional

from ..common.auth import CallerContext
from ..common.datetime_utils import count_weekdays
from ..common.validators import (
    optional_bool,
    optional_choice,
    optional_date,
    optional_decimal,
    optional_int,
    optional_str,
    require_date,
    require_int,
    require_non_empty,
    require_non_negative,
)
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import LeaveStatus
from ..core.exceptions import ConflictError, NotFoundError, StateError, ValidationError
from ..employees.repository import EmployeeRepository
from .model import LeaveEntitlement, LeaveRequest, LeaveType, NewLeaveRequest, NewLeaveType
from .repository import LeaveEntitlementRepository, LeaveRequestRepository, LeaveTypeRepository

logger = logging.getLogger(__name__)

DECISION_ACTIONS = {"approve": LeaveStatus.APPROVED, "reject": LeaveStatus.REJECTED}


class LeaveService:
    """Use case: leave types, yearly entitlements and the request workflow.

    Requests move pending -> approved | rejected | cancelled. Approval consumes
    entitlement days in the same transaction as the status change.
    """

    def __init__(
        self,
        types: LeaveTypeRepository,
        entitlements: LeaveEntitlementRepository,
        requests: LeaveRequestRepository,
        employees: EmployeeRepository,
        *,
        tx: Optional[Callable[[], ContextManager]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._types = types
        self._entitlements = entitlements
        self._requests = requests
        self._employees = employees
        self._tx = tx or nullcontext
        self._clock = clock or datetime.now

    def _require_employee(self, business_id: int, employee_id: int) -> None:
        if not self._employees.get_by_id(business_id, employee_id):
            raise NotFoundError("Employee not found")

    def _require_type(self, business_id: int, leave_type_id: int) -> LeaveType:
        leave_type = self._types.get_by_id(business_id, leave_type_id)
        if not leave_type:
            raise NotFoundError("Leave type not found")
        return leave_type

    def _get(self, business_id: int, request_id: int) -> LeaveRequest:
        request = self._requests.get_by_id(business_id, int(request_id))
        if not request:
            raise NotFoundError("Leave request not found")
        return request

    def _year(self, value: Any) -> int:
        year = optional_int(value, "year") or self._clock().year
        if not 1900 <= year <= 9999:
            raise ValidationError("year is out of range", field="year")
        return year

    # Leave types

    def list_types(self, *, caller: CallerContext, include_inactive: Any = None) -> list[LeaveType]:
        show_all = optional_bool(include_inactive) and not caller.is_employee
        return list(self._types.list_types(caller.business_id, include_inactive=show_all))

    def create_type(self, *, caller: CallerContext, payload: dict) -> LeaveType:
        caller.require_manager()
        max_days = optional_decimal(payload.get("max_days_per_year"), "max_days_per_year", default=Decimal("0"))
        require_non_negative(max_days, "max_days_per_year")

        leave_type_id = self._types.create(
            NewLeaveType(
                business_id=caller.business_id,
                name=require_non_empty(payload.get("name"), "name"),
                description=optional_str(payload.get("description")),
                max_days_per_year=max_days,
                carry_forward=optional_bool(payload.get("carry_forward")),
                is_paid=optional_bool(payload.get("is_paid"), default=True),
                requires_approval=optional_bool(payload.get("requires_approval"), default=True),
            )
        )
        return self._require_type(caller.business_id, leave_type_id)

    # Entitlements

    def set_entitlement(self, *, caller: CallerContext, payload: dict) -> LeaveEntitlement:
        caller.require_manager()
        employee_id = require_int(payload.get("employee_id"), "employee_id")
        leave_type_id = require_int(payload.get("leave_type_id"), "leave_type_id")
        year = require_int(payload.get("year"), "year")
        total_days = optional_decimal(payload.get("total_days"), "total_days")
        if total_days is None:
            raise ValidationError("total_days is required", field="total_days")
        require_non_negative(total_days, "total_days")
        carried = optional_decimal(payload.get("carried_forward"), "carried_forward", default=Decimal("0"))
        require_non_negative(carried, "carried_forward")

        self._require_employee(caller.business_id, employee_id)
        self._require_type(caller.business_id, leave_type_id)

        entitlement = self._entitlements.upsert(
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            year=year,
            total_days=total_days,
            carried_forward=carried,
        )
        logger.info("entitlement set for employee %s type %s year %s", employee_id, leave_type_id, year)
        return entitlement

    def list_entitlements(self, *, caller: CallerContext, year: Any = None, employee_id: Any = None) -> list[LeaveEntitlement]:
        scoped = caller.scope_employee_id(optional_int(employee_id, "employee_id"))
        return list(self._entitlements.list_entitlements(caller.business_id, year=self._year(year), employee_id=scoped))

    def balance(self, *, caller: CallerContext, employee_id: int, year: Any = None) -> list[LeaveEntitlement]:
        scoped = caller.scope_employee_id(int(employee_id))
        self._require_employee(caller.business_id, scoped)
        return list(self._entitlements.list_entitlements(caller.business_id, year=self._year(year), employee_id=scoped))

    # Requests

    def create_request(self, *, caller: CallerContext, payload: dict) -> LeaveRequest:
        employee_id = caller.scope_employee_id(optional_int(payload.get("employee_id"), "employee_id"))
        if employee_id is None:
            raise ValidationError("employee_id is required", field="employee_id")
        leave_type_id = require_int(payload.get("leave_type_id"), "leave_type_id")
        start = require_date(payload.get("start_date"), "start_date")
        end = require_date(payload.get("end_date"), "end_date")
        reason = require_non_empty(payload.get("reason"), "reason")
        if end < start:
            raise ValidationError("start_date cannot be after end_date", field="end_date")
        if start.year != end.year:
            raise ValidationError("A leave request cannot span two calendar years", field="end_date")

        total_days = Decimal(count_weekdays(start, end))
        if total_days == 0:
            raise ValidationError("The requested range contains no working days", field="end_date")

        self._require_employee(caller.business_id, employee_id)
        self._require_type(caller.business_id, leave_type_id)

        with self._tx():
            entitlement = self._entitlements.get(employee_id, leave_type_id, start.year)
            if entitlement is not None and entitlement.remaining_days < total_days:
                raise ConflictError(
                    f"Insufficient leave balance. Available: {entitlement.remaining_days} days, "
                    f"Requested: {total_days} days"
                )
            if self._requests.has_overlap(employee_id, start, end):
                raise ConflictError("Overlapping leave request exists for these dates")

            request_id = self._requests.create(
                NewLeaveRequest(
                    business_id=caller.business_id,
                    employee_id=employee_id,
                    leave_type_id=leave_type_id,
                    start_date=start,
                    end_date=end,
                    total_days=total_days,
                    reason=reason,
                    emergency_contact=optional_str(payload.get("emergency_contact")),
                    handover_notes=optional_str(payload.get("handover_notes")),
                )
            )

        logger.info("leave request %s created for employee %s (%s days)", request_id, employee_id, total_days)
        return self._get(caller.business_id, request_id)

    def list_requests(
        self,
        *,
        caller: CallerContext,
        employee_id: Any = None,
        status: Any = None,
        start_date: Any = None,
        end_date: Any = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[LeaveRequest]:
        scoped = caller.scope_employee_id(optional_int(employee_id, "employee_id"))
        return list(
            self._requests.list_requests(
                caller.business_id,
                employee_id=scoped,
                status=optional_choice(status, LeaveStatus, "status"),
                start_date=optional_date(start_date, "start_date"),
                end_date=optional_date(end_date, "end_date"),
                limit=limit,
                offset=offset,
            )
        )

    def decide(self, *, caller: CallerContext, request_id: int, payload: dict) -> LeaveRequest:
        """Approve or reject a pending request."""
        caller.require_manager()
        action = payload.get("action")
        if action not in DECISION_ACTIONS:
            raise ValidationError("action must be approve or reject", field="action")
        target = DECISION_ACTIONS[action]
        rejection_reason = optional_str(payload.get("rejection_reason"))
        if target == LeaveStatus.REJECTED and not rejection_reason:
            raise ValidationError("rejection_reason is required to reject a request", field="rejection_reason")

        current = self._get(caller.business_id, request_id)
        if current.status.is_terminal:
            raise StateError(f"Leave request is already {current.status.value}")

        with self._tx():
            decided = self._requests.decide(
                current.request_id,
                status=target,
                decided_by=caller.user_id,
                decided_at=self._clock().replace(microsecond=0),
                rejection_reason=rejection_reason if target == LeaveStatus.REJECTED else None,
            )
            if not decided:
                raise StateError("Leave request is no longer pending")

            if target == LeaveStatus.APPROVED:
                year = current.start_date.year
                tracked = self._entitlements.get(current.employee_id, current.leave_type_id, year)
                if tracked is not None and not self._entitlements.consume(
                    current.employee_id, current.leave_type_id, year, current.total_days
                ):
                    raise ConflictError("Insufficient leave balance to approve this request")

        logger.info("leave request %s %s", current.request_id, target.value)
        return self._get(caller.business_id, current.request_id)

    def cancel(self, *, caller: CallerContext, request_id: int) -> LeaveRequest:
        current = self._get(caller.business_id, request_id)
        caller.scope_employee_id(current.employee_id)
        if current.status.is_terminal:
            raise StateError(f"Only pending requests can be cancelled (request is {current.status.value})")

        if not self._requests.decide(
            current.request_id,
            status=LeaveStatus.CANCELLED,
            decided_by=caller.user_id,
            decided_at=self._clock().replace(microsecond=0),
        ):
            raise StateError("Leave request is no longer pending")
        return self._get(caller.business_id, current.request_id)
