from __future__ import annotations

import dataclasses
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest

from src.payroll_system.payroll_system.common.auth import CallerContext
from src.payroll_system.payroll_system.core.enums import LeaveStatus, Role
from src.payroll_system.payroll_system.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StateError,
    ValidationError,
)
from src.payroll_system.payroll_system.leaves.model import (
    LeaveEntitlement,
    LeaveRequest,
    LeaveType,
    NewLeaveRequest,
    NewLeaveType,
)
from src.payroll_system.payroll_system.leaves.service import LeaveService


class InMemoryEmployees:
    def __init__(self, *ids: int):
        self._ids = set(ids)

    def get_by_id(self, business_id: int, employee_id: int):
        return object() if business_id == 1 and employee_id in self._ids else None


class InMemoryTypes:
    def __init__(self):
        self.rows: dict[int, LeaveType] = {}

    def get_by_id(self, business_id: int, leave_type_id: int) -> Optional[LeaveType]:
        row = self.rows.get(leave_type_id)
        return row if row and row.business_id == business_id else None

    def list_types(self, business_id: int, *, include_inactive: bool = False) -> list[LeaveType]:
        return [t for t in self.rows.values() if t.business_id == business_id and (include_inactive or t.is_active)]

    def create(self, new: NewLeaveType) -> int:
        if any(t.business_id == new.business_id and t.name == new.name for t in self.rows.values()):
            raise ConflictError("Leave type with this name already exists")
        leave_type_id = len(self.rows) + 1
        self.rows[leave_type_id] = LeaveType(leave_type_id=leave_type_id, **dataclasses.asdict(new))
        return leave_type_id


class InMemoryEntitlements:
    def __init__(self):
        self.rows: dict[tuple[int, int, int], LeaveEntitlement] = {}

    def _build(self, key, total: Decimal, carried: Decimal, used: Decimal, entitlement_id: int) -> LeaveEntitlement:
        employee_id, leave_type_id, year = key
        return LeaveEntitlement(
            entitlement_id=entitlement_id,
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            year=year,
            total_days=total,
            carried_forward=carried,
            used_days=used,
            remaining_days=total + carried - used,
        )

    def get(self, employee_id: int, leave_type_id: int, year: int) -> Optional[LeaveEntitlement]:
        return self.rows.get((employee_id, leave_type_id, year))

    def upsert(self, *, employee_id, leave_type_id, year, total_days, carried_forward) -> LeaveEntitlement:
        key = (employee_id, leave_type_id, year)
        current = self.rows.get(key)
        used = current.used_days if current else Decimal("0")
        entitlement_id = current.entitlement_id if current else len(self.rows) + 1
        self.rows[key] = self._build(key, total_days, carried_forward, used, entitlement_id)
        return self.rows[key]

    def list_entitlements(self, business_id: int, *, year: int, employee_id=None) -> list[LeaveEntitlement]:
        return [e for e in self.rows.values() if e.year == year and employee_id in (None, e.employee_id)]

    def consume(self, employee_id: int, leave_type_id: int, year: int, days: Decimal) -> bool:
        key = (employee_id, leave_type_id, year)
        current = self.rows[key]
        if current.remaining_days < days:
            return False
        self.rows[key] = self._build(
            key, current.total_days, current.carried_forward, current.used_days + days, current.entitlement_id
        )
        return True


class InMemoryRequests:
    def __init__(self):
        self.rows: dict[int, LeaveRequest] = {}

    def get_by_id(self, business_id: int, request_id: int) -> Optional[LeaveRequest]:
        row = self.rows.get(request_id)
        return row if row and row.business_id == business_id else None

    def has_overlap(self, employee_id: int, start_date: date, end_date: date) -> bool:
        return any(
            r.employee_id == employee_id
            and r.status in (LeaveStatus.PENDING, LeaveStatus.APPROVED)
            and r.start_date <= end_date
            and r.end_date >= start_date
            for r in self.rows.values()
        )

    def create(self, new: NewLeaveRequest) -> int:
        request_id = len(self.rows) + 1
        self.rows[request_id] = LeaveRequest(request_id=request_id, status=LeaveStatus.PENDING, **dataclasses.asdict(new))
        return request_id

    def decide(self, request_id: int, *, status, decided_by, decided_at, rejection_reason=None) -> bool:
        current = self.rows[request_id]
        if current.status != LeaveStatus.PENDING:
            return False
        self.rows[request_id] = dataclasses.replace(
            current, status=status, decided_by=decided_by, decided_at=decided_at, rejection_reason=rejection_reason
        )
        return True

    def list_requests(self, business_id: int, *, employee_id=None, status=None, **_filters) -> list[LeaveRequest]:
        return [
            r
            for r in self.rows.values()
            if employee_id in (None, r.employee_id) and status in (None, r.status)
        ]


class SnapshotTx:
    """Restores the fakes when the unit of work fails, like a rollback."""

    def __init__(self, *stores):
        self._stores = stores

    def __call__(self):
        return self

    def __enter__(self):
        self._saved = [dict(s.rows) for s in self._stores]
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            for store, saved in zip(self._stores, self._saved):
                store.rows = saved
        return False


MANAGER = CallerContext(business_id=1, role=Role.ADMIN, user_id=10)
EMPLOYEE_CALLER = CallerContext(business_id=1, role=Role.EMPLOYEE, employee_id=5)


def _service():
    types, entitlements, requests = InMemoryTypes(), InMemoryEntitlements(), InMemoryRequests()
    service = LeaveService(
        types,
        entitlements,
        requests,
        InMemoryEmployees(5, 6),
        tx=SnapshotTx(entitlements, requests),
        clock=lambda: datetime(2026, 3, 1, 10, 0, 0),
    )
    service.create_type(caller=MANAGER, payload={"name": "Annual", "max_days_per_year": 12})
    return service, entitlements, requests


def _request(service, start="2026-03-02", end="2026-03-06", employee_id=None, caller=EMPLOYEE_CALLER):
    payload = {"leave_type_id": 1, "start_date": start, "end_date": end, "reason": "Family trip"}
    if employee_id is not None:
        payload["employee_id"] = employee_id
    return service.create_request(caller=caller, payload=payload)


def test_duplicate_type_name_conflicts():
    service, _, _ = _service()
    with pytest.raises(ConflictError):
        service.create_type(caller=MANAGER, payload={"name": "Annual"})


def test_request_counts_weekdays_only():
    service, _, _ = _service()
    request = _request(service, start="2026-03-06", end="2026-03-10")

    assert request.total_days == Decimal("3")
    assert request.status == LeaveStatus.PENDING
    assert request.employee_id == 5


def test_insufficient_balance_conflicts():
    service, _, _ = _service()
    service.set_entitlement(caller=MANAGER, payload={"employee_id": 5, "leave_type_id": 1, "year": 2026, "total_days": 2})

    with pytest.raises(ConflictError):
        _request(service)


def test_overlapping_request_conflicts():
    service, _, _ = _service()
    _request(service)
    with pytest.raises(ConflictError):
        _request(service, start="2026-03-05", end="2026-03-09")


def test_approval_consumes_entitlement_and_keeps_invariant():
    service, entitlements, _ = _service()
    service.set_entitlement(
        caller=MANAGER,
        payload={"employee_id": 5, "leave_type_id": 1, "year": 2026, "total_days": 12, "carried_forward": 2},
    )
    first = _request(service)
    second = _request(service, start="2026-04-06", end="2026-04-07")

    service.decide(caller=MANAGER, request_id=first.request_id, payload={"action": "approve"})
    approved = service.decide(caller=MANAGER, request_id=second.request_id, payload={"action": "approve"})

    assert approved.status == LeaveStatus.APPROVED
    assert approved.decided_by == 10
    e = entitlements.get(5, 1, 2026)
    assert e.used_days == Decimal("7")
    assert e.remaining_days == e.total_days + e.carried_forward - e.used_days == Decimal("7")


def test_approval_rolls_back_when_balance_ran_out():
    service, entitlements, requests = _service()
    service.set_entitlement(caller=MANAGER, payload={"employee_id": 5, "leave_type_id": 1, "year": 2026, "total_days": 5})
    request = _request(service)
    service.set_entitlement(caller=MANAGER, payload={"employee_id": 5, "leave_type_id": 1, "year": 2026, "total_days": 3})

    with pytest.raises(ConflictError):
        service.decide(caller=MANAGER, request_id=request.request_id, payload={"action": "approve"})

    assert requests.rows[request.request_id].status == LeaveStatus.PENDING
    assert entitlements.get(5, 1, 2026).used_days == Decimal("0")


def test_reject_requires_reason():
    service, _, _ = _service()
    request = _request(service)

    with pytest.raises(ValidationError):
        service.decide(caller=MANAGER, request_id=request.request_id, payload={"action": "reject"})

    rejected = service.decide(
        caller=MANAGER,
        request_id=request.request_id,
        payload={"action": "reject", "rejection_reason": "Peak season"},
    )
    assert rejected.status == LeaveStatus.REJECTED
    assert rejected.rejection_reason == "Peak season"


def test_cancelling_approved_request_is_state_error():
    service, _, _ = _service()
    request = _request(service)
    service.decide(caller=MANAGER, request_id=request.request_id, payload={"action": "approve"})

    with pytest.raises(StateError):
        service.cancel(caller=EMPLOYEE_CALLER, request_id=request.request_id)
    with pytest.raises(StateError):
        service.decide(caller=MANAGER, request_id=request.request_id, payload={"action": "reject", "rejection_reason": "x"})


def test_employee_cancels_own_pending_request():
    service, _, _ = _service()
    request = _request(service)
    cancelled = service.cancel(caller=EMPLOYEE_CALLER, request_id=request.request_id)
    assert cancelled.status == LeaveStatus.CANCELLED


def test_employee_cannot_touch_other_employees_requests():
    service, _, _ = _service()
    other = _request(service, employee_id=6, caller=MANAGER)

    with pytest.raises(AuthorizationError):
        service.cancel(caller=EMPLOYEE_CALLER, request_id=other.request_id)
    with pytest.raises(AuthorizationError):
        service.decide(caller=EMPLOYEE_CALLER, request_id=other.request_id, payload={"action": "approve"})
    with pytest.raises(AuthorizationError):
        service.balance(caller=EMPLOYEE_CALLER, employee_id=6)


def test_weekend_only_range_is_rejected():
    service, _, _ = _service()
    with pytest.raises(ValidationError):
        _request(service, start="2026-03-07", end="2026-03-08")


def test_unknown_leave_type_is_not_found():
    service, _, _ = _service()
    with pytest.raises(NotFoundError):
        service.create_request(
            caller=EMPLOYEE_CALLER,
            payload={"leave_type_id": 9, "start_date": "2026-03-02", "end_date": "2026-03-02", "reason": "x"},
        )
