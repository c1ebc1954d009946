from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import LeaveStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, is_duplicate_key
from .model import LeaveEntitlement, LeaveRequest, LeaveType, NewLeaveRequest, NewLeaveType
from .repository import LeaveEntitlementRepository, LeaveRequestRepository, LeaveTypeRepository

_TYPE_COLUMNS = """
    leave_type_id, business_id, name, description, max_days_per_year,
    carry_forward, is_paid, requires_approval, is_active
"""

_ENTITLEMENT_COLUMNS = """
    le.entitlement_id, le.employee_id, le.leave_type_id, le.year, le.total_days,
    le.carried_forward, le.used_days, le.remaining_days,
    lt.name AS leave_type_name, e.employee_code,
    CONCAT(e.first_name, ' ', e.last_name) AS employee_name
"""

_REQUEST_COLUMNS = """
    lr.request_id, lr.business_id, lr.employee_id, lr.leave_type_id, lr.start_date, lr.end_date,
    lr.total_days, lr.reason, lr.emergency_contact, lr.handover_notes, lr.status,
    lr.decided_by, lr.decided_at, lr.rejection_reason, lr.created_at,
    lt.name AS leave_type_name, e.employee_code,
    CONCAT(e.first_name, ' ', e.last_name) AS employee_name
"""


def _row_to_type(r: dict) -> LeaveType:
    return LeaveType(
        leave_type_id=int(r["leave_type_id"]),
        business_id=int(r["business_id"]),
        name=r["name"],
        description=r.get("description"),
        max_days_per_year=as_decimal(r.get("max_days_per_year")),
        carry_forward=bool(r.get("carry_forward")),
        is_paid=bool(r.get("is_paid")),
        requires_approval=bool(r.get("requires_approval")),
        is_active=bool(r.get("is_active")),
    )


def _row_to_entitlement(r: dict) -> LeaveEntitlement:
    return LeaveEntitlement(
        entitlement_id=int(r["entitlement_id"]),
        employee_id=int(r["employee_id"]),
        leave_type_id=int(r["leave_type_id"]),
        year=int(r["year"]),
        total_days=as_decimal(r.get("total_days")),
        carried_forward=as_decimal(r.get("carried_forward")),
        used_days=as_decimal(r.get("used_days")),
        remaining_days=as_decimal(r.get("remaining_days")),
        leave_type_name=r.get("leave_type_name"),
        employee_code=r.get("employee_code"),
        employee_name=r.get("employee_name"),
    )


def _row_to_request(r: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        business_id=int(r["business_id"]),
        employee_id=int(r["employee_id"]),
        leave_type_id=int(r["leave_type_id"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        total_days=as_decimal(r.get("total_days")),
        reason=r["reason"],
        status=LeaveStatus(r["status"]),
        emergency_contact=r.get("emergency_contact"),
        handover_notes=r.get("handover_notes"),
        decided_by=int(r["decided_by"]) if r.get("decided_by") is not None else None,
        decided_at=r.get("decided_at"),
        rejection_reason=r.get("rejection_reason"),
        created_at=r.get("created_at"),
        leave_type_name=r.get("leave_type_name"),
        employee_code=r.get("employee_code"),
        employee_name=r.get("employee_name"),
    )


class MySQLLeaveTypeRepository(LeaveTypeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, business_id: int, leave_type_id: int) -> Optional[LeaveType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_TYPE_COLUMNS} FROM leave_types WHERE leave_type_id=%s AND business_id=%s",
                (int(leave_type_id), int(business_id)),
            )
            r = fetchone(cur)
            return _row_to_type(r) if r else None

    def list_types(self, business_id: int, *, include_inactive: bool = False) -> Sequence[LeaveType]:
        sql = f"SELECT {_TYPE_COLUMNS} FROM leave_types WHERE business_id=%s"
        if not include_inactive:
            sql += " AND is_active=1"
        sql += " ORDER BY name"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (int(business_id),))
            return [_row_to_type(r) for r in fetchall(cur)]

    def create(self, new: NewLeaveType) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO leave_types(
                        business_id, name, description, max_days_per_year,
                        carry_forward, is_paid, requires_approval, is_active
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,1)
                    """,
                    (
                        int(new.business_id),
                        new.name,
                        new.description,
                        new.max_days_per_year,
                        int(new.carry_forward),
                        int(new.is_paid),
                        int(new.requires_approval),
                    ),
                )
            except mysql.connector.Error as e:
                if is_duplicate_key(e):
                    raise ConflictError("Leave type with this name already exists") from e
                raise
            return int(cur.lastrowid)


class MySQLLeaveEntitlementRepository(LeaveEntitlementRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select_one(self, cur, employee_id: int, leave_type_id: int, year: int) -> Optional[LeaveEntitlement]:
        cur.execute(
            f"""
            SELECT {_ENTITLEMENT_COLUMNS}
            FROM leave_entitlements le
            JOIN leave_types lt ON lt.leave_type_id = le.leave_type_id
            JOIN employees e ON e.employee_id = le.employee_id
            WHERE le.employee_id=%s AND le.leave_type_id=%s AND le.year=%s
            """,
            (int(employee_id), int(leave_type_id), int(year)),
        )
        r = fetchone(cur)
        return _row_to_entitlement(r) if r else None

    def get(self, employee_id: int, leave_type_id: int, year: int) -> Optional[LeaveEntitlement]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select_one(cur, employee_id, leave_type_id, year)

    def upsert(
        self,
        *,
        employee_id: int,
        leave_type_id: int,
        year: int,
        total_days: Decimal,
        carried_forward: Decimal,
    ) -> LeaveEntitlement:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_entitlements(employee_id, leave_type_id, year, total_days, carried_forward)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE total_days=VALUES(total_days), carried_forward=VALUES(carried_forward)
                """,
                (int(employee_id), int(leave_type_id), int(year), total_days, carried_forward),
            )
            out = self._select_one(cur, employee_id, leave_type_id, year)
            if out is None:
                raise RuntimeError("Entitlement row missing after upsert")
            return out

    def list_entitlements(
        self,
        business_id: int,
        *,
        year: int,
        employee_id: Optional[int] = None,
    ) -> Sequence[LeaveEntitlement]:
        sql = f"""
            SELECT {_ENTITLEMENT_COLUMNS}
            FROM leave_entitlements le
            JOIN leave_types lt ON lt.leave_type_id = le.leave_type_id
            JOIN employees e ON e.employee_id = le.employee_id
            WHERE e.business_id=%s AND le.year=%s
        """
        params: list[object] = [int(business_id), int(year)]
        if employee_id is not None:
            sql += " AND le.employee_id=%s"
            params.append(int(employee_id))
        sql += " ORDER BY e.employee_code, lt.name"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_entitlement(r) for r in fetchall(cur)]

    def consume(self, employee_id: int, leave_type_id: int, year: int, days: Decimal) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_entitlements
                SET used_days = used_days + %s
                WHERE employee_id=%s AND leave_type_id=%s AND year=%s AND remaining_days >= %s
                """,
                (days, int(employee_id), int(leave_type_id), int(year), days),
            )
            return cur.rowcount > 0


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, business_id: int, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REQUEST_COLUMNS}
                FROM leave_requests lr
                JOIN leave_types lt ON lt.leave_type_id = lr.leave_type_id
                JOIN employees e ON e.employee_id = lr.employee_id
                WHERE lr.request_id=%s AND lr.business_id=%s
                """,
                (int(request_id), int(business_id)),
            )
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def has_overlap(self, employee_id: int, start_date: date, end_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found FROM leave_requests
                WHERE employee_id=%s AND status IN ('pending', 'approved')
                  AND start_date <= %s AND end_date >= %s
                LIMIT 1
                """,
                (int(employee_id), end_date, start_date),
            )
            return fetchone(cur) is not None

    def create(self, new: NewLeaveRequest) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    business_id, employee_id, leave_type_id, start_date, end_date,
                    total_days, reason, emergency_contact, handover_notes, status
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,'pending')
                """,
                (
                    int(new.business_id),
                    int(new.employee_id),
                    int(new.leave_type_id),
                    new.start_date,
                    new.end_date,
                    new.total_days,
                    new.reason,
                    new.emergency_contact,
                    new.handover_notes,
                ),
            )
            return int(cur.lastrowid)

    def decide(
        self,
        request_id: int,
        *,
        status: LeaveStatus,
        decided_by: Optional[int],
        decided_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, decided_by=%s, decided_at=%s, rejection_reason=%s
                WHERE request_id=%s AND status='pending'
                """,
                (status.value, decided_by, decided_at, rejection_reason, int(request_id)),
            )
            return cur.rowcount > 0

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
        clauses = ["lr.business_id=%s"]
        params: list[object] = [int(business_id)]
        if employee_id is not None:
            clauses.append("lr.employee_id=%s")
            params.append(int(employee_id))
        if status is not None:
            clauses.append("lr.status=%s")
            params.append(status.value)
        if start_date is not None:
            clauses.append("lr.end_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("lr.start_date <= %s")
            params.append(end_date)

        where = " AND ".join(clauses)
        params.extend([int(limit), int(offset)])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REQUEST_COLUMNS}
                FROM leave_requests lr
                JOIN leave_types lt ON lt.leave_type_id = lr.leave_type_id
                JOIN employees e ON e.employee_id = lr.employee_id
                WHERE {where}
                ORDER BY lr.created_at DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params),
            )
            return [_row_to_request(r) for r in fetchall(cur)]
