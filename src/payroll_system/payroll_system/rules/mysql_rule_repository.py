from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..core.enums import LatePenaltyType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import AttendanceRule
from .repository import AttendanceRuleRepository

_COLUMNS = """
    rule_id, business_id, rule_name, late_grace_period, late_penalty_type, late_penalty_amount,
    half_day_threshold, overtime_threshold, overtime_rate, auto_clock_out, auto_clock_out_time,
    weekend_overtime, holiday_overtime, is_active, created_at
"""

RULE_COLUMNS = (
    "rule_name",
    "late_grace_period",
    "late_penalty_type",
    "late_penalty_amount",
    "half_day_threshold",
    "overtime_threshold",
    "overtime_rate",
    "auto_clock_out",
    "auto_clock_out_time",
    "weekend_overtime",
    "holiday_overtime",
)


def _row_to_rule(r: dict) -> AttendanceRule:
    return AttendanceRule(
        rule_id=int(r["rule_id"]),
        business_id=int(r["business_id"]),
        rule_name=r["rule_name"],
        late_grace_period=int(r["late_grace_period"]),
        late_penalty_type=LatePenaltyType(r["late_penalty_type"]),
        late_penalty_amount=as_decimal(r.get("late_penalty_amount")),
        half_day_threshold=int(r["half_day_threshold"]),
        overtime_threshold=int(r["overtime_threshold"]),
        overtime_rate=as_decimal(r.get("overtime_rate")),
        auto_clock_out=bool(r.get("auto_clock_out")),
        auto_clock_out_time=normalize_mysql_time(r.get("auto_clock_out_time")),
        weekend_overtime=bool(r.get("weekend_overtime")),
        holiday_overtime=bool(r.get("holiday_overtime")),
        is_active=bool(r.get("is_active")),
        created_at=r.get("created_at"),
    )


def _db_value(value: Any) -> Any:
    if isinstance(value, LatePenaltyType):
        return value.value
    if isinstance(value, bool):
        return 1 if value else 0
    return value


class MySQLAttendanceRuleRepository(AttendanceRuleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, business_id: int, rule_id: int) -> Optional[AttendanceRule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_rules WHERE rule_id=%s AND business_id=%s",
                (int(rule_id), int(business_id)),
            )
            r = fetchone(cur)
            return _row_to_rule(r) if r else None

    def list_rules(self, business_id: int) -> Sequence[AttendanceRule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_rules
                WHERE business_id=%s
                ORDER BY is_active DESC, created_at DESC, rule_id DESC
                """,
                (int(business_id),),
            )
            return [_row_to_rule(r) for r in fetchall(cur)]

    def get_active(self, business_id: int) -> Optional[AttendanceRule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_rules
                WHERE business_id=%s AND is_active=1
                ORDER BY created_at DESC, rule_id DESC
                LIMIT 1
                """,
                (int(business_id),),
            )
            r = fetchone(cur)
            return _row_to_rule(r) if r else None

    def create(self, business_id: int, fields: Mapping[str, Any]) -> int:
        columns = [c for c in RULE_COLUMNS if c in fields]
        params = [_db_value(fields[c]) for c in columns]
        placeholders = ",".join(["%s"] * (len(columns) + 2))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO attendance_rules(business_id, {", ".join(columns)}, is_active)
                VALUES({placeholders})
                """,
                (int(business_id), *params, 0),
            )
            return int(cur.lastrowid)

    def update(self, business_id: int, rule_id: int, changes: Mapping[str, Any]) -> bool:
        columns = [c for c in RULE_COLUMNS if c in changes]
        if not columns:
            return True
        assignments = ", ".join(f"{c}=%s" for c in columns)
        params = [_db_value(changes[c]) for c in columns]
        params.extend([int(rule_id), int(business_id)])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE attendance_rules SET {assignments} WHERE rule_id=%s AND business_id=%s",
                tuple(params),
            )
            return cur.rowcount > 0

    def activate(self, business_id: int, rule_id: int) -> None:
        # Active row first, so the generated unique column never holds two.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_rules
                SET is_active = (rule_id = %s)
                WHERE business_id=%s
                ORDER BY is_active DESC
                """,
                (int(rule_id), int(business_id)),
            )

    def deactivate(self, business_id: int, rule_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_rules SET is_active=0 WHERE rule_id=%s AND business_id=%s",
                (int(rule_id), int(business_id)),
            )
            return cur.rowcount > 0
