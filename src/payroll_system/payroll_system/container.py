from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from functools import partial
from typing import Callable, Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.policy import AttendancePolicyResolver
from .attendance.service import AttendanceService
from .common.datetime_utils import now_local
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.service import EmployeeService
from .leaves.mysql_leave_repository import (
    MySQLLeaveEntitlementRepository,
    MySQLLeaveRequestRepository,
    MySQLLeaveTypeRepository,
)
from .leaves.service import LeaveService
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.service import PayrollService
from .rules.mysql_rule_repository import MySQLAttendanceRuleRepository
from .rules.service import AttendanceRuleService
from .schedules.mysql_schedule_repository import MySQLWorkScheduleRepository
from .schedules.service import WorkScheduleService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    clock: Callable[[], datetime]

    employees_repo: MySQLEmployeeRepository
    schedules_repo: MySQLWorkScheduleRepository
    rules_repo: MySQLAttendanceRuleRepository
    attendance_repo: MySQLAttendanceRepository
    payroll_repo: MySQLPayrollRepository
    leave_types_repo: MySQLLeaveTypeRepository
    leave_entitlements_repo: MySQLLeaveEntitlementRepository
    leave_requests_repo: MySQLLeaveRequestRepository

    employee_service: EmployeeService
    schedule_service: WorkScheduleService
    rule_service: AttendanceRuleService
    attendance_service: AttendanceService
    payroll_service: PayrollService
    leave_service: LeaveService

    def today(self) -> date:
        return self.clock().date()


def build_container(*, db_config: dict, timezone: Optional[str] = None) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)
    clock = partial(now_local, timezone)
    tx = conn.transaction

    employees_repo = MySQLEmployeeRepository(conn)
    schedules_repo = MySQLWorkScheduleRepository(conn)
    rules_repo = MySQLAttendanceRuleRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    payroll_repo = MySQLPayrollRepository(conn)
    leave_types_repo = MySQLLeaveTypeRepository(conn)
    leave_entitlements_repo = MySQLLeaveEntitlementRepository(conn)
    leave_requests_repo = MySQLLeaveRequestRepository(conn)

    employee_service = EmployeeService(employees_repo, clock=clock)
    schedule_service = WorkScheduleService(schedules_repo, employees_repo, tx=tx)
    rule_service = AttendanceRuleService(rules_repo, tx=tx)
    attendance_service = AttendanceService(
        attendance_repo,
        employees_repo,
        AttendancePolicyResolver(schedules_repo, rules_repo),
        strategy_factory=AttendanceStrategyFactory(),
        tx=tx,
        clock=clock,
    )
    payroll_service = PayrollService(payroll_repo, employees_repo, attendance_repo, tx=tx)
    leave_service = LeaveService(
        leave_types_repo,
        leave_entitlements_repo,
        leave_requests_repo,
        employees_repo,
        tx=tx,
        clock=clock,
    )

    return Container(
        conn=conn,
        clock=clock,
        employees_repo=employees_repo,
        schedules_repo=schedules_repo,
        rules_repo=rules_repo,
        attendance_repo=attendance_repo,
        payroll_repo=payroll_repo,
        leave_types_repo=leave_types_repo,
        leave_entitlements_repo=leave_entitlements_repo,
        leave_requests_repo=leave_requests_repo,
        employee_service=employee_service,
        schedule_service=schedule_service,
        rule_service=rule_service,
        attendance_service=attendance_service,
        payroll_service=payroll_service,
        leave_service=leave_service,
    )
