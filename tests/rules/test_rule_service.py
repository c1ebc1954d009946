from __future__ import annotations

import dataclasses
from datetime import time
from typing import Any, Mapping, Optional

import pytest

from src.payroll_system.payroll_system.common.auth import CallerContext
from src.payroll_system.payroll_system.core.enums import LatePenaltyType, Role
from src.payroll_system.payroll_system.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.payroll_system.payroll_system.rules.model import AttendanceRule
from src.payroll_system.payroll_system.rules.service import AttendanceRuleService


class InMemoryRules:
    def __init__(self):
        self.rows: dict[int, AttendanceRule] = {}

    def get_by_id(self, business_id: int, rule_id: int) -> Optional[AttendanceRule]:
        row = self.rows.get(rule_id)
        return row if row and row.business_id == business_id else None

    def list_rules(self, business_id: int) -> list[AttendanceRule]:
        return [r for r in self.rows.values() if r.business_id == business_id]

    def get_active(self, business_id: int) -> Optional[AttendanceRule]:
        active = [r for r in self.list_rules(business_id) if r.is_active]
        return active[-1] if active else None

    def create(self, business_id: int, fields: Mapping[str, Any]) -> int:
        rule_id = len(self.rows) + 1
        self.rows[rule_id] = AttendanceRule(rule_id=rule_id, business_id=business_id, is_active=False, **fields)
        return rule_id

    def update(self, business_id: int, rule_id: int, changes: Mapping[str, Any]) -> bool:
        self.rows[rule_id] = dataclasses.replace(self.rows[rule_id], **changes)
        return True

    def activate(self, business_id: int, rule_id: int) -> None:
        for r in self.list_rules(business_id):
            self.rows[r.rule_id] = dataclasses.replace(r, is_active=r.rule_id == rule_id)

    def deactivate(self, business_id: int, rule_id: int) -> bool:
        self.rows[rule_id] = dataclasses.replace(self.rows[rule_id], is_active=False)
        return True


OWNER = CallerContext(business_id=1, role=Role.BUSINESS_OWNER, user_id=1)
EMPLOYEE_CALLER = CallerContext(business_id=1, role=Role.EMPLOYEE, employee_id=3)


def test_create_applies_defaults_and_activates():
    service = AttendanceRuleService(InMemoryRules())
    rule = service.create_rule(caller=OWNER, payload={"rule_name": "Standard"})

    assert rule.is_active is True
    assert rule.late_grace_period == 15
    assert rule.half_day_threshold == 240
    assert rule.overtime_threshold == 480
    assert rule.late_penalty_type == LatePenaltyType.NONE


def test_activating_leaves_exactly_one_active_rule():
    repo = InMemoryRules()
    service = AttendanceRuleService(repo)
    first = service.create_rule(caller=OWNER, payload={"rule_name": "Standard"})
    second = service.create_rule(caller=OWNER, payload={"rule_name": "Strict", "late_grace_period": 5})

    assert [r.rule_id for r in repo.rows.values() if r.is_active] == [second.rule_id]

    service.activate_rule(caller=OWNER, rule_id=first.rule_id)
    assert [r.rule_id for r in repo.rows.values() if r.is_active] == [first.rule_id]
    assert service.get_active_rule(caller=OWNER).rule_id == first.rule_id


def test_auto_clock_out_requires_time():
    service = AttendanceRuleService(InMemoryRules())
    with pytest.raises(ValidationError):
        service.create_rule(caller=OWNER, payload={"rule_name": "Night", "auto_clock_out": True})

    rule = service.create_rule(
        caller=OWNER, payload={"rule_name": "Night", "auto_clock_out": True, "auto_clock_out_time": "23:00"}
    )
    assert rule.auto_clock_out_time == time(23, 0)


def test_update_changes_only_given_fields():
    service = AttendanceRuleService(InMemoryRules())
    rule = service.create_rule(caller=OWNER, payload={"rule_name": "Standard", "overtime_threshold": 450})

    updated = service.update_rule(caller=OWNER, rule_id=rule.rule_id, payload={"late_penalty_type": "half_day"})

    assert updated.late_penalty_type == LatePenaltyType.HALF_DAY
    assert updated.overtime_threshold == 450


def test_invalid_threshold_is_rejected():
    service = AttendanceRuleService(InMemoryRules())
    with pytest.raises(ValidationError):
        service.create_rule(caller=OWNER, payload={"rule_name": "Bad", "half_day_threshold": -10})


def test_employee_cannot_create_rules():
    service = AttendanceRuleService(InMemoryRules())
    with pytest.raises(AuthorizationError):
        service.create_rule(caller=EMPLOYEE_CALLER, payload={"rule_name": "Mine"})


def test_activate_unknown_rule_is_not_found():
    service = AttendanceRuleService(InMemoryRules())
    with pytest.raises(NotFoundError):
        service.activate_rule(caller=OWNER, rule_id=42)
