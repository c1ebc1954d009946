from __future__ import annotations

import logging
from contextlib import nullcontext
from decimal import Decimal
from typing import Any, Callable, ContextManager, Optional

from ..common.auth import CallerContext
from ..common.validators import (
    optional_bool,
    optional_decimal,
    optional_non_negative_int,
    optional_time,
    require_choice,
    require_non_empty,
    require_non_negative,
)
from ..core.constants import (
    DEFAULT_HALF_DAY_THRESHOLD_MINUTES,
    DEFAULT_LATE_GRACE_MINUTES,
    DEFAULT_OVERTIME_RATE,
    DEFAULT_OVERTIME_THRESHOLD_MINUTES,
)
from ..core.enums import LatePenaltyType
from ..core.exceptions import NotFoundError, ValidationError
from .model import AttendanceRule
from .repository import AttendanceRuleRepository

logger = logging.getLogger(__name__)

_DEFAULTS: dict[str, Any] = {
    "late_grace_period": DEFAULT_LATE_GRACE_MINUTES,
    "late_penalty_type": LatePenaltyType.NONE,
    "late_penalty_amount": Decimal("0"),
    "half_day_threshold": DEFAULT_HALF_DAY_THRESHOLD_MINUTES,
    "overtime_threshold": DEFAULT_OVERTIME_THRESHOLD_MINUTES,
    "overtime_rate": DEFAULT_OVERTIME_RATE,
    "auto_clock_out": False,
    "auto_clock_out_time": None,
    "weekend_overtime": True,
    "holiday_overtime": True,
}


def parse_rule_fields(payload: dict, *, partial: bool) -> dict[str, Any]:
    """Validate rule fields. With `partial`, only keys present are returned."""
    fields: dict[str, Any] = {}

    def wanted(name: str) -> bool:
        return name in payload or not partial

    if wanted("rule_name"):
        fields["rule_name"] = require_non_empty(payload.get("rule_name"), "rule_name")
    for name in ("late_grace_period", "half_day_threshold", "overtime_threshold"):
        if wanted(name):
            fields[name] = optional_non_negative_int(payload.get(name), name, default=_DEFAULTS[name])
    if wanted("late_penalty_type"):
        value = payload.get("late_penalty_type")
        fields["late_penalty_type"] = (
            _DEFAULTS["late_penalty_type"] if value in (None, "") else require_choice(value, LatePenaltyType, "late_penalty_type")
        )
    if wanted("late_penalty_amount"):
        fields["late_penalty_amount"] = require_non_negative(
            optional_decimal(payload.get("late_penalty_amount"), "late_penalty_amount", default=Decimal("0")),
            "late_penalty_amount",
        )
    if wanted("overtime_rate"):
        rate = optional_decimal(payload.get("overtime_rate"), "overtime_rate", default=DEFAULT_OVERTIME_RATE)
        if rate <= 0:
            raise ValidationError("overtime_rate must be positive", field="overtime_rate")
        fields["overtime_rate"] = rate
    for name in ("auto_clock_out", "weekend_overtime", "holiday_overtime"):
        if wanted(name):
            fields[name] = optional_bool(payload.get(name), default=_DEFAULTS[name])
    if wanted("auto_clock_out_time"):
        fields["auto_clock_out_time"] = optional_time(payload.get("auto_clock_out_time"), "auto_clock_out_time")
    return fields


class AttendanceRuleService:
    """Use case: the business-wide attendance policy."""

    def __init__(self, rules: AttendanceRuleRepository, *, tx: Optional[Callable[[], ContextManager]] = None):
        self._rules = rules
        self._tx = tx or nullcontext

    def create_rule(self, *, caller: CallerContext, payload: dict) -> AttendanceRule:
        caller.require_manager()
        fields = parse_rule_fields(payload, partial=False)
        if fields["auto_clock_out"] and fields["auto_clock_out_time"] is None:
            raise ValidationError("auto_clock_out_time is required when auto_clock_out is on", field="auto_clock_out_time")

        with self._tx():
            rule_id = self._rules.create(caller.business_id, fields)
            if optional_bool(payload.get("is_active"), default=True):
                self._rules.activate(caller.business_id, rule_id)

        logger.info("attendance rule %s created for business %s", rule_id, caller.business_id)
        return self.get_rule(caller=caller, rule_id=rule_id)

    def list_rules(self, *, caller: CallerContext) -> list[AttendanceRule]:
        caller.require_manager()
        return list(self._rules.list_rules(caller.business_id))

    def get_rule(self, *, caller: CallerContext, rule_id: int) -> AttendanceRule:
        rule = self._rules.get_by_id(caller.business_id, int(rule_id))
        if not rule:
            raise NotFoundError("Attendance rule not found")
        return rule

    def get_active_rule(self, *, caller: CallerContext) -> Optional[AttendanceRule]:
        return self._rules.get_active(caller.business_id)

    def update_rule(self, *, caller: CallerContext, rule_id: int, payload: dict) -> AttendanceRule:
        caller.require_manager()
        current = self.get_rule(caller=caller, rule_id=rule_id)
        changes = parse_rule_fields(payload, partial=True)

        auto_on = changes.get("auto_clock_out", current.auto_clock_out)
        auto_time = changes["auto_clock_out_time"] if "auto_clock_out_time" in changes else current.auto_clock_out_time
        if auto_on and auto_time is None:
            raise ValidationError("auto_clock_out_time is required when auto_clock_out is on", field="auto_clock_out_time")

        with self._tx():
            self._rules.update(caller.business_id, current.rule_id, changes)
            if "is_active" in payload:
                if optional_bool(payload.get("is_active")):
                    self._rules.activate(caller.business_id, current.rule_id)
                else:
                    self._rules.deactivate(caller.business_id, current.rule_id)

        return self.get_rule(caller=caller, rule_id=current.rule_id)

    def activate_rule(self, *, caller: CallerContext, rule_id: int) -> AttendanceRule:
        caller.require_manager()
        current = self.get_rule(caller=caller, rule_id=rule_id)
        self._rules.activate(caller.business_id, current.rule_id)
        logger.info("attendance rule %s activated for business %s", current.rule_id, caller.business_id)
        return self.get_rule(caller=caller, rule_id=current.rule_id)
