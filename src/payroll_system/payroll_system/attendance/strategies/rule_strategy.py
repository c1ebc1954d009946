from __future__ import annotations

from ...core.enums import AttendanceStatus, LatePenaltyType
from ...rules.model import AttendanceRule
from .base import AttendanceStrategy


class RuleStrategy(AttendanceStrategy):
    """Classification driven by the business's active attendance rule."""

    def __init__(self, rule: AttendanceRule):
        self._rule = rule

    @property
    def late_threshold_minutes(self) -> int:
        return int(self._rule.late_grace_period)

    def classify(self, *, late_minutes: int, total_hours: float) -> AttendanceStatus:
        half_day_hours = self._rule.half_day_threshold / 60

        if late_minutes > self._rule.late_grace_period:
            if self._rule.late_penalty_type == LatePenaltyType.HALF_DAY and total_hours < half_day_hours:
                return AttendanceStatus.HALF_DAY
            return AttendanceStatus.LATE

        if total_hours < half_day_hours:
            return AttendanceStatus.HALF_DAY
        return AttendanceStatus.PRESENT

    def overtime(self, *, total_hours: float, is_weekend: bool, is_holiday: bool) -> float:
        # Whole shift is overtime on eligible weekends/holidays.
        if (is_weekend and self._rule.weekend_overtime) or (is_holiday and self._rule.holiday_overtime):
            return total_hours
        return max(0.0, total_hours - self._rule.overtime_threshold / 60)
