from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from ..common.datetime_utils import is_weekend
from ..core.constants import DEFAULT_SHIFT_END, DEFAULT_SHIFT_START
from ..rules.model import AttendanceRule
from ..rules.repository import AttendanceRuleRepository
from ..schedules.repository import WorkScheduleRepository


@dataclass(frozen=True)
class ShiftPolicy:
    """What is expected of an employee on one date."""

    expected_start: time
    expected_end: time
    is_weekend: bool
    rule: Optional[AttendanceRule] = None


class AttendancePolicyResolver:
    def __init__(self, schedules: WorkScheduleRepository, rules: AttendanceRuleRepository):
        self._schedules = schedules
        self._rules = rules

    def resolve(self, business_id: int, employee_id: int, work_date: date) -> ShiftPolicy:
        start: Optional[time] = None
        end: Optional[time] = None

        schedule = self._schedules.find_effective(int(employee_id), work_date)
        if schedule:
            hours = schedule.hours_for(work_date)
            start, end = hours.start, hours.end

        return ShiftPolicy(
            expected_start=start or DEFAULT_SHIFT_START,
            expected_end=end or DEFAULT_SHIFT_END,
            is_weekend=is_weekend(work_date),
            rule=self._rules.get_active(int(business_id)),
        )
