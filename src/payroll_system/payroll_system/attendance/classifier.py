from __future__ import annotations

from typing import Optional

from ..core.enums import AttendanceStatus
from ..rules.model import AttendanceRule
from .factory import AttendanceStrategyFactory

_factory = AttendanceStrategyFactory()


def classify(late_minutes: int, total_hours: float, rule: Optional[AttendanceRule]) -> AttendanceStatus:
    """Status from lateness and hours worked; `rule=None` applies the fallback thresholds."""
    return _factory.for_rule(rule).classify(late_minutes=late_minutes, total_hours=total_hours)


def overtime(total_hours: float, is_weekend: bool, is_holiday: bool, rule: Optional[AttendanceRule]) -> float:
    return _factory.for_rule(rule).overtime(total_hours=total_hours, is_weekend=is_weekend, is_holiday=is_holiday)
