from __future__ import annotations

from ...core.constants import FALLBACK_HALF_DAY_HOURS, FALLBACK_LATE_MINUTES
from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy


class FallbackStrategy(AttendanceStrategy):
    """Used when the business has no active rule. Never yields overtime."""

    @property
    def late_threshold_minutes(self) -> int:
        return FALLBACK_LATE_MINUTES

    def classify(self, *, late_minutes: int, total_hours: float) -> AttendanceStatus:
        if late_minutes > FALLBACK_LATE_MINUTES:
            return AttendanceStatus.LATE
        if total_hours < FALLBACK_HALF_DAY_HOURS:
            return AttendanceStatus.HALF_DAY
        return AttendanceStatus.PRESENT

    def overtime(self, *, total_hours: float, is_weekend: bool, is_holiday: bool) -> float:
        return 0.0
