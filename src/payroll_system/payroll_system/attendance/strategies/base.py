from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    overtime_hours: float = 0.0


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how a business classifies attendance."""

    @property
    @abstractmethod
    def late_threshold_minutes(self) -> int:
        """Lateness beyond this many minutes counts as late."""

        raise NotImplementedError

    @abstractmethod
    def classify(self, *, late_minutes: int, total_hours: float) -> AttendanceStatus:
        raise NotImplementedError

    @abstractmethod
    def overtime(self, *, total_hours: float, is_weekend: bool, is_holiday: bool) -> float:
        raise NotImplementedError

    def decide_clock_in(self, *, late_minutes: int) -> StatusDecision:
        # Only lateness is known at clock-in.
        if late_minutes > self.late_threshold_minutes:
            return StatusDecision(status=AttendanceStatus.LATE)
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_clock_out(
        self,
        *,
        late_minutes: int,
        total_hours: float,
        is_weekend: bool,
        is_holiday: bool,
    ) -> StatusDecision:
        total_hours = max(0.0, total_hours)
        return StatusDecision(
            status=self.classify(late_minutes=late_minutes, total_hours=total_hours),
            overtime_hours=max(0.0, self.overtime(total_hours=total_hours, is_weekend=is_weekend, is_holiday=is_holiday)),
        )
