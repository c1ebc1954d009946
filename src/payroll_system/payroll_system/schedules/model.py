from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal
from typing import Optional

from ..core.constants import DEFAULT_BREAK_MINUTES, DEFAULT_WEEKLY_HOURS, WEEKDAYS


@dataclass(frozen=True)
class DayHours:
    start: Optional[time] = None
    end: Optional[time] = None


def empty_week() -> dict[str, DayHours]:
    return {day: DayHours() for day in WEEKDAYS}


@dataclass(frozen=True)
class WorkSchedule:
    """Versioned weekly schedule of one employee.

    `days` maps monday..sunday to that weekday's expected start/end. A day
    without times is not a scheduled working day.
    """

    schedule_id: int
    business_id: int
    employee_id: int
    schedule_name: str
    effective_from: date
    effective_to: Optional[date] = None
    days: dict[str, DayHours] = field(default_factory=empty_week)
    break_duration: int = DEFAULT_BREAK_MINUTES
    weekly_hours: Decimal = Decimal(DEFAULT_WEEKLY_HOURS)
    is_active: bool = True

    def hours_for(self, work_date: date) -> DayHours:
        return self.days.get(WEEKDAYS[work_date.weekday()], DayHours())


@dataclass(frozen=True)
class NewWorkSchedule:
    business_id: int
    employee_id: int
    schedule_name: str
    effective_from: date
    effective_to: Optional[date]
    days: dict[str, DayHours]
    break_duration: int = DEFAULT_BREAK_MINUTES
    weekly_hours: Decimal = Decimal(DEFAULT_WEEKLY_HOURS)
