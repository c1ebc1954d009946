from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import NewWorkSchedule, WorkSchedule


class WorkScheduleRepository(Protocol):
    def get_by_id(self, business_id: int, schedule_id: int) -> Optional[WorkSchedule]:
        raise NotImplementedError

    def list_schedules(
        self,
        business_id: int,
        *,
        employee_id: Optional[int] = None,
        is_active: Optional[bool] = None,
    ) -> Sequence[WorkSchedule]:
        raise NotImplementedError

    def find_effective(self, employee_id: int, work_date: date) -> Optional[WorkSchedule]:
        """Schedule whose date range covers `work_date`; latest effective_from wins."""

        raise NotImplementedError

    def create(self, new: NewWorkSchedule) -> int:
        raise NotImplementedError

    def update(self, business_id: int, schedule_id: int, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def activate(self, business_id: int, employee_id: int, schedule_id: int) -> None:
        """Make `schedule_id` the only active schedule of the employee, atomically."""

        raise NotImplementedError

    def deactivate(self, business_id: int, schedule_id: int) -> bool:
        raise NotImplementedError

    def delete(self, business_id: int, schedule_id: int) -> bool:
        raise NotImplementedError
