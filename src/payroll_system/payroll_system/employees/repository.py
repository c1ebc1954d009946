from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import EmployeeStatus
from .model import Employee, EmployeeStats, NewEmployee


class EmployeeRepository(Protocol):
    """Repository interface for employees.

    Every lookup is scoped by business so one tenant never sees another's rows.
    """

    def get_by_id(self, business_id: int, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def list_employees(
        self,
        business_id: int,
        *,
        status: Optional[EmployeeStatus] = None,
        department: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[Employee]:
        raise NotImplementedError

    def email_exists(self, email: str, *, exclude_employee_id: Optional[int] = None) -> bool:
        raise NotImplementedError

    def max_code_sequence(self, prefix: str) -> int:
        """Highest numeric suffix among codes starting with `prefix` (0 if none)."""

        raise NotImplementedError

    def create(self, new: NewEmployee, *, employee_code: str, password_hash: str) -> int:
        raise NotImplementedError

    def update(self, business_id: int, employee_id: int, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def set_status(self, business_id: int, employee_id: int, status: EmployeeStatus) -> bool:
        raise NotImplementedError

    def set_password_hash(self, business_id: int, employee_id: int, password_hash: str) -> bool:
        raise NotImplementedError

    def stats_overview(self, business_id: int) -> EmployeeStats:
        raise NotImplementedError
