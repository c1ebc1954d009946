from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import PayrollStatus
from .model import PayrollRecord, PayrollSummary, PayrollValues


class PayrollRepository(Protocol):
    def get_by_id(self, business_id: int, payroll_id: int) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def create(self, values: PayrollValues) -> int:
        """Insert a draft; ConflictError if the employee already has this period."""

        raise NotImplementedError

    def update_unpaid(self, payroll_id: int, values: PayrollValues) -> bool:
        """Rewrite amounts unless the row is paid; False if nothing was updated."""

        raise NotImplementedError

    def set_status(
        self,
        payroll_id: int,
        *,
        from_status: PayrollStatus,
        to_status: PayrollStatus,
        payment_date: Optional[date] = None,
        pay_method: Optional[str] = None,
    ) -> bool:
        """Compare-and-set on status."""

        raise NotImplementedError

    def delete_unpaid(self, payroll_id: int) -> bool:
        raise NotImplementedError

    def list_payrolls(
        self,
        business_id: int,
        *,
        employee_id: Optional[int] = None,
        status: Optional[PayrollStatus] = None,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[PayrollRecord]:
        raise NotImplementedError

    def summary(
        self,
        business_id: int,
        *,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
    ) -> PayrollSummary:
        raise NotImplementedError
