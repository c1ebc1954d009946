from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller roles used for authorization."""

    BUSINESS_OWNER = "business_owner"
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"

    @property
    def is_staff_manager(self) -> bool:
        return self != Role.EMPLOYEE


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ON_LEAVE = "on_leave"
    TERMINATED = "terminated"


class EmploymentType(str, Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"


class SalaryType(str, Enum):
    """Pay basis: the unit an employee is paid by."""

    MONTHLY = "monthly"
    DAILY = "daily"
    HOURLY = "hourly"


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored in the database."""

    PRESENT = "present"
    LATE = "late"
    HALF_DAY = "half_day"
    ABSENT = "absent"
    ON_LEAVE = "on_leave"
    HOLIDAY = "holiday"


class AttendanceType(str, Enum):
    REGULAR = "regular"
    WEEKEND = "weekend"
    HOLIDAY = "holiday"


class EntryMethod(str, Enum):
    MANUAL = "manual"
    WEB = "web"
    MOBILE = "mobile"
    QR = "qr"
    BIOMETRIC = "biometric"


class LatePenaltyType(str, Enum):
    NONE = "none"
    HALF_DAY = "half_day"
    DEDUCTION = "deduction"


class PayrollStatus(str, Enum):
    """Payroll lifecycle: draft -> approved -> paid (terminal)."""

    DRAFT = "draft"
    APPROVED = "approved"
    PAID = "paid"


class LeaveStatus(str, Enum):
    """Leave request workflow states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self != LeaveStatus.PENDING
