from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from decimal import Decimal
from typing import Optional

from ..core.constants import (
    DEFAULT_HALF_DAY_THRESHOLD_MINUTES,
    DEFAULT_LATE_GRACE_MINUTES,
    DEFAULT_OVERTIME_RATE,
    DEFAULT_OVERTIME_THRESHOLD_MINUTES,
)
from ..core.enums import LatePenaltyType


@dataclass(frozen=True)
class AttendanceRule:
    """Per-business attendance policy. Thresholds are in minutes."""

    rule_id: int
    business_id: int
    rule_name: str
    late_grace_period: int = DEFAULT_LATE_GRACE_MINUTES
    late_penalty_type: LatePenaltyType = LatePenaltyType.NONE
    late_penalty_amount: Decimal = Decimal("0")
    half_day_threshold: int = DEFAULT_HALF_DAY_THRESHOLD_MINUTES
    overtime_threshold: int = DEFAULT_OVERTIME_THRESHOLD_MINUTES
    overtime_rate: Decimal = DEFAULT_OVERTIME_RATE
    auto_clock_out: bool = False
    auto_clock_out_time: Optional[time] = None
    weekend_overtime: bool = True
    holiday_overtime: bool = True
    is_active: bool = False
    created_at: Optional[datetime] = None
