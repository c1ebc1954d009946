"""Wall-clock arithmetic for attendance.

All values are naive `datetime.time` on one shared day, local to the business.
"""

from __future__ import annotations

from datetime import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..common.datetime_utils import minutes_between

HOURS_QUANT = Decimal("0.01")


def working_hours(
    clock_in: Optional[time],
    clock_out: Optional[time],
    break_start: Optional[time] = None,
    break_end: Optional[time] = None,
) -> float:
    """Elapsed hours minus the break; never negative."""
    if clock_in is None or clock_out is None:
        return 0.0

    minutes = minutes_between(clock_in, clock_out)
    if break_start is not None and break_end is not None:
        minutes -= minutes_between(break_start, break_end)
    return max(0.0, minutes) / 60


def late_minutes(actual_start: Optional[time], expected_start: Optional[time]) -> int:
    if actual_start is None or expected_start is None:
        return 0
    return int(max(0.0, minutes_between(expected_start, actual_start)))


def early_departure_minutes(actual_end: Optional[time], expected_end: Optional[time]) -> int:
    if actual_end is None or expected_end is None:
        return 0
    return int(max(0.0, minutes_between(actual_end, expected_end)))


def as_hours(value: float) -> Decimal:
    """Hours as stored: 2 dp, half-up, floored at zero."""
    return max(Decimal("0"), Decimal(str(value)).quantize(HOURS_QUANT, rounding=ROUND_HALF_UP))
