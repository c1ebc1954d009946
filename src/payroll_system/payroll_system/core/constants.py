"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time
from decimal import Decimal

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500

# Shift boundaries used when no work schedule covers the date.
DEFAULT_SHIFT_START = time(9, 0, 0)
DEFAULT_SHIFT_END = time(17, 0, 0)

# Thresholds applied when the business has no active attendance rule.
FALLBACK_LATE_MINUTES = 30
FALLBACK_HALF_DAY_HOURS = 4

# Attendance rule defaults for newly created rules.
DEFAULT_LATE_GRACE_MINUTES = 15
DEFAULT_HALF_DAY_THRESHOLD_MINUTES = 240
DEFAULT_OVERTIME_THRESHOLD_MINUTES = 480
DEFAULT_OVERTIME_RATE = Decimal("1.5")

# Payroll
OVERTIME_PAY_MULTIPLIER = Decimal("1.5")
IMPLIED_MONTHLY_HOURS = Decimal("160")

# Work schedule defaults
DEFAULT_BREAK_MINUTES = 60
DEFAULT_WEEKLY_HOURS = 40

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

# Upper bound on rows exported in one CSV report.
MAX_REPORT_ROWS = 10000
