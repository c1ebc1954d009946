from datetime import time
from decimal import Decimal

from src.payroll_system.payroll_system.attendance.time_calc import (
    as_hours,
    early_departure_minutes,
    late_minutes,
    working_hours,
)


def test_working_hours_subtracts_break():
    hours = working_hours(time(9, 0), time(17, 30), time(12, 0), time(12, 30))
    assert hours == 8.0


def test_working_hours_ignores_half_given_break():
    assert working_hours(time(9, 0), time(13, 0), time(12, 0), None) == 4.0


def test_working_hours_never_negative_for_inverted_times():
    assert working_hours(time(17, 0), time(9, 0)) == 0.0
    assert working_hours(time(9, 0), time(10, 0), time(8, 0), time(12, 0)) == 0.0


def test_working_hours_zero_without_clock_out():
    assert working_hours(time(9, 0), None) == 0.0


def test_late_minutes_counts_whole_minutes_after_expected_start():
    assert late_minutes(time(9, 20), time(9, 0)) == 20
    assert late_minutes(time(8, 45), time(9, 0)) == 0
    assert late_minutes(None, time(9, 0)) == 0


def test_early_departure_minutes():
    assert early_departure_minutes(time(16, 15), time(17, 0)) == 45
    assert early_departure_minutes(time(17, 30), time(17, 0)) == 0
    assert early_departure_minutes(time(16, 0), None) == 0


def test_as_hours_rounds_half_up_and_floors_at_zero():
    assert as_hours(7.255) == Decimal("7.26")
    assert as_hours(-1.0) == Decimal("0")
