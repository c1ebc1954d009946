from datetime import date, timedelta
from decimal import Decimal

from src.payroll_system.payroll_system.attendance.model import AttendanceRecord
from src.payroll_system.payroll_system.core.enums import AttendanceStatus, EmploymentType, SalaryType
from src.payroll_system.payroll_system.employees.model import Employee
from src.payroll_system.payroll_system.payroll.aggregator import calculate_payroll
from src.payroll_system.payroll_system.payroll.calculator.standard_calculator import (
    DailyPayrollCalculator,
    HourlyPayrollCalculator,
    MonthlyPayrollCalculator,
    calculator_for,
)


def _employee(salary_type: SalaryType, base: str, *, daily_wage=None, hourly_rate=None) -> Employee:
    return Employee(
        employee_id=1,
        business_id=1,
        employee_code="EMP260001",
        first_name="An",
        last_name="Le",
        email="an@example.com",
        password_hash="x",
        hire_date=date(2025, 1, 1),
        employment_type=EmploymentType.FULL_TIME,
        salary_type=salary_type,
        base_salary=Decimal(base),
        daily_wage=Decimal(daily_wage) if daily_wage else None,
        hourly_rate=Decimal(hourly_rate) if hourly_rate else None,
    )


def _records(start: date, statuses, *, hours="8.00", overtime="0.00"):
    return [
        AttendanceRecord(
            attendance_id=i + 1,
            employee_id=1,
            work_date=start + timedelta(days=i),
            clock_in_time=None,
            clock_out_time=None,
            status=status,
            total_hours=Decimal(hours),
            overtime_hours=Decimal(overtime),
        )
        for i, status in enumerate(statuses)
    ]


def test_calculator_for_each_pay_basis():
    assert isinstance(calculator_for(SalaryType.MONTHLY), MonthlyPayrollCalculator)
    assert isinstance(calculator_for(SalaryType.DAILY), DailyPayrollCalculator)
    assert isinstance(calculator_for(SalaryType.HOURLY), HourlyPayrollCalculator)


def test_monthly_prorated_by_present_days_in_thirty_day_month():
    records = _records(date(2026, 4, 1), [AttendanceStatus.PRESENT] * 18 + [AttendanceStatus.LATE] * 2)
    calc = calculate_payroll(_employee(SalaryType.MONTHLY, "3000"), records, date(2026, 4, 1), date(2026, 4, 30))

    assert calc.total_working_days == 20
    assert calc.total_present_days == 18
    assert calc.basic_salary == Decimal("1800.00")


def test_records_outside_period_are_ignored():
    records = _records(date(2026, 3, 30), [AttendanceStatus.PRESENT] * 4)
    calc = calculate_payroll(_employee(SalaryType.DAILY, "0", daily_wage="50"), records, date(2026, 4, 1), date(2026, 4, 30))

    assert calc.total_working_days == 2
    assert calc.basic_salary == Decimal("100.00")


def test_daily_falls_back_to_base_salary():
    records = _records(date(2026, 4, 1), [AttendanceStatus.PRESENT] * 3 + [AttendanceStatus.HALF_DAY])
    calc = calculate_payroll(_employee(SalaryType.DAILY, "40"), records, date(2026, 4, 1), date(2026, 4, 30))

    assert calc.basic_salary == Decimal("120.00")


def test_hourly_pays_total_hours_and_overtime_at_time_and_a_half():
    records = _records(date(2026, 4, 1), [AttendanceStatus.PRESENT, AttendanceStatus.LATE], hours="7.50", overtime="1.25")
    calc = calculate_payroll(
        _employee(SalaryType.HOURLY, "0", hourly_rate="12.5"), records, date(2026, 4, 1), date(2026, 4, 30)
    )

    assert calc.total_hours == Decimal("15.00")
    assert calc.basic_salary == Decimal("187.50")
    assert calc.total_overtime_hours == Decimal("2.50")
    assert calc.overtime_amount == Decimal("46.88")


def test_monthly_overtime_uses_implied_hourly_rate():
    records = _records(date(2026, 4, 1), [AttendanceStatus.PRESENT], overtime="2.00")
    calc = calculate_payroll(_employee(SalaryType.MONTHLY, "3200"), records, date(2026, 4, 1), date(2026, 4, 30))

    assert calc.overtime_amount == Decimal("60.00")


def test_monthly_rounds_half_up():
    records = _records(date(2026, 5, 1), [AttendanceStatus.PRESENT])
    calc = calculate_payroll(_employee(SalaryType.MONTHLY, "1000"), records, date(2026, 5, 1), date(2026, 5, 31))

    assert calc.basic_salary == Decimal("32.26")
