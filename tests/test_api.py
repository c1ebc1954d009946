from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from types import SimpleNamespace

import pytest

from src.payroll_system.payroll_system.attendance.model import AttendanceRecord
from src.payroll_system.payroll_system.core.enums import AttendanceStatus
from src.payroll_system.payroll_system.core.exceptions import StateError, ValidationError
from src.payroll_system.payroll_system.main import create_app

RECORD = AttendanceRecord(
    attendance_id=11,
    employee_id=7,
    work_date=date(2026, 3, 2),
    clock_in_time=time(9, 20),
    clock_out_time=None,
    status=AttendanceStatus.LATE,
    total_hours=Decimal("0.00"),
    late_minutes=20,
    employee_code="EMP260001",
    employee_name="Lan Tran",
)


class StubAttendanceService:
    def __init__(self):
        self.calls = []

    def clock_in(self, *, caller, payload):
        self.calls.append((caller, payload))
        return RECORD

    def report_rows(self, *, caller, start_date, end_date, employee_id=None):
        return [RECORD]


class StubPayrollService:
    def transition(self, *, caller, payroll_id, payload):
        raise StateError("Cannot change payroll status from paid to draft")

    def create_payroll(self, *, caller, payload):
        raise ValidationError("pay_period_start is required", field="pay_period_start")


@pytest.fixture
def attendance_service():
    return StubAttendanceService()


@pytest.fixture
def client(monkeypatch, attendance_service):
    monkeypatch.setenv("APP_ENV", "testing")
    container = SimpleNamespace(
        employee_service=SimpleNamespace(),
        schedule_service=SimpleNamespace(),
        rule_service=SimpleNamespace(),
        attendance_service=attendance_service,
        payroll_service=StubPayrollService(),
        leave_service=SimpleNamespace(),
        today=lambda: date(2026, 3, 2),
    )
    app = create_app(container=container)
    return app.test_client()


def _login(client, role: str, employee_id=None):
    with client.session_transaction() as sess:
        sess["business_id"] = 1
        sess["role"] = role
        sess["user_id"] = 1
        if employee_id is not None:
            sess["employee_id"] = employee_id


def test_requires_authentication(client):
    resp = client.post("/api/attendance/clock-in", json={})
    assert resp.status_code == 401
    assert resp.get_json()["type"] == "authentication"


def test_employee_is_forbidden_on_admin_routes(client):
    _login(client, "employee", employee_id=7)
    resp = client.put("/api/payroll/1/status", json={"status": "draft"})
    assert resp.status_code == 403


def test_clock_in_serializes_record(client, attendance_service):
    _login(client, "employee", employee_id=7)
    resp = client.post("/api/attendance/clock-in", json={"entry_method": "web"})

    assert resp.status_code == 201
    body = resp.get_json()["attendance"]
    assert body["status"] == "late"
    assert body["clock_in_time"] == "09:20:00"
    assert body["work_date"] == "2026-03-02"
    assert body["total_hours"] == 0.0
    caller, payload = attendance_service.calls[0]
    assert caller.employee_id == 7
    assert payload == {"entry_method": "web"}


def test_state_error_maps_to_conflict_status(client):
    _login(client, "admin")
    resp = client.put("/api/payroll/5/status", json={"status": "draft"})

    assert resp.status_code == 409
    assert resp.get_json()["type"] == "state"


def test_validation_error_carries_field(client):
    _login(client, "business_owner")
    resp = client.post("/api/payroll", json={})

    assert resp.status_code == 400
    assert resp.get_json() == {
        "error": "pay_period_start is required",
        "type": "validation",
        "field": "pay_period_start",
    }


def test_unknown_route_is_json_404(client):
    _login(client, "admin")
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.get_json()["type"] == "not_found"


def test_attendance_report_csv(client):
    _login(client, "manager")
    resp = client.get("/api/attendance/report.csv?start_date=2026-03-01&end_date=2026-03-31")

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    text = resp.data.decode("utf-8-sig")
    assert text.splitlines()[0].startswith("work_date,employee_code,employee_name")
    assert "EMP260001" in text
