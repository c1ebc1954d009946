from __future__ import annotations

import csv
import io

from flask import Flask, jsonify, request

from ..common.auth import admin_required, current_caller, login_required
from ..common.datetime_utils import format_clock_time
from ..common.http import json_body, page_args, to_json

REPORT_FIELDS = [
    "work_date",
    "employee_code",
    "employee_name",
    "clock_in",
    "clock_out",
    "total_hours",
    "overtime_hours",
    "late_minutes",
    "early_departure_minutes",
    "status",
    "attendance_type",
    "notes",
]


def register(app: Flask, container) -> None:
    service = container.attendance_service

    def _write_report_csv(*, records, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=REPORT_FIELDS)
        writer.writeheader()
        for r in records:
            writer.writerow(
                {
                    "work_date": r.work_date.strftime("%Y-%m-%d"),
                    "employee_code": r.employee_code or "",
                    "employee_name": r.employee_name or "",
                    "clock_in": format_clock_time(r.clock_in_time) or "-",
                    "clock_out": format_clock_time(r.clock_out_time) or "-",
                    "total_hours": f"{r.total_hours:.2f}",
                    "overtime_hours": f"{r.overtime_hours:.2f}",
                    "late_minutes": r.late_minutes,
                    "early_departure_minutes": r.early_departure_minutes,
                    "status": r.status.value,
                    "attendance_type": r.attendance_type.value,
                    "notes": r.notes or "",
                }
            )

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/attendance/clock-in", methods=["POST"], endpoint="attendance_clock_in")
    @login_required
    def attendance_clock_in():
        record = service.clock_in(caller=current_caller(), payload=json_body())
        return jsonify({"attendance": to_json(record)}), 201

    @app.route("/api/attendance/clock-out", methods=["POST"], endpoint="attendance_clock_out")
    @login_required
    def attendance_clock_out():
        record = service.clock_out(caller=current_caller(), payload=json_body())
        return jsonify({"attendance": to_json(record)})

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    @login_required
    def attendance_list():
        limit, offset = page_args()
        rows = service.list_records(
            caller=current_caller(),
            employee_id=request.args.get("employee_id"),
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
            month=request.args.get("month"),
            year=request.args.get("year"),
            status=request.args.get("status"),
            limit=limit,
            offset=offset,
        )
        return jsonify({"attendance": to_json(rows)})

    @app.route("/api/attendance", methods=["POST"], endpoint="attendance_create")
    @admin_required
    def attendance_create():
        record = service.record_manual(caller=current_caller(), payload=json_body())
        return jsonify({"attendance": to_json(record)}), 201

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def attendance_today():
        record = service.today(caller=current_caller(), employee_id=request.args.get("employee_id"))
        return jsonify({"attendance": to_json(record)})

    @app.route("/api/attendance/<int:attendance_id>", methods=["GET"], endpoint="attendance_get")
    @login_required
    def attendance_get(attendance_id: int):
        return jsonify({"attendance": to_json(service.get_record(caller=current_caller(), attendance_id=attendance_id))})

    @app.route("/api/attendance/<int:attendance_id>", methods=["PUT"], endpoint="attendance_update")
    @admin_required
    def attendance_update(attendance_id: int):
        record = service.update_record(caller=current_caller(), attendance_id=attendance_id, payload=json_body())
        return jsonify({"attendance": to_json(record)})

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="attendance_delete")
    @admin_required
    def attendance_delete(attendance_id: int):
        service.delete_record(caller=current_caller(), attendance_id=attendance_id)
        return jsonify({"message": "Attendance record deleted"})

    @app.route("/api/attendance/stats/monthly", methods=["GET"], endpoint="attendance_stats_monthly")
    @login_required
    def attendance_stats_monthly():
        stats = service.monthly_stats(
            caller=current_caller(),
            month=request.args.get("month"),
            year=request.args.get("year"),
            employee_id=request.args.get("employee_id"),
        )
        return jsonify(to_json(stats))

    @app.route("/api/attendance/stats/summary", methods=["GET"], endpoint="attendance_stats_summary")
    @login_required
    def attendance_stats_summary():
        summary = service.summary(
            caller=current_caller(),
            start_date=request.args.get("date_from"),
            end_date=request.args.get("date_to"),
        )
        return jsonify(to_json(summary))

    @app.route("/api/attendance/report.csv", methods=["GET"], endpoint="attendance_report_csv")
    @login_required
    def attendance_report_csv():
        start = request.args.get("start_date")
        end = request.args.get("end_date")
        records = service.report_rows(
            caller=current_caller(),
            start_date=start,
            end_date=end,
            employee_id=request.args.get("employee_id"),
        )
        return _write_report_csv(records=records, filename=f"attendance_{start}_{end}.csv")
