from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.auth import admin_required, current_caller, login_required
from ..common.datetime_utils import format_clock_time
from ..common.http import json_body, to_json
from ..common.validators import optional_bool, optional_date, optional_int
from .model import WorkSchedule


def schedule_json(schedule: WorkSchedule) -> dict:
    data = to_json(schedule)
    data.pop("days", None)
    for day, hours in schedule.days.items():
        data[f"{day}_start"] = format_clock_time(hours.start)
        data[f"{day}_end"] = format_clock_time(hours.end)
    return data


def register(app: Flask, container) -> None:
    service = container.schedule_service

    @app.route("/api/work-schedules", methods=["GET"], endpoint="work_schedules_list")
    @login_required
    def work_schedules_list():
        is_active = request.args.get("is_active")
        rows = service.list_schedules(
            caller=current_caller(),
            employee_id=optional_int(request.args.get("employee_id"), "employee_id"),
            is_active=None if is_active is None else optional_bool(is_active),
        )
        return jsonify({"schedules": [schedule_json(s) for s in rows]})

    @app.route("/api/work-schedules", methods=["POST"], endpoint="work_schedules_create")
    @admin_required
    def work_schedules_create():
        schedule = service.create_schedule(caller=current_caller(), payload=json_body())
        return jsonify({"schedule": schedule_json(schedule)}), 201

    @app.route("/api/work-schedules/<int:schedule_id>", methods=["GET"], endpoint="work_schedules_get")
    @login_required
    def work_schedules_get(schedule_id: int):
        return jsonify({"schedule": schedule_json(service.get_schedule(caller=current_caller(), schedule_id=schedule_id))})

    @app.route("/api/work-schedules/<int:schedule_id>", methods=["PUT"], endpoint="work_schedules_update")
    @admin_required
    def work_schedules_update(schedule_id: int):
        schedule = service.update_schedule(caller=current_caller(), schedule_id=schedule_id, payload=json_body())
        return jsonify({"schedule": schedule_json(schedule)})

    @app.route("/api/work-schedules/<int:schedule_id>", methods=["DELETE"], endpoint="work_schedules_delete")
    @admin_required
    def work_schedules_delete(schedule_id: int):
        service.delete_schedule(caller=current_caller(), schedule_id=schedule_id)
        return jsonify({"message": "Work schedule deleted"})

    @app.route(
        "/api/work-schedules/employee/<int:employee_id>/current",
        methods=["GET"],
        endpoint="work_schedules_current",
    )
    @login_required
    def work_schedules_current(employee_id: int):
        on_date = optional_date(request.args.get("date"), "date") or container.today()
        schedule = service.current_schedule(caller=current_caller(), employee_id=employee_id, on_date=on_date)
        return jsonify({"schedule": schedule_json(schedule) if schedule else None})
