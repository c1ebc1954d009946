from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.auth import admin_required, current_caller, login_required
from ..common.http import json_body, page_args, to_json
from .model import Employee


def employee_json(employee: Employee) -> dict:
    data = to_json(employee)
    data.pop("password_hash", None)
    data["full_name"] = employee.full_name
    return data


def register(app: Flask, container) -> None:
    service = container.employee_service

    @app.route("/api/employees", methods=["GET"], endpoint="employees_list")
    @admin_required
    def employees_list():
        limit, offset = page_args()
        rows = service.list_employees(
            caller=current_caller(),
            status=request.args.get("status"),
            department=request.args.get("department"),
            search=request.args.get("search"),
            limit=limit,
            offset=offset,
        )
        return jsonify({"employees": [employee_json(e) for e in rows]})

    @app.route("/api/employees", methods=["POST"], endpoint="employees_create")
    @admin_required
    def employees_create():
        employee = service.create_employee(caller=current_caller(), payload=json_body())
        return jsonify({"employee": employee_json(employee)}), 201

    @app.route("/api/employees/profile", methods=["GET"], endpoint="employees_profile")
    @login_required
    def employees_profile():
        return jsonify({"employee": employee_json(service.get_profile(caller=current_caller()))})

    @app.route("/api/employees/stats/overview", methods=["GET"], endpoint="employees_stats")
    @admin_required
    def employees_stats():
        return jsonify(to_json(service.stats_overview(caller=current_caller())))

    @app.route("/api/employees/<int:employee_id>", methods=["GET"], endpoint="employees_get")
    @login_required
    def employees_get(employee_id: int):
        employee = service.get_employee(caller=current_caller(), employee_id=employee_id)
        return jsonify({"employee": employee_json(employee)})

    @app.route("/api/employees/<int:employee_id>", methods=["PUT"], endpoint="employees_update")
    @admin_required
    def employees_update(employee_id: int):
        employee = service.update_employee(caller=current_caller(), employee_id=employee_id, payload=json_body())
        return jsonify({"employee": employee_json(employee)})

    @app.route("/api/employees/<int:employee_id>", methods=["DELETE"], endpoint="employees_delete")
    @admin_required
    def employees_delete(employee_id: int):
        service.delete_employee(caller=current_caller(), employee_id=employee_id)
        return jsonify({"message": "Employee terminated"})

    @app.route("/api/employees/<int:employee_id>/reset-password", methods=["POST"], endpoint="employees_reset_password")
    @admin_required
    def employees_reset_password(employee_id: int):
        service.reset_password(
            caller=current_caller(),
            employee_id=employee_id,
            password=json_body().get("password") or "",
        )
        return jsonify({"message": "Password reset successfully"})
