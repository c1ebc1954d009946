from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.auth import admin_required, current_caller, login_required
from ..common.http import json_body, page_args, to_json


def register(app: Flask, container) -> None:
    service = container.leave_service

    @app.route("/api/leaves/types", methods=["GET"], endpoint="leave_types_list")
    @login_required
    def leave_types_list():
        rows = service.list_types(caller=current_caller(), include_inactive=request.args.get("include_inactive"))
        return jsonify({"leave_types": to_json(rows)})

    @app.route("/api/leaves/types", methods=["POST"], endpoint="leave_types_create")
    @admin_required
    def leave_types_create():
        leave_type = service.create_type(caller=current_caller(), payload=json_body())
        return jsonify({"leave_type": to_json(leave_type)}), 201

    @app.route("/api/leaves/entitlements", methods=["GET"], endpoint="leave_entitlements_list")
    @login_required
    def leave_entitlements_list():
        rows = service.list_entitlements(
            caller=current_caller(),
            year=request.args.get("year"),
            employee_id=request.args.get("employee_id"),
        )
        return jsonify({"entitlements": to_json(rows)})

    @app.route("/api/leaves/entitlements", methods=["POST"], endpoint="leave_entitlements_upsert")
    @admin_required
    def leave_entitlements_upsert():
        entitlement = service.set_entitlement(caller=current_caller(), payload=json_body())
        return jsonify({"entitlement": to_json(entitlement)})

    @app.route("/api/leaves/balance/<int:employee_id>", methods=["GET"], endpoint="leave_balance")
    @login_required
    def leave_balance(employee_id: int):
        rows = service.balance(caller=current_caller(), employee_id=employee_id, year=request.args.get("year"))
        return jsonify({"balance": to_json(rows)})

    @app.route("/api/leaves/requests", methods=["GET"], endpoint="leave_requests_list")
    @login_required
    def leave_requests_list():
        limit, offset = page_args()
        rows = service.list_requests(
            caller=current_caller(),
            employee_id=request.args.get("employee_id"),
            status=request.args.get("status"),
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
            limit=limit,
            offset=offset,
        )
        return jsonify({"requests": to_json(rows)})

    @app.route("/api/leaves/requests", methods=["POST"], endpoint="leave_requests_create")
    @login_required
    def leave_requests_create():
        leave_request = service.create_request(caller=current_caller(), payload=json_body())
        return jsonify({"request": to_json(leave_request)}), 201

    @app.route("/api/leaves/requests/<int:request_id>/approve", methods=["PUT"], endpoint="leave_requests_decide")
    @admin_required
    def leave_requests_decide(request_id: int):
        leave_request = service.decide(caller=current_caller(), request_id=request_id, payload=json_body())
        return jsonify({"request": to_json(leave_request)})

    @app.route("/api/leaves/requests/<int:request_id>/cancel", methods=["PUT"], endpoint="leave_requests_cancel")
    @login_required
    def leave_requests_cancel(request_id: int):
        leave_request = service.cancel(caller=current_caller(), request_id=request_id)
        return jsonify({"request": to_json(leave_request)})
